"""Physics/math helpers for track selection and pair correlations."""

from __future__ import annotations
__author__ = "Renato Quagliani <rquaglia@cern.ch>"


import math

from .models import (
    Collision,
    CorrelationBands,
    McParticle,
    PrimarySelection,
    Track,
    TrackQualityCuts,
)

_DEFAULT_QUALITY = TrackQualityCuts()
_DEFAULT_PRIMARY = PrimarySelection()
_DEFAULT_BANDS = CorrelationBands()


def compute_delta_phi(phi1: float, phi2: float) -> float:
    """Azimuthal difference `phi1 - phi2` folded into [-pi/2, 3pi/2].

    The fold is a single shift by 2pi in either direction, so inputs are
    expected to be azimuthal angles within one turn of each other.
    """
    delta_phi = phi1 - phi2
    if delta_phi < -math.pi / 2.0:
        delta_phi += 2.0 * math.pi
    if delta_phi > 3.0 * math.pi / 2.0:
        delta_phi -= 2.0 * math.pi
    return delta_phi


def passes_track_quality(track: Track, cuts: TrackQualityCuts = _DEFAULT_QUALITY) -> bool:
    """Apply crossed-rows and transverse DCA cuts to one track."""
    if track.tpc_n_cls_crossed_rows < cuts.min_crossed_rows:
        return False
    if abs(track.dca_xy) > cuts.max_abs_dca_xy:
        return False
    return True


def is_primary_in_acceptance(
    particle: McParticle, selection: PrimarySelection = _DEFAULT_PRIMARY
) -> bool:
    """Physical primary within the central rapidity window."""
    return particle.is_physical_primary and abs(particle.y) < selection.max_abs_rapidity


def accepts_collision(collision: Collision, bands: CorrelationBands = _DEFAULT_BANDS) -> bool:
    """Vertex-z window of the correlation analysis."""
    return abs(collision.pos_z) < bands.max_abs_pos_z


def is_associated(track: Track, bands: CorrelationBands = _DEFAULT_BANDS) -> bool:
    """Associated-particle pt band (open interval)."""
    return bands.assoc_min_pt < track.pt < bands.assoc_max_pt


def is_trigger(track: Track, bands: CorrelationBands = _DEFAULT_BANDS) -> bool:
    """Trigger-particle pt band (open below)."""
    return track.pt > bands.trigger_min_pt
