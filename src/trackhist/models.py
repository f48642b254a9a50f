"""Core data models used by the track-histogramming tasks.

This module defines:
- immutable event records (`Collision`, `McCollision`, `Track`, `McParticle`)
- configurable selection controls (`TrackQualityCuts`, `PrimarySelection`,
  `CorrelationBands`)
- task configuration (`ProcessPass`, `TaskConfig`)
- per-event outputs that are not histograms (`SimSummary`).
"""

from __future__ import annotations
__author__ = "Renato Quagliani <rquaglia@cern.ch>"


import enum
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Collision:
    """One reconstructed collision (primary vertex) of the event."""

    collision_id: int
    pos_z: float
    mc_collision_id: int | None = None  # reco -> sim label, if simulated


@dataclass(frozen=True)
class McCollision:
    """One simulated collision; may be reconstructed zero, one or many times."""

    mc_collision_id: int


@dataclass(frozen=True)
class Track:
    """Single reconstructed charged-particle track.

    Kinematics are given at the primary vertex. `dca_xy` is the transverse
    distance of closest approach to the owning collision.
    """

    track_id: int
    collision_id: int
    pt: float
    eta: float
    phi: float
    tpc_n_cls_crossed_rows: int
    dca_xy: float
    mc_particle_id: int | None = None

    @property
    def has_mc_particle(self) -> bool:
        """True when the track carries a link to a simulated particle."""
        return self.mc_particle_id is not None


@dataclass(frozen=True)
class McParticle:
    """Simulated truth particle."""

    mc_particle_id: int
    mc_collision_id: int
    pt: float
    y: float  # rapidity
    pdg_code: int
    is_physical_primary: bool = False


@dataclass(frozen=True)
class TrackQualityCuts:
    """Track-level quality cuts applied before any reco histogram fill."""

    min_crossed_rows: int = 70
    max_abs_dca_xy: float = 0.2


@dataclass(frozen=True)
class PrimarySelection:
    """Truth-level acceptance for the per-species pt spectra."""

    max_abs_rapidity: float = 0.5


@dataclass(frozen=True)
class CorrelationBands:
    """Collision filter and pt bands of the two-particle correlation."""

    assoc_min_pt: float = 4.0
    assoc_max_pt: float = 6.0
    trigger_min_pt: float = 6.0
    max_abs_pos_z: float = 10.0


class ProcessPass(enum.Flag):
    """Per-event passes of the reco/sim task that can be switched on or off."""

    NONE = 0
    RECO = enum.auto()
    SIM = enum.auto()

    @classmethod
    def from_names(cls, names) -> "ProcessPass":
        """Combine pass names (`"reco"`, `"sim"`) into one flag value."""
        out = cls.NONE
        for name in names:
            key = str(name).strip().upper()
            if key not in ("RECO", "SIM"):
                raise ValueError(f"Unknown process pass '{name}'. Supported passes: reco, sim")
            out |= cls[key]
        return out


@dataclass(frozen=True)
class TaskConfig:
    """Startup tunables of both tasks."""

    n_bins_pt: int = 100
    n_bins_col_z: int = 50
    passes: ProcessPass = ProcessPass.RECO | ProcessPass.SIM
    track_quality: TrackQualityCuts = field(default_factory=TrackQualityCuts)
    primary_selection: PrimarySelection = field(default_factory=PrimarySelection)
    correlation: CorrelationBands = field(default_factory=CorrelationBands)


@dataclass(frozen=True)
class SimSummary:
    """Diagnostic output of the sim pass for one simulated collision."""

    mc_collision_id: int
    n_reco_collisions: int
    tracks_per_collision: tuple[int, ...] = ()
