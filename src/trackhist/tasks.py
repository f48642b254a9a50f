"""Per-event analysis tasks that fill histograms from event tables.

Two independent tasks are provided:
- `ExampleTask`: reco-track spectra, pt resolution and per-species
  reconstructed/generated spectra, with reco and sim passes switchable.
- `PairCorrelationConsumer`: trigger/associated two-particle azimuthal
  correlation inside one collision.

Each `process*` method handles one event and only adds to the task's own
histogram registry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from itertools import product
from typing import Mapping, Sequence

from .histograms import (
    AxisSpec,
    HistogramId,
    HistogramRegistry,
    HistogramSpec,
    delta_phi_axis,
    pt_axis,
)
from .models import (
    Collision,
    McCollision,
    McParticle,
    ProcessPass,
    SimSummary,
    TaskConfig,
    Track,
)
from .physics import (
    accepts_collision,
    compute_delta_phi,
    is_associated,
    is_primary_in_acceptance,
    is_trigger,
    passes_track_quality,
)
from .species import Species, species_from_pdg
from .tables import Partition, TrackTable

logger = logging.getLogger(__name__)

_RECO_SPECIES_HISTOGRAMS: dict[Species, HistogramId] = {
    Species.PION: HistogramId.PT_RECO_PION,
    Species.KAON: HistogramId.PT_RECO_KAON,
    Species.PROTON: HistogramId.PT_RECO_PROTON,
}

_GENERATED_SPECIES_HISTOGRAMS: dict[Species, HistogramId] = {
    Species.PION: HistogramId.PT_GENERATED_PION,
    Species.KAON: HistogramId.PT_GENERATED_KAON,
    Species.PROTON: HistogramId.PT_GENERATED_PROTON,
}


def example_task_histograms(n_bins_pt: int) -> tuple[HistogramSpec, ...]:
    """Booking list of the reco/sim task."""
    axis_counter = AxisSpec(1, 0.0, 1.0, "hello", name="counter")
    axis_eta = AxisSpec(30, -1.5, 1.5, "#eta", name="eta")
    axis_pt = pt_axis(n_bins_pt)
    axis_delta_pt = AxisSpec(100, -1.0, 1.0, "#Delta(p_{T})", name="delta_pt")
    axis_reco_counter = AxisSpec(10, 0.0, 10.0, "count", name="count")
    return (
        HistogramSpec(HistogramId.EVENT_COUNTER, "eventCounterHistogram", (axis_counter,)),
        HistogramSpec(HistogramId.ETA, "eta1Histogram", (axis_eta,)),
        HistogramSpec(HistogramId.PT, "ptHistogram", (axis_pt,)),
        HistogramSpec(HistogramId.PT_RESOLUTION, "ptResolution", (axis_pt, axis_delta_pt)),
        HistogramSpec(HistogramId.PT_RECO_PION, "ptHistogramPion", (axis_pt,)),
        HistogramSpec(HistogramId.PT_RECO_KAON, "ptHistogramKaon", (axis_pt,)),
        HistogramSpec(HistogramId.PT_RECO_PROTON, "ptHistogramProton", (axis_pt,)),
        HistogramSpec(HistogramId.PT_GENERATED_PION, "ptGeneratedPion", (axis_pt,)),
        HistogramSpec(HistogramId.PT_GENERATED_KAON, "ptGeneratedKaon", (axis_pt,)),
        HistogramSpec(HistogramId.PT_GENERATED_PROTON, "ptGeneratedProton", (axis_pt,)),
        HistogramSpec(
            HistogramId.NUMBER_OF_RECO_COLLISIONS, "numberOfRecoCollisions", (axis_reco_counter,)
        ),
    )


def pair_correlation_histograms(n_bins_col_z: int) -> tuple[HistogramSpec, ...]:
    """Booking list of the correlation consumer."""
    axis_counter = AxisSpec(1, 0.0, 1.0, "", name="counter")
    axis_col_z = AxisSpec(n_bins_col_z, -20.0, 20.0, "colZ", name="col_z")
    axis_pt_as = AxisSpec(100, 0.0, 10.0, "ptAs", name="pt")
    axis_pt_tr = AxisSpec(100, 0.0, 10.0, "ptTr", name="pt")
    axis_delta_eta = AxisSpec(100, -1.0, 1.0, "#Delta#eta", name="delta_eta")
    return (
        HistogramSpec(HistogramId.EVENT_COUNTER, "eventCounter", (axis_counter,)),
        HistogramSpec(HistogramId.COL_Z, "hColZ", (axis_col_z,)),
        HistogramSpec(HistogramId.PT_ASSOCIATED, "hPtAs", (axis_pt_as,)),
        HistogramSpec(HistogramId.PT_TRIGGER, "hPtTr", (axis_pt_tr,)),
        HistogramSpec(HistogramId.CORRELATION, "correlationFunction", (delta_phi_axis(),)),
        HistogramSpec(
            HistogramId.CORRELATION_2D, "correlationFunction2d", (delta_phi_axis(), axis_delta_eta)
        ),
    )


@dataclass
class ExampleTask:
    """Reco-track spectra plus truth-matched and generated species spectra."""

    config: TaskConfig = field(default_factory=TaskConfig)
    histos: HistogramRegistry = field(init=False)

    def __post_init__(self) -> None:
        self.histos = HistogramRegistry(
            "histos", example_task_histograms(self.config.n_bins_pt)
        )

    @property
    def passes(self) -> ProcessPass:
        return self.config.passes

    def process_reco(
        self,
        collision: Collision,
        tracks: Sequence[Track],
        mc_particles: Mapping[int, McParticle],
    ) -> int:
        """Fill reco spectra for one collision and return the accepted-track count.

        `tracks` are the tracks of this collision only. `mc_particles` maps
        particle id to particle; a link to an id missing from it is handled as
        no link.
        """
        cuts = self.config.track_quality
        selection = self.config.primary_selection
        self.histos.fill(HistogramId.EVENT_COUNTER, 0.5)
        n_accepted = 0
        for track in tracks:
            if not passes_track_quality(track, cuts):
                continue
            n_accepted += 1
            self.histos.fill(HistogramId.ETA, track.eta)
            self.histos.fill(HistogramId.PT, track.pt)
            if not track.has_mc_particle:
                continue
            mc_particle = mc_particles.get(track.mc_particle_id)
            if mc_particle is None:
                continue
            self.histos.fill(HistogramId.PT_RESOLUTION, track.pt, track.pt - mc_particle.pt)
            # Truth acceptance is evaluated in the context of the matched track.
            if is_primary_in_acceptance(mc_particle, selection):
                self._fill_species(_RECO_SPECIES_HISTOGRAMS, mc_particle)
        logger.debug(
            "Collision %s: %d/%d tracks accepted", collision.collision_id, n_accepted, len(tracks)
        )
        return n_accepted

    def process_sim(
        self,
        mc_collision: McCollision,
        collisions: Sequence[Collision],
        mc_particles: Sequence[McParticle],
        tracks: TrackTable,
    ) -> SimSummary:
        """Fill generated spectra and the reconstruction multiplicity of one MC collision.

        `collisions` is the explicit (possibly empty) list of reconstructed
        collisions matched to `mc_collision`.
        """
        self.histos.fill(HistogramId.NUMBER_OF_RECO_COLLISIONS, len(collisions))

        selection = self.config.primary_selection
        for mc_particle in mc_particles:
            if is_primary_in_acceptance(mc_particle, selection):
                self._fill_species(_GENERATED_SPECIES_HISTOGRAMS, mc_particle)

        # Track multiplicity of each reconstruction helps understand split vertices.
        tracks_per_collision = tuple(len(tracks.slice_by(c.collision_id)) for c in collisions)
        if len(collisions) > 1:
            logger.debug(
                "MC collision %s reconstructed %d times, tracks per copy: %s",
                mc_collision.mc_collision_id,
                len(collisions),
                tracks_per_collision,
            )
        return SimSummary(
            mc_collision_id=mc_collision.mc_collision_id,
            n_reco_collisions=len(collisions),
            tracks_per_collision=tracks_per_collision,
        )

    def _fill_species(self, targets: Mapping[Species, HistogramId], mc_particle: McParticle) -> None:
        species = species_from_pdg(mc_particle.pdg_code)
        if species is None:
            return
        self.histos.fill(targets[species], mc_particle.pt)


@dataclass
class PairCorrelationConsumer:
    """Trigger x associated azimuthal correlation within each collision."""

    config: TaskConfig = field(default_factory=TaskConfig)
    histos: HistogramRegistry = field(init=False)
    associated: Partition = field(init=False)
    trigger: Partition = field(init=False)

    def __post_init__(self) -> None:
        bands = self.config.correlation
        self.histos = HistogramRegistry(
            "histos", pair_correlation_histograms(self.config.n_bins_col_z)
        )
        self.associated = Partition(
            f"associated[{bands.assoc_min_pt:g},{bands.assoc_max_pt:g}]",
            lambda t: is_associated(t, bands),
        )
        self.trigger = Partition(
            f"trigger[{bands.trigger_min_pt:g},inf]",
            lambda t: is_trigger(t, bands),
        )

    def accepts(self, collision: Collision) -> bool:
        """Collision-level vertex-z filter."""
        return accepts_collision(collision, self.config.correlation)

    def process(self, collision: Collision, tracks: TrackTable) -> int:
        """Fill correlation histograms for one collision and return the pair count.

        Collisions outside the vertex-z window are skipped entirely and
        return 0.
        """
        if not self.accepts(collision):
            return 0
        self.histos.fill(HistogramId.EVENT_COUNTER, 0.5)
        self.histos.fill(HistogramId.COL_Z, collision.pos_z)

        assoc_tracks = tracks.slice_by_cached(self.associated, collision.collision_id)
        trig_tracks = tracks.slice_by_cached(self.trigger, collision.collision_id)

        for track in assoc_tracks:
            self.histos.fill(HistogramId.PT_ASSOCIATED, track.pt)
        for track in trig_tracks:
            self.histos.fill(HistogramId.PT_TRIGGER, track.pt)

        n_pairs = 0
        for trig, assoc in product(trig_tracks, assoc_tracks):
            delta_phi = compute_delta_phi(trig.phi, assoc.phi)
            self.histos.fill(HistogramId.CORRELATION, delta_phi)
            self.histos.fill(HistogramId.CORRELATION_2D, delta_phi, trig.eta - assoc.eta)
            n_pairs += 1
        return n_pairs
