"""Event loops that feed event tables into the analysis tasks."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .histograms import HistogramRegistry
from .models import ProcessPass, SimSummary, TaskConfig
from .tables import EventTables
from .tasks import ExampleTask, PairCorrelationConsumer

logger = logging.getLogger(__name__)


@dataclass
class ExampleTaskResult:
    """Histograms and per-MC-collision summaries of one reco/sim run."""

    histos: HistogramRegistry
    n_collisions: int = 0
    n_accepted_tracks: int = 0
    sim_summaries: list[SimSummary] = field(default_factory=list)


@dataclass
class PairCorrelationResult:
    """Histograms and counters of one correlation run."""

    histos: HistogramRegistry
    n_collisions: int = 0
    n_pairs: int = 0


def run_example_task(
    tables: EventTables,
    config: TaskConfig | None = None,
    task: ExampleTask | None = None,
) -> ExampleTaskResult:
    """Run the enabled passes of `ExampleTask` over all tables.

    Pass an existing `task` to keep accumulating into its histograms; its own
    config is used, so passing `config` as well raises `ValueError`.
    """
    if task is not None and config is not None:
        raise ValueError("Pass either config or task, not both.")
    task = task or ExampleTask(config=config or TaskConfig())
    result = ExampleTaskResult(histos=task.histos)

    if ProcessPass.RECO in task.passes:
        for collision in tables.collisions:
            result.n_accepted_tracks += task.process_reco(
                collision,
                tables.tracks.slice_by(collision.collision_id),
                tables.mc_particle_index,
            )
            result.n_collisions += 1
        logger.info(
            "Reco pass: %d collisions, %d accepted tracks",
            result.n_collisions,
            result.n_accepted_tracks,
        )

    if ProcessPass.SIM in task.passes:
        for mc_collision in tables.mc_collisions:
            summary = task.process_sim(
                mc_collision,
                tables.matched_collisions(mc_collision.mc_collision_id),
                tables.particles_of(mc_collision.mc_collision_id),
                tables.tracks,
            )
            result.sim_summaries.append(summary)
        n_split = sum(1 for s in result.sim_summaries if s.n_reco_collisions > 1)
        n_lost = sum(1 for s in result.sim_summaries if s.n_reco_collisions == 0)
        logger.info(
            "Sim pass: %d MC collisions (%d split, %d not reconstructed)",
            len(result.sim_summaries),
            n_split,
            n_lost,
        )
    return result


def run_pair_correlation(
    tables: EventTables,
    config: TaskConfig | None = None,
    consumer: PairCorrelationConsumer | None = None,
) -> PairCorrelationResult:
    """Run `PairCorrelationConsumer` over every collision passing the vertex filter.

    An existing `consumer` brings its own config; passing `config` too raises
    `ValueError`.
    """
    if consumer is not None and config is not None:
        raise ValueError("Pass either config or consumer, not both.")
    consumer = consumer or PairCorrelationConsumer(config=config or TaskConfig())
    result = PairCorrelationResult(histos=consumer.histos)
    for collision in tables.collisions:
        if not consumer.accepts(collision):
            continue
        result.n_pairs += consumer.process(collision, tables.tracks)
        result.n_collisions += 1
    logger.info(
        "Correlation: %d/%d collisions accepted, %d pairs",
        result.n_collisions,
        len(tables.collisions),
        result.n_pairs,
    )
    return result


def run_workflow(
    tables: EventTables, config: TaskConfig | None = None
) -> tuple[ExampleTaskResult, PairCorrelationResult]:
    """Run both tasks on the same tables with independent histogram sets."""
    config = config or TaskConfig()
    return run_example_task(tables, config), run_pair_correlation(tables, config)
