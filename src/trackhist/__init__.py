"""Public package exports for the track-histogramming tasks."""
__author__ = "Renato Quagliani <rquaglia@cern.ch>"


from .driver import run_example_task, run_pair_correlation, run_workflow
from .histograms import AxisSpec, HistogramId, HistogramRegistry, HistogramSpec
from .models import (
    Collision,
    CorrelationBands,
    McCollision,
    McParticle,
    PrimarySelection,
    ProcessPass,
    SimSummary,
    TaskConfig,
    Track,
    TrackQualityCuts,
)
from .physics import compute_delta_phi, passes_track_quality
from .species import Species, species_from_pdg
from .tables import EventTables, Partition, TrackTable
from .tasks import ExampleTask, PairCorrelationConsumer

__all__ = [
    "ExampleTask",
    "PairCorrelationConsumer",
    "Collision",
    "McCollision",
    "Track",
    "McParticle",
    "TrackQualityCuts",
    "PrimarySelection",
    "CorrelationBands",
    "ProcessPass",
    "TaskConfig",
    "SimSummary",
    "AxisSpec",
    "HistogramId",
    "HistogramSpec",
    "HistogramRegistry",
    "EventTables",
    "TrackTable",
    "Partition",
    "Species",
    "species_from_pdg",
    "compute_delta_phi",
    "passes_track_quality",
    "run_example_task",
    "run_pair_correlation",
    "run_workflow",
]
