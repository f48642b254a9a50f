"""API example: run both tasks on a JSON sample and write histogram tables.

Run from repository root without installation:
    PYTHONPATH=src python examples/make_toy_events.py
    PYTHONPATH=src python examples/run_tasks_api.py
"""

from __future__ import annotations
__author__ = "Renato Quagliani <rquaglia@cern.ch>"


import logging
from pathlib import Path

from trackhist import HistogramId, TaskConfig, run_workflow
from trackhist.io import load_events_json, write_histograms_table


def main() -> int:
    """Load events, fill all histograms, and write two parquet tables."""
    logging.basicConfig(level=logging.INFO)
    tables = load_events_json("examples/events.json")
    example, correlation = run_workflow(tables, TaskConfig(n_bins_pt=50))

    write_histograms_table(Path("examples/example_task.parquet"), example.histos)
    write_histograms_table(Path("examples/pair_correlation.parquet"), correlation.histos)

    n_split = sum(1 for s in example.sim_summaries if s.n_reco_collisions > 1)
    reco_pions = example.histos.entries(HistogramId.PT_RECO_PION)
    gen_pions = example.histos.entries(HistogramId.PT_GENERATED_PION)
    print(f"Split MC collisions: {n_split}")
    print(f"Pion reco/generated in |y|<0.5: {reco_pions:.0f}/{gen_pions:.0f}")
    print(f"Trigger-associated pairs: {correlation.n_pairs}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
