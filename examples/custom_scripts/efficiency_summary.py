"""Example custom callback: per-species reco/generated ratio in |y| < 0.5."""

from __future__ import annotations
__author__ = "Renato Quagliani <rquaglia@cern.ch>"


import json
from pathlib import Path

from trackhist import HistogramId

_PAIRS = {
    "pion": (HistogramId.PT_RECO_PION, HistogramId.PT_GENERATED_PION),
    "kaon": (HistogramId.PT_RECO_KAON, HistogramId.PT_GENERATED_KAON),
    "proton": (HistogramId.PT_RECO_PROTON, HistogramId.PT_GENERATED_PROTON),
}


def process(histos, context):
    """Write integrated efficiencies and split-vertex counts to JSON."""
    if context["command"] != "example-task":
        print("efficiency_summary only applies to example-task output; skipping.")
        return
    summary = {}
    for name, (reco_id, gen_id) in _PAIRS.items():
        reco = histos.entries(reco_id)
        gen = histos.entries(gen_id)
        summary[name] = {"reco": reco, "generated": gen, "efficiency": reco / gen if gen else None}
    summaries = context.get("sim_summaries", [])
    summary["n_mc_collisions"] = len(summaries)
    summary["n_split"] = sum(1 for s in summaries if s.n_reco_collisions > 1)
    out = Path(context["output_path"]).with_name("efficiency_summary.json")
    out.write_text(json.dumps(summary, indent=2), encoding="utf-8")
    print(f"Wrote {out}")
