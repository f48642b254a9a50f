"""Command-line interface for running the histogramming tasks on event inputs."""

from __future__ import annotations

import argparse
import importlib.util
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any

from .driver import run_example_task, run_pair_correlation
from .histograms import HistogramRegistry
from .io import load_config_json, load_events_json, write_histograms_table
from .models import ProcessPass, TaskConfig

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Define and return the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="trackhist",
        description="Fill track spectra and two-particle correlation histograms from event tables.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    example = sub.add_parser(
        "example-task",
        help="Reco spectra, pt resolution and per-species reco/generated spectra.",
    )
    _add_common_arguments(example)
    example.add_argument("--n-bins-pt", type=int, default=None, help="Number of bins of pT axes.")
    example.add_argument("--no-reco", action="store_true", help="Disable the reconstructed-track pass.")
    example.add_argument("--no-sim", action="store_true", help="Disable the pure-simulation pass.")
    example.add_argument("--min-crossed-rows", type=int, default=None, help="Track cut: minimum TPC crossed rows.")
    example.add_argument("--max-dca-xy", type=float, default=None, help="Track cut: maximum |DCA_xy|.")

    corr = sub.add_parser(
        "pair-correlation",
        help="Trigger/associated azimuthal correlation per collision.",
    )
    _add_common_arguments(corr)
    corr.add_argument("--n-bins-col-z", type=int, default=None, help="Number of bins of the vertex-z axis.")
    corr.add_argument("--max-pos-z", type=float, default=None, help="Collision cut: maximum |z| of the vertex.")
    return parser


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--events",
        required=True,
        help="Input JSON with lists 'collisions', 'tracks' and optional 'mc_collisions', 'mc_particles'.",
    )
    parser.add_argument("--config", default=None, help="Optional JSON file with task tunables.")
    parser.add_argument(
        "--out",
        required=True,
        help="Output table file for histogram bins (.parquet, .csv, .pkl).",
    )
    parser.add_argument(
        "--custom-script",
        default=None,
        help="Path to Python file with process(histos, context) function.",
    )


def build_config(args: argparse.Namespace) -> TaskConfig:
    """Merge defaults, optional config file and CLI overrides."""
    config = TaskConfig()
    if args.config:
        config = load_config_json(args.config, base=config)
    if getattr(args, "n_bins_pt", None) is not None:
        config = replace(config, n_bins_pt=args.n_bins_pt)
    if getattr(args, "n_bins_col_z", None) is not None:
        config = replace(config, n_bins_col_z=args.n_bins_col_z)
    if getattr(args, "no_reco", False):
        config = replace(config, passes=config.passes & ~ProcessPass.RECO)
    if getattr(args, "no_sim", False):
        config = replace(config, passes=config.passes & ~ProcessPass.SIM)
    if getattr(args, "min_crossed_rows", None) is not None:
        config = replace(
            config, track_quality=replace(config.track_quality, min_crossed_rows=args.min_crossed_rows)
        )
    if getattr(args, "max_dca_xy", None) is not None:
        config = replace(
            config, track_quality=replace(config.track_quality, max_abs_dca_xy=args.max_dca_xy)
        )
    if getattr(args, "max_pos_z", None) is not None:
        config = replace(
            config, correlation=replace(config.correlation, max_abs_pos_z=args.max_pos_z)
        )
    return config


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint: load inputs, run the task, write table, optional custom hook."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = build_config(args)
    tables = load_events_json(args.events)

    if args.command == "example-task":
        if config.passes == ProcessPass.NONE:
            logger.warning("All process passes are disabled; histograms stay empty.")
        result = run_example_task(tables, config)
        histos = result.histos
        extra: dict[str, Any] = {"sim_summaries": result.sim_summaries}
    else:
        result = run_pair_correlation(tables, config)
        histos = result.histos
        extra = {"n_pairs": result.n_pairs}

    write_histograms_table(args.out, histos)

    if args.custom_script:
        run_custom_script(
            script_path=args.custom_script,
            histos=histos,
            context={
                "command": args.command,
                "events_path": args.events,
                "config": config,
                "output_path": args.out,
                **extra,
            },
        )
    return 0


def run_custom_script(
    script_path: str, histos: HistogramRegistry, context: dict[str, Any]
) -> None:
    """Execute user-supplied post-processing callback `process(histos, context)`."""
    module = _load_module(script_path)
    process = getattr(module, "process", None)
    if process is None or not callable(process):
        raise ValueError(
            f"Custom script {script_path} must define callable process(histos, context)."
        )
    process(histos, context)


def _load_module(script_path: str):
    """Import a Python module from an arbitrary file path."""
    path = Path(script_path)
    spec = importlib.util.spec_from_file_location(path.stem, path)
    if spec is None or spec.loader is None:
        raise ValueError(f"Cannot import custom script: {script_path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


if __name__ == "__main__":
    raise SystemExit(main())
