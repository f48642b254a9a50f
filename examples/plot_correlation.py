"""Plot histograms from a table written by `trackhist ... --out`.

Draws every 1-D histogram found in the table as a step plot and the 2-D
correlation as a colour map.
"""

from __future__ import annotations

import argparse
from pathlib import Path

from trackhist.io import load_histograms_table


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint for quick plotting of histogram tables."""
    parser = argparse.ArgumentParser(description="Plot trackhist histogram tables.")
    parser.add_argument("--input", required=True, help="Path to .parquet/.csv/.pkl output.")
    parser.add_argument("--out-dir", default=None, help="Directory for PNG files (default: next to input).")
    args = parser.parse_args(argv)

    df = load_histograms_table(args.input)
    try:
        import matplotlib.pyplot as plt  # type: ignore
    except ModuleNotFoundError:
        print("matplotlib not installed; skipping plot.")
        return 0

    out_dir = Path(args.out_dir) if args.out_dir else Path(args.input).parent
    out_dir.mkdir(parents=True, exist_ok=True)

    for name, group in df.groupby("histogram"):
        # Flow bins have infinite edges and are not drawn.
        inner = group[(group["low0"] > -float("inf")) & (group["high0"] < float("inf"))]
        ndim = int(group["ndim"].iloc[0])
        fig, ax = plt.subplots(figsize=(8, 5))
        if ndim == 1:
            edges = list(inner["low0"]) + [inner["high0"].iloc[-1]]
            ax.stairs(inner["count"].to_numpy(), edges, linewidth=1.4)
            ax.set_xlabel(inner["label0"].iloc[0] or name)
            ax.set_ylabel("Entries")
        else:
            inner = inner[(inner["low1"] > -float("inf")) & (inner["high1"] < float("inf"))]
            grid = inner.pivot(index="low1", columns="low0", values="count")
            mesh = ax.pcolormesh(grid.columns, grid.index, grid.to_numpy(), shading="auto")
            fig.colorbar(mesh, ax=ax)
            ax.set_xlabel(inner["label0"].iloc[0] or name)
            ax.set_ylabel(inner["label1"].iloc[0] or "")
        ax.set_title(name)
        fig.tight_layout()
        out = out_dir / f"{name}.png"
        fig.savefig(out, dpi=120)
        plt.close(fig)
        print(f"Saved plot: {out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
