"""Input/output helpers for JSON inputs and tabular histogram export."""

from __future__ import annotations
__author__ = "Renato Quagliani <rquaglia@cern.ch>"


import json
import logging
import math
from dataclasses import fields, replace
from pathlib import Path
from typing import Any

import numpy as np

from .histograms import HistogramRegistry
from .models import (
    Collision,
    CorrelationBands,
    McCollision,
    McParticle,
    PrimarySelection,
    ProcessPass,
    TaskConfig,
    Track,
    TrackQualityCuts,
)
from .tables import EventTables

logger = logging.getLogger(__name__)

_CONFIG_SECTIONS = {
    "track_quality": TrackQualityCuts,
    "primary_selection": PrimarySelection,
    "correlation": CorrelationBands,
}


def load_events_json(path: str | Path) -> EventTables:
    """Load event tables JSON into an `EventTables` bundle.

    Expected shape:
    {
      "collisions": [{"collision_id": 0, "pos_z": 1.2, "mc_collision_id": 0}, ...],
      "tracks": [{"track_id": 0, "collision_id": 0, "pt": ..., ...}, ...],
      "mc_collisions": [{"mc_collision_id": 0}, ...],       (optional)
      "mc_particles": [{"mc_particle_id": 0, ...}, ...]     (optional)
    }
    """
    data = _load_json(path)
    context = f"{path}"
    collisions = [
        _parse_collision_item(item=item, idx=idx, context=context)
        for idx, item in enumerate(_require_list(data, "collisions", context))
    ]
    tracks = [
        _parse_track_item(item=item, idx=idx, context=context)
        for idx, item in enumerate(_require_list(data, "tracks", context))
    ]
    mc_collisions = [
        _parse_mc_collision_item(item=item, idx=idx, context=context)
        for idx, item in enumerate(_optional_list(data, "mc_collisions", context))
    ]
    mc_particles = [
        _parse_mc_particle_item(item=item, idx=idx, context=context)
        for idx, item in enumerate(_optional_list(data, "mc_particles", context))
    ]
    tables = EventTables(
        collisions=collisions,
        tracks=tracks,
        mc_collisions=mc_collisions,
        mc_particles=mc_particles,
    )
    logger.info(
        "Loaded %d collisions, %d tracks, %d MC collisions, %d MC particles from %s",
        len(collisions),
        len(tracks),
        len(mc_collisions),
        len(mc_particles),
        path,
    )
    return tables


def load_config_json(path: str | Path, base: TaskConfig | None = None) -> TaskConfig:
    """Load task tunables from JSON, starting from `base` (defaults if None).

    Supported keys: `n_bins_pt`, `n_bins_col_z`, `passes` (list of pass
    names) and the sections `track_quality`, `primary_selection`,
    `correlation` holding the fields of the matching cut objects.
    """
    data = _load_json(path)
    config = base or TaskConfig()
    updates: dict[str, Any] = {}
    for key, value in data.items():
        if key in ("n_bins_pt", "n_bins_col_z"):
            updates[key] = int(value)
        elif key == "passes":
            if not isinstance(value, list):
                raise ValueError("Config field 'passes' must be a list of pass names.")
            updates[key] = ProcessPass.from_names(value)
        elif key in _CONFIG_SECTIONS:
            updates[key] = _parse_section(key, value, getattr(config, key))
        else:
            raise ValueError(f"Unknown config key '{key}' in {path}.")
    return replace(config, **updates)


def write_histograms_table(path: str | Path, registry: HistogramRegistry) -> None:
    """Write all bins of a registry into a Parquet/CSV/Pickle table."""
    pd = _require_pandas()
    df = pd.DataFrame(_histogram_rows(registry))
    out = Path(path)
    suffix = out.suffix.lower()
    if suffix == ".parquet":
        df.to_parquet(out, index=False)
    elif suffix in (".pkl", ".pickle"):
        df.to_pickle(out)
    elif suffix == ".csv":
        df.to_csv(out, index=False)
    else:
        raise ValueError(
            f"Unsupported output format '{suffix}'. Use .parquet, .csv, or .pkl"
        )
    logger.info("Wrote %d histograms (%d rows) to %s", len(registry), len(df), out)


def load_histograms_table(path: str | Path):
    """Load a histogram table written by `write_histograms_table`."""
    pd = _require_pandas()
    p = Path(path)
    suffix = p.suffix.lower()
    if suffix == ".parquet":
        return pd.read_parquet(p)
    if suffix == ".csv":
        return pd.read_csv(p)
    if suffix in (".pkl", ".pickle"):
        return pd.read_pickle(p)
    raise ValueError("Supported input formats: .parquet, .csv, .pkl")


def _histogram_rows(registry: HistogramRegistry) -> list[dict[str, Any]]:
    """Flatten histograms into one row per bin, flow bins included.

    Flow bins carry infinite edges; bin index 0 is underflow.
    """
    rows: list[dict[str, Any]] = []
    for hist_id in registry:
        spec = registry.spec(hist_id)
        h = registry[hist_id]
        bounds = [_axis_bin_bounds(axis) for axis in h.axes]
        values = np.asarray(h.values(flow=True))
        for index in np.ndindex(values.shape):
            row: dict[str, Any] = {
                "histogram": spec.name,
                "hist_id": hist_id.name,
                "ndim": h.ndim,
            }
            for dim in range(2):
                if dim < h.ndim:
                    low, high = bounds[dim][index[dim]]
                    row[f"bin{dim}"] = int(index[dim])
                    row[f"low{dim}"] = low
                    row[f"high{dim}"] = high
                    row[f"label{dim}"] = h.axes[dim].label
                else:
                    row[f"bin{dim}"] = None
                    row[f"low{dim}"] = None
                    row[f"high{dim}"] = None
                    row[f"label{dim}"] = None
            row["count"] = float(values[index])
            rows.append(row)
    return rows


def _axis_bin_bounds(axis) -> list[tuple[float, float]]:
    """Return `(low, high)` per bin including underflow and overflow."""
    edges = [float(e) for e in axis.edges]
    inner = list(zip(edges[:-1], edges[1:]))
    return [(-math.inf, edges[0]), *inner, (edges[-1], math.inf)]


def _require_pandas():
    """Import pandas lazily and provide a clear installation hint on failure."""
    try:
        import pandas as pd  # type: ignore
    except ModuleNotFoundError as exc:
        raise ModuleNotFoundError(
            "pandas is required to write output tables. Install pandas and pyarrow."
        ) from exc
    return pd


def _first_field(item: dict, *names: str) -> Any:
    """Value of the first present key among `names`; KeyError on the first name otherwise."""
    for name in names:
        if name in item:
            return item[name]
    raise KeyError(names[0])


def _parse_collision_item(item: Any, idx: int, context: str) -> Collision:
    """Parse one collision dictionary into a `Collision`."""
    if not isinstance(item, dict):
        raise ValueError(f"Collision entry at index {idx} in {context} must be an object.")
    try:
        mc_id = item.get("mc_collision_id")
        return Collision(
            collision_id=int(item.get("collision_id", idx)),
            pos_z=float(_first_field(item, "pos_z", "posZ")),
            mc_collision_id=None if mc_id is None or int(mc_id) < 0 else int(mc_id),
        )
    except KeyError as exc:
        raise ValueError(f"Collision at index {idx} in {context} is missing field {exc}.") from exc


def _parse_track_item(item: Any, idx: int, context: str) -> Track:
    """Parse one track dictionary into a `Track`."""
    if not isinstance(item, dict):
        raise ValueError(f"Track entry at index {idx} in {context} must be an object.")
    try:
        mc_id = item.get("mc_particle_id")
        return Track(
            track_id=int(item.get("track_id", idx)),
            collision_id=int(item["collision_id"]),
            pt=float(item["pt"]),
            eta=float(item["eta"]),
            phi=float(item["phi"]),
            tpc_n_cls_crossed_rows=int(_first_field(item, "tpc_n_cls_crossed_rows", "crossed_rows")),
            dca_xy=float(item["dca_xy"]),
            # Negative labels mean "no particle", as in the derived-data format.
            mc_particle_id=None if mc_id is None or int(mc_id) < 0 else int(mc_id),
        )
    except KeyError as exc:
        raise ValueError(f"Track at index {idx} in {context} is missing field {exc}.") from exc


def _parse_mc_collision_item(item: Any, idx: int, context: str) -> McCollision:
    """Parse one simulated-collision dictionary into a `McCollision`."""
    if not isinstance(item, dict):
        raise ValueError(f"MC collision entry at index {idx} in {context} must be an object.")
    return McCollision(mc_collision_id=int(item.get("mc_collision_id", idx)))


def _parse_mc_particle_item(item: Any, idx: int, context: str) -> McParticle:
    """Parse one simulated-particle dictionary into a `McParticle`."""
    if not isinstance(item, dict):
        raise ValueError(f"MC particle entry at index {idx} in {context} must be an object.")
    try:
        return McParticle(
            mc_particle_id=int(item.get("mc_particle_id", idx)),
            mc_collision_id=int(item["mc_collision_id"]),
            pt=float(item["pt"]),
            y=float(item["y"]),
            pdg_code=int(item["pdg_code"]),
            is_physical_primary=bool(item.get("is_physical_primary", False)),
        )
    except KeyError as exc:
        raise ValueError(f"MC particle at index {idx} in {context} is missing field {exc}.") from exc


def _parse_section(name: str, value: Any, current):
    """Apply a JSON object onto one frozen cut dataclass."""
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{name}' must be an object.")
    known = {f.name: f for f in fields(current)}
    unknown = sorted(set(value) - set(known))
    if unknown:
        raise ValueError(f"Unknown keys in config section '{name}': {', '.join(unknown)}")
    parsed = {k: (int(v) if known[k].type in (int, "int") else float(v)) for k, v in value.items()}
    return replace(current, **parsed)


def _require_list(data: dict[str, Any], key: str, context: str) -> list[Any]:
    """Return a mandatory list field of a JSON object."""
    value = data.get(key)
    if not isinstance(value, list):
        raise ValueError(f"Input JSON {context} must contain a list under key '{key}'.")
    return value


def _optional_list(data: dict[str, Any], key: str, context: str) -> list[Any]:
    """Return an optional list field of a JSON object (empty if absent)."""
    value = data.get(key, [])
    if not isinstance(value, list):
        raise ValueError(f"Input JSON {context} key '{key}' must be a list.")
    return value


def _load_json(path: str | Path) -> dict[str, Any]:
    """Read and validate a JSON object document from disk."""
    raw = Path(path).read_text(encoding="utf-8")
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError(f"JSON document at {path} must be an object.")
    return data
