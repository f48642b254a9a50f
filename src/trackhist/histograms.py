"""Histogram booking and filling keyed by enumerated histogram ids.

Every histogram is booked once from explicit axis specifications and is only
ever filled or merged afterwards. Axes are regular with under/overflow, so a
value outside the booked range is counted in a flow bin and the axis never
grows.
"""

from __future__ import annotations
__author__ = "Renato Quagliani <rquaglia@cern.ch>"


import enum
import logging
import math
from dataclasses import dataclass
from typing import Iterator, Sequence

import hist

logger = logging.getLogger(__name__)


class HistogramId(enum.Enum):
    """Identifiers of every histogram produced by the tasks."""

    EVENT_COUNTER = enum.auto()
    ETA = enum.auto()
    PT = enum.auto()
    PT_RESOLUTION = enum.auto()
    PT_RECO_PION = enum.auto()
    PT_RECO_KAON = enum.auto()
    PT_RECO_PROTON = enum.auto()
    PT_GENERATED_PION = enum.auto()
    PT_GENERATED_KAON = enum.auto()
    PT_GENERATED_PROTON = enum.auto()
    NUMBER_OF_RECO_COLLISIONS = enum.auto()
    COL_Z = enum.auto()
    PT_ASSOCIATED = enum.auto()
    PT_TRIGGER = enum.auto()
    CORRELATION = enum.auto()
    CORRELATION_2D = enum.auto()


@dataclass(frozen=True)
class AxisSpec:
    """Regular binning `(bins, low, high)` with a name and a display label."""

    bins: int
    low: float
    high: float
    label: str = ""
    name: str = "x"

    def to_axis(self, name: str | None = None) -> hist.axis.Regular:
        """Build the `hist` axis for this spec."""
        if self.bins <= 0:
            raise ValueError(f"Axis '{self.name}' needs a positive bin count, got {self.bins}.")
        if not self.high > self.low:
            raise ValueError(f"Axis '{self.name}' needs high > low, got [{self.low}, {self.high}].")
        return hist.axis.Regular(
            int(self.bins), float(self.low), float(self.high), name=name or self.name, label=self.label
        )


@dataclass(frozen=True)
class HistogramSpec:
    """Booking request: id, export name/title and one or two axes."""

    hist_id: HistogramId
    name: str
    axes: tuple[AxisSpec, ...]
    title: str | None = None

    def build(self) -> hist.Hist:
        """Create an empty histogram with double storage."""
        if len(self.axes) not in (1, 2):
            raise ValueError("Only 1-D and 2-D histograms are supported.")
        names = [a.name for a in self.axes]
        if len(set(names)) != len(names):
            # hist requires distinct axis names inside one histogram.
            names = [f"{n}{i}" for i, n in enumerate(names)]
        axes = [a.to_axis(name=n) for a, n in zip(self.axes, names, strict=True)]
        return hist.Hist(*axes, storage=hist.storage.Double(), name=self.name, label=self.title or self.name)


class HistogramRegistry:
    """Owner of a fixed set of booked histograms."""

    def __init__(self, name: str, specs: Sequence[HistogramSpec] = ()) -> None:
        self.name = name
        self._specs: dict[HistogramId, HistogramSpec] = {}
        self._histograms: dict[HistogramId, hist.Hist] = {}
        for spec in specs:
            self.add(spec)

    def add(self, spec: HistogramSpec) -> hist.Hist:
        """Book one histogram. Booking the same id twice is an error."""
        if spec.hist_id in self._histograms:
            raise ValueError(f"Histogram {spec.hist_id.name} is already booked in '{self.name}'.")
        if any(s.name == spec.name for s in self._specs.values()):
            raise ValueError(f"Histogram name '{spec.name}' is already used in '{self.name}'.")
        h = spec.build()
        self._specs[spec.hist_id] = spec
        self._histograms[spec.hist_id] = h
        logger.debug("Booked %s '%s' in registry '%s'", spec.hist_id.name, spec.name, self.name)
        return h

    def fill(self, hist_id: HistogramId, *values: float, weight: float = 1.0) -> None:
        """Add one entry. The number of values must match the histogram dimension."""
        h = self[hist_id]
        if len(values) != h.ndim:
            raise ValueError(
                f"Histogram {hist_id.name} has {h.ndim} axes, got {len(values)} values."
            )
        h.fill(*values, weight=weight)

    def __getitem__(self, hist_id: HistogramId) -> hist.Hist:
        try:
            return self._histograms[hist_id]
        except KeyError as exc:
            raise KeyError(f"Histogram {hist_id.name} is not booked in '{self.name}'.") from exc

    def __contains__(self, hist_id: object) -> bool:
        return hist_id in self._histograms

    def __iter__(self) -> Iterator[HistogramId]:
        return iter(self._histograms)

    def __len__(self) -> int:
        return len(self._histograms)

    def spec(self, hist_id: HistogramId) -> HistogramSpec:
        """Booking spec of one histogram."""
        return self._specs[hist_id]

    def entries(self, hist_id: HistogramId) -> float:
        """Sum of weights including under/overflow."""
        return float(self[hist_id].sum(flow=True))

    def merge(self, other: "HistogramRegistry") -> None:
        """Add the contents of a registry booked with the same specs."""
        if set(other._specs) != set(self._specs):
            raise ValueError(f"Cannot merge registry '{other.name}' into '{self.name}': booking differs.")
        for hist_id, spec in self._specs.items():
            if other._specs[hist_id] != spec:
                raise ValueError(f"Cannot merge {hist_id.name}: axis specs differ.")
            self._histograms[hist_id] += other._histograms[hist_id]

    def summary(self) -> dict[str, float]:
        """Export name -> entries, for logging and quick checks."""
        return {self._specs[k].name: self.entries(k) for k in self._histograms}


def pt_axis(n_bins_pt: int, label: str = "p_{T}") -> AxisSpec:
    """Transverse-momentum axis shared by most spectra."""
    return AxisSpec(n_bins_pt, 0.0, 10.0, label, name="pt")


def delta_phi_axis() -> AxisSpec:
    """Axis of the folded azimuthal difference."""
    return AxisSpec(100, -0.5 * math.pi, 1.5 * math.pi, "#Delta#phi", name="delta_phi")
