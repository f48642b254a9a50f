"""In-memory event tables with explicit per-collision grouping.

Tracks and particles are grouped once by their owning collision id, so each
per-event routine sees only its own members. Named partitions (pt bands) are
grouped lazily and cached per table.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Hashable, Iterable, Iterator, Sequence, TypeVar

from .models import Collision, McCollision, McParticle, Track

logger = logging.getLogger(__name__)

T = TypeVar("T")


def group_by(records: Iterable[T], key: Callable[[T], Hashable]) -> dict[Hashable, tuple[T, ...]]:
    """Group records by key, keeping input order inside each group."""
    groups: dict[Hashable, list[T]] = {}
    for record in records:
        groups.setdefault(key(record), []).append(record)
    return {k: tuple(v) for k, v in groups.items()}


@dataclass(frozen=True)
class Partition:
    """Named track predicate whose per-collision slices are cached.

    Cached groupings are keyed by the partition itself, so two partitions with
    the same name but different predicates never share a grouping.
    """

    name: str
    predicate: Callable[[Track], bool]


class SliceCache:
    """Per-collision groupings of partitioned tracks, built on first use."""

    def __init__(self, tracks: Sequence[Track]) -> None:
        self._tracks = tracks
        self._groups: dict[Partition, dict[Hashable, tuple[Track, ...]]] = {}

    def slice(self, partition: Partition, collision_id: int) -> tuple[Track, ...]:
        """Tracks of one collision that satisfy the partition predicate."""
        groups = self._groups.get(partition)
        if groups is None:
            groups = group_by(
                (t for t in self._tracks if partition.predicate(t)),
                key=lambda t: t.collision_id,
            )
            self._groups[partition] = groups
            logger.debug(
                "Built partition '%s': %d collisions with members", partition.name, len(groups)
            )
        return groups.get(collision_id, ())

    def __len__(self) -> int:
        return len(self._groups)


class TrackTable:
    """Track container indexed by owning collision id."""

    def __init__(self, tracks: Iterable[Track]) -> None:
        self._tracks = tuple(tracks)
        self._by_collision = group_by(self._tracks, key=lambda t: t.collision_id)
        self.cache = SliceCache(self._tracks)

    def __len__(self) -> int:
        return len(self._tracks)

    def __iter__(self) -> Iterator[Track]:
        return iter(self._tracks)

    def collision_ids(self) -> set[Hashable]:
        """Collision ids referenced by at least one track."""
        return set(self._by_collision)

    def slice_by(self, collision_id: int) -> tuple[Track, ...]:
        """All tracks owned by one collision (empty if none)."""
        return self._by_collision.get(collision_id, ())

    def slice_by_cached(self, partition: Partition, collision_id: int) -> tuple[Track, ...]:
        """Partitioned tracks owned by one collision."""
        return self.cache.slice(partition, collision_id)


class EventTables:
    """All input tables of one processing unit plus their join indices.

    Raises `ValueError` when a track references a collision that is not in the
    collision table, or when two records share an id.
    """

    def __init__(
        self,
        collisions: Iterable[Collision],
        tracks: Iterable[Track],
        mc_collisions: Iterable[McCollision] = (),
        mc_particles: Iterable[McParticle] = (),
    ) -> None:
        self.collisions = tuple(collisions)
        self.tracks = TrackTable(tracks)
        self.mc_collisions = tuple(mc_collisions)
        self.mc_particles = tuple(mc_particles)

        self.collision_index = _unique_index(self.collisions, lambda c: c.collision_id, "collision")
        self.mc_particle_index = _unique_index(
            self.mc_particles, lambda p: p.mc_particle_id, "MC particle"
        )
        _unique_index(self.mc_collisions, lambda c: c.mc_collision_id, "MC collision")

        dangling = self.tracks.collision_ids() - set(self.collision_index)
        if dangling:
            raise ValueError(
                f"Tracks reference unknown collision ids: {sorted(dangling, key=str)}"
            )

        self.particles_by_mc_collision = group_by(self.mc_particles, key=lambda p: p.mc_collision_id)
        self.collisions_by_mc_collision = group_by(
            (c for c in self.collisions if c.mc_collision_id is not None),
            key=lambda c: c.mc_collision_id,
        )

    def mc_particle(self, mc_particle_id: int | None) -> McParticle | None:
        """Look up a particle by id; None for no link or an unknown id."""
        if mc_particle_id is None:
            return None
        return self.mc_particle_index.get(mc_particle_id)

    def matched_collisions(self, mc_collision_id: int) -> tuple[Collision, ...]:
        """Reconstructed collisions labelled with one simulated collision."""
        return self.collisions_by_mc_collision.get(mc_collision_id, ())

    def particles_of(self, mc_collision_id: int) -> tuple[McParticle, ...]:
        """Simulated particles of one simulated collision."""
        return self.particles_by_mc_collision.get(mc_collision_id, ())


def _unique_index(records: Sequence[T], key: Callable[[T], Hashable], kind: str) -> dict[Hashable, T]:
    """Index records by id, rejecting duplicates."""
    index: dict[Hashable, T] = {}
    for record in records:
        k = key(record)
        if k in index:
            raise ValueError(f"Duplicate {kind} id {k!r}.")
        index[k] = record
    return index
