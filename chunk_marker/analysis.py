"""Per-chunk cost aggregation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import AbstractSet, Iterable, Iterator, Mapping, Optional, Tuple

from .grid import ChunkKey, Grid, Vec3

LOG = logging.getLogger(__name__)

DEFAULT_PHYSICS_COST = 1


@dataclass(frozen=True)
class WorldObject:
    position: Vec3
    asset: str
    components: AbstractSet[str] = frozenset()


@dataclass(frozen=True)
class ChunkStats:
    object_count: int
    physics_cost: int
    component_cost: int


class AnalysisResult(Mapping[ChunkKey, ChunkStats]):
    """Read-only chunk -> stats mapping produced by one full pass over a save."""

    __slots__ = ("_chunks",)

    def __init__(self, chunks: Optional[Mapping[ChunkKey, ChunkStats]] = None) -> None:
        self._chunks = MappingProxyType(dict(chunks or {}))

    def __getitem__(self, key: ChunkKey) -> ChunkStats:
        return self._chunks[key]

    def __iter__(self) -> Iterator[ChunkKey]:
        return iter(self._chunks)

    def __len__(self) -> int:
        return len(self._chunks)

    def __repr__(self) -> str:
        return f"AnalysisResult({len(self._chunks)} chunks)"

    def sorted_items(self) -> list[Tuple[ChunkKey, ChunkStats]]:
        return sorted(self._chunks.items())

    @property
    def total_objects(self) -> int:
        return sum(stats.object_count for stats in self._chunks.values())


def physics_cost(asset: str, cost_table: Mapping[str, int]) -> int:
    return cost_table.get(asset, DEFAULT_PHYSICS_COST)


def aggregate(
    objects: Iterable[WorldObject],
    cost_table: Mapping[str, int],
    grid: Grid,
) -> AnalysisResult:
    """Bucket objects into chunks and sum their costs.

    Each object lands in exactly one chunk. Sums are per-key additions, so the
    result does not depend on the order of ``objects``.
    """
    counts: dict[ChunkKey, list[int]] = {}
    for obj in objects:
        key = grid.to_chunk(obj.position)
        acc = counts.get(key)
        if acc is None:
            acc = counts[key] = [0, 0, 0]
        acc[0] += 1
        acc[1] += physics_cost(obj.asset, cost_table)
        acc[2] += len(obj.components)

    chunks = {
        key: ChunkStats(object_count=c[0], physics_cost=c[1], component_cost=c[2])
        for key, c in counts.items()
    }
    LOG.debug("Aggregated %d chunk(s)", len(chunks))
    return AnalysisResult(chunks)
