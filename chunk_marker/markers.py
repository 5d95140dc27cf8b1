"""Marker overlay synthesis.

Every chunk handed to :func:`synthesize` gets eight small glowing markers at
the corners of a cube inset one unit inside the chunk, coloured by the
chunk's severity tier. All markers belong to a reserved owner so they can be
cleared in one call without touching anything players built.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional, Tuple

from .analysis import ChunkStats
from .classify import Budgets, SeverityTier, classify
from .grid import ChunkKey, Grid, Vec3

Color = Tuple[int, int, int, int]

MARKER_OWNER_ID = "00000000-0000-0000-0000-000000000001"
MARKER_OWNER_NAME = "Chunk Marker"
MARKER_ASSET = "PB_DefaultMicroBrick"
MARKER_MATERIAL = "BMC_Glow"
MARKER_INTENSITY = 5
MARKER_SIZE: Vec3 = (1, 1, 1)

TIER_COLORS: dict[SeverityTier, Color] = {
    SeverityTier.NONE: (255, 255, 255, 255),
    SeverityTier.OK: (0, 255, 0, 255),
    SeverityTier.PHYSICS_OVER: (255, 0, 0, 255),
    SeverityTier.COMPONENTS_OVER: (0, 0, 255, 255),
    SeverityTier.BOTH_OVER: (255, 0, 255, 255),
}


@dataclass(frozen=True)
class Owner:
    id: str
    name: str


@dataclass(frozen=True)
class MarkerObject:
    position: Vec3
    color: Color
    size: Vec3 = MARKER_SIZE
    asset_index: int = 0
    material_index: int = 0
    material_intensity: int = MARKER_INTENSITY
    # Owner indices are 1-based in save data; 0 means "public".
    owner_index: int = 1


@dataclass
class MarkerSave:
    objects: list[MarkerObject] = field(default_factory=list)
    assets: list[str] = field(default_factory=lambda: [MARKER_ASSET])
    materials: list[str] = field(default_factory=lambda: [MARKER_MATERIAL])
    owners: list[Owner] = field(default_factory=lambda: [Owner(MARKER_OWNER_ID, MARKER_OWNER_NAME)])


def chunk_markers(key: ChunkKey, tier: SeverityTier, grid: Grid) -> list[MarkerObject]:
    color = TIER_COLORS[tier]
    return [MarkerObject(position=corner, color=color) for corner in grid.chunk_corners(grid.chunk_center(key))]


def synthesize(
    entries: Iterable[Tuple[ChunkKey, Optional[ChunkStats]]],
    budgets: Budgets,
    grid: Grid,
) -> MarkerSave:
    save = MarkerSave()
    for key, stats in sorted(entries, key=lambda entry: entry[0]):
        save.objects.extend(chunk_markers(key, classify(stats, budgets), grid))
    return save
