"""Fixed-size cubic grid over world space."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

Vec3 = Tuple[int, int, int]
ChunkKey = Tuple[int, int, int]

DEFAULT_CELL_SIZE = 512

# x varies fastest, then y, then z; marker ordering depends on it.
CORNER_SIGNS: Tuple[Vec3, ...] = (
    (-1, -1, -1),
    (1, -1, -1),
    (-1, 1, -1),
    (1, 1, -1),
    (-1, -1, 1),
    (1, -1, 1),
    (-1, 1, 1),
    (1, 1, 1),
)


def to_int_position(pos: Sequence[float]) -> Vec3:
    """Truncate a live (float) position to integer world units."""
    if len(pos) != 3:
        raise ValueError(f"expected 3 coordinates, got {len(pos)}")
    return int(pos[0]), int(pos[1]), int(pos[2])


@dataclass(frozen=True)
class Grid:
    cell_size: int = DEFAULT_CELL_SIZE

    def __post_init__(self) -> None:
        if self.cell_size <= 0 or self.cell_size % 2:
            raise ValueError(f"cell size must be a positive even integer, got {self.cell_size}")

    @property
    def half(self) -> int:
        return self.cell_size // 2

    def to_chunk(self, pos: Vec3) -> ChunkKey:
        s = self.cell_size
        return pos[0] // s, pos[1] // s, pos[2] // s

    def chunk_center(self, key: ChunkKey) -> Vec3:
        s = self.cell_size
        h = self.half
        return h + key[0] * s, h + key[1] * s, h + key[2] * s

    def chunk_corners(self, center: Vec3) -> list[Vec3]:
        # Inset by one unit so a marker never touches the neighbouring cell.
        d = self.half - 1
        return [
            (center[0] + sx * d, center[1] + sy * d, center[2] + sz * d)
            for sx, sy, sz in CORNER_SIGNS
        ]
