from __future__ import annotations

import itertools

from chunk_marker.analysis import ChunkStats
from chunk_marker.classify import Budgets, SeverityTier
from chunk_marker.grid import Grid
from chunk_marker.markers import (
    MARKER_ASSET,
    MARKER_MATERIAL,
    MARKER_OWNER_ID,
    TIER_COLORS,
    synthesize,
)

GRID = Grid(512)
BUDGETS = Budgets(physics=65000, components=75)


def test_single_chunk_gets_eight_markers_at_inset_corners():
    save = synthesize([((1, -1, 0), ChunkStats(10, 70000, 80))], BUDGETS, GRID)
    assert len(save.objects) == 8

    cx, cy, cz = GRID.chunk_center((1, -1, 0))
    expected = {(cx + sx * 255, cy + sy * 255, cz + sz * 255) for sx, sy, sz in itertools.product((-1, 1), repeat=3)}
    assert {obj.position for obj in save.objects} == expected
    assert {obj.color for obj in save.objects} == {TIER_COLORS[SeverityTier.BOTH_OVER]}


def test_header_is_self_contained():
    save = synthesize([((0, 0, 0), None)], BUDGETS, GRID)
    assert save.assets == [MARKER_ASSET]
    assert save.materials == [MARKER_MATERIAL]
    assert [owner.id for owner in save.owners] == [MARKER_OWNER_ID]
    assert all(obj.owner_index == 1 and obj.asset_index == 0 for obj in save.objects)
    assert {obj.color for obj in save.objects} == {TIER_COLORS[SeverityTier.NONE]}


def test_marker_order_is_sorted_by_chunk():
    entries = [
        ((2, 0, 0), ChunkStats(1, 1, 0)),
        ((-1, 0, 0), ChunkStats(1, 70000, 0)),
        ((0, 5, 0), ChunkStats(1, 1, 100)),
    ]
    forward = synthesize(entries, BUDGETS, GRID)
    backward = synthesize(list(reversed(entries)), BUDGETS, GRID)
    assert forward.objects == backward.objects

    colors = [obj.color for obj in forward.objects[::8]]
    assert colors == [
        TIER_COLORS[SeverityTier.PHYSICS_OVER],
        TIER_COLORS[SeverityTier.COMPONENTS_OVER],
        TIER_COLORS[SeverityTier.OK],
    ]


def test_no_entries_gives_empty_save():
    save = synthesize([], BUDGETS, GRID)
    assert save.objects == []
    assert save.assets == [MARKER_ASSET]
