from __future__ import annotations

import json

import pytest

from chunk_marker.analysis import ChunkStats
from chunk_marker.classify import Budgets
from chunk_marker.codec import JsonSaveCodec
from chunk_marker.errors import SaveDecodeError
from chunk_marker.grid import Grid
from chunk_marker.markers import MARKER_OWNER_ID, synthesize


def test_decode_resolves_assets_and_component_names():
    raw = json.dumps(
        {
            "version": 10,
            "brick_assets": ["PB_DefaultBrick", "B_Heavy_Thing"],
            "bricks": [
                {"asset_name_index": 1, "position": [1, -2, 3], "components": {"BCD_PointLight": {}, "BCD_Seat": {}}},
                {"position": [0, 0, 0], "direction": 4},
            ],
        }
    ).encode()
    decoded = JsonSaveCodec().decode(raw)
    assert decoded.assets == ["PB_DefaultBrick", "B_Heavy_Thing"]
    first, second = decoded.objects
    assert first.position == (1, -2, 3)
    assert first.asset == "B_Heavy_Thing"
    assert first.components == {"BCD_PointLight", "BCD_Seat"}
    assert second.asset == "PB_DefaultBrick"
    assert second.components == frozenset()


def test_decode_rejects_out_of_range_asset():
    raw = json.dumps({"brick_assets": ["PB_DefaultBrick"], "bricks": [{"asset_name_index": 3, "position": [0, 0, 0]}]})
    with pytest.raises(SaveDecodeError, match="out of range"):
        JsonSaveCodec().decode(raw.encode())


@pytest.mark.parametrize("raw", [b"{not json", b'{"bricks": [{"position": [1, 2]}]}'])
def test_decode_rejects_invalid_data(raw):
    with pytest.raises(SaveDecodeError):
        JsonSaveCodec().decode(raw)


def test_encode_marker_save():
    save = synthesize([((0, 0, 0), ChunkStats(1, 1, 0))], Budgets(), Grid(512))
    data = json.loads(JsonSaveCodec().encode(save))
    assert data["brick_assets"] == ["PB_DefaultMicroBrick"]
    assert data["materials"] == ["BMC_Glow"]
    assert data["brick_owners"] == [{"id": MARKER_OWNER_ID, "name": "Chunk Marker", "bricks": 8}]
    assert len(data["bricks"]) == 8
    assert data["bricks"][0]["position"] == [1, 1, 1]
    assert data["bricks"][0]["color"] == [0, 255, 0, 255]
    assert data["bricks"][0]["size"] == [1, 1, 1]
    assert data["bricks"][0]["owner_index"] == 1
