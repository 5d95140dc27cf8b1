from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Iterable, Optional

import pytest

from chunk_marker.analysis import WorldObject
from chunk_marker.codec import DecodedSave, JsonSaveCodec, to_save_data
from chunk_marker.commands import CommandRunner
from chunk_marker.host import Host, HostEvent
from chunk_marker.markers import MarkerSave
from chunk_marker.models import AuthUser, PluginConfig
from chunk_marker.settings import Settings
from chunk_marker.store import AnalysisStore, Slot


class FakeHost(Host):
    def __init__(self, events: Iterable[HostEvent] = ()) -> None:
        self.queued_events = list(events)
        self.responses: list[tuple[Any, Any]] = []
        self.whispers: list[tuple[str, str]] = []
        self.errors: list[str] = []
        self.loads: list[dict[str, Any]] = []
        self.clears: list[tuple[str, bool]] = []
        self.positions: dict[str, tuple[float, float, float]] = {}
        self.snapshot_ok = True
        self.snapshot_file: Optional[Path] = None
        # written to snapshot_file on save_snapshot, after snapshot_delay seconds
        self.snapshot_data: Optional[bytes] = None
        self.snapshot_delay = 0.0
        self.snapshot_requests: list[str] = []
        self._writers: list[asyncio.Task[None]] = []

    async def events(self):
        for event in self.queued_events:
            yield event

    async def respond(self, request_id, result=None) -> None:
        self.responses.append((request_id, result))

    async def save_snapshot(self, name: str) -> bool:
        self.snapshot_requests.append(name)
        if self.snapshot_ok and self.snapshot_file is not None and self.snapshot_data is not None:
            self._writers.append(asyncio.create_task(self._write_snapshot()))
        return self.snapshot_ok

    async def _write_snapshot(self) -> None:
        await asyncio.sleep(self.snapshot_delay)
        assert self.snapshot_file is not None and self.snapshot_data is not None
        self.snapshot_file.write_bytes(self.snapshot_data)

    async def snapshot_path(self, name: str) -> Optional[str]:
        return str(self.snapshot_file) if self.snapshot_file else None

    async def load_save(self, raw: bytes, *, merge: bool = True, offset=(0, 0, 0)) -> None:
        self.loads.append({"data": json.loads(raw), "merge": merge, "offset": offset})

    async def clear_owner(self, owner_id: str, *, recursive: bool = True) -> None:
        self.clears.append((owner_id, recursive))

    async def player_position(self, user: str):
        return self.positions.get(user)

    async def whisper(self, user: str, message: str) -> None:
        self.whispers.append((user, message))

    async def error(self, message: str) -> None:
        self.errors.append(message)

    def messages_to(self, user: str) -> list[str]:
        return [message for target, message in self.whispers if target == user]


def brick(position, asset_index: int = 0, components: Optional[dict[str, Any]] = None) -> dict[str, Any]:
    return {
        "asset_name_index": asset_index,
        "position": list(position),
        "size": [5, 5, 6],
        "components": components or {},
    }


def save_json(bricks: list[dict[str, Any]], assets: Optional[list[str]] = None) -> bytes:
    return json.dumps({"brick_assets": assets or ["PB_DefaultBrick"], "bricks": bricks}).encode("utf-8")


def write_save(path: Path, bricks: list[dict[str, Any]], assets: Optional[list[str]] = None) -> Path:
    path.write_bytes(save_json(bricks, assets))
    return path


class InMemoryCodec:
    """Decodes any bytes to a fixed object list and keeps every encoded save."""

    def __init__(self, objects: Iterable[WorldObject] = ()) -> None:
        self.objects = list(objects)
        self.decoded: list[bytes] = []
        self.encoded: list[MarkerSave] = []

    def decode(self, raw: bytes) -> DecodedSave:
        self.decoded.append(raw)
        return DecodedSave(objects=list(self.objects), assets=sorted({obj.asset for obj in self.objects}))

    def encode(self, save: MarkerSave) -> bytes:
        self.encoded.append(save)
        return to_save_data(save).model_dump_json().encode("utf-8")


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        cost_table_path=tmp_path / "colliders.json",
        snapshot_timeout_sec=0.5,
        snapshot_poll_sec=0.01,
    )


@pytest.fixture()
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture()
def plugin_config() -> PluginConfig:
    return PluginConfig(authorized=[AuthUser(name="Ash", id="1")])


@pytest.fixture()
def runner(host: FakeHost, settings: Settings, plugin_config: PluginConfig) -> CommandRunner:
    return CommandRunner(
        host,
        JsonSaveCodec(),
        settings,
        {"PB_DefaultBrick": 10, "B_Heavy_Thing": 40000},
        AnalysisStore(),
        Slot(plugin_config),
    )
