"""The ``/chunks`` subcommands."""

from __future__ import annotations

import asyncio
import enum
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Mapping, Optional, Sequence

from .analysis import AnalysisResult, aggregate
from .codec import SaveCodec
from .errors import NoPositionError, SaveDecodeError
from .grid import ChunkKey, Vec3, to_int_position
from .host import Host
from .markers import MARKER_OWNER_ID, synthesize
from .models import PluginConfig
from .settings import Settings
from .store import AnalysisStore, Slot

LOG = logging.getLogger(__name__)

COMMAND_NAME = "chunks"

MSG_NOT_AUTHORIZED = '<color="a00">You are not authorized to use this command!</>'
MSG_ANALYZE_FIRST = (
    '<color="a00">The save has not been analyzed! Analyze it first with <code>/chunks analyze</>.</>'
)
MSG_SAVE_FAILED = '<color="a00">Failed to save!</>'
MSG_SAVE_MISSING = '<color="a00">Failed to find save! Try again.</>'
MSG_SAVE_UNREADABLE = '<color="a00">Failed to read save! Try again.</>'
MSG_ANALYZED = (
    '<color="0a0">The save has been analyzed. Any subsequent changes must be reanalyzed.</>'
)
MSG_EMPTY_CHUNK = '<color="a00">This chunk has no bricks or colliders!</>'
MSG_MARKED = '<color="0a0">Your chunk has been marked.</>'
MSG_MARKED_ALL = '<color="0a0">All chunks have been marked.</>'
MSG_CLEARED = '<color="0a0">Chunk markers have been cleared.</>'


class Subcommand(enum.Enum):
    ANALYZE = "analyze"
    IN = "in"
    COUNT = "count"
    MARK = "mark"
    MARKALL = "markall"
    CLEAR = "clear"

    @classmethod
    def parse(cls, raw: str) -> Optional["Subcommand"]:
        try:
            return cls(raw)
        except ValueError:
            return None


def usage() -> str:
    return "Usage: /{} <{}>".format(COMMAND_NAME, "|".join(sub.value for sub in Subcommand))


def format_chunk(key: ChunkKey) -> str:
    return f"({key[0]}, {key[1]}, {key[2]})"


@dataclass(frozen=True)
class SnapshotState:
    path: str
    mtime_ns: int
    size: int


def file_state(path: str) -> Optional[SnapshotState]:
    try:
        st = os.stat(path)
    except FileNotFoundError:
        return None
    return SnapshotState(path=path, mtime_ns=st.st_mtime_ns, size=st.st_size)


class CommandRunner:
    def __init__(
        self,
        host: Host,
        codec: SaveCodec,
        settings: Settings,
        cost_table: Mapping[str, int],
        analysis: AnalysisStore,
        config: Slot[PluginConfig],
    ) -> None:
        self.host = host
        self.codec = codec
        self.settings = settings
        self.cost_table = cost_table
        self.analysis = analysis
        self.config = config
        self.grid = settings.grid
        self.budgets = settings.budgets
        self._handlers: dict[Subcommand, Callable[[str], Awaitable[None]]] = {
            Subcommand.ANALYZE: self.analyze,
            Subcommand.IN: self.chunk_in,
            Subcommand.COUNT: self.count,
            Subcommand.MARK: self.mark,
            Subcommand.MARKALL: self.mark_all,
            Subcommand.CLEAR: self.clear,
        }

    async def run(self, user: str, args: Sequence[str]) -> None:
        config = await self.config.read()
        if config is None:
            LOG.warning("Ignoring command from %s: plugin config not received yet", user)
            return

        if not config.is_authorized(user):
            LOG.info("Unauthorized /%s from %s", COMMAND_NAME, user)
            await self.host.whisper(user, MSG_NOT_AUTHORIZED)
            return

        raw = args[0] if args else ""
        subcommand = Subcommand.parse(raw)
        if subcommand is None:
            text = f"Unknown subcommand {raw}." if raw else "Missing subcommand."
            await self.host.whisper(user, f"{text} {usage()}")
            return

        LOG.info("%s ran /%s %s", user, COMMAND_NAME, subcommand.value)
        await self._handlers[subcommand](user)

    # --- helpers ---

    async def _position(self, user: str) -> Vec3:
        pos = await self.host.player_position(user)
        if pos is None:
            raise NoPositionError(f"player {user} has no position")
        return to_int_position(pos)

    async def _current_chunk(self, user: str) -> ChunkKey:
        return self.grid.to_chunk(await self._position(user))

    async def _snapshot_state(self) -> Optional[SnapshotState]:
        path = await self.host.snapshot_path(self.settings.snapshot_name)
        return file_state(path) if path else None

    async def _wait_for_snapshot(self, before: Optional[SnapshotState]) -> Optional[str]:
        """Poll until the snapshot file differs from ``before`` and its size holds for one poll."""
        name = self.settings.snapshot_name
        deadline = time.monotonic() + self.settings.snapshot_timeout_sec
        last: Optional[SnapshotState] = None
        while True:
            await asyncio.sleep(self.settings.snapshot_poll_sec)
            path = await self.host.snapshot_path(name)
            state = file_state(path) if path else None
            if state is not None and state != before:
                if last is not None and last.size == state.size and last.path == state.path:
                    return path
                last = state
            if time.monotonic() >= deadline:
                return None

    def _analyze_file(self, path: Path) -> AnalysisResult:
        decoded = self.codec.decode(path.read_bytes())
        return aggregate(decoded.objects, self.cost_table, self.grid)

    # --- subcommands ---

    async def analyze(self, user: str) -> None:
        name = self.settings.snapshot_name
        before = await self._snapshot_state()
        if not await self.host.save_snapshot(name):
            await self.host.whisper(user, MSG_SAVE_FAILED)
            return

        path = await self._wait_for_snapshot(before)
        if path is None:
            LOG.warning("Snapshot %s not found or not rewritten within %.1fs", name, self.settings.snapshot_timeout_sec)
            await self.host.whisper(user, MSG_SAVE_MISSING)
            return

        started = time.monotonic()
        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(None, self._analyze_file, Path(path))
        except (OSError, SaveDecodeError) as exc:
            LOG.warning("Failed to read snapshot %s: %s", path, exc)
            await self.host.whisper(user, MSG_SAVE_UNREADABLE)
            return

        await self.analysis.replace(result)
        LOG.info(
            "Analyzed %s: %d object(s) in %d chunk(s) in %.2fs",
            path,
            result.total_objects,
            len(result),
            time.monotonic() - started,
        )
        await self.host.whisper(user, MSG_ANALYZED)

    async def chunk_in(self, user: str) -> None:
        key = await self._current_chunk(user)
        await self.host.whisper(user, f"You are in chunk {format_chunk(key)}.")

    async def count(self, user: str) -> None:
        result = await self.analysis.read()
        if result is None:
            await self.host.whisper(user, MSG_ANALYZE_FIRST)
            return

        key = await self._current_chunk(user)
        stats = result.get(key)
        if stats is None:
            await self.host.whisper(user, MSG_EMPTY_CHUNK)
            return

        color = "a00" if self.budgets.physics_over(stats) else "0a0"
        await self.host.whisper(
            user,
            (
                f"There are <b>{stats.object_count} bricks</>, "
                f'<b><color="{color}">{stats.physics_cost} colliders</></>, '
                f"and <b>{stats.component_cost} components</> in the chunk {format_chunk(key)}."
            ),
        )

    async def mark(self, user: str) -> None:
        result = await self.analysis.read()
        if result is None:
            await self.host.whisper(user, MSG_ANALYZE_FIRST)
            return

        key = await self._current_chunk(user)
        save = synthesize([(key, result.get(key))], self.budgets, self.grid)
        await self.host.load_save(self.codec.encode(save), merge=True, offset=(0, 0, 0))
        await self.host.whisper(user, MSG_MARKED)

    async def mark_all(self, user: str) -> None:
        result = await self.analysis.read()
        if result is None:
            await self.host.whisper(user, MSG_ANALYZE_FIRST)
            return

        save = synthesize(result.items(), self.budgets, self.grid)
        LOG.info("Marking %d chunk(s) with %d marker(s)", len(result), len(save.objects))
        await self.host.load_save(self.codec.encode(save), merge=True, offset=(0, 0, 0))
        await self.host.whisper(user, MSG_MARKED_ALL)

    async def clear(self, user: str) -> None:
        await self.host.clear_owner(MARKER_OWNER_ID, recursive=True)
        await self.host.whisper(user, MSG_CLEARED)
