"""JSON-RPC 2.0 host adapter over newline-delimited stdin/stdout."""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
import sys
from typing import Any, AsyncIterator, Callable, Optional, Tuple

from .errors import HostError
from .host import CommandEvent, Host, HostEvent, InitEvent, Position, StopEvent

LOG = logging.getLogger(__name__)

COMMAND_PREFIX = "chatcmd:"

LineWriter = Callable[[str], None]


def _stdout_write(line: str) -> None:
    sys.stdout.write(line + "\n")
    sys.stdout.flush()


async def connect_stdin() -> asyncio.StreamReader:
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=2**24)
    await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
    return reader


class OmeggaHost(Host):
    def __init__(self, reader: asyncio.StreamReader, write_line: LineWriter = _stdout_write) -> None:
        self._reader = reader
        self._write_line = write_line
        self._ids = itertools.count(1)
        self._pending: dict[int, asyncio.Future[Any]] = {}
        self._events: asyncio.Queue[Optional[HostEvent]] = asyncio.Queue()
        self._reader_task: Optional[asyncio.Task[None]] = None
        self._closed = False

    def start(self) -> None:
        if self._reader_task is None:
            self._reader_task = asyncio.create_task(self._read_loop(), name="omegga-rpc-reader")

    async def close(self) -> None:
        self._closed = True
        if self._reader_task is not None:
            self._reader_task.cancel()
            try:
                await self._reader_task
            except asyncio.CancelledError:
                pass
            self._reader_task = None
        self._fail_pending("host connection closed")

    async def events(self) -> AsyncIterator[HostEvent]:
        self.start()
        while True:
            event = await self._events.get()
            if event is None:
                return
            yield event

    # --- RPC plumbing ---

    def _send(self, payload: dict[str, Any]) -> None:
        payload["jsonrpc"] = "2.0"
        self._write_line(json.dumps(payload, separators=(",", ":")))

    async def call(self, method: str, params: Any = None) -> Any:
        if self._closed:
            raise HostError("host connection closed")
        request_id = next(self._ids)
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        try:
            self._send({"id": request_id, "method": method, "params": params})
            return await future
        finally:
            self._pending.pop(request_id, None)

    def notify(self, method: str, params: Any = None) -> None:
        self._send({"method": method, "params": params})

    async def respond(self, request_id: Any, result: Any = None) -> None:
        self._send({"id": request_id, "result": result})

    async def _read_loop(self) -> None:
        try:
            while True:
                line = await self._reader.readline()
                if not line:
                    LOG.info("Host closed the RPC channel")
                    return
                line = line.strip()
                if not line:
                    continue
                try:
                    message = json.loads(line)
                except json.JSONDecodeError:
                    LOG.warning("Ignoring malformed RPC line: %r", line[:200])
                    continue
                if isinstance(message, dict):
                    await self._handle(message)
                else:
                    LOG.warning("Ignoring non-object RPC message: %r", message)
        finally:
            self._closed = True
            self._fail_pending("host connection closed")
            self._events.put_nowait(None)

    async def _handle(self, message: dict[str, Any]) -> None:
        method = message.get("method")
        if method is None:
            self._resolve(message)
            return

        params = message.get("params")
        request_id = message.get("id")
        if method == "init":
            config = params if isinstance(params, dict) else {}
            await self._events.put(InitEvent(id=request_id, config=config))
        elif method == "stop":
            await self._events.put(StopEvent(id=request_id))
        elif isinstance(method, str) and method.startswith(COMMAND_PREFIX):
            args = [str(p) for p in params] if isinstance(params, list) else []
            if not args:
                LOG.warning("Command %s without a player", method)
                return
            await self._events.put(
                CommandEvent(player=args[0], command=method[len(COMMAND_PREFIX):], args=tuple(args[1:]))
            )
        elif request_id is not None:
            await self.respond(request_id, None)
        else:
            LOG.debug("Ignoring notification %s", method)

    def _resolve(self, message: dict[str, Any]) -> None:
        future = self._pending.get(message.get("id"))  # type: ignore[arg-type]
        if future is None or future.done():
            LOG.debug("Response for unknown request id %r", message.get("id"))
            return
        error = message.get("error")
        if error is not None:
            detail = error.get("message", error) if isinstance(error, dict) else error
            future.set_exception(HostError(str(detail)))
        else:
            future.set_result(message.get("result"))

    def _fail_pending(self, reason: str) -> None:
        for future in self._pending.values():
            if not future.done():
                future.set_exception(HostError(reason))

    # --- host operations ---

    async def save_snapshot(self, name: str) -> bool:
        try:
            await self.call("saveBricks", name)
        except HostError as exc:
            LOG.warning("saveBricks(%s) failed: %s", name, exc)
            return False
        return True

    async def snapshot_path(self, name: str) -> Optional[str]:
        path = await self.call("getSavePath", name)
        return str(path) if path else None

    async def load_save(self, raw: bytes, *, merge: bool = True, offset: Tuple[int, int, int] = (0, 0, 0)) -> None:
        if not merge:
            raise ValueError("loadSaveData only adds to the world; merge=False is not supported")
        data = json.loads(raw)
        await self.call(
            "loadSaveData",
            {"data": data, "offX": offset[0], "offY": offset[1], "offZ": offset[2], "quiet": True},
        )

    async def clear_owner(self, owner_id: str, *, recursive: bool = True) -> None:
        self.notify("clearBricks", {"target": owner_id, "quiet": recursive})

    async def player_position(self, user: str) -> Optional[Position]:
        pos = await self.call("getPlayerPosition", user)
        if not isinstance(pos, (list, tuple)) or len(pos) != 3:
            return None
        return float(pos[0]), float(pos[1]), float(pos[2])

    async def whisper(self, user: str, message: str) -> None:
        self.notify("whisper", {"target": user, "line": message})

    async def error(self, message: str) -> None:
        self.notify("error", [message])
