"""Plugin entry point: host event loop and per-command tasks."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import uvicorn
from pydantic import ValidationError

from .api import create_app
from .codec import JsonSaveCodec
from .commands import COMMAND_NAME, CommandRunner
from .errors import ConfigError
from .host import CommandEvent, Host, InitEvent, StopEvent
from .models import PluginConfig
from .omegga import OmeggaHost, connect_stdin
from .settings import Settings, load_cost_table
from .store import AnalysisStore, Slot

LOG = logging.getLogger("chunk_marker")


class Plugin:
    def __init__(self, host: Host, runner: CommandRunner) -> None:
        self.host = host
        self.runner = runner
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def config(self) -> Slot[PluginConfig]:
        return self.runner.config

    async def serve(self) -> None:
        async for event in self.host.events():
            if isinstance(event, InitEvent):
                await self._init(event)
            elif isinstance(event, StopEvent):
                LOG.info("Stop requested")
                await self.host.respond(event.id, None)
                break
            elif isinstance(event, CommandEvent):
                if event.command == COMMAND_NAME:
                    self._spawn(event)
        await self.drain()

    async def drain(self) -> None:
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _init(self, event: InitEvent) -> None:
        try:
            config = PluginConfig.model_validate(event.config)
        except ValidationError as exc:
            LOG.error("Invalid plugin config, nobody is authorized: %s", exc)
            await self.host.error(f"chunks: invalid plugin config: {exc.error_count()} error(s)")
            config = PluginConfig()
        await self.config.replace(config)
        LOG.info("Configured with %d authorized user(s)", len(config.authorized))
        await self.host.respond(event.id, {"registeredCommands": [COMMAND_NAME]})

    def _spawn(self, event: CommandEvent) -> None:
        task = asyncio.create_task(self._run_isolated(event), name=f"chunks:{event.player}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_isolated(self, event: CommandEvent) -> None:
        try:
            await self.runner.run(event.player, event.args)
        except Exception as exc:  # noqa: BLE001
            LOG.exception("Command %r from %s failed", list(event.args), event.player)
            try:
                await self.host.error(f"An error occurred: {exc}")
                await self.host.whisper(event.player, f'<color="a00">An error occurred: {exc}</>')
            except Exception:  # noqa: BLE001
                LOG.exception("Failed to report command error to %s", event.player)


async def run_plugin(settings: Settings) -> None:
    try:
        cost_table = load_cost_table(settings.cost_table_path)
    except ConfigError as exc:
        raise SystemExit(str(exc)) from exc

    host = OmeggaHost(await connect_stdin())
    analysis = AnalysisStore()
    runner = CommandRunner(host, JsonSaveCodec(), settings, cost_table, analysis, Slot())
    plugin = Plugin(host, runner)

    api_server = None
    api_task: Optional[asyncio.Task[None]] = None
    if settings.api_port:
        api_server = uvicorn.Server(
            uvicorn.Config(
                create_app(analysis, settings),
                host=settings.api_host,
                port=settings.api_port,
                log_config=None,
                access_log=False,
            )
        )
        api_task = asyncio.create_task(api_server.serve(), name="chunks-api")
        LOG.info("Status API on http://%s:%s", settings.api_host, settings.api_port)

    try:
        await plugin.serve()
    finally:
        if api_server is not None and api_task is not None:
            api_server.should_exit = True
            await api_task
        await host.close()


def main() -> None:
    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    LOG.info(
        "Starting chunk marker cell=%s physics_budget=%s component_budget=%s costs=%s",
        settings.cell_size,
        settings.physics_budget,
        settings.component_budget,
        settings.cost_table_path,
    )
    asyncio.run(run_plugin(settings))


if __name__ == "__main__":
    main()
