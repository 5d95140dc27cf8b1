from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .classify import Budgets
from .errors import ConfigError
from .grid import DEFAULT_CELL_SIZE, Grid
from .models import CostTableModel

LOG = logging.getLogger(__name__)


def _int_env(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None:
        return default
    raw = raw.strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise SystemExit(f"Invalid {name}: {raw}") from exc


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise SystemExit(f"Invalid {name}: {raw}") from exc
    if value < 0:
        raise SystemExit(f"Invalid {name}: {raw}")
    return value


@dataclass(frozen=True)
class Settings:
    cell_size: int = DEFAULT_CELL_SIZE
    physics_budget: Optional[int] = 65000
    component_budget: Optional[int] = 75
    cost_table_path: Path = Path("colliders.json")
    snapshot_name: str = "_omegga_chunks"
    snapshot_timeout_sec: float = 2.5
    snapshot_poll_sec: float = 0.5
    api_host: str = "127.0.0.1"
    api_port: Optional[int] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        cell_size = _int_env("CHUNKS_CELL_SIZE", DEFAULT_CELL_SIZE)
        if cell_size is None or cell_size <= 0 or cell_size % 2:
            raise SystemExit(f"Invalid CHUNKS_CELL_SIZE: {cell_size} (expected a positive even integer)")

        return cls(
            cell_size=cell_size,
            physics_budget=_int_env("CHUNKS_PHYSICS_BUDGET", 65000),
            component_budget=_int_env("CHUNKS_COMPONENT_BUDGET", 75),
            cost_table_path=Path(os.getenv("CHUNKS_COST_TABLE", "colliders.json")),
            snapshot_name=os.getenv("CHUNKS_SNAPSHOT_NAME", "_omegga_chunks").strip() or "_omegga_chunks",
            snapshot_timeout_sec=_float_env("CHUNKS_SNAPSHOT_TIMEOUT_SEC", 2.5),
            snapshot_poll_sec=max(0.05, _float_env("CHUNKS_SNAPSHOT_POLL_SEC", 0.5)),
            api_host=os.getenv("CHUNKS_API_HOST", "127.0.0.1").strip() or "127.0.0.1",
            api_port=_int_env("CHUNKS_API_PORT", None),
            log_level=os.getenv("CHUNKS_LOG_LEVEL", "INFO").strip().upper() or "INFO",
        )

    @property
    def grid(self) -> Grid:
        return Grid(self.cell_size)

    @property
    def budgets(self) -> Budgets:
        return Budgets(physics=self.physics_budget, components=self.component_budget)


def load_cost_table(path: Path) -> dict[str, int]:
    if not path.exists():
        LOG.warning("Cost table %s not found; every asset costs 1", path)
        return {}

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Failed to parse cost table {path}: {exc}") from exc

    try:
        table = CostTableModel(costs=data).costs
    except ValidationError as exc:
        raise ConfigError(f"Invalid cost table {path}: {exc}") from exc

    LOG.info("Loaded %d asset cost(s) from %s", len(table), path)
    return table
