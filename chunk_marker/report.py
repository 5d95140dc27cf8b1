"""
Offline chunk cost report for a JSON save dump.

Examples:
  chunk-marker-report ./saves/build.json
  chunk-marker-report ./saves/build.json --over --costs ./colliders.json
  chunk-marker-report ./saves/build.json --markers ./saves/markers.json
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .analysis import aggregate
from .classify import Budgets, SeverityTier, classify
from .codec import JsonSaveCodec
from .errors import ConfigError, SaveDecodeError
from .grid import Grid
from .markers import synthesize
from .settings import Settings, load_cost_table

LOG = logging.getLogger("chunk_marker.report")


def _optional_budget(raw: str) -> Optional[int]:
    if raw.strip().lower() in {"", "none", "off"}:
        return None
    value = int(raw)
    if value < 0:
        raise argparse.ArgumentTypeError("budget must be >= 0")
    return value


def build_parser() -> argparse.ArgumentParser:
    defaults = Settings()
    ap = argparse.ArgumentParser(description="Per-chunk physics/component cost report for a JSON save dump.")
    ap.add_argument("save", type=Path, help="JSON save data file")
    ap.add_argument("--costs", type=Path, default=defaults.cost_table_path, help="asset -> physics cost JSON table")
    ap.add_argument("--cell-size", type=int, default=defaults.cell_size)
    ap.add_argument("--physics-budget", type=_optional_budget, default=defaults.physics_budget)
    ap.add_argument("--component-budget", type=_optional_budget, default=defaults.component_budget)
    ap.add_argument("--over", action="store_true", help="only list chunks over a budget")
    ap.add_argument("--markers", type=Path, help="write a marker save for every chunk to this path")
    return ap


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s %(message)s")

    try:
        grid = Grid(args.cell_size)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    budgets = Budgets(physics=args.physics_budget, components=args.component_budget)
    codec = JsonSaveCodec()

    try:
        costs = load_cost_table(args.costs)
        decoded = codec.decode(args.save.read_bytes())
    except (OSError, ConfigError, SaveDecodeError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    result = aggregate(decoded.objects, costs, grid)
    flagged = 0
    print(f"{'chunk':>20}  {'objects':>8}  {'physics':>9}  {'components':>10}  tier")
    for key, stats in result.sorted_items():
        tier = classify(stats, budgets)
        if tier is not SeverityTier.OK:
            flagged += 1
        elif args.over:
            continue
        label = f"({key[0]}, {key[1]}, {key[2]})"
        print(
            f"{label:>20}  {stats.object_count:>8}  {stats.physics_cost:>9}  "
            f"{stats.component_cost:>10}  {tier.value}"
        )
    print(f"{len(decoded.objects)} object(s), {len(result)} chunk(s), {flagged} over budget")

    if args.markers:
        save = synthesize(result.items(), budgets, grid)
        args.markers.write_bytes(codec.encode(save))
        print(f"wrote {len(save.objects)} marker(s) to {args.markers}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
