"""Severity tiers for analyzed chunks."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

from .analysis import ChunkStats


class SeverityTier(enum.Enum):
    NONE = "none"
    OK = "ok"
    PHYSICS_OVER = "physics-over"
    COMPONENTS_OVER = "components-over"
    BOTH_OVER = "both-over"


@dataclass(frozen=True)
class Budgets:
    """Per-chunk limits. A budget of ``None`` disables that metric."""

    physics: Optional[int] = 65000
    components: Optional[int] = 75

    def physics_over(self, stats: ChunkStats) -> bool:
        return self.physics is not None and stats.physics_cost > self.physics

    def components_over(self, stats: ChunkStats) -> bool:
        return self.components is not None and stats.component_cost > self.components


def classify(stats: Optional[ChunkStats], budgets: Budgets) -> SeverityTier:
    if stats is None:
        return SeverityTier.NONE
    physics = budgets.physics_over(stats)
    components = budgets.components_over(stats)
    if physics and components:
        return SeverityTier.BOTH_OVER
    if components:
        return SeverityTier.COMPONENTS_OVER
    if physics:
        return SeverityTier.PHYSICS_OVER
    return SeverityTier.OK
