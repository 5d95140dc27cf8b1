from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AuthUser(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1)
    id: str = ""


class PluginConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    authorized: list[AuthUser] = Field(default_factory=list)

    def is_authorized(self, user: str) -> bool:
        wanted = user.strip().casefold()
        return any(entry.name.casefold() == wanted for entry in self.authorized)


# --- JSON save data, as exchanged with the host ---


class SaveOwner(BaseModel):
    id: str
    name: str
    bricks: int = 0


class SaveBrick(BaseModel):
    model_config = ConfigDict(extra="ignore")

    asset_name_index: int = Field(default=0, ge=0)
    position: tuple[int, int, int]
    size: tuple[int, int, int] = (0, 0, 0)
    color: Union[int, list[int]] = 0
    owner_index: int = 0
    material_index: int = 0
    material_intensity: int = 5
    components: dict[str, Any] = Field(default_factory=dict)


class SaveData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    brick_assets: list[str] = Field(default_factory=list)
    materials: list[str] = Field(default_factory=list)
    brick_owners: list[SaveOwner] = Field(default_factory=list)
    bricks: list[SaveBrick] = Field(default_factory=list)


class CostTableModel(BaseModel):
    costs: dict[str, int]

    @field_validator("costs")
    @classmethod
    def validate_costs(cls, value: dict[str, int]) -> dict[str, int]:
        bad = sorted(name for name, cost in value.items() if cost <= 0)
        if bad:
            raise ValueError(f"physics costs must be positive integers: {', '.join(bad)}")
        return value


# --- read-only HTTP API ---


class ChunkResponse(BaseModel):
    key: tuple[int, int, int]
    center: tuple[int, int, int]
    object_count: int
    physics_cost: int
    component_cost: int
    tier: str


class ChunkListResponse(BaseModel):
    cell_size: int
    physics_budget: Optional[int]
    component_budget: Optional[int]
    total_objects: int
    chunks: list[ChunkResponse]
