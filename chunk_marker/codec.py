"""Conversion between save data and the objects the analysis works on."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from pydantic import ValidationError

from .analysis import WorldObject
from .errors import SaveDecodeError
from .markers import MarkerSave
from .models import SaveBrick, SaveData, SaveOwner


@dataclass
class DecodedSave:
    objects: list[WorldObject] = field(default_factory=list)
    assets: list[str] = field(default_factory=list)


class SaveCodec(Protocol):
    def decode(self, raw: bytes) -> DecodedSave: ...

    def encode(self, save: MarkerSave) -> bytes: ...


class JsonSaveCodec:
    """Reads and writes the host's JSON save-data shape."""

    def decode(self, raw: bytes) -> DecodedSave:
        try:
            data = SaveData.model_validate_json(raw)
        except ValidationError as exc:
            raise SaveDecodeError(f"Invalid save data: {exc.error_count()} error(s), first: {exc.errors()[0]['msg']}") from exc

        assets = data.brick_assets
        objects: list[WorldObject] = []
        for i, brick in enumerate(data.bricks):
            if brick.asset_name_index >= len(assets):
                raise SaveDecodeError(
                    f"brick {i}: asset index {brick.asset_name_index} out of range ({len(assets)} asset(s))"
                )
            objects.append(
                WorldObject(
                    position=brick.position,
                    asset=assets[brick.asset_name_index],
                    components=frozenset(brick.components),
                )
            )
        return DecodedSave(objects=objects, assets=list(assets))

    def encode(self, save: MarkerSave) -> bytes:
        return to_save_data(save).model_dump_json().encode("utf-8")


def to_save_data(save: MarkerSave) -> SaveData:
    return SaveData(
        brick_assets=list(save.assets),
        materials=list(save.materials),
        brick_owners=[
            SaveOwner(
                id=owner.id,
                name=owner.name,
                bricks=sum(1 for obj in save.objects if obj.owner_index == i),
            )
            for i, owner in enumerate(save.owners, start=1)
        ],
        bricks=[
            SaveBrick(
                asset_name_index=obj.asset_index,
                position=obj.position,
                size=obj.size,
                color=list(obj.color),
                owner_index=obj.owner_index,
                material_index=obj.material_index,
                material_intensity=obj.material_intensity,
            )
            for obj in save.objects
        ],
    )
