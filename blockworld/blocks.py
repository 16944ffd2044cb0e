"""Block and item identifiers with their gameplay properties."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


class BlockId(Enum):
    """Kind of block; the value is its serialized name."""

    DIRT = "Dirt"
    DEBUG = "Debug"
    GRASS = "Grass"
    STONE = "Stone"
    OAK_LOG = "OakLog"
    OAK_PLANKS = "OakPlanks"
    OAK_LEAVES = "OakLeaves"
    SAND = "Sand"
    CACTUS = "Cactus"
    ICE = "Ice"
    GLASS = "Glass"
    BEDROCK = "Bedrock"
    DANDELION = "Dandelion"
    POPPY = "Poppy"
    TALL_GRASS = "TallGrass"
    COBBLESTONE = "Cobblestone"
    SNOW = "Snow"
    SPRUCE_LEAVES = "SpruceLeaves"
    SPRUCE_LOG = "SpruceLog"

    @classmethod
    def default(cls) -> BlockId:
        return cls.DIRT

    @staticmethod
    def is_biome_colored() -> bool:
        return False

    def has_hitbox(self) -> bool:
        return self not in _FLORA

    def break_time(self) -> float:
        """Seconds needed to break the block; negative means unbreakable."""
        return -1.0 if self is BlockId.BEDROCK else 5.0

    def color(self) -> tuple[float, float, float, float]:
        if self is BlockId.GRASS:
            return (0.1, 1.0, 0.25, 1.0)
        return (1.0, 1.0, 1.0, 1.0)

    def drop_table(self) -> list[tuple[int, ItemId, int]]:
        """Drops as (relative chance, item, base number) entries."""
        return list(_DROP_TABLES.get(self, ()))

    def drops(self, count: int, rng: Any = None) -> dict[ItemId, int]:
        """Roll the drop table `count` times and total the items obtained."""
        table = self.drop_table()
        result: dict[ItemId, int] = {}
        if not table:
            return result
        if rng is None:
            rng = random
        total = sum(chance for chance, _, _ in table)
        for _ in range(count):
            roll = rng.randrange(total)
            for chance, item, base in table:
                if roll < chance:
                    result[item] = result.get(item, 0) + base
                else:
                    roll -= chance
        return result

    def tags(self) -> list[BlockTags]:
        if self is BlockId.STONE:
            return [BlockTags.STONE, BlockTags.SOLID]
        return [BlockTags.SOLID]

    def visibility(self) -> BlockTransparency:
        if self in _FLORA:
            return BlockTransparency.DECORATION
        if self in _SEE_THROUGH:
            return BlockTransparency.TRANSPARENT
        return BlockTransparency.SOLID


class BlockDirection(Enum):
    FRONT = "Front"
    RIGHT = "Right"
    BACK = "Back"
    LEFT = "Left"


@dataclass(frozen=True)
class BlockData:
    """A placed block: its kind, whether it is upside down, and its facing."""

    id: BlockId
    flipped: bool = False
    direction: BlockDirection = BlockDirection.FRONT


class BlockTags(Enum):
    SOLID = "Solid"
    STONE = "Stone"


class BlockTransparency(Enum):
    TRANSPARENT = "Transparent"
    LIQUID = "Liquid"
    SOLID = "Solid"
    DECORATION = "Decoration"


class ItemId(Enum):
    """Kind of item; the value is its serialized name."""

    DIRT = "Dirt"
    GRASS = "Grass"
    STONE = "Stone"
    OAK_LOG = "OakLog"
    OAK_PLANKS = "OakPlanks"
    OAK_LEAVES = "OakLeaves"
    SAND = "Sand"
    CACTUS = "Cactus"
    ICE = "Ice"
    GLASS = "Glass"
    BEDROCK = "Bedrock"
    DANDELION = "Dandelion"
    TALL_GRASS = "TallGrass"
    POPPY = "Poppy"
    COBBLESTONE = "Cobblestone"
    SNOW = "Snow"
    SNOWBALL = "Snowball"
    SPRUCE_LOG = "SpruceLog"

    @classmethod
    def default(cls) -> ItemId:
        return cls.DIRT

    def max_stack(self) -> int:
        return 64

    def default_type(self) -> ItemType:
        if self is ItemId.SNOWBALL:
            return GenericItem()
        return BlockItem(BlockId(self.value))


class ArmorType(Enum):
    HELMET = "Helmet"
    CHESTPLATE = "Chestplate"
    LEGGINGS = "Leggings"
    BOOTS = "Boots"


@dataclass(frozen=True)
class GenericItem:
    """An item with no special behaviour."""


@dataclass(frozen=True)
class BlockItem:
    """An item that places a block."""

    block: BlockId


@dataclass(frozen=True)
class ToolItem:
    durability: int


@dataclass(frozen=True)
class ArmorItem:
    armor: ArmorType


ItemType = Union[GenericItem, BlockItem, ToolItem, ArmorItem]


@dataclass
class ItemStack:
    item_id: ItemId
    item_type: ItemType
    nb: int


@dataclass
class TempBlock:
    """Block description as read from data files."""

    id: str
    drops: list[tuple[int, str]] = field(default_factory=list)
    break_time: float = 0.0
    uvs: tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)


_FLORA = frozenset({BlockId.DANDELION, BlockId.POPPY, BlockId.TALL_GRASS})
_SEE_THROUGH = frozenset({BlockId.GLASS, BlockId.OAK_LEAVES, BlockId.SPRUCE_LEAVES})

_DROP_TABLES: dict[BlockId, tuple[tuple[int, ItemId, int], ...]] = {
    BlockId.DIRT: ((1, ItemId.DIRT, 1),),
    BlockId.GRASS: ((1, ItemId.DIRT, 1),),
    BlockId.STONE: ((1, ItemId.COBBLESTONE, 1),),
    BlockId.SAND: ((1, ItemId.SAND, 1),),
    BlockId.CACTUS: ((1, ItemId.CACTUS, 1),),
    BlockId.OAK_LOG: ((1, ItemId.OAK_LOG, 1),),
    BlockId.OAK_PLANKS: ((1, ItemId.OAK_PLANKS, 1),),
    BlockId.ICE: ((1, ItemId.ICE, 1),),
    BlockId.DANDELION: ((1, ItemId.DANDELION, 1),),
    BlockId.POPPY: ((1, ItemId.DANDELION, 1),),
    BlockId.TALL_GRASS: ((1, ItemId.TALL_GRASS, 1),),
    BlockId.SPRUCE_LOG: ((1, ItemId.SPRUCE_LOG, 1),),
    BlockId.SNOW: ((1, ItemId.SNOWBALL, 4),),
}


def block_data_to_dict(block: BlockData) -> dict[str, Any]:
    return {"id": block.id.value, "flipped": block.flipped, "direction": block.direction.value}


def block_data_from_dict(data: dict[str, Any]) -> BlockData:
    """Rebuild a block from its dictionary form; raises ValueError on bad input."""
    try:
        flipped = data["flipped"]
        block_id = BlockId(data["id"])
        direction = BlockDirection(data["direction"])
    except (KeyError, TypeError) as exc:
        raise ValueError(f"invalid block data: {data!r}") from exc
    if not isinstance(flipped, bool):
        raise ValueError(f"flipped must be a boolean, got {flipped!r}")
    return BlockData(block_id, flipped, direction)