"""World state: biomes, chunks, server and client block maps, and world events."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, Union

from blockworld.blocks import BlockData, BlockId, block_data_from_dict, block_data_to_dict
from blockworld.coords import IVec3, Vec3, global_block_to_chunk_pos, to_local_pos

logger = logging.getLogger(__name__)


class BiomeType(Enum):
    PLAINS = "Plains"
    FOREST = "Forest"
    MEDIUM_MOUNTAIN = "MediumMountain"
    HIGH_MOUNTAIN_GRASS = "HighMountainGrass"
    DESERT = "Desert"
    ICE_PLAIN = "IcePlain"
    FLOWER_PLAINS = "FlowerPlains"


@dataclass(frozen=True)
class Biome:
    biome_type: BiomeType
    base_height: int
    height_variation: int
    surface_block: BlockId
    sub_surface_block: BlockId


_BIOMES: dict[BiomeType, Biome] = {
    b.biome_type: b
    for b in (
        Biome(BiomeType.PLAINS, 64, 1, BlockId.GRASS, BlockId.DIRT),
        Biome(BiomeType.FOREST, 64, 2, BlockId.GRASS, BlockId.DIRT),
        Biome(BiomeType.MEDIUM_MOUNTAIN, 70, 4, BlockId.GRASS, BlockId.DIRT),
        Biome(BiomeType.HIGH_MOUNTAIN_GRASS, 75, 7, BlockId.GRASS, BlockId.DIRT),
        Biome(BiomeType.DESERT, 64, 1, BlockId.SAND, BlockId.SAND),
        Biome(BiomeType.ICE_PLAIN, 64, 1, BlockId.SNOW, BlockId.ICE),
        Biome(BiomeType.FLOWER_PLAINS, 64, 1, BlockId.GRASS, BlockId.DIRT),
    )
}


def get_biome_data(biome_type: BiomeType) -> Biome:
    return _BIOMES[biome_type]


@dataclass
class ServerChunk:
    """Blocks of one chunk keyed by local position, with its last update time in ms."""

    map: dict[IVec3, BlockData] = field(default_factory=dict)
    ts: int = 0


@dataclass
class ClientChunk:
    """Blocks of one chunk on the client, with the handle of its rendered entity."""

    map: dict[IVec3, BlockData] = field(default_factory=dict)
    entity: Any = None


def _get_block(chunks: dict[IVec3, Any], position: IVec3) -> BlockData | None:
    chunk = chunks.get(global_block_to_chunk_pos(position))
    if chunk is None:
        return None
    return chunk.map.get(to_local_pos(position))


def _remove_block(chunks: dict[IVec3, Any], position: IVec3) -> BlockData | None:
    chunk = chunks.get(global_block_to_chunk_pos(position))
    if chunk is None:
        return None
    return chunk.map.pop(to_local_pos(position), None)


def _set_block(
    chunks: dict[IVec3, Any],
    position: IVec3,
    block: BlockData,
    factory: Callable[[], Any],
) -> None:
    chunk_pos = global_block_to_chunk_pos(position)
    chunk = chunks.get(chunk_pos)
    if chunk is None:
        chunk = factory()
        chunks[chunk_pos] = chunk
    chunk.map[to_local_pos(position)] = block


@dataclass
class ServerWorldMap:
    """Authoritative world: chunks, chunks changed since the last broadcast, players."""

    name: str = ""
    map: dict[IVec3, ServerChunk] = field(default_factory=dict)
    chunks_to_update: list[IVec3] = field(default_factory=list)
    player_positions: dict[int, Vec3] = field(default_factory=dict)
    time: int = 0

    def get_block(self, position: IVec3) -> BlockData | None:
        return _get_block(self.map, position)

    def remove_block(self, position: IVec3) -> BlockData | None:
        """Remove the block at a global position and return it, if there was one."""
        removed = _remove_block(self.map, position)
        if removed is not None:
            self.chunks_to_update.append(global_block_to_chunk_pos(position))
        return removed

    def set_block(self, position: IVec3, block: BlockData) -> None:
        _set_block(self.map, position, block, ServerChunk)
        self.chunks_to_update.append(global_block_to_chunk_pos(position))


@dataclass
class ClientWorldMap:
    """The client's copy of the world."""

    name: str = ""
    map: dict[IVec3, ClientChunk] = field(default_factory=dict)
    total_blocks_count: int = 0
    total_chunks_count: int = 0

    def get_block(self, position: IVec3) -> BlockData | None:
        return _get_block(self.map, position)

    def remove_block(self, position: IVec3) -> BlockData | None:
        """Remove the block at a global position and return it, if there was one."""
        return _remove_block(self.map, position)

    def set_block(self, position: IVec3, block: BlockData) -> None:
        _set_block(self.map, position, block, ClientChunk)


class GlobalMaterial(Enum):
    SUN = "Sun"
    MOON = "Moon"


@dataclass(frozen=True)
class ChunkToReload:
    pos: IVec3


@dataclass(frozen=True)
class BlockToReload:
    pos: IVec3


WorldRenderRequestUpdateEvent = Union[ChunkToReload, BlockToReload]


@dataclass(frozen=True)
class BlockInteractionEvent:
    """A block placed at a position, or removed when block_type is None."""

    position: IVec3
    block_type: BlockData | None = None


def handle_block_interactions(
    world_map: ServerWorldMap, events: Iterable[BlockInteractionEvent]
) -> None:
    for event in events:
        if event.block_type is None:
            world_map.remove_block(event.position)
            logger.info("Block removed at %s", event.position)
        else:
            world_map.set_block(event.position, event.block_type)
            logger.debug("Block added at %s: %s", event.position, event.block_type)


def _ivec(values: Any) -> IVec3:
    try:
        x, y, z = values
        return IVec3(int(x), int(y), int(z))
    except (TypeError, ValueError) as exc:
        raise ValueError(f"invalid position: {values!r}") from exc


def _vec(values: Any) -> Vec3:
    try:
        x, y, z = values
        return Vec3(float(x), float(y), float(z))
    except (TypeError, ValueError) as exc:
        raise ValueError(f"invalid vector: {values!r}") from exc


def chunk_to_dict(chunk: ServerChunk) -> dict[str, Any]:
    return {
        "map": [[list(pos), block_data_to_dict(block)] for pos, block in chunk.map.items()],
        "ts": chunk.ts,
    }


def chunk_from_dict(data: dict[str, Any]) -> ServerChunk:
    """Rebuild a chunk from its dictionary form; raises ValueError on bad input."""
    try:
        entries = data["map"]
        ts = int(data["ts"])
        blocks = {_ivec(pos): block_data_from_dict(block) for pos, block in entries}
    except (KeyError, TypeError) as exc:
        raise ValueError(f"invalid chunk data: {data!r}") from exc
    return ServerChunk(blocks, ts)


def world_map_to_dict(world_map: ServerWorldMap) -> dict[str, Any]:
    return {
        "name": world_map.name,
        "map": [[list(pos), chunk_to_dict(chunk)] for pos, chunk in world_map.map.items()],
        "chunks_to_update": [list(pos) for pos in world_map.chunks_to_update],
        "player_positions": [
            [player_id, list(pos)] for player_id, pos in world_map.player_positions.items()
        ],
        "time": world_map.time,
    }


def world_map_from_dict(data: dict[str, Any]) -> ServerWorldMap:
    """Rebuild a world map from its dictionary form; raises ValueError on bad input."""
    try:
        return ServerWorldMap(
            name=str(data["name"]),
            map={_ivec(pos): chunk_from_dict(chunk) for pos, chunk in data["map"]},
            chunks_to_update=[_ivec(pos) for pos in data["chunks_to_update"]],
            player_positions={
                int(player_id): _vec(pos) for player_id, pos in data["player_positions"]
            },
            time=int(data["time"]),
        )
    except (KeyError, TypeError) as exc:
        raise ValueError(f"invalid world data: {exc}") from exc