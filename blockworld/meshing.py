"""Chunk meshing: turning the blocks of a chunk into renderable triangle lists."""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Iterable, Mapping

from blockworld.atlas import UvCoords
from blockworld.blocks import BlockDirection, BlockId, BlockTransparency
from blockworld.coords import SIX_OFFSETS, IVec3, global_block_to_chunk_pos, to_global_pos
from blockworld.voxel import Color, FaceDirection, create_voxel_shape
from blockworld.world import BlockToReload, ChunkToReload, ClientChunk, ClientWorldMap

logger = logging.getLogger(__name__)

DEFAULT_TEXTURE = "_Default"

Point = tuple[float, float, float]

_ROTATIONS: dict[BlockDirection, float] = {
    BlockDirection.FRONT: 0.0,
    BlockDirection.RIGHT: -math.pi / 2,
    BlockDirection.LEFT: math.pi / 2,
    BlockDirection.BACK: math.pi,
}

_FACE_OFFSETS: dict[FaceDirection, IVec3] = {
    FaceDirection.FRONT: IVec3(0, 0, -1),
    FaceDirection.BACK: IVec3(0, 0, 1),
    FaceDirection.TOP: IVec3(0, 1, 0),
    FaceDirection.BOTTOM: IVec3(0, -1, 0),
    FaceDirection.LEFT: IVec3(-1, 0, 0),
    FaceDirection.RIGHT: IVec3(1, 0, 0),
}


@dataclass
class ChunkMesh:
    """Triangle list of a chunk, with per-vertex attributes, in chunk-local space."""

    positions: list[Point] = field(default_factory=list)
    normals: list[Point] = field(default_factory=list)
    uvs: list[tuple[float, float]] = field(default_factory=list)
    colors: list[Color] = field(default_factory=list)
    indices: list[int] = field(default_factory=list)

    @property
    def vertex_count(self) -> int:
        return len(self.positions)

    @property
    def triangle_count(self) -> int:
        return len(self.indices) // 3


def rotate_vertices(v: Point, direction: BlockDirection) -> Point:
    """Rotate a vertex around the vertical axis to face the given direction."""
    angle = _ROTATIONS[direction]
    cos, sin = math.cos(angle), math.sin(angle)
    x, y, z = v
    return (cos * x + sin * z, y, -sin * x + cos * z)


def is_block_surrounded(
    world_map: ClientWorldMap,
    global_block_pos: IVec3,
    block_visibility: BlockTransparency,
    block_id: BlockId,
) -> bool:
    """Whether every neighbour hides the block completely."""
    for offset in SIX_OFFSETS:
        neighbour = world_map.get_block(global_block_pos + offset)
        if neighbour is None:
            return False
        vis = neighbour.id.visibility()
        if vis is BlockTransparency.DECORATION:
            return False
        if vis is BlockTransparency.LIQUID and vis is not block_visibility:
            return False
        if vis is BlockTransparency.TRANSPARENT and neighbour.id is not block_id:
            return False
    return True


def should_render_face(
    world_map: ClientWorldMap,
    global_block_pos: IVec3,
    direction: FaceDirection,
    block_visibility: BlockTransparency,
) -> bool:
    """Whether a face is visible given the block next to it."""
    offset = _FACE_OFFSETS.get(direction)
    if offset is None:
        return True
    neighbour = world_map.get_block(global_block_pos + offset)
    if neighbour is None:
        return True
    vis = neighbour.id.visibility()
    if vis is BlockTransparency.SOLID:
        return False
    if vis is BlockTransparency.DECORATION:
        return True
    return block_visibility is not vis


def _uv_for(block_uvs: Mapping[str, UvCoords], texture: str) -> UvCoords:
    uv = block_uvs.get(texture)
    if uv is not None:
        return uv
    try:
        return block_uvs[DEFAULT_TEXTURE]
    except KeyError:
        raise KeyError(f"no texture {texture!r} and no {DEFAULT_TEXTURE!r} fallback") from None


def generate_chunk_mesh(
    world_map: ClientWorldMap,
    chunk: ClientChunk,
    chunk_pos: IVec3,
    block_uvs: Mapping[str, UvCoords],
    grass_color: Color,
) -> ChunkMesh:
    """Build the mesh of a chunk, skipping hidden blocks and hidden faces."""
    start = time.perf_counter()
    mesh = ChunkMesh()

    for local_pos, block in chunk.map.items():
        global_pos = to_global_pos(chunk_pos, local_pos)
        visibility = block.id.visibility()
        if is_block_surrounded(world_map, global_pos, visibility, block.id):
            continue

        for face in create_voxel_shape(block, grass_color).faces:
            uv = _uv_for(block_uvs, face.texture)
            if not should_render_face(world_map, global_pos, face.direction, visibility):
                continue

            base = len(mesh.positions)
            mesh.indices.extend(base + i for i in face.indices)
            for vertex in face.vertices:
                x, y, z = rotate_vertices(vertex, block.direction)
                if block.flipped:
                    y = 1.0 - y
                mesh.positions.append((x + local_pos.x, y + local_pos.y, z + local_pos.z))
            mesh.normals.extend(face.normals)
            mesh.colors.extend(face.colors)
            mesh.uvs.extend(
                (min(u + uv.u0, uv.u1), min(v + uv.v0, uv.v1)) for u, v in face.uvs
            )

    logger.debug("Render time : %.6fs", time.perf_counter() - start)
    return mesh


def chunks_to_reload(events: Iterable[ChunkToReload | BlockToReload]) -> set[IVec3]:
    """Chunks to rebuild for a batch of render requests, neighbours included."""
    result: set[IVec3] = set()
    for event in events:
        if isinstance(event, BlockToReload):
            target = global_block_to_chunk_pos(event.pos)
        elif isinstance(event, ChunkToReload):
            target = event.pos
        else:
            raise TypeError(f"not a render request: {event!r}")
        result.add(target)
        result.update(target + offset for offset in SIX_OFFSETS)
    return result