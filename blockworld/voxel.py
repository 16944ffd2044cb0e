"""Voxel shapes: the faces drawn for each kind of block."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from blockworld.blocks import BlockData, BlockId

Color = tuple[float, float, float, float]
_WHITE: Color = (1.0, 1.0, 1.0, 1.0)


class FaceDirection(Enum):
    """Which side of the voxel a face sits on; inset faces are inside the voxel."""

    TOP = "Top"
    BOTTOM = "Bottom"
    FRONT = "Front"
    BACK = "Back"
    RIGHT = "Right"
    LEFT = "Left"
    INSET = "Inset"


@dataclass
class Face:
    """Geometry, colouring and texture name of one face."""

    direction: FaceDirection
    vertices: list[tuple[float, float, float]]
    indices: list[int]
    normals: list[tuple[float, float, float]]
    colors: list[Color]
    uvs: list[tuple[float, float]]
    texture: str


@dataclass
class VoxelShape:
    faces: list[Face] = field(default_factory=list)


_UV_A = ((0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0))
_UV_B = ((1.0, 0.0), (0.0, 0.0), (0.0, 1.0), (1.0, 1.0))

# direction, vertices, indices, normal, uvs
_CUBE_FACES = (
    (
        FaceDirection.TOP,
        ((0, 1, 1), (1, 1, 1), (1, 1, 0), (0, 1, 0)),
        (0, 1, 2, 2, 3, 0),
        (0.0, 1.0, 0.0),
        _UV_A,
    ),
    (
        FaceDirection.BOTTOM,
        ((0, 0, 0), (1, 0, 0), (1, 0, 1), (0, 0, 1)),
        (0, 1, 2, 2, 3, 0),
        (0.0, -1.0, 0.0),
        _UV_B,
    ),
    (
        FaceDirection.FRONT,
        ((1, 1, 0), (0, 1, 0), (0, 0, 0), (1, 0, 0)),
        (0, 3, 2, 2, 1, 0),
        (0.0, 0.0, -1.0),
        _UV_A,
    ),
    (
        FaceDirection.BACK,
        ((1, 1, 1), (0, 1, 1), (0, 0, 1), (1, 0, 1)),
        (0, 1, 2, 2, 3, 0),
        (0.0, 0.0, 1.0),
        _UV_B,
    ),
    (
        FaceDirection.LEFT,
        ((0, 1, 1), (0, 1, 0), (0, 0, 0), (0, 0, 1)),
        (3, 0, 1, 1, 2, 3),
        (-1.0, 0.0, 0.0),
        _UV_B,
    ),
    (
        FaceDirection.RIGHT,
        ((1, 1, 0), (1, 1, 1), (1, 0, 1), (1, 0, 0)),
        (0, 1, 2, 2, 3, 0),
        (1.0, 0.0, 0.0),
        _UV_B,
    ),
)

_FLORA_VERTICES = (
    (0, 0, 0), (0, 0, 1), (0, 1, 0), (0, 1, 1),
    (1, 0, 0), (1, 0, 1), (1, 1, 0), (1, 1, 1),
)
_FLORA_INDICES = (
    0, 5, 7, 7, 5, 0,
    0, 2, 7, 7, 2, 0,
    1, 4, 6, 6, 4, 1,
    1, 3, 6, 6, 3, 1,
)
_FLORA_NORMALS = (
    (0.5, 1.0, 0.5), (0.5, 1.0, -0.5), (0.5, 0.0, 0.5), (0.5, 0.0, -0.5),
    (-0.5, 1.0, 0.5), (-0.5, 1.0, -0.5), (-0.5, 0.0, 0.5), (-0.5, 0.0, -0.5),
)
_FLORA_UVS = (
    (0.0, 1.0), (0.0, 1.0), (0.0, 0.0), (0.0, 0.0),
    (1.0, 1.0), (1.0, 1.0), (1.0, 0.0), (1.0, 0.0),
)

_DEBUG_TEXTURES = ("Top", "Down", "Front", "Back", "Left", "Right")
_TOPPED = frozenset({BlockId.OAK_LOG, BlockId.SPRUCE_LOG, BlockId.CACTUS})
_LEAVES = frozenset({BlockId.OAK_LEAVES, BlockId.SPRUCE_LEAVES})
_FLOWERS = frozenset({BlockId.POPPY, BlockId.DANDELION})


def _floats(points) -> list[tuple[float, float, float]]:
    return [tuple(float(c) for c in p) for p in points]


def full_cube(block: BlockData) -> VoxelShape:
    """Six outward faces, all textured with the block's name."""
    texture = block.id.value
    return VoxelShape(
        [
            Face(
                direction=direction,
                vertices=_floats(vertices),
                indices=list(indices),
                normals=[normal] * 4,
                colors=[_WHITE] * 4,
                uvs=list(uvs),
                texture=texture,
            )
            for direction, vertices, indices, normal, uvs in _CUBE_FACES
        ]
    )


def flora(block: BlockData) -> VoxelShape:
    """Two crossed double-sided planes, as used for flowers and grass."""
    return VoxelShape(
        [
            Face(
                direction=FaceDirection.INSET,
                vertices=_floats(_FLORA_VERTICES),
                indices=list(_FLORA_INDICES),
                normals=list(_FLORA_NORMALS),
                colors=[_WHITE] * len(_FLORA_VERTICES),
                uvs=list(_FLORA_UVS),
                texture=block.id.value,
            )
        ]
    )


def _tint(face: Face, color: Color) -> None:
    face.colors = [tuple(color)] * len(face.colors)


def create_voxel_shape(block: BlockData, grass_color: Color) -> VoxelShape:
    """Shape of a block, with special textures and grass tinting where needed."""
    block_id = block.id
    if block_id is BlockId.GRASS:
        shape = full_cube(block)
        top = shape.faces[0]
        top.texture += "Top"
        _tint(top, grass_color)
        return shape
    if block_id in _TOPPED:
        shape = full_cube(block)
        shape.faces[0].texture += "Top"
        shape.faces[1].texture += "Top"
        return shape
    if block_id in _LEAVES:
        shape = full_cube(block)
        for face in shape.faces:
            _tint(face, grass_color)
        return shape
    if block_id is BlockId.DEBUG:
        shape = full_cube(block)
        for face, texture in zip(shape.faces, _DEBUG_TEXTURES):
            face.texture = texture
        return shape
    if block_id in _FLOWERS:
        return flora(block)
    if block_id is BlockId.TALL_GRASS:
        shape = flora(block)
        for face in shape.faces:
            _tint(face, grass_color)
        return shape
    return full_cube(block)