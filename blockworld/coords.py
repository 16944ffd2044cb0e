"""Vector types and conversions between global, chunk and local block coordinates."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from blockworld.config import CHUNK_SIZE, GameFolderPaths


@dataclass(frozen=True, order=True)
class IVec3:
    """Integer 3D vector, used for block and chunk positions."""

    x: int
    y: int
    z: int

    def __add__(self, other: IVec3) -> IVec3:
        if not isinstance(other, IVec3):
            return NotImplemented
        return IVec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: IVec3) -> IVec3:
        if not isinstance(other, IVec3):
            return NotImplemented
        return IVec3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scalar: int) -> IVec3:
        if isinstance(scalar, bool) or not isinstance(scalar, int):
            return NotImplemented
        return IVec3(self.x * scalar, self.y * scalar, self.z * scalar)

    __rmul__ = __mul__

    def with_y(self, y: int) -> IVec3:
        return IVec3(self.x, y, self.z)

    def __iter__(self) -> Iterator[int]:
        return iter((self.x, self.y, self.z))


@dataclass(frozen=True)
class Vec3:
    """Floating point 3D vector, used for player positions and directions."""

    x: float
    y: float
    z: float

    def __iter__(self) -> Iterator[float]:
        return iter((self.x, self.y, self.z))


SIX_OFFSETS: tuple[IVec3, ...] = (
    IVec3(1, 0, 0),
    IVec3(-1, 0, 0),
    IVec3(0, 1, 0),
    IVec3(0, -1, 0),
    IVec3(0, 0, 1),
    IVec3(0, 0, -1),
)


def get_game_folder(paths: GameFolderPaths | None) -> Path:
    """Game folder resolved against the directory of the running program."""
    if paths is None:
        raise ValueError("a game folder path is required")
    program = sys.argv[0] if sys.argv and sys.argv[0] else ""
    base = Path(program).resolve().parent if program else Path.cwd()
    return base / paths.game_folder_path


def block_to_chunk_coord(x: int) -> int:
    """Chunk coordinate holding the block coordinate x."""
    return x // CHUNK_SIZE


def block_vec3_to_chunk_v3_coord(v: Vec3) -> Vec3:
    """Chunk position of a float position, truncating each component first."""
    return Vec3(
        float(block_to_chunk_coord(int(v.x))),
        float(block_to_chunk_coord(int(v.y))),
        float(block_to_chunk_coord(int(v.z))),
    )


def to_global_pos(chunk_pos: IVec3, local_block_pos: IVec3) -> IVec3:
    return chunk_pos * CHUNK_SIZE + local_block_pos


def to_local_pos(global_block_pos: IVec3) -> IVec3:
    return IVec3(
        global_block_pos.x % CHUNK_SIZE,
        global_block_pos.y % CHUNK_SIZE,
        global_block_pos.z % CHUNK_SIZE,
    )


def global_block_to_chunk_pos(global_block_pos: IVec3) -> IVec3:
    return IVec3(
        block_to_chunk_coord(global_block_pos.x),
        block_to_chunk_coord(global_block_pos.y),
        block_to_chunk_coord(global_block_pos.z),
    )


def chunk_in_radius(player_pos: IVec3, chunk_pos: IVec3, radius: int) -> bool:
    """Whether a chunk lies within a square radius around the player, ignoring height."""
    return abs(player_pos.x - chunk_pos.x) <= radius and abs(player_pos.z - chunk_pos.z) <= radius