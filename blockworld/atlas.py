"""Texture atlases: packing 16x16 block and item textures into one strip."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping, Union

from blockworld.config import GameFolderPaths, SpecialFlag
from blockworld.coords import get_game_folder

logger = logging.getLogger(__name__)

TILE_SIZE = 16
CHANNELS = 4
TILE_BYTES = TILE_SIZE * TILE_SIZE * CHANNELS
_ROW_BYTES = TILE_SIZE * CHANNELS


@dataclass(frozen=True)
class UvCoords:
    """Texture rectangle of one tile inside an atlas, in normalized coordinates."""

    u0: float
    u1: float
    v0: float
    v1: float


@dataclass
class Atlas:
    """A packed RGBA texture strip and the rectangle of each named tile in it."""

    width: int
    height: int
    data: bytes
    uvs: dict[str, UvCoords] = field(default_factory=dict)


Images = Union[Mapping[str, bytes], Iterable[tuple[str, bytes]]]


def build_atlas(images: Images) -> Atlas:
    """Pack 16x16 RGBA images side by side, in the order given.

    Raises ValueError when there are no images or one has the wrong size.
    """
    entries = list(images.items() if isinstance(images, Mapping) else images)
    if not entries:
        raise ValueError("an atlas needs at least one image")

    width = len(entries) * TILE_SIZE
    height = TILE_SIZE
    atlas_data = bytearray(width * height * CHANNELS)
    uvs: dict[str, UvCoords] = {}

    for index, (name, image) in enumerate(entries):
        pixels = bytes(image)
        if len(pixels) < TILE_BYTES:
            raise ValueError(
                f"image {name!r} holds {len(pixels)} bytes, expected {TILE_BYTES}"
            )
        offset_x = index * TILE_SIZE
        uvs[name] = UvCoords(offset_x / width, (offset_x + TILE_SIZE) / width, 0.0, 1.0)
        for y in range(TILE_SIZE):
            dest = (y * width + offset_x) * CHANNELS
            src = y * _ROW_BYTES
            atlas_data[dest : dest + _ROW_BYTES] = pixels[src : src + _ROW_BYTES]

    return Atlas(width=width, height=height, data=bytes(atlas_data), uvs=uvs)


def texture_directories(
    paths: GameFolderPaths, texture_path: str, special_flag: SpecialFlag | bool
) -> tuple[Path, Path]:
    """Directories holding block and item textures, in that order."""
    flag = special_flag.special_flag if isinstance(special_flag, SpecialFlag) else bool(special_flag)
    root = get_game_folder(paths)
    base = root / paths.assets_folder_path if flag else root / "data"
    textures = base / texture_path
    return textures / "blocks", textures / "items"


def list_textures(directory: Path | str) -> list[tuple[Path, str]]:
    """Texture files of a directory as (png path, name) pairs, sorted by name.

    A directory that cannot be read gives an empty list and a warning.
    """
    directory = Path(directory)
    try:
        entries = list(directory.iterdir())
    except OSError:
        logger.warning(
            "Textures could not be loaded. This could crash the game : %s", directory
        )
        return []
    textures = sorted(
        ((directory / entry.stem).with_suffix(".png"), entry.stem) for entry in entries
    )
    logger.info("Textures loaded from %s", directory)
    return textures