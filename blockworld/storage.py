"""Saving and loading a world: its map, seed and time, as one file per world."""

from __future__ import annotations

import json
import logging
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from blockworld.config import GameFolderPaths
from blockworld.coords import get_game_folder
from blockworld.world import ServerWorldMap, world_map_from_dict, world_map_to_dict

logger = logging.getLogger(__name__)

SAVE_PATH = "saves"
SAVE_EXTENSION = ".json"


def _unsigned(name: str, value: Any, bits: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value < 1 << bits:
        raise ValueError(f"{name} must be an unsigned {bits}-bit integer, got {value!r}")
    return value


@dataclass
class WorldData:
    """Everything stored for a world: seed, block map and elapsed time."""

    seed: int
    map: ServerWorldMap = field(default_factory=ServerWorldMap)
    time: int = 0

    def __post_init__(self) -> None:
        _unsigned("seed", self.seed, 32)
        _unsigned("time", self.time, 64)


def world_data_to_text(world_data: WorldData) -> str:
    return json.dumps(
        {
            "seed": world_data.seed,
            "map": world_map_to_dict(world_data.map),
            "time": world_data.time,
        },
        indent=2,
    )


def world_data_from_text(text: str) -> WorldData:
    """Parse saved world data; raises ValueError on malformed content."""
    try:
        data = json.loads(text)
    except ValueError as exc:
        raise ValueError(f"malformed world data: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError("world data must be an object")
    try:
        return WorldData(
            seed=data["seed"], map=world_map_from_dict(data["map"]), time=data["time"]
        )
    except (KeyError, TypeError) as exc:
        raise ValueError(f"invalid world data: {exc!r}") from exc


def save_file_path(paths: GameFolderPaths, world_name: str) -> Path:
    return get_game_folder(paths) / SAVE_PATH / f"{world_name}{SAVE_EXTENSION}"


def load_world_data(file_name: str, paths: GameFolderPaths, rng: Any = None) -> WorldData:
    """Load a world, or make a fresh one with a random seed if it was never saved.

    Raises OSError when the file cannot be read and ValueError when it is malformed.
    """
    path = save_file_path(paths, file_name)
    if not path.exists():
        logger.info("World data file not found: %s. Generating default world and seed.", path)
        if rng is None:
            rng = random.Random()
        return WorldData(seed=rng.getrandbits(32), map=ServerWorldMap(name=file_name), time=0)
    return world_data_from_text(path.read_text(encoding="utf-8"))


def load_world_map(file_name: str, paths: GameFolderPaths, rng: Any = None) -> ServerWorldMap:
    return load_world_data(file_name, paths, rng).map


def load_world_seed(file_name: str, paths: GameFolderPaths, rng: Any = None) -> int:
    return load_world_data(file_name, paths, rng).seed


def load_world_time(file_name: str, paths: GameFolderPaths, rng: Any = None) -> int:
    return load_world_data(file_name, paths, rng).time


def save_world_data(world_data: WorldData, file_path: Path | str) -> None:
    """Write world data to a file; raises OSError when it cannot be written."""
    Path(file_path).write_text(world_data_to_text(world_data), encoding="utf-8")
    logger.info("World data saved to %s", file_path)


def save_world(
    world_map: ServerWorldMap, seed: int, paths: GameFolderPaths, time: int
) -> Path | None:
    """Save a world under its name; returns the file written, or None after logging a failure."""
    world_data = WorldData(seed=seed, map=world_map, time=time)
    path = save_file_path(paths, world_map.name)
    try:
        save_world_data(world_data, path)
    except OSError as exc:
        logger.error("Failed to save world data: %s", exc)
        return None
    logger.info("World data saved successfully! Name: %s", world_map.name)
    return path