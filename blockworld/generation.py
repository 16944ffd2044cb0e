"""Procedural terrain: Perlin noise, biome choice and chunk generation."""

from __future__ import annotations

import math
import random
import time
from typing import Any

from blockworld.blocks import BlockData, BlockId
from blockworld.config import CHUNK_SIZE
from blockworld.coords import IVec3
from blockworld.world import BiomeType, ServerChunk, get_biome_data

SCALE = 0.1
BIOME_SCALE = 0.01

_NEIGHBOUR_OFFSETS = (-4, 0, 4)
_GRADIENTS = ((1, 1), (-1, 1), (1, -1), (-1, -1), (1, 0), (-1, 0), (0, 1), (0, -1))


def _fade(t: float) -> float:
    return t * t * t * (t * (t * 6 - 15) + 10)


def _lerp(t: float, a: float, b: float) -> float:
    return a + t * (b - a)


class Perlin:
    """Seeded 2D gradient noise with values in [-1, 1]."""

    def __init__(self, seed: int = 0) -> None:
        self.seed = seed
        perm = list(range(256))
        random.Random(seed).shuffle(perm)
        self._perm = perm * 2

    def _grad(self, hashed: int, x: float, y: float) -> float:
        gx, gy = _GRADIENTS[hashed & 7]
        return gx * x + gy * y

    def get(self, x: float, y: float) -> float:
        x0 = math.floor(x)
        y0 = math.floor(y)
        xf = x - x0
        yf = y - y0
        xi = x0 & 255
        yi = y0 & 255
        p = self._perm
        aa = p[p[xi] + yi]
        ab = p[p[xi] + yi + 1]
        ba = p[p[xi + 1] + yi]
        bb = p[p[xi + 1] + yi + 1]
        u = _fade(xf)
        v = _fade(yf)
        low = _lerp(u, self._grad(aa, xf, yf), self._grad(ba, xf - 1, yf))
        high = _lerp(u, self._grad(ab, xf, yf - 1), self._grad(bb, xf - 1, yf - 1))
        return max(-1.0, min(1.0, _lerp(v, low, high)))


def determine_biome(temperature: float, humidity: float) -> BiomeType:
    """Biome for a temperature and humidity in [0, 1]; raises ValueError below zero."""
    if temperature > 0.6:
        return BiomeType.FOREST if humidity > 0.5 else BiomeType.DESERT
    if temperature > 0.3:
        if humidity > 0.7:
            return BiomeType.FLOWER_PLAINS
        if humidity > 0.5:
            return BiomeType.PLAINS
        return BiomeType.MEDIUM_MOUNTAIN
    if temperature >= 0.0:
        return BiomeType.ICE_PLAIN if humidity > 0.5 else BiomeType.HIGH_MOUNTAIN_GRASS
    raise ValueError(f"temperature out of range: {temperature!r}")


def _biome_at(
    x: int, z: int, biome_scale: float, temp_perlin: Perlin, humidity_perlin: Perlin
) -> BiomeType:
    temperature = (temp_perlin.get(x * biome_scale, z * biome_scale) + 1.0) / 2.0
    humidity = (humidity_perlin.get(x * biome_scale, z * biome_scale) + 1.0) / 2.0
    return determine_biome(temperature, humidity)


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def interpolated_height(
    x: int,
    z: int,
    biome_scale: float,
    perlin: Perlin,
    temp_perlin: Perlin,
    humidity_perlin: Perlin,
    scale: float,
) -> int:
    """Terrain height at (x, z), blending the biome with its neighbours by distance."""
    biome = get_biome_data(_biome_at(x, z, biome_scale, temp_perlin, humidity_perlin))
    weighted_base = float(biome.base_height)
    weighted_variation = float(biome.height_variation)
    total_weight = 1.0

    for offset_x in _NEIGHBOUR_OFFSETS:
        for offset_z in _NEIGHBOUR_OFFSETS:
            if offset_x == 0 and offset_z == 0:
                continue
            neighbour = get_biome_data(
                _biome_at(x + offset_x, z + offset_z, biome_scale, temp_perlin, humidity_perlin)
            )
            weight = 1.0 / (math.sqrt(offset_x**2 + offset_z**2) + 1.0)
            weighted_base += neighbour.base_height * weight
            weighted_variation += neighbour.height_variation * weight
            total_weight += weight

    weighted_base /= total_weight
    weighted_variation /= total_weight
    noise = perlin.get(x * scale, z * scale)
    return _round_half_away(weighted_base + weighted_variation * noise)


def _place_column(chunk: ServerChunk, x: int, y: int, z: int, height: int, block: BlockId) -> None:
    for dy in range(height):
        chunk.map[IVec3(x, y + dy, z)] = BlockData(block)


def _place_tree(chunk: ServerChunk, x: int, y: int, z: int, rng: Any) -> None:
    trunk_height = 3 + rng.randrange(3)
    _place_column(chunk, x, y, z, trunk_height, BlockId.OAK_LOG)
    leaf_y = y + trunk_height - 1
    for ox, oz in ((-1, 0), (1, 0), (0, -1), (0, 1)):
        chunk.map[IVec3(x + ox, leaf_y, z + oz)] = BlockData(BlockId.OAK_LEAVES)
    chunk.map[IVec3(x, leaf_y + 1, z)] = BlockData(BlockId.OAK_LEAVES)


def _place_cactus(chunk: ServerChunk, x: int, y: int, z: int, rng: Any) -> None:
    _place_column(chunk, x, y, z, 2 + rng.randrange(2), BlockId.CACTUS)


_LOW_FLOWER_BIOMES = {BiomeType.PLAINS, BiomeType.FOREST, BiomeType.MEDIUM_MOUNTAIN}
_NO_GRASS_BIOMES = {BiomeType.HIGH_MOUNTAIN_GRASS, BiomeType.DESERT, BiomeType.ICE_PLAIN}
_TREE_CHANCE = {
    BiomeType.FOREST: 0.06,
    BiomeType.FLOWER_PLAINS: 0.02,
    BiomeType.MEDIUM_MOUNTAIN: 0.02,
}


def _add_flora(
    chunk: ServerChunk, biome_type: BiomeType, surface: IVec3, above_surface: IVec3, rng: Any
) -> None:
    above = surface.with_y(surface.y + 1)

    flower_chance = rng.random()
    threshold = None
    if biome_type is BiomeType.FLOWER_PLAINS:
        threshold = 0.1
    elif biome_type in _LOW_FLOWER_BIOMES:
        threshold = 0.02
    if threshold is not None and flower_chance < threshold:
        flower = BlockId.DANDELION if rng.random() < 0.5 else BlockId.POPPY
        chunk.map[above] = BlockData(flower)

    if biome_type not in _NO_GRASS_BIOMES and rng.random() < 0.10:
        chunk.map[above] = BlockData(BlockId.TALL_GRASS)

    tree_chance = rng.random()
    tree_threshold = _TREE_CHANCE.get(biome_type)
    if tree_threshold is not None and tree_chance < tree_threshold:
        if above_surface not in chunk.map:
            _place_tree(chunk, surface.x, surface.y + 1, surface.z, rng)

    if biome_type is BiomeType.DESERT and rng.random() < 0.01:
        if above_surface not in chunk.map:
            _place_cactus(chunk, surface.x, surface.y + 1, surface.z, rng)


def generate_chunk(chunk_pos: IVec3, seed: int, rng: Any = None) -> ServerChunk:
    """Generate the blocks of one chunk; rng drives the random flora placement."""
    if rng is None:
        rng = random.Random()
    perlin = Perlin(seed)
    temp_perlin = Perlin((seed + 1) & 0xFFFFFFFF)
    humidity_perlin = Perlin((seed + 2) & 0xFFFFFFFF)
    cx, cy, cz = chunk_pos

    chunk = ServerChunk(ts=int(time.time() * 1000))

    for dx in range(CHUNK_SIZE):
        for dz in range(CHUNK_SIZE):
            x = CHUNK_SIZE * cx + dx
            z = CHUNK_SIZE * cz + dz
            biome_type = _biome_at(x, z, BIOME_SCALE, temp_perlin, humidity_perlin)
            biome = get_biome_data(biome_type)
            height = interpolated_height(
                x, z, BIOME_SCALE, perlin, temp_perlin, humidity_perlin, SCALE
            )

            for dy in range(CHUNK_SIZE):
                y = CHUNK_SIZE * cy + dy
                if y > height:
                    break
                if y == 0:
                    block = BlockId.BEDROCK
                elif y < height - 4:
                    block = BlockId.STONE
                elif y < height:
                    block = biome.sub_surface_block
                else:
                    block = biome.surface_block

                block_pos = IVec3(dx, dy, dz)
                chunk.map[block_pos] = BlockData(block)

                if y == height and height >= 1:
                    _add_flora(chunk, biome_type, block_pos, IVec3(dx, height + 1, dz), rng)
    return chunk