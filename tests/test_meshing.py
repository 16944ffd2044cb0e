import pytest

from blockworld.atlas import UvCoords
from blockworld.blocks import BlockData, BlockDirection, BlockId, BlockTransparency
from blockworld.coords import IVec3
from blockworld.meshing import (
    ChunkMesh,
    chunks_to_reload,
    generate_chunk_mesh,
    is_block_surrounded,
    rotate_vertices,
    should_render_face,
)
from blockworld.voxel import FaceDirection
from blockworld.world import BlockToReload, ChunkToReload, ClientWorldMap

GRASS = (0.2, 0.8, 0.3, 1.0)
ORIGIN = IVec3(0, 0, 0)


def _uvs():
    return {
        "_Default": UvCoords(0.0, 0.25, 0.0, 1.0),
        "Stone": UvCoords(0.25, 0.5, 0.0, 1.0),
    }


def _world(*blocks):
    world = ClientWorldMap()
    for pos, block_id in blocks:
        world.set_block(pos, BlockData(block_id))
    return world


def _surround(center, block_id):
    return [(center + o, block_id) for o in (
        IVec3(1, 0, 0), IVec3(-1, 0, 0), IVec3(0, 1, 0),
        IVec3(0, -1, 0), IVec3(0, 0, 1), IVec3(0, 0, -1),
    )]


def _mesh(world, chunk_pos=ORIGIN, uvs=None):
    return generate_chunk_mesh(world, world.map[chunk_pos], chunk_pos, uvs or _uvs(), GRASS)


def test_single_cube_has_all_faces():
    mesh = _mesh(_world((IVec3(1, 1, 1), BlockId.STONE)))
    assert mesh.vertex_count == 24
    assert len(mesh.indices) == 36
    assert max(mesh.indices) == mesh.vertex_count - 1
    assert len(mesh.normals) == len(mesh.uvs) == len(mesh.colors) == mesh.vertex_count


def test_adjacent_cubes_hide_shared_faces():
    single = _mesh(_world((IVec3(1, 1, 1), BlockId.STONE)))
    pair = _mesh(_world((IVec3(1, 1, 1), BlockId.STONE), (IVec3(2, 1, 1), BlockId.STONE)))
    assert pair.vertex_count == 2 * single.vertex_count - 8


def test_positions_are_offset_by_local_position():
    mesh = _mesh(_world((IVec3(2, 3, 4), BlockId.STONE)))
    assert {p[0] for p in mesh.positions} == {2.0, 3.0}
    assert {p[1] for p in mesh.positions} == {3.0, 4.0}
    assert {p[2] for p in mesh.positions} == {4.0, 5.0}


def test_flipped_block_mirrors_height():
    world = ClientWorldMap()
    world.set_block(IVec3(2, 3, 4), BlockData(BlockId.STONE, flipped=True))
    plain = _mesh(_world((IVec3(2, 3, 4), BlockId.STONE)))
    flipped = _mesh(world)
    for a, b in zip(plain.positions, flipped.positions):
        assert a[0] == b[0] and a[2] == b[2]
        assert (a[1] - 3) + (b[1] - 3) == pytest.approx(1.0)


def test_uvs_stay_inside_tile():
    mesh = _mesh(_world((IVec3(0, 0, 0), BlockId.STONE)))
    assert all(0.25 <= u <= 0.5 for u, _ in mesh.uvs)
    assert all(0.0 <= v <= 1.0 for _, v in mesh.uvs)


def test_missing_texture_uses_default():
    mesh = _mesh(_world((IVec3(0, 0, 0), BlockId.SAND)))
    assert all(0.0 <= u <= 0.25 for u, _ in mesh.uvs)


def test_missing_default_texture_raises():
    world = _world((IVec3(0, 0, 0), BlockId.SAND))
    with pytest.raises(KeyError):
        _mesh(world, uvs={"Stone": UvCoords(0.0, 1.0, 0.0, 1.0)})


def test_tall_grass_is_tinted_flora():
    mesh = _mesh(_world((IVec3(0, 0, 0), BlockId.TALL_GRASS)))
    assert mesh.vertex_count == 8
    assert mesh.triangle_count == 8
    assert all(c == GRASS for c in mesh.colors)


def test_surrounded_block_is_skipped():
    center = IVec3(5, 5, 5)
    world = _world((center, BlockId.STONE), *_surround(center, BlockId.STONE))
    assert is_block_surrounded(world, center, BlockTransparency.SOLID, BlockId.STONE)
    mesh = _mesh(world)
    assert all(not (5 < p[0] < 6 and 5 < p[1] < 6) for p in mesh.positions)
    assert (5.5, 5.5, 5.5) not in mesh.positions


def test_not_surrounded_when_neighbour_missing():
    world = _world((IVec3(5, 5, 5), BlockId.STONE))
    assert not is_block_surrounded(world, IVec3(5, 5, 5), BlockTransparency.SOLID, BlockId.STONE)


def test_same_transparent_blocks_surround():
    center = IVec3(5, 5, 5)
    world = _world((center, BlockId.GLASS), *_surround(center, BlockId.GLASS))
    assert is_block_surrounded(world, center, BlockTransparency.TRANSPARENT, BlockId.GLASS)
    assert not is_block_surrounded(
        world, center, BlockTransparency.TRANSPARENT, BlockId.OAK_LEAVES
    )


def test_decoration_neighbour_breaks_surrounding():
    center = IVec3(5, 5, 5)
    neighbours = _surround(center, BlockId.STONE)
    neighbours[0] = (neighbours[0][0], BlockId.POPPY)
    world = _world((center, BlockId.STONE), *neighbours)
    assert not is_block_surrounded(world, center, BlockTransparency.SOLID, BlockId.STONE)


@pytest.mark.parametrize(
    "neighbour, visibility, expected",
    [
        (None, BlockTransparency.SOLID, True),
        (BlockId.STONE, BlockTransparency.SOLID, False),
        (BlockId.GLASS, BlockTransparency.SOLID, True),
        (BlockId.GLASS, BlockTransparency.TRANSPARENT, False),
        (BlockId.DANDELION, BlockTransparency.SOLID, True),
    ],
)
def test_should_render_face(neighbour, visibility, expected):
    world = _world((IVec3(1, 1, 1), BlockId.STONE))
    if neighbour is not None:
        world.set_block(IVec3(1, 1, 0), BlockData(neighbour))
    assert should_render_face(world, IVec3(1, 1, 1), FaceDirection.FRONT, visibility) is expected


def test_inset_face_always_rendered():
    center = IVec3(1, 1, 1)
    world = _world(*_surround(center, BlockId.STONE))
    assert should_render_face(world, center, FaceDirection.INSET, BlockTransparency.SOLID)


def test_rotate_front_is_identity():
    assert rotate_vertices((0.3, 0.7, 0.9), BlockDirection.FRONT) == (0.3, 0.7, 0.9)


@pytest.mark.parametrize(
    "direction, expected",
    [
        (BlockDirection.BACK, (-1.0, 0.0, 0.0)),
        (BlockDirection.RIGHT, (0.0, 0.0, 1.0)),
        (BlockDirection.LEFT, (0.0, 0.0, -1.0)),
    ],
)
def test_rotate_quarter_turns(direction, expected):
    assert rotate_vertices((1.0, 0.0, 0.0), direction) == pytest.approx(expected, abs=1e-9)


def test_rotation_keeps_height():
    for direction in BlockDirection:
        assert rotate_vertices((0.4, 0.6, 0.2), direction)[1] == 0.6


def test_chunks_to_reload_includes_neighbours():
    result = chunks_to_reload([ChunkToReload(ORIGIN)])
    assert len(result) == 7
    assert ORIGIN in result and IVec3(0, -1, 0) in result


def test_block_event_maps_to_its_chunk():
    result = chunks_to_reload([BlockToReload(IVec3(17, 0, -1))])
    assert IVec3(1, 0, -1) in result
    assert IVec3(2, 0, -1) in result


def test_chunks_to_reload_deduplicates():
    result = chunks_to_reload([ChunkToReload(ORIGIN), BlockToReload(IVec3(3, 3, 3))])
    assert result == chunks_to_reload([ChunkToReload(ORIGIN)])


def test_chunks_to_reload_rejects_unknown_event():
    with pytest.raises(TypeError):
        chunks_to_reload([ORIGIN])


def test_empty_mesh_counts():
    assert ChunkMesh().vertex_count == 0 and ChunkMesh().triangle_count == 0