import pytest

from blockworld.config import GameFolderPaths
from blockworld.coords import (
    SIX_OFFSETS,
    IVec3,
    Vec3,
    block_to_chunk_coord,
    block_vec3_to_chunk_v3_coord,
    chunk_in_radius,
    get_game_folder,
    global_block_to_chunk_pos,
    to_global_pos,
    to_local_pos,
)


def test_chunk_coord_contains_block():
    for x in range(-50, 50):
        c = block_to_chunk_coord(x)
        assert c * 16 <= x < (c + 1) * 16


def test_negative_block_is_in_negative_chunk():
    assert block_to_chunk_coord(-1) == -1


def test_local_pos_in_range_and_round_trip():
    for p in (IVec3(-17, 0, 33), IVec3(15, -16, 16), IVec3(-1, -1, -1)):
        local = to_local_pos(p)
        assert all(0 <= c < 16 for c in local)
        assert to_global_pos(global_block_to_chunk_pos(p), local) == p


def test_vector_arithmetic_invariants():
    a = IVec3(3, -4, 7)
    b = IVec3(-2, 9, 1)
    assert a + b == b + a
    assert (a + b) - b == a
    assert a * 1 == a
    assert 2 * a == a + a


def test_with_y_keeps_x_and_z():
    v = IVec3(3, -4, 7).with_y(42)
    assert (v.x, v.y, v.z) == (3, 42, 7)


def test_six_offsets_cancel_out():
    total = IVec3(0, 0, 0)
    for offset in SIX_OFFSETS:
        total = total + offset
    assert total == IVec3(0, 0, 0)
    assert len(set(SIX_OFFSETS)) == 6


def test_chunk_in_radius_ignores_height():
    origin = IVec3(0, 0, 0)
    assert chunk_in_radius(origin, IVec3(2, 100, -2), 2)
    assert not chunk_in_radius(origin, IVec3(2, 0, -3), 2)


def test_vec3_to_chunk_truncates():
    assert block_vec3_to_chunk_v3_coord(Vec3(-0.5, 17.9, -16.0)) == Vec3(0.0, 1.0, -1.0)


def test_get_game_folder_requires_paths():
    with pytest.raises(ValueError):
        get_game_folder(None)


def test_get_game_folder_joins_path():
    folder = get_game_folder(GameFolderPaths("games_dir", "games_dir/data"))
    assert folder.name == "games_dir"
    assert folder.is_absolute()