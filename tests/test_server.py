import random
import socket

import pytest

from blockworld.blocks import BlockData, BlockId
from blockworld.config import GameFolderPaths, GameServerConfig
from blockworld.coords import IVec3, Vec3
from blockworld.messages import (
    ChatMessage,
    NetworkPlayerInput,
    PlayerInputs,
    WorldUpdate,
    WorldUpdateRequest,
    decode_message,
    encode_message,
)
from blockworld.server import (
    GameServer,
    RepeatingTimer,
    ServerLobby,
    acquire_local_ephemeral_udp_socket,
    acquire_socket_by_port,
    load_server,
)
from blockworld.storage import load_world_data
from blockworld.world import ServerChunk, ServerWorldMap


def make_server(tmp_path, world_map=None, seed=7):
    paths = GameFolderPaths(str(tmp_path), f"{tmp_path}/data")
    return GameServer(
        config=GameServerConfig(world_name="alpha"),
        paths=paths,
        world_map=world_map if world_map is not None else ServerWorldMap(name="alpha"),
        seed=seed,
        rng=random.Random(1),
    )


def test_timer_fires_after_duration():
    timer = RepeatingTimer(1.0)
    assert timer.tick(0.5) is False
    assert timer.tick(0.5) is True
    assert timer.tick(0.25) is False


def test_timer_reset_clears_elapsed():
    timer = RepeatingTimer(1.0)
    timer.tick(0.9)
    timer.reset()
    assert timer.elapsed == 0.0
    assert timer.tick(0.5) is False


def test_timer_rejects_bad_duration():
    with pytest.raises(ValueError):
        RepeatingTimer(0)


def test_heartbeat_counts_ticks(tmp_path):
    server = make_server(tmp_path)
    for _ in range(3):
        server.heartbeat(0.01)
    assert server.tick == 3


def test_server_time_advances_every_sixty_ticks(tmp_path):
    server = make_server(tmp_path)
    server.heartbeat(0.01)
    start = server.update_server_time()
    for _ in range(59):
        server.heartbeat(0.01)
        server.update_server_time()
    assert server.time == start + 1


def test_handle_player_inputs_logs_on_sixtieth_tick(tmp_path):
    server = make_server(tmp_path)
    inputs = PlayerInputs(5, [NetworkPlayerInput.JUMP], Vec3(0.0, 1.0, 0.0))
    assert server.handle_player_inputs(inputs) is True
    server.heartbeat(0.01)
    assert server.handle_player_inputs(inputs) is False
    assert server.last_inputs == inputs


def test_world_update_for_sends_existing_chunks_in_radius(tmp_path):
    world = ServerWorldMap(name="alpha")
    world.set_block(IVec3(1, 2, 3), BlockData(BlockId.STONE))
    world.map[IVec3(1, 0, 0)] = ServerChunk()
    world.set_block(IVec3(100, 0, 0), BlockData(BlockId.SAND))
    server = make_server(tmp_path, world)
    request = WorldUpdateRequest(
        IVec3(0, 0, 0), 1, [IVec3(0, 0, 0), IVec3(1, 0, 0), IVec3(6, 0, 0)]
    )
    update = server.world_update_for(request)
    assert set(update.new_map) == {IVec3(0, 0, 0)}
    assert update.new_map[IVec3(0, 0, 0)].map[IVec3(1, 2, 3)] == BlockData(BlockId.STONE)


def test_world_update_for_generates_missing_chunks(tmp_path):
    server = make_server(tmp_path)
    request = WorldUpdateRequest(IVec3(0, 0, 0), 2, [IVec3(0, 0, 0), IVec3(0, 10, 0)])
    update = server.world_update_for(request)
    assert IVec3(0, 0, 0) in update.new_map
    assert IVec3(0, 0, 0) in server.world_map.map
    # a chunk high in the sky is empty and is neither sent nor stored
    assert IVec3(0, 10, 0) not in update.new_map
    assert IVec3(0, 10, 0) not in server.world_map.map
    assert server.world_map.map[IVec3(0, 0, 0)].map[IVec3(0, 0, 0)] == BlockData(BlockId.BEDROCK)


def test_broadcast_world_state_sends_changed_chunks_and_clears(tmp_path):
    server = make_server(tmp_path)
    server.time = 42
    server.world_map.set_block(IVec3(-1, 0, 0), BlockData(BlockId.GLASS))
    update = server.broadcast_world_state()
    assert set(update.new_map) == {IVec3(-1, 0, 0)}
    assert update.time == server.time
    assert server.world_map.time == server.time
    assert server.world_map.chunks_to_update == []


def test_broadcast_world_state_only_every_tenth_tick(tmp_path):
    server = make_server(tmp_path)
    server.heartbeat(0.01)
    assert server.broadcast_world_state() is None


def test_broadcast_chat_on_new_messages(tmp_path):
    server = make_server(tmp_path)
    message = ChatMessage("ann", 1000, "hello")
    conversation = server.broadcast_chat(0.01, [message])
    assert conversation.messages == [message]
    assert server.broadcast_chat(0.01) is None


def test_broadcast_chat_when_timer_fires(tmp_path):
    server = make_server(tmp_path)
    server.broadcast_chat(0.01, [ChatMessage("ann", 1, "a")])
    conversation = server.broadcast_chat(server.chat_interval)
    assert [m.content for m in conversation.messages] == ["a"]


def test_save_then_load_server_round_trip(tmp_path):
    (tmp_path / "saves").mkdir()
    server = make_server(tmp_path, seed=1234)
    server.time = 9
    server.world_map.set_block(IVec3(3, 4, 5), BlockData(BlockId.SNOW))
    path = server.save()
    assert path.exists()
    loaded = load_server(GameServerConfig(world_name="alpha"), str(tmp_path), random.Random(2))
    assert loaded.seed == 1234
    assert loaded.time == 9
    assert loaded.world_map.get_block(IVec3(3, 4, 5)) == BlockData(BlockId.SNOW)


def test_save_without_saves_directory_returns_none(tmp_path):
    server = make_server(tmp_path)
    assert server.save() is None


def test_load_server_without_save_makes_fresh_world(tmp_path):
    server = load_server(GameServerConfig(world_name="fresh"), str(tmp_path), random.Random(3))
    assert server.world_map.name == "fresh"
    assert server.time == 0
    assert server.paths.assets_folder_path == f"{tmp_path}/data"
    again = load_world_data("fresh", server.paths, random.Random(3))
    assert again.seed == server.seed


def test_load_server_rejects_malformed_save(tmp_path):
    (tmp_path / "saves").mkdir()
    (tmp_path / "saves" / "broken.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError):
        load_server(GameServerConfig(world_name="broken"), str(tmp_path))


def test_lobby_starts_empty():
    lobby = ServerLobby()
    lobby.players[1] = "ann"
    assert ServerLobby().players == {}
    assert lobby.players == {1: "ann"}


def test_acquire_ephemeral_socket_binds_port():
    sock = acquire_local_ephemeral_udp_socket("127.0.0.1")
    try:
        host, port = sock.getsockname()
        assert host == "127.0.0.1"
        assert port > 0
    finally:
        sock.close()


def test_acquire_socket_by_port_rejects_bad_address():
    with pytest.raises(ValueError):
        acquire_socket_by_port("not an address", 0)


def test_run_advances_ticks_until_stopped(tmp_path):
    server = make_server(tmp_path)
    calls = []

    def stop():
        calls.append(None)
        return len(calls) > 3

    server.run(stop)
    assert server.tick == 3


def test_run_answers_world_update_request(tmp_path):
    world = ServerWorldMap(name="alpha")
    world.set_block(IVec3(0, 0, 0), BlockData(BlockId.DIRT))
    server = make_server(tmp_path, world)
    server.socket = acquire_local_ephemeral_udp_socket("127.0.0.1")
    client = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    client.bind(("127.0.0.1", 0))
    client.settimeout(2.0)
    try:
        request = WorldUpdateRequest(IVec3(0, 0, 0), 0, [IVec3(0, 0, 0)])
        client.sendto(encode_message(request), server.socket.getsockname())
        calls = []

        def stop():
            calls.append(None)
            return len(calls) > 5

        server.run(stop)
        payload, _ = client.recvfrom(65535)
        update = decode_message(payload)
        assert isinstance(update, WorldUpdate)
        assert update.new_map[IVec3(0, 0, 0)].map[IVec3(0, 0, 0)] == BlockData(BlockId.DIRT)
        assert client.getsockname() in server.peers
    finally:
        client.close()
        server.socket.close()