"""Game server: world state, per-tick systems, network loop and command line entry."""

from __future__ import annotations

import argparse
import ipaddress
import logging
import random
import socket as socketlib
import threading
import time as timelib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable, Union

from blockworld.byteformat import format_bytes
from blockworld.config import GameFolderPaths, GameServerConfig
from blockworld.coords import IVec3, chunk_in_radius
from blockworld.generation import generate_chunk
from blockworld.messages import (
    BlockInteraction,
    ChatConversation,
    ChatMessage,
    PlayerInputs,
    SaveWorldRequest,
    WorldUpdate,
    WorldUpdateRequest,
    decode_message,
    encode_message,
)
from blockworld.storage import load_world_data, save_world
from blockworld.world import (
    BlockInteractionEvent,
    ServerChunk,
    ServerWorldMap,
    handle_block_interactions,
)

logger = logging.getLogger(__name__)

TICK_RATE = 60
TICK_DURATION = 1.0 / TICK_RATE
WORLD_BROADCAST_EVERY = 10
HEARTBEAT_INTERVAL = 1.0
CHAT_BROADCAST_INTERVAL = 1.0
DEFAULT_PORT = 8000
DEFAULT_WORLD = "default"
DEFAULT_GAME_FOLDER = "../"
_MAX_DATAGRAM = 65535

Address = Any
StopSignal = Union[threading.Event, Callable[[], bool]]


class RepeatingTimer:
    """Timer that fires each time its duration elapses, keeping the overshoot."""

    def __init__(self, duration: float) -> None:
        if duration <= 0:
            raise ValueError("timer duration must be positive")
        self.duration = duration
        self.elapsed = 0.0
        self.finished = False

    def tick(self, delta: float) -> bool:
        """Advance the timer; returns whether it fired during this tick."""
        if delta < 0:
            raise ValueError("timer delta must not be negative")
        self.elapsed += delta
        self.finished = self.elapsed >= self.duration
        if self.finished:
            self.elapsed %= self.duration
        return self.finished

    def reset(self) -> None:
        self.elapsed = 0.0
        self.finished = False


@dataclass
class ServerLobby:
    """Connected players by id."""

    players: dict[int, str] = field(default_factory=dict)


def _copy_chunk(chunk: ServerChunk) -> ServerChunk:
    return ServerChunk(dict(chunk.map), chunk.ts)


@dataclass
class GameServer:
    """The running world with the systems run on every tick."""

    config: GameServerConfig
    paths: GameFolderPaths
    world_map: ServerWorldMap
    seed: int
    time: int = 0
    rng: Any = None
    socket: Any = None
    chat_interval: float = CHAT_BROADCAST_INTERVAL
    tick: int = field(default=0, init=False)
    lobby: ServerLobby = field(default_factory=ServerLobby, init=False)
    chat: ChatConversation = field(default_factory=ChatConversation, init=False)
    peers: set = field(default_factory=set, init=False)
    last_inputs: PlayerInputs | None = field(default=None, init=False)

    def __post_init__(self) -> None:
        if self.rng is None:
            self.rng = random.Random()
        self._heartbeat_timer = RepeatingTimer(HEARTBEAT_INTERVAL)
        self._chat_timer = RepeatingTimer(self.chat_interval)
        self._pending_chat: list[ChatMessage] = []

    def heartbeat(self, delta: float) -> int:
        """Count one tick; returns the new tick number."""
        self.tick += 1
        if self._heartbeat_timer.tick(delta):
            logger.debug("Server heartbeat, tick=%d", self.tick)
        return self.tick

    def update_server_time(self) -> int:
        """Advance world time by one unit every 60 ticks; returns the time."""
        if self.tick % TICK_RATE == 0:
            self.time += 1
            logger.debug("Server time updated: %d", self.time)
        return self.time

    def handle_player_inputs(self, inputs: PlayerInputs) -> bool:
        """Record a player's inputs; returns whether they were logged this tick."""
        self.last_inputs = inputs
        if self.tick % TICK_RATE == 0:
            logger.debug("Received inputs: %s", inputs)
            return True
        return False

    def world_update_for(self, request: WorldUpdateRequest) -> WorldUpdate:
        """Chunks a client asked for within its render distance, generating missing ones."""
        new_map: dict[IVec3, ServerChunk] = {}
        for pos in request.requested_chunks:
            if not chunk_in_radius(
                request.player_chunk_position, pos, request.render_distance
            ):
                continue
            chunk = self.world_map.map.get(pos)
            if chunk is None:
                chunk = generate_chunk(pos, self.seed, self.rng)
                if not chunk.map:
                    continue
                self.world_map.map[pos] = chunk
            elif not chunk.map:
                continue
            new_map[pos] = _copy_chunk(chunk)
        logger.debug("World update request answered with %d chunks", len(new_map))
        return WorldUpdate(
            tick=self.tick,
            new_map=new_map,
            player_positions=dict(self.world_map.player_positions),
            time=self.world_map.time,
        )

    def broadcast_world_state(self) -> WorldUpdate | None:
        """Every 10 ticks, the chunks changed since the last broadcast."""
        if self.tick % WORLD_BROADCAST_EVERY != 0:
            return None
        self.world_map.time = self.time
        new_map = {
            pos: _copy_chunk(self.world_map.map[pos]) for pos in self.world_map.chunks_to_update
        }
        self.world_map.chunks_to_update.clear()
        return WorldUpdate(
            tick=self.tick,
            new_map=new_map,
            player_positions=dict(self.world_map.player_positions),
            time=self.world_map.time,
        )

    def broadcast_chat(
        self, delta: float, new_messages: Iterable[ChatMessage] = ()
    ) -> ChatConversation | None:
        """The chat history, when the timer fires or new messages arrived."""
        fresh = list(new_messages)
        self.chat.messages.extend(fresh)
        fired = self._chat_timer.tick(delta)
        if not (fired or fresh):
            return None
        logger.debug("Broadcasting chat history, %d messages", len(self.chat.messages))
        self._chat_timer.reset()
        return ChatConversation(list(self.chat.messages))

    def save(self) -> Path | None:
        """Save the world; returns the file written, or None if saving failed."""
        return save_world(self.world_map, self.seed, self.paths, self.time)

    def _send(self, message: Any, address: Address) -> None:
        payload = encode_message(message)
        try:
            self.socket.sendto(payload, address)
        except OSError as exc:
            logger.warning(
                "Could not send %s to %s: %s", format_bytes(len(payload)), address, exc
            )

    def _broadcast(self, message: Any) -> None:
        for address in list(self.peers):
            self._send(message, address)

    def _handle_datagram(self, payload: bytes, address: Address) -> None:
        try:
            message = decode_message(payload)
        except ValueError as exc:
            logger.warning("Dropped message from %s: %s", address, exc)
            return
        self.peers.add(address)
        if isinstance(message, PlayerInputs):
            self.handle_player_inputs(message)
        elif isinstance(message, WorldUpdateRequest):
            self._send(self.world_update_for(message), address)
        elif isinstance(message, BlockInteraction):
            handle_block_interactions(
                self.world_map, [BlockInteractionEvent(message.position, message.block_type)]
            )
        elif isinstance(message, ChatMessage):
            self._pending_chat.append(message)
        elif isinstance(message, SaveWorldRequest):
            self.save()
        else:
            logger.debug("Ignored message from %s: %s", address, type(message).__name__)

    def _receive_all(self) -> None:
        while True:
            try:
                payload, address = self.socket.recvfrom(_MAX_DATAGRAM)
            except (BlockingIOError, InterruptedError):
                return
            except OSError as exc:
                logger.warning("Receive failed: %s", exc)
                return
            self._handle_datagram(payload, address)

    def run(self, stop: StopSignal) -> None:
        """Run the tick loop at 60 ticks per second until `stop` says so."""
        should_stop = stop.is_set if isinstance(stop, threading.Event) else stop
        if self.socket is not None:
            self.socket.setblocking(False)
            logger.info("Starting server on %s", self.socket.getsockname())
        last = timelib.monotonic()
        while not should_stop():
            now = timelib.monotonic()
            delta, last = now - last, now
            if self.socket is not None:
                self._receive_all()
            self.heartbeat(delta)
            self.update_server_time()
            update = self.broadcast_world_state()
            pending, self._pending_chat = self._pending_chat, []
            conversation = self.broadcast_chat(delta, pending)
            if self.socket is not None:
                if update is not None:
                    self._broadcast(update)
                if conversation is not None:
                    self._broadcast(conversation)
            remaining = TICK_DURATION - (timelib.monotonic() - now)
            if remaining > 0:
                timelib.sleep(remaining)


def load_server(
    config: GameServerConfig, game_folder_path: str, rng: Any = None
) -> GameServer:
    """Build a server for the configured world, loading it from disk if it was saved.

    Raises OSError or ValueError when a saved world cannot be read.
    """
    paths = GameFolderPaths(
        game_folder_path=game_folder_path, assets_folder_path=f"{game_folder_path}/data"
    )
    if rng is None:
        rng = random.Random()
    try:
        data = load_world_data(config.world_name, paths, rng)
    except (OSError, ValueError) as exc:
        logger.error("Error loading world: %s", exc)
        raise
    logger.info("World seed loaded successfully: %d", data.seed)
    return GameServer(
        config=config,
        paths=paths,
        world_map=data.map,
        seed=data.seed,
        time=data.time,
        rng=rng,
    )


def acquire_socket_by_port(ip: Any, port: int) -> socketlib.socket:
    """A UDP socket bound to the address and port; raises OSError if binding fails."""
    address = ipaddress.ip_address(str(ip))
    family = socketlib.AF_INET6 if address.version == 6 else socketlib.AF_INET
    sock = socketlib.socket(family, socketlib.SOCK_DGRAM)
    try:
        sock.bind((str(address), port))
    except OSError:
        sock.close()
        raise
    return sock


def acquire_local_ephemeral_udp_socket(ip: Any) -> socketlib.socket:
    return acquire_socket_by_port(ip, 0)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="blockworld-server", description="Run a world server.")
    parser.add_argument("-p", "--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("-w", "--world", default=DEFAULT_WORLD)
    parser.add_argument("-g", "--game-folder-path", default=DEFAULT_GAME_FOLDER)
    args = parser.parse_args(argv)
    if not 0 <= args.port <= 65535:
        parser.error(f"port out of range: {args.port}")

    logging.basicConfig(level=logging.INFO)
    server = load_server(
        GameServerConfig(world_name=args.world, is_solo=False), args.game_folder_path
    )
    server.socket = acquire_socket_by_port("0.0.0.0", args.port)
    stop = threading.Event()
    try:
        server.run(stop)
    except KeyboardInterrupt:
        stop.set()
    finally:
        server.socket.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())