"""Messages exchanged between client and server, with their wire encoding."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Union

from blockworld.blocks import BlockData, block_data_from_dict, block_data_to_dict
from blockworld.coords import IVec3, Vec3
from blockworld.world import ServerChunk, chunk_from_dict, chunk_to_dict

PlayerId = int


def _unsigned(name: str, value: Any, bits: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value < 1 << bits:
        raise ValueError(f"{name} must be an unsigned {bits}-bit integer, got {value!r}")
    return value


def _text(name: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{name} must be a string, got {value!r}")
    return value


@dataclass
class AuthRegisterRequest:
    username: str


@dataclass
class PlayerSpawnEvent:
    """A player appearing in the world."""

    id: PlayerId
    name: str
    position: Vec3

    def __post_init__(self) -> None:
        _unsigned("id", self.id, 64)


@dataclass
class AuthRegisterResponse:
    username: str
    session_token: int
    spawn_event: PlayerSpawnEvent

    def __post_init__(self) -> None:
        _unsigned("session_token", self.session_token, 128)


@dataclass
class ChatMessage:
    """One chat line; date is a timestamp in milliseconds."""

    author_name: str
    date: int
    content: str

    def __post_init__(self) -> None:
        _unsigned("date", self.date, 64)


@dataclass
class ChatConversation:
    messages: list[ChatMessage] = field(default_factory=list)


@dataclass
class ExitOrder:
    session_token: int

    def __post_init__(self) -> None:
        _unsigned("session_token", self.session_token, 128)


@dataclass
class SaveWorldRequest:
    session_token: int

    def __post_init__(self) -> None:
        _unsigned("session_token", self.session_token, 128)


class NetworkPlayerInput(Enum):
    FORWARD = "Forward"
    RIGHT = "Right"
    BACKWARD = "Backward"
    LEFT = "Left"
    JUMP = "Jump"
    TOGGLE_FLY_MODE = "ToggleFlyMode"
    FLY_UP = "FlyUp"
    FLY_DOWN = "FlyDown"


@dataclass
class PlayerInputs:
    tick: int
    actions: list[NetworkPlayerInput]
    direction: Vec3

    def __post_init__(self) -> None:
        _unsigned("tick", self.tick, 64)


@dataclass
class WorldUpdate:
    """Chunks and player positions sent from server to clients."""

    tick: int = 0
    new_map: dict[IVec3, ServerChunk] = field(default_factory=dict)
    player_positions: dict[PlayerId, Vec3] = field(default_factory=dict)
    time: int = 0

    def __post_init__(self) -> None:
        _unsigned("tick", self.tick, 64)
        _unsigned("time", self.time, 64)


@dataclass
class WorldUpdateRequest:
    """A client asking for chunks around its position."""

    player_chunk_position: IVec3
    render_distance: int
    requested_chunks: list[IVec3] = field(default_factory=list)

    def __post_init__(self) -> None:
        _unsigned("render_distance", self.render_distance, 32)


@dataclass
class BlockInteraction:
    """A block placed at a position, or removed when block_type is None."""

    position: IVec3
    block_type: BlockData | None = None


@dataclass
class SetPlayerPosition:
    position: Vec3


Message = Union[
    AuthRegisterRequest,
    ChatMessage,
    ExitOrder,
    PlayerInputs,
    WorldUpdateRequest,
    SaveWorldRequest,
    BlockInteraction,
    SetPlayerPosition,
    AuthRegisterResponse,
    ChatConversation,
    WorldUpdate,
    PlayerSpawnEvent,
]


def _vec_out(v: Vec3) -> list[float]:
    return [v.x, v.y, v.z]


def _vec_in(values: Any) -> Vec3:
    x, y, z = values
    for c in (x, y, z):
        if isinstance(c, bool) or not isinstance(c, (int, float)):
            raise ValueError(f"invalid vector component: {c!r}")
    return Vec3(float(x), float(y), float(z))


def _ivec_in(values: Any) -> IVec3:
    x, y, z = values
    for c in (x, y, z):
        if isinstance(c, bool) or not isinstance(c, int):
            raise ValueError(f"invalid position component: {c!r}")
    return IVec3(x, y, z)


def _spawn_out(event: PlayerSpawnEvent) -> dict[str, Any]:
    return {"id": event.id, "name": event.name, "position": _vec_out(event.position)}


def _spawn_in(data: dict[str, Any]) -> PlayerSpawnEvent:
    return PlayerSpawnEvent(data["id"], _text("name", data["name"]), _vec_in(data["position"]))


def _chat_out(message: ChatMessage) -> dict[str, Any]:
    return {"author_name": message.author_name, "date": message.date, "content": message.content}


def _chat_in(data: dict[str, Any]) -> ChatMessage:
    return ChatMessage(
        _text("author_name", data["author_name"]), data["date"], _text("content", data["content"])
    )


def _auth_response_out(m: AuthRegisterResponse) -> dict[str, Any]:
    return {
        "username": m.username,
        "session_token": m.session_token,
        "spawn_event": _spawn_out(m.spawn_event),
    }


def _auth_response_in(data: dict[str, Any]) -> AuthRegisterResponse:
    return AuthRegisterResponse(
        _text("username", data["username"]), data["session_token"], _spawn_in(data["spawn_event"])
    )


def _inputs_out(m: PlayerInputs) -> dict[str, Any]:
    return {
        "tick": m.tick,
        "actions": [action.value for action in m.actions],
        "direction": _vec_out(m.direction),
    }


def _inputs_in(data: dict[str, Any]) -> PlayerInputs:
    return PlayerInputs(
        data["tick"],
        [NetworkPlayerInput(action) for action in data["actions"]],
        _vec_in(data["direction"]),
    )


def _request_out(m: WorldUpdateRequest) -> dict[str, Any]:
    return {
        "player_chunk_position": list(m.player_chunk_position),
        "render_distance": m.render_distance,
        "requested_chunks": [list(pos) for pos in m.requested_chunks],
    }


def _request_in(data: dict[str, Any]) -> WorldUpdateRequest:
    return WorldUpdateRequest(
        _ivec_in(data["player_chunk_position"]),
        data["render_distance"],
        [_ivec_in(pos) for pos in data["requested_chunks"]],
    )


def _interaction_out(m: BlockInteraction) -> dict[str, Any]:
    block = None if m.block_type is None else block_data_to_dict(m.block_type)
    return {"position": list(m.position), "block_type": block}


def _interaction_in(data: dict[str, Any]) -> BlockInteraction:
    block = data["block_type"]
    return BlockInteraction(
        _ivec_in(data["position"]), None if block is None else block_data_from_dict(block)
    )


def _update_out(m: WorldUpdate) -> dict[str, Any]:
    return {
        "tick": m.tick,
        "new_map": [[list(pos), chunk_to_dict(chunk)] for pos, chunk in m.new_map.items()],
        "player_positions": [[pid, _vec_out(pos)] for pid, pos in m.player_positions.items()],
        "time": m.time,
    }


def _update_in(data: dict[str, Any]) -> WorldUpdate:
    positions = {}
    for pid, pos in data["player_positions"]:
        positions[_unsigned("player id", pid, 64)] = _vec_in(pos)
    return WorldUpdate(
        tick=data["tick"],
        new_map={_ivec_in(pos): chunk_from_dict(chunk) for pos, chunk in data["new_map"]},
        player_positions=positions,
        time=data["time"],
    )


_Codec = tuple[str, Callable[[Any], dict[str, Any]], Callable[[dict[str, Any]], Any]]

_CODECS: dict[type, _Codec] = {
    AuthRegisterRequest: (
        "AuthRegisterRequest",
        lambda m: {"username": m.username},
        lambda d: AuthRegisterRequest(_text("username", d["username"])),
    ),
    ChatMessage: ("ChatMessage", _chat_out, _chat_in),
    ExitOrder: (
        "Exit",
        lambda m: {"session_token": m.session_token},
        lambda d: ExitOrder(d["session_token"]),
    ),
    PlayerInputs: ("PlayerInputs", _inputs_out, _inputs_in),
    WorldUpdateRequest: ("WorldUpdateRequest", _request_out, _request_in),
    SaveWorldRequest: (
        "SaveWorldRequest",
        lambda m: {"session_token": m.session_token},
        lambda d: SaveWorldRequest(d["session_token"]),
    ),
    BlockInteraction: ("BlockInteraction", _interaction_out, _interaction_in),
    SetPlayerPosition: (
        "SetPlayerPosition",
        lambda m: {"position": _vec_out(m.position)},
        lambda d: SetPlayerPosition(_vec_in(d["position"])),
    ),
    AuthRegisterResponse: ("AuthRegisterResponse", _auth_response_out, _auth_response_in),
    ChatConversation: (
        "ChatConversation",
        lambda m: {"messages": [_chat_out(msg) for msg in m.messages]},
        lambda d: ChatConversation([_chat_in(msg) for msg in d["messages"]]),
    ),
    WorldUpdate: ("WorldUpdate", _update_out, _update_in),
    PlayerSpawnEvent: ("PlayerSpawn", _spawn_out, _spawn_in),
}

_DECODERS: dict[str, Callable[[dict[str, Any]], Any]] = {
    tag: decoder for tag, _, decoder in _CODECS.values()
}


def encode_message(message: Message) -> bytes:
    """Serialize a message to its wire form."""
    codec = _CODECS.get(type(message))
    if codec is None:
        raise TypeError(f"not a message: {message!r}")
    tag, encoder, _ = codec
    return json.dumps({"type": tag, **encoder(message)}, separators=(",", ":")).encode("utf-8")


def decode_message(payload: bytes | str) -> Message:
    """Parse a message from its wire form; raises ValueError on malformed input."""
    try:
        data = json.loads(payload)
    except ValueError as exc:
        raise ValueError(f"malformed message payload: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError("message payload must be an object")
    tag = data.get("type")
    decoder = _DECODERS.get(tag) if isinstance(tag, str) else None
    if decoder is None:
        raise ValueError(f"unknown message type: {tag!r}")
    try:
        return decoder(data)
    except (KeyError, TypeError) as exc:
        raise ValueError(f"invalid {tag} message: {exc!r}") from exc