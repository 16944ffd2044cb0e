"""Shared game settings: folder paths, server options and network channel layout."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

PROTOCOL_ID = 0
CHUNK_SIZE = 16

CHANNEL_MEMORY_BYTES = 128 * 1024 * 1024
RESEND_TIME = 0.3


@dataclass
class GameFolderPaths:
    """Locations of the game folder and of its assets."""

    game_folder_path: str
    assets_folder_path: str


@dataclass
class SpecialFlag:
    """Switches asset loading to the assets folder instead of the bundled data folder."""

    special_flag: bool = False


@dataclass
class GameServerConfig:
    """Settings a server is started with."""

    world_name: str
    is_solo: bool = False


class SendType(Enum):
    """Delivery guarantee of a network channel."""

    UNRELIABLE = "unreliable"
    RELIABLE_UNORDERED = "reliable_unordered"
    RELIABLE_ORDERED = "reliable_ordered"

    @property
    def is_reliable(self) -> bool:
        return self is not SendType.UNRELIABLE


@dataclass(frozen=True)
class ChannelConfig:
    """One network channel; reliable channels carry a resend time in seconds."""

    channel_id: int
    max_memory_usage_bytes: int
    send_type: SendType
    resend_time: float | None = None

    def __post_init__(self) -> None:
        if self.send_type.is_reliable and self.resend_time is None:
            raise ValueError(f"reliable channel {self.channel_id} needs a resend time")
        if not self.send_type.is_reliable and self.resend_time is not None:
            raise ValueError(f"unreliable channel {self.channel_id} cannot resend")
        if self.max_memory_usage_bytes < 0:
            raise ValueError("channel memory must not be negative")


def default_channels() -> list[ChannelConfig]:
    """The three channels used by both client and server."""
    return [
        ChannelConfig(0, CHANNEL_MEMORY_BYTES, SendType.UNRELIABLE),
        ChannelConfig(1, CHANNEL_MEMORY_BYTES, SendType.RELIABLE_UNORDERED, RESEND_TIME),
        ChannelConfig(2, CHANNEL_MEMORY_BYTES, SendType.RELIABLE_ORDERED, RESEND_TIME),
    ]


@dataclass
class ConnectionConfig:
    """Channel layout of both ends of a connection."""

    client_channels_config: list[ChannelConfig] = field(default_factory=default_channels)
    server_channels_config: list[ChannelConfig] = field(default_factory=default_channels)


def shared_connection_config() -> ConnectionConfig:
    """Connection settings shared by client and server."""
    return ConnectionConfig(default_channels(), default_channels())