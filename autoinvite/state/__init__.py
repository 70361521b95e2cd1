"""Durable per-account state."""

from autoinvite.state.control_channel import ControlChannelResolver
from autoinvite.state.cursor import CursorStore
from autoinvite.state.store import FileStore, KeyValueStore, MemoryStore

__all__ = ["ControlChannelResolver", "CursorStore", "FileStore", "KeyValueStore", "MemoryStore"]
