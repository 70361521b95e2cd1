"""Transport sessions."""

from autoinvite.session.base import SYNC_FILTER, TransportSession
from autoinvite.session.events import Account, DeltaBatch, InviteEvent, MessageEvent

__all__ = [
    "SYNC_FILTER", "TransportSession",
    "Account", "DeltaBatch", "InviteEvent", "MessageEvent",
]
