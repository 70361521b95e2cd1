"""Domain types exchanged between the transport and the bot core."""

from dataclasses import dataclass, field
from urllib.parse import urlparse

from autoinvite.config.schema import Homeserver


def localpart_of(user_id: str) -> str:
    """Identity up to the first ':' without the leading sigil."""
    return user_id.split(":", 1)[0].removeprefix("@")


@dataclass(frozen=True)
class Account:
    """One configured identity on one homeserver."""
    user_id: str
    homeserver: str
    access_token: str | None = None
    password: str | None = None

    @classmethod
    def from_config(cls, server: Homeserver) -> "Account":
        return cls(
            user_id=server.mxid,
            homeserver=server.address,
            access_token=server.access_token,
            password=server.password,
        )

    @property
    def localpart(self) -> str:
        return localpart_of(self.user_id)

    @property
    def server_name(self) -> str:
        return self.user_id.split(":", 1)[1] if ":" in self.user_id else ""

    @property
    def hostname(self) -> str:
        """Host part of the homeserver address."""
        return urlparse(self.homeserver).hostname or self.server_name

    @property
    def state_key(self) -> str:
        """Prefix under which all durable records of this account live."""
        return f"{self.hostname}/{self.localpart}"


@dataclass
class InviteEvent:
    """A pending invitation to a room."""
    room_id: str


@dataclass
class MessageEvent:
    """A message posted in a joined room."""
    room_id: str
    sender: str
    body: str
    event_id: str
    formatted_body: str | None = None


@dataclass
class DeltaBatch:
    """One incremental sync result."""
    next_batch: str
    invites: list[InviteEvent] = field(default_factory=list)
    messages: list[MessageEvent] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.invites and not self.messages

    def without_messages(self) -> "DeltaBatch":
        """Copy of this batch that keeps only its invites."""
        return DeltaBatch(next_batch=self.next_batch, invites=list(self.invites))
