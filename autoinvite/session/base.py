"""Base transport session interface."""

from abc import ABC, abstractmethod
from typing import Any

from autoinvite.session.events import Account, DeltaBatch

# Timeline restricted to room messages. Invites are delivered through the
# invite section regardless of the timeline filter.
SYNC_FILTER: dict[str, Any] = {
    "presence": {"types": []},
    "account_data": {"types": []},
    "room": {
        "timeline": {"types": ["m.room.message"]},
        "ephemeral": {"types": []},
        "account_data": {"types": []},
        "state": {"lazy_load_members": True},
    },
}


class TransportSession(ABC):
    """
    Abstract authenticated connection for one account.

    Implementations must keep these guarantees:
    - ``join`` of a room the account already joined succeeds.
    - ``invite`` of a user who is already invited or joined succeeds.
    - every request failure is raised as ``TransportError``;
      ``login`` raises ``AuthError`` instead.
    """

    def __init__(self, account: Account):
        self.account = account

    @property
    def user_id(self) -> str:
        return self.account.user_id

    @abstractmethod
    async def login(self) -> None:
        """Establish a session from the access token or the password."""
        pass

    @abstractmethod
    async def sync(
        self,
        sync_filter: dict[str, Any] | None,
        since: str | None,
        timeout_ms: int = 30_000,
    ) -> DeltaBatch:
        """
        Block until the next delta batch is available.

        Args:
            sync_filter: Server-side event filter.
            since: Cursor returned by the previous batch, or None for an initial sync.
            timeout_ms: Long-poll timeout.

        Returns:
            The batch, including the cursor to resume from.
        """
        pass

    @abstractmethod
    async def join(self, room_id: str) -> None:
        pass

    @abstractmethod
    async def invite(self, room_id: str, user_id: str) -> None:
        pass

    @abstractmethod
    async def send_message(self, room_id: str, content: dict[str, Any]) -> str:
        """Post an ``m.room.message`` event and return its event id."""
        pass

    @abstractmethod
    async def create_channel(self, invitees: list[str], name: str, direct: bool = True) -> str:
        """Create a private trusted room inviting ``invitees`` and return its id."""
        pass

    async def close(self) -> None:
        """Release network resources."""
        pass
