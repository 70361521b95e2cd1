"""Shared fixtures: an in-memory transport session."""

from typing import Any

import pytest

from autoinvite.errors import AuthError, TransportError
from autoinvite.session.base import TransportSession
from autoinvite.session.events import Account, DeltaBatch

BOT = "@bot:example.org"
OWNER = "@owner:example.org"


class FakeSession(TransportSession):
    """Records requests and replays scripted sync batches."""

    def __init__(self, account: Account, batches: list[DeltaBatch] | None = None,
                 fail_login: bool = False):
        super().__init__(account)
        self.batches = list(batches or [])
        self.fail_login = fail_login
        self.joined: set[str] = set()
        self.members: dict[str, set[str]] = {}
        self.sent: list[tuple[str, dict[str, Any]]] = []
        self.created: list[dict[str, Any]] = []
        self.sync_calls: list[str | None] = []
        self.fail_on: dict[str, str] = {}
        self.logged_in = False
        self.closed = False

    async def login(self) -> None:
        if self.fail_login:
            raise AuthError(f"No access_token or password configured for {self.user_id}")
        self.logged_in = True

    async def sync(self, sync_filter, since, timeout_ms=30_000) -> DeltaBatch:
        self.sync_calls.append(since)
        if not self.batches:
            raise TransportError("connection closed")
        return self.batches.pop(0)

    async def join(self, room_id: str) -> None:
        if "join" in self.fail_on:
            raise TransportError(self.fail_on["join"])
        self.joined.add(room_id)

    async def invite(self, room_id: str, user_id: str) -> None:
        if "invite" in self.fail_on:
            raise TransportError(self.fail_on["invite"])
        self.members.setdefault(room_id, set()).add(user_id)

    async def send_message(self, room_id: str, content: dict[str, Any]) -> str:
        if "send" in self.fail_on:
            raise TransportError(self.fail_on["send"])
        self.sent.append((room_id, content))
        return f"$event{len(self.sent)}"

    async def create_channel(self, invitees: list[str], name: str, direct: bool = True) -> str:
        if "create" in self.fail_on:
            raise TransportError(self.fail_on["create"])
        self.created.append({"invitees": invitees, "name": name, "direct": direct})
        return f"!control{len(self.created)}:example.org"

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def account() -> Account:
    return Account(user_id=BOT, homeserver="https://matrix.example.org", access_token="token")


@pytest.fixture
def session(account) -> FakeSession:
    return FakeSession(account)
