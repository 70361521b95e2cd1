"""Matrix transport session backed by matrix-nio."""

import asyncio
from typing import Any

import aiohttp
from loguru import logger
from nio import (
    AsyncClient,
    ErrorResponse,
    LoginError,
    RoomMessageNotice,
    RoomMessageText,
    RoomPreset,
    RoomVisibility,
)

from autoinvite.errors import AuthError, TransportError
from autoinvite.session.base import TransportSession
from autoinvite.session.events import Account, DeltaBatch, InviteEvent, MessageEvent

# Error texts Synapse and Dendrite return when the invitee is already present.
_ALREADY_MEMBER_MARKERS = ("already in the room", "already invited", "is already joined")

_NETWORK_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, OSError)


def _check(response: Any, action: str) -> Any:
    """Raise TransportError when nio returned an error response."""
    if isinstance(response, ErrorResponse):
        raise TransportError(f"{action} failed: {response.message}", response.status_code)
    return response


def is_already_member_error(error: TransportError) -> bool:
    """True when an invite error only says the user is already in or invited to the room."""
    text = str(error).lower()
    return any(marker in text for marker in _ALREADY_MEMBER_MARKERS)


def batch_from_sync_response(response: Any) -> DeltaBatch:
    """Convert a nio SyncResponse into a DeltaBatch."""
    batch = DeltaBatch(next_batch=response.next_batch)
    for room_id in response.rooms.invite:
        batch.invites.append(InviteEvent(room_id=room_id))
    for room_id, info in response.rooms.join.items():
        for event in info.timeline.events:
            if not isinstance(event, (RoomMessageText, RoomMessageNotice)):
                continue
            batch.messages.append(MessageEvent(
                room_id=room_id,
                sender=event.sender,
                body=event.body or "",
                event_id=event.event_id,
                formatted_body=event.formatted_body or None,
            ))
    return batch


class MatrixSession(TransportSession):
    """Transport session speaking the Matrix client-server API through nio."""

    def __init__(self, account: Account, device_name: str = "autoinvite",
                 client: AsyncClient | None = None):
        super().__init__(account)
        self.device_name = device_name
        self._client = client or AsyncClient(account.homeserver, account.user_id)

    async def login(self) -> None:
        if self.account.access_token:
            self._client.restore_login(
                user_id=self.account.user_id,
                device_id=self.device_name,
                access_token=self.account.access_token,
            )
            logger.info("Restored session for {} from access token", self.user_id)
            return
        if not self.account.password:
            raise AuthError(f"No access_token or password configured for {self.user_id}")

        try:
            response = await self._client.login(
                password=self.account.password, device_name=self.device_name
            )
        except _NETWORK_ERRORS as e:
            raise AuthError(f"Login request for {self.user_id} failed: {e}") from e
        if isinstance(response, LoginError):
            raise AuthError(f"Login for {self.user_id} rejected: {response.message}")
        logger.info("Logged in as {} (device {})", self.user_id, response.device_id)

    async def sync(self, sync_filter: dict[str, Any] | None, since: str | None,
                   timeout_ms: int = 30_000) -> DeltaBatch:
        try:
            response = await self._client.sync(
                timeout=timeout_ms, sync_filter=sync_filter, since=since, full_state=False
            )
        except _NETWORK_ERRORS as e:
            raise TransportError(f"sync failed: {e}") from e
        _check(response, "sync")
        return batch_from_sync_response(response)

    async def join(self, room_id: str) -> None:
        try:
            response = await self._client.join(room_id)
        except _NETWORK_ERRORS as e:
            raise TransportError(f"join {room_id} failed: {e}") from e
        _check(response, f"join {room_id}")

    async def invite(self, room_id: str, user_id: str) -> None:
        try:
            response = await self._client.room_invite(room_id, user_id)
        except _NETWORK_ERRORS as e:
            raise TransportError(f"invite {user_id} to {room_id} failed: {e}") from e
        try:
            _check(response, f"invite {user_id} to {room_id}")
        except TransportError as e:
            if not is_already_member_error(e):
                raise
            logger.debug("{} is already in {}, treating invite as done", user_id, room_id)

    async def send_message(self, room_id: str, content: dict[str, Any]) -> str:
        try:
            response = await self._client.room_send(
                room_id, "m.room.message", content, ignore_unverified_devices=True
            )
        except _NETWORK_ERRORS as e:
            raise TransportError(f"send to {room_id} failed: {e}") from e
        return _check(response, f"send to {room_id}").event_id

    async def create_channel(self, invitees: list[str], name: str, direct: bool = True) -> str:
        try:
            response = await self._client.room_create(
                visibility=RoomVisibility.private,
                name=name,
                is_direct=direct,
                preset=RoomPreset.trusted_private_chat,
                invite=invitees,
            )
        except _NETWORK_ERRORS as e:
            raise TransportError(f"create room '{name}' failed: {e}") from e
        return _check(response, f"create room '{name}'").room_id

    async def close(self) -> None:
        await self._client.close()
