"""Dispatch of delta batches to the invite and mention handlers."""

from dataclasses import dataclass

from loguru import logger

from autoinvite.bot.invite import InviteHandler
from autoinvite.bot.mention import MentionHandler, is_mention
from autoinvite.errors import PersistenceError, TransportError
from autoinvite.session.base import TransportSession
from autoinvite.session.events import DeltaBatch, InviteEvent, MessageEvent
from autoinvite.state.control_channel import ControlChannelResolver


@dataclass
class EventOutcome:
    """Result of handling one event of a batch."""
    kind: str
    room_id: str
    event_id: str | None = None
    ok: bool = True
    error: str | None = None


class Dispatcher:
    """
    Feeds every event of a batch to its handler.

    A failing event is logged and recorded; it never stops the rest of the
    batch from being handled.
    """

    def __init__(
        self,
        session: TransportSession,
        resolver: ControlChannelResolver,
        target_user: str,
        message: str,
        debug: bool = False,
        invite_handler: InviteHandler | None = None,
        mention_handler: MentionHandler | None = None,
    ):
        self.session = session
        self.resolver = resolver
        self.target_user = target_user
        self.message = message
        self.debug = debug
        self.invite_handler = invite_handler or InviteHandler()
        self.mention_handler = mention_handler or MentionHandler()
        self.control_channel: str | None = None

    async def ensure_control_channel(self) -> str | None:
        """Resolve the control room on first use; on failure try again next time."""
        if self.control_channel:
            return self.control_channel
        try:
            self.control_channel = await self.resolver.resolve(self.session, self.target_user)
        except (TransportError, PersistenceError) as e:
            logger.error("Could not resolve control room for {}: {}", self.session.user_id, e)
        return self.control_channel

    async def dispatch(self, batch: DeltaBatch) -> list[EventOutcome]:
        outcomes: list[EventOutcome] = []
        for invite in batch.invites:
            outcomes.append(await self._dispatch_invite(invite))
        for message in batch.messages:
            outcomes.append(await self._dispatch_message(message))
        return outcomes

    async def _dispatch_invite(self, invite: InviteEvent) -> EventOutcome:
        try:
            await self.invite_handler.handle(
                self.session, invite.room_id, self.target_user, self.message
            )
        except Exception as e:
            logger.error("Error handling invite to {}: {}", invite.room_id, e)
            return EventOutcome(kind="invite", room_id=invite.room_id, ok=False, error=str(e))
        return EventOutcome(kind="invite", room_id=invite.room_id)

    async def _dispatch_message(self, message: MessageEvent) -> EventOutcome:
        try:
            if is_mention(self.session.user_id, message.sender, message.body, message.formatted_body):
                await self.ensure_control_channel()
            await self.mention_handler.handle(
                self.session,
                self.session.account,
                message.room_id,
                self.control_channel,
                message.sender,
                message.event_id,
                message.body,
                message.formatted_body,
                self.debug,
            )
        except Exception as e:
            logger.error(
                "Error handling message {} in {}: {}", message.event_id, message.room_id, e
            )
            return EventOutcome(
                kind="message", room_id=message.room_id, event_id=message.event_id,
                ok=False, error=str(e),
            )
        return EventOutcome(kind="message", room_id=message.room_id, event_id=message.event_id)
