"""Detection and relaying of messages that mention the bot."""

from typing import Any

from loguru import logger

from autoinvite.errors import HandlerError, TransportError
from autoinvite.session.base import TransportSession
from autoinvite.session.events import Account, localpart_of

DEBUG_REPLY_BODY = "Mention forwarded."


def is_mention(user_id: str, sender: str, body: str, formatted_body: str | None) -> bool:
    """
    Whether a message references the account ``user_id``.

    Formatted messages must contain the full user id, plain ones only the
    local part. The two rules differ on purpose and must stay that way.
    """
    if sender == user_id:
        return False
    if formatted_body:
        return user_id.lower() in formatted_body.lower()
    return localpart_of(user_id) in (body or "").lower()


def format_relay(room_id: str, sender: str, body: str) -> str:
    return f"> <{sender}> {body}\n\n Mention in {room_id} by {sender}"


def reply_content(event_id: str, body: str = DEBUG_REPLY_BODY) -> dict[str, Any]:
    return {
        "msgtype": "m.notice",
        "body": body,
        "m.relates_to": {"m.in_reply_to": {"event_id": event_id}},
    }


class MentionHandler:
    """Relays mentions of the account to its control room."""

    async def handle(
        self,
        session: TransportSession,
        account: Account,
        room_id: str,
        control_channel: str | None,
        sender: str,
        event_id: str,
        body: str,
        formatted_body: str | None,
        debug: bool = False,
    ) -> bool:
        """
        Relay the message when it mentions ``account``.

        Returns:
            True if the message was a mention and has been relayed.

        Raises:
            HandlerError: If relaying or the debug reply failed.
        """
        if not is_mention(account.user_id, sender, body, formatted_body):
            return False

        logger.info("Mention in {} by {} ({})", room_id, sender, event_id)
        if not control_channel:
            raise HandlerError(f"Mention {event_id} in {room_id} dropped: no control room")

        relay = format_relay(room_id, sender, body)
        try:
            await session.send_message(control_channel, {"msgtype": "m.text", "body": relay})
        except TransportError as e:
            raise HandlerError(f"Could not relay {event_id} to {control_channel}: {e}") from e

        if debug:
            try:
                await session.send_message(room_id, reply_content(event_id))
            except TransportError as e:
                raise HandlerError(f"Could not reply to {event_id} in {room_id}: {e}") from e
        return True
