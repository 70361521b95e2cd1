"""Auto-join handling for room invites."""

from dataclasses import dataclass

from loguru import logger

from autoinvite.errors import HandlerError, TransportError
from autoinvite.session.base import TransportSession


@dataclass
class InviteOutcome:
    """Which steps of invite handling succeeded."""
    room_id: str
    joined: bool = False
    invited: bool = False
    announced: bool = False

    @property
    def ok(self) -> bool:
        return self.joined and self.invited and self.announced


class InviteHandler:
    """
    Joins an invited room, invites the supervising account and posts a notice.

    Joining an already joined room and inviting an already present user are
    successes at the transport level, so handling the same invite twice is safe.
    """

    async def handle(
        self,
        session: TransportSession,
        room_id: str,
        target_user: str,
        ack_message: str,
    ) -> InviteOutcome:
        outcome = InviteOutcome(room_id=room_id)
        logger.info("Invited to {}", room_id)

        try:
            await session.join(room_id)
        except TransportError as e:
            raise HandlerError(f"Could not join {room_id}: {e}") from e
        outcome.joined = True
        logger.info("Joined {}", room_id)

        try:
            await session.invite(room_id, target_user)
        except TransportError as e:
            raise HandlerError(f"Could not invite {target_user} to {room_id}: {e}") from e
        outcome.invited = True
        logger.info("Invited {} to {}", target_user, room_id)

        try:
            await session.send_message(room_id, {"msgtype": "m.notice", "body": ack_message})
        except TransportError as e:
            raise HandlerError(f"Could not post notice in {room_id}: {e}") from e
        outcome.announced = True
        logger.info("Sent a message about what happened in {}", room_id)
        return outcome
