"""Resolution of the private room that receives mention relays."""

from loguru import logger

from autoinvite.errors import PersistenceError
from autoinvite.session.base import TransportSession
from autoinvite.state.store import KeyValueStore

CONTROL_RECORD = "control_room"


class ControlChannelResolver:
    """
    Finds or creates the control room of an account.

    The stored mapping is trusted as is; it is never validated against the
    server. When the room is created but the mapping cannot be written, the
    room id is still returned and a later run will create another room.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store
        self._cache: dict[str, str] = {}

    async def resolve(self, session: TransportSession, target_user: str) -> str:
        """
        Return the control room id for the session's account.

        Raises:
            TransportError: If the room has to be created and creation fails.
        """
        account = session.account
        key = f"{account.state_key}/{CONTROL_RECORD}"

        if key in self._cache:
            return self._cache[key]

        room_id = self.store.get(key)
        if room_id:
            self._cache[key] = room_id
            return room_id

        logger.info("No control room for {}, creating one with {}", account.user_id, target_user)
        room_id = await session.create_channel(
            invitees=[target_user],
            name=f"{account.localpart} notifications",
            direct=True,
        )
        self._cache[key] = room_id
        try:
            self.store.put(key, room_id)
        except PersistenceError as e:
            logger.error(
                "Created control room {} for {} but could not save it, "
                "a restart will create another one: {}",
                room_id, account.user_id, e,
            )
        else:
            logger.info("Control room for {} is {}", account.user_id, room_id)
        return room_id
