"""Durable sync cursor per account."""

from autoinvite.session.events import Account
from autoinvite.state.store import KeyValueStore

CURSOR_RECORD = "next_batch"


class CursorStore:
    """Loads and saves the resumption token of each account."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    @staticmethod
    def key_for(account: Account) -> str:
        return f"{account.state_key}/{CURSOR_RECORD}"

    def load(self, account: Account) -> str | None:
        """Return the saved cursor, or None to start at the live edge."""
        return self.store.get(self.key_for(account))

    def save(self, account: Account, cursor: str) -> None:
        """Persist the cursor. Raises PersistenceError."""
        self.store.put(self.key_for(account), cursor)
