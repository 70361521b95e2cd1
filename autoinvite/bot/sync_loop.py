"""Per-account incremental sync loop."""

from enum import Enum
from typing import Any

from loguru import logger

from autoinvite.bot.dispatcher import Dispatcher
from autoinvite.errors import AuthError, PersistenceError, TransportError
from autoinvite.session.base import SYNC_FILTER, TransportSession
from autoinvite.state.cursor import CursorStore


class SyncState(str, Enum):
    AUTHENTICATING = "authenticating"
    SYNCING = "syncing"
    FAILED = "failed"
    STOPPED = "stopped"


class SyncLoop:
    """
    Pulls delta batches for one account and dispatches them in order.

    Each batch is dispatched before its cursor is saved, so a crash between
    the two replays that batch on restart rather than losing it.
    """

    def __init__(
        self,
        session: TransportSession,
        cursor_store: CursorStore,
        dispatcher: Dispatcher,
        timeout_ms: int = 30_000,
        sync_filter: dict[str, Any] | None = None,
    ):
        self.session = session
        self.account = session.account
        self.cursor_store = cursor_store
        self.dispatcher = dispatcher
        self.timeout_ms = timeout_ms
        self.sync_filter = sync_filter if sync_filter is not None else SYNC_FILTER
        self.state = SyncState.AUTHENTICATING
        self.cursor: str | None = None
        self.batches = 0
        self._running = False
        self._log = logger.bind(account=self.account.user_id)

    def stop(self) -> None:
        """Leave the loop after the batch in progress."""
        self._running = False

    async def run(self) -> None:
        """
        Authenticate, then sync until stopped.

        Raises:
            AuthError: If the account cannot log in.
            TransportError: If fetching a batch fails.
        """
        self._running = True
        self.state = SyncState.AUTHENTICATING
        self._log.info("Starting session as {}", self.account.user_id)
        try:
            await self.session.login()
        except AuthError:
            self.state = SyncState.FAILED
            raise

        self.state = SyncState.SYNCING
        self.cursor = self._load_cursor()
        live_edge = self.cursor is None
        if live_edge:
            self._log.info("No saved cursor, starting from the live edge")

        while self._running:
            try:
                batch = await self.session.sync(self.sync_filter, self.cursor, self.timeout_ms)
            except TransportError as e:
                self.state = SyncState.FAILED
                self._log.error("Sync failed, stopping account: {}", e)
                raise

            if live_edge:
                # Timelines of the initial sync are history, not live traffic.
                batch = batch.without_messages()
                live_edge = False

            if not batch.is_empty:
                self._log.debug(
                    "Batch {}: {} invites, {} messages",
                    batch.next_batch, len(batch.invites), len(batch.messages),
                )
            outcomes = await self.dispatcher.dispatch(batch)
            failed = sum(1 for outcome in outcomes if not outcome.ok)
            if failed:
                self._log.warning("{} of {} events failed in batch {}", failed, len(outcomes), batch.next_batch)

            self._advance(batch.next_batch)
            self.batches += 1

        self.state = SyncState.STOPPED
        self._log.info("Sync loop stopped after {} batches", self.batches)

    def _load_cursor(self) -> str | None:
        try:
            return self.cursor_store.load(self.account)
        except PersistenceError as e:
            self._log.warning("Could not read saved cursor, starting from the live edge: {}", e)
            return None

    def _advance(self, cursor: str) -> None:
        self.cursor = cursor
        try:
            self.cursor_store.save(self.account, cursor)
        except PersistenceError as e:
            self._log.error(
                "Could not save cursor {}, a restart will replay events: {}", cursor, e
            )
