"""Runs one sync loop per configured account."""

import asyncio
from dataclasses import dataclass
from typing import Callable

from loguru import logger

from autoinvite.bot.dispatcher import Dispatcher
from autoinvite.bot.sync_loop import SyncLoop, SyncState
from autoinvite.config.schema import Config
from autoinvite.errors import AuthError, TransportError
from autoinvite.session.base import TransportSession
from autoinvite.session.events import Account
from autoinvite.state.control_channel import ControlChannelResolver
from autoinvite.state.cursor import CursorStore
from autoinvite.state.store import KeyValueStore

SessionFactory = Callable[[Account], TransportSession]


@dataclass
class AccountReport:
    """How an account's loop ended."""
    user_id: str
    state: str
    batches: int = 0
    reason: str | None = None


def matrix_session_factory(config: Config) -> SessionFactory:
    """Session factory building nio backed sessions."""
    from autoinvite.session.matrix import MatrixSession

    def build(account: Account) -> TransportSession:
        return MatrixSession(account, device_name=config.device_name)

    return build


class AccountSupervisor:
    """
    Runs every account concurrently.

    Failures are collected per account; an account that cannot authenticate
    or loses its sync stream stops alone while the others keep running.
    """

    def __init__(
        self,
        config: Config,
        store: KeyValueStore,
        session_factory: SessionFactory | None = None,
    ):
        self.config = config
        self.store = store
        self.session_factory = session_factory or matrix_session_factory(config)
        self.cursor_store = CursorStore(store)
        self.resolver = ControlChannelResolver(store)
        self.loops: dict[str, SyncLoop] = {}

    @property
    def accounts(self) -> list[Account]:
        return [Account.from_config(server) for server in self.config.servers]

    def build_loop(self, session: TransportSession) -> SyncLoop:
        dispatcher = Dispatcher(
            session=session,
            resolver=self.resolver,
            target_user=self.config.target_user,
            message=self.config.message,
            debug=self.config.debug,
        )
        return SyncLoop(
            session=session,
            cursor_store=self.cursor_store,
            dispatcher=dispatcher,
            timeout_ms=self.config.sync_timeout_ms,
        )

    async def run(self) -> list[AccountReport]:
        """Run all accounts until each one stops or fails."""
        accounts = self.accounts
        if not accounts:
            logger.warning("No servers configured, nothing to do")
            return []
        logger.info("Starting {} account(s)", len(accounts))
        return list(await asyncio.gather(*(self._run_account(a) for a in accounts)))

    def stop(self) -> None:
        for loop in self.loops.values():
            loop.stop()

    async def _run_account(self, account: Account) -> AccountReport:
        try:
            session = self.session_factory(account)
        except Exception as e:
            logger.error("Could not create session for {}: {}", account.user_id, e)
            return AccountReport(account.user_id, SyncState.FAILED.value, reason=str(e))

        loop = self.build_loop(session)
        self.loops[account.user_id] = loop
        report = AccountReport(account.user_id, SyncState.STOPPED.value)
        try:
            await loop.run()
        except AuthError as e:
            logger.error("Skipping {}: {}", account.user_id, e)
            report.state, report.reason = "skipped", str(e)
        except TransportError as e:
            logger.error("Account {} failed: {}", account.user_id, e)
            report.state, report.reason = SyncState.FAILED.value, str(e)
        except Exception as e:
            logger.exception("Account {} crashed", account.user_id)
            report.state, report.reason = SyncState.FAILED.value, f"{type(e).__name__}: {e}"
        finally:
            report.batches = loop.batches
            try:
                await session.close()
            except Exception as e:
                logger.warning("Closing session for {} failed: {}", account.user_id, e)
        return report
