"""Bot core: handlers, dispatcher, sync loop and supervisor."""

from autoinvite.bot.dispatcher import Dispatcher, EventOutcome
from autoinvite.bot.invite import InviteHandler, InviteOutcome
from autoinvite.bot.mention import MentionHandler, is_mention
from autoinvite.bot.supervisor import AccountReport, AccountSupervisor
from autoinvite.bot.sync_loop import SyncLoop, SyncState

__all__ = [
    "Dispatcher", "EventOutcome",
    "InviteHandler", "InviteOutcome",
    "MentionHandler", "is_mention",
    "AccountReport", "AccountSupervisor",
    "SyncLoop", "SyncState",
]
