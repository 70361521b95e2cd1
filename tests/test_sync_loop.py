"""Tests for the per-account sync loop."""

import pytest

from autoinvite.bot.dispatcher import Dispatcher
from autoinvite.bot.sync_loop import SyncLoop, SyncState
from autoinvite.errors import AuthError, PersistenceError, TransportError
from autoinvite.session.events import DeltaBatch, InviteEvent, MessageEvent
from autoinvite.state.control_channel import ControlChannelResolver
from autoinvite.state.cursor import CursorStore
from autoinvite.state.store import MemoryStore
from tests.conftest import OWNER, FakeSession


class FailingCursorStore(CursorStore):
    def save(self, account, cursor: str) -> None:
        raise PersistenceError("read-only filesystem")


def make_loop(session: FakeSession, store: MemoryStore, cursor_store: CursorStore | None = None) -> SyncLoop:
    dispatcher = Dispatcher(
        session=session,
        resolver=ControlChannelResolver(store),
        target_user=OWNER,
        message="hello",
    )
    return SyncLoop(session, cursor_store or CursorStore(store), dispatcher, timeout_ms=0)


def mention(event_id: str) -> MessageEvent:
    return MessageEvent("R2", "@alice:example.org", "hey bot", event_id)


class TestSyncLoop:

    @pytest.mark.asyncio
    async def test_persisted_cursor_follows_last_batch(self, account) -> None:
        store = MemoryStore({"matrix.example.org/bot/next_batch": "s0"})
        session = FakeSession(account, [DeltaBatch(f"s{i}") for i in range(1, 5)])
        loop = make_loop(session, store)

        with pytest.raises(TransportError):
            await loop.run()

        assert loop.state == SyncState.FAILED
        assert loop.batches == 4
        assert CursorStore(store).load(account) == "s4"
        assert session.sync_calls == ["s0", "s1", "s2", "s3", "s4"]

    @pytest.mark.asyncio
    async def test_first_run_starts_at_live_edge(self, account) -> None:
        store = MemoryStore()
        session = FakeSession(account, [
            DeltaBatch("s1", invites=[InviteEvent("R1")], messages=[mention("$old")]),
            DeltaBatch("s2", messages=[mention("$new")]),
        ])
        loop = make_loop(session, store)

        with pytest.raises(TransportError):
            await loop.run()

        assert session.sync_calls[0] is None
        assert "R1" in session.joined
        relays = [content["body"] for room, content in session.sent if room == "!control1:example.org"]
        assert len(relays) == 1

    @pytest.mark.asyncio
    async def test_resumed_run_handles_messages_of_first_batch(self, account) -> None:
        store = MemoryStore({"matrix.example.org/bot/next_batch": "s5"})
        session = FakeSession(account, [DeltaBatch("s6", messages=[mention("$m")])])
        loop = make_loop(session, store)

        with pytest.raises(TransportError):
            await loop.run()

        assert any(room == "!control1:example.org" for room, _ in session.sent)

    @pytest.mark.asyncio
    async def test_cursor_save_failure_is_not_fatal(self, account) -> None:
        store = MemoryStore()
        session = FakeSession(account, [DeltaBatch("s1"), DeltaBatch("s2")])
        loop = make_loop(session, store, FailingCursorStore(store))

        with pytest.raises(TransportError):
            await loop.run()

        assert loop.batches == 2
        assert loop.cursor == "s2"
        assert session.sync_calls == [None, "s1", "s2"]

    @pytest.mark.asyncio
    async def test_auth_failure(self, account) -> None:
        session = FakeSession(account, [DeltaBatch("s1")], fail_login=True)
        loop = make_loop(session, MemoryStore())

        with pytest.raises(AuthError):
            await loop.run()

        assert loop.state == SyncState.FAILED
        assert session.sync_calls == []

    @pytest.mark.asyncio
    async def test_stop_ends_loop_cleanly(self, account) -> None:
        store = MemoryStore()
        session = FakeSession(account, [DeltaBatch("s1"), DeltaBatch("s2"), DeltaBatch("s3")])
        loop = make_loop(session, store)

        original_dispatch = loop.dispatcher.dispatch

        async def dispatch_then_stop(batch):
            outcomes = await original_dispatch(batch)
            if batch.next_batch == "s2":
                loop.stop()
            return outcomes

        loop.dispatcher.dispatch = dispatch_then_stop
        await loop.run()

        assert loop.state == SyncState.STOPPED
        assert CursorStore(store).load(account) == "s2"

    @pytest.mark.asyncio
    async def test_handler_failure_still_advances_cursor(self, account) -> None:
        store = MemoryStore({"matrix.example.org/bot/next_batch": "s0"})
        session = FakeSession(account, [DeltaBatch("s1", invites=[InviteEvent("R1")])])
        session.fail_on["join"] = "M_FORBIDDEN"
        loop = make_loop(session, store)

        with pytest.raises(TransportError):
            await loop.run()

        assert CursorStore(store).load(account) == "s1"


class UnreadableControlStore(MemoryStore):
    """Cursor reads work, the control room record cannot be read."""

    def get(self, key: str) -> str | None:
        if key.endswith("/control_room"):
            raise PersistenceError(f"permission denied reading {key}")
        return super().get(key)


class TestControlRoomOnSync:

    @pytest.mark.asyncio
    async def test_unreadable_control_record_does_not_end_account(self, account) -> None:
        store = UnreadableControlStore({"matrix.example.org/bot/next_batch": "s0"})
        session = FakeSession(account, [
            DeltaBatch("s1", messages=[mention("$m1")]),
            DeltaBatch("s2", invites=[InviteEvent("R1")]),
        ])
        loop = make_loop(session, store)

        with pytest.raises(TransportError):
            await loop.run()

        assert loop.batches == 2
        assert loop.dispatcher.control_channel is None
        assert "R1" in session.joined
        assert CursorStore(store).load(account) == "s2"

    @pytest.mark.asyncio
    async def test_no_control_room_without_mentions(self, account) -> None:
        store = MemoryStore({"matrix.example.org/bot/next_batch": "s0"})
        session = FakeSession(account, [
            DeltaBatch("s1", invites=[InviteEvent("R1")]),
            DeltaBatch("s2", messages=[MessageEvent("R2", "@alice:example.org", "lunch?", "$m")]),
        ])
        loop = make_loop(session, store)

        with pytest.raises(TransportError):
            await loop.run()

        assert session.created == []
        assert store.get("matrix.example.org/bot/control_room") is None

    @pytest.mark.asyncio
    async def test_control_room_created_on_first_mention(self, account) -> None:
        store = MemoryStore({"matrix.example.org/bot/next_batch": "s0"})
        session = FakeSession(account, [
            DeltaBatch("s1", messages=[mention("$m1")]),
            DeltaBatch("s2", messages=[mention("$m2")]),
        ])
        loop = make_loop(session, store)

        with pytest.raises(TransportError):
            await loop.run()

        assert len(session.created) == 1
        assert store.get("matrix.example.org/bot/control_room") == "!control1:example.org"
