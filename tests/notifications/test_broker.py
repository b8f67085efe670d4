"""
Tests for the notification broker.

Tests cover:
- Notifications with auto-expiry, manual dismissal and actions
- Confirmations settling exactly once, queued one at a time
- The global progress slot and its auto-dismiss timer
"""

import asyncio

import pytest

from cloudhub.events.base import ConfirmationChangedEvent, ProgressChangedEvent
from cloudhub.models import (
    ConfirmationConfig,
    NotificationKind,
    ProgressStatus,
)
from cloudhub.notifications.broker import NotificationBroker


async def _wait_for_confirmation(broker: NotificationBroker) -> None:
    for _ in range(100):
        if broker.pending_confirmation is not None:
            return
        await asyncio.sleep(0)
    raise AssertionError("confirmation never opened")


class TestNotifications:
    @pytest.mark.asyncio
    async def test_notify_and_dismiss(self, broker):
        notification_id = broker.notify("Saved", NotificationKind.SUCCESS)

        assert [n.message for n in broker.notifications] == ["Saved"]
        assert broker.notifications[0].kind == NotificationKind.SUCCESS

        assert broker.dismiss(notification_id) is True
        assert broker.notifications == []
        assert broker.dismiss(notification_id) is False

    @pytest.mark.asyncio
    async def test_auto_expiry(self, broker):
        broker.notify("Short lived", duration=0.01)
        broker.notify("Sticky", duration=0)

        await asyncio.sleep(0.05)

        assert [n.message for n in broker.notifications] == ["Sticky"]

    @pytest.mark.asyncio
    async def test_default_duration_from_constructor(self, dispatcher):
        broker = NotificationBroker(dispatcher, default_duration=0.01)
        broker.notify("Expires by default")

        await asyncio.sleep(0.05)

        assert broker.notifications == []

    @pytest.mark.asyncio
    async def test_reusing_id_replaces(self, broker):
        broker.notify("Uploading...", notification_id="upload")
        broker.notify("Uploaded", NotificationKind.SUCCESS, notification_id="upload")

        assert len(broker.notifications) == 1
        assert broker.notifications[0].message == "Uploaded"

    @pytest.mark.asyncio
    async def test_trigger_action(self, broker):
        calls = []
        notification_id = broker.notify(
            "File deleted", action_label="Undo", on_action=lambda: calls.append("undo")
        )

        broker.trigger_action(notification_id)

        assert calls == ["undo"]
        assert broker.notifications == []

    @pytest.mark.asyncio
    async def test_failing_action_is_logged(self, broker, caplog):
        def boom():
            raise RuntimeError("action exploded")

        notification_id = broker.notify("Oops", on_action=boom)

        broker.trigger_action(notification_id)

        assert "action exploded" in caplog.text

    @pytest.mark.asyncio
    async def test_clear(self, broker):
        broker.notify("a", duration=10)
        broker.notify("b")

        broker.clear()

        assert broker.notifications == []


class TestConfirmation:
    @pytest.mark.asyncio
    async def test_accept_resolves_true_after_callback(self, broker):
        calls = []

        async def on_confirm():
            await asyncio.sleep(0.01)
            calls.append("confirmed")

        pending = asyncio.create_task(
            broker.confirm(ConfirmationConfig(message="Delete?", on_confirm=on_confirm))
        )
        await _wait_for_confirmation(broker)
        assert broker.pending_confirmation.message == "Delete?"

        assert await broker.accept_confirmation() is True

        assert await pending is True
        assert calls == ["confirmed"]
        assert broker.pending_confirmation is None

    @pytest.mark.asyncio
    async def test_cancel_resolves_false(self, broker):
        cancelled = []
        pending = asyncio.create_task(
            broker.confirm(ConfirmationConfig(on_cancel=lambda: cancelled.append(True)))
        )
        await _wait_for_confirmation(broker)

        assert broker.cancel_confirmation() is True

        assert await pending is False
        assert cancelled == [True]
        assert broker.pending_confirmation is None

    @pytest.mark.asyncio
    async def test_settles_exactly_once(self, broker):
        """A second accept or cancel after settlement is ignored."""
        confirm_calls = []
        pending = asyncio.create_task(
            broker.confirm(ConfirmationConfig(on_confirm=lambda: confirm_calls.append(1)))
        )
        await _wait_for_confirmation(broker)

        assert await broker.accept_confirmation() is True
        assert broker.cancel_confirmation() is False
        assert await broker.accept_confirmation() is False

        assert await pending is True
        assert confirm_calls == [1]

    @pytest.mark.asyncio
    async def test_cancel_during_running_callback_is_ignored(self, broker):
        release = asyncio.Event()

        async def on_confirm():
            await release.wait()

        pending = asyncio.create_task(
            broker.confirm(ConfirmationConfig(on_confirm=on_confirm))
        )
        await _wait_for_confirmation(broker)

        accepting = asyncio.create_task(broker.accept_confirmation())
        await asyncio.sleep(0)
        assert broker.cancel_confirmation() is False

        release.set()
        await accepting
        assert await pending is True

    @pytest.mark.asyncio
    async def test_callback_exception_reaches_caller(self, broker):
        def on_confirm():
            raise RuntimeError("delete failed")

        pending = asyncio.create_task(
            broker.confirm(ConfirmationConfig(on_confirm=on_confirm))
        )
        await _wait_for_confirmation(broker)

        await broker.accept_confirmation()

        with pytest.raises(RuntimeError, match="delete failed"):
            await pending
        assert broker.pending_confirmation is None

    @pytest.mark.asyncio
    async def test_requests_are_queued(self, broker):
        """A second request waits until the first one is settled."""
        first = asyncio.create_task(broker.confirm(ConfirmationConfig(title="first")))
        await _wait_for_confirmation(broker)
        second = asyncio.create_task(broker.confirm(ConfirmationConfig(title="second")))
        await asyncio.sleep(0)

        assert broker.pending_confirmation.title == "first"
        broker.cancel_confirmation()
        assert await first is False

        await _wait_for_confirmation(broker)
        assert broker.pending_confirmation.title == "second"
        await broker.accept_confirmation()
        assert await second is True

    @pytest.mark.asyncio
    async def test_nothing_pending(self, broker):
        assert await broker.accept_confirmation() is False
        assert broker.cancel_confirmation() is False

    @pytest.mark.asyncio
    async def test_slot_open_and_close_published(self, broker, dispatcher):
        events: list[ConfirmationChangedEvent] = []
        dispatcher.on_confirmation_changed(events.append)

        pending = asyncio.create_task(broker.confirm(ConfirmationConfig(title="Sure?")))
        await _wait_for_confirmation(broker)
        broker.cancel_confirmation()
        await pending
        await dispatcher.drain()

        assert [e.request.title if e.request else None for e in events] == ["Sure?", None]


class TestProgress:
    @pytest.mark.asyncio
    async def test_begin_update_complete(self, broker):
        broker.begin_progress("Uploading...", "a.txt", progress=0)
        broker.update_progress(progress=40)

        state = broker.progress
        assert state.open is True
        assert state.progress == 40
        assert state.closable is False

        broker.complete_progress(ProgressStatus.SUCCESS, "Done", auto_dismiss=None)

        state = broker.progress
        assert state.status == ProgressStatus.SUCCESS
        assert state.message == "Done"
        assert state.closable is True
        assert state.open is True

    @pytest.mark.asyncio
    async def test_update_ignored_when_closed(self, broker):
        broker.update_progress(progress=50)

        assert broker.progress.open is False
        assert broker.progress.progress is None

    @pytest.mark.asyncio
    async def test_end_is_idempotent(self, broker, dispatcher):
        events: list[ProgressChangedEvent] = []
        dispatcher.on_progress_changed(events.append)
        broker.begin_progress("Working...")

        broker.end_progress()
        broker.end_progress()
        await dispatcher.drain()

        assert broker.progress.open is False
        assert [e.state.open for e in events] == [True, False]

    @pytest.mark.asyncio
    async def test_auto_dismiss(self, broker):
        broker.begin_progress("Deleting...")

        broker.complete_progress(ProgressStatus.SUCCESS, auto_dismiss=0.01)
        assert broker.progress.open is True

        await asyncio.sleep(0.05)
        assert broker.progress.open is False

    @pytest.mark.asyncio
    async def test_begin_cancels_pending_dismiss(self, broker):
        """A new operation is not closed by the previous one's timer."""
        broker.begin_progress("First")
        broker.complete_progress(ProgressStatus.SUCCESS, auto_dismiss=0.01)

        broker.begin_progress("Second")
        await asyncio.sleep(0.05)

        assert broker.progress.open is True
        assert broker.progress.title == "Second"

    @pytest.mark.asyncio
    async def test_complete_keeps_message_by_default(self, broker):
        broker.begin_progress("Copying...", "report.pdf")

        broker.complete_progress(ProgressStatus.ERROR, auto_dismiss=0)

        assert broker.progress.message == "report.pdf"
        assert broker.progress.status == ProgressStatus.ERROR


@pytest.mark.asyncio
async def test_reset(broker):
    broker.notify("hello")
    broker.begin_progress("Working...")
    pending = asyncio.create_task(broker.confirm())
    await _wait_for_confirmation(broker)

    broker.reset()

    assert broker.notifications == []
    assert broker.progress.open is False
    assert await pending is False
