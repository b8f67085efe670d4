"""Progress/notification broker: toasts, confirmations and one global progress slot."""

import asyncio
import inspect
import uuid
from typing import Any, Callable, Optional

from ..config import settings
from ..events.base import (
    ConfirmationChangedEvent,
    NotificationsChangedEvent,
    ProgressChangedEvent,
)
from ..events.dispatcher import EventDispatcher
from ..logger import log_exception, logger
from ..models import (
    ConfirmationConfig,
    Notification,
    NotificationKind,
    ProgressState,
    ProgressStatus,
)

_UNSET: Any = object()


class _PendingConfirmation:
    def __init__(self, config: ConfirmationConfig, future: asyncio.Future[bool]):
        self.config = config
        self.future = future
        # Set once accept/cancel has started; later calls are ignored
        self.settling = False


class NotificationBroker:
    """Decoupled surface for user feedback.

    All methods except ``confirm`` and ``accept_confirmation`` are plain
    functions so they can be called from callbacks; change events are fired
    through the dispatcher without blocking the caller.
    """

    def __init__(
        self,
        dispatcher: EventDispatcher,
        default_duration: Optional[float] = None,
        default_auto_dismiss: Optional[float] = None,
    ):
        self._dispatcher = dispatcher
        self._default_duration = (
            settings.notification_duration_seconds
            if default_duration is None
            else default_duration
        )
        self._default_auto_dismiss = (
            settings.progress_auto_dismiss_seconds
            if default_auto_dismiss is None
            else default_auto_dismiss
        )

        self._notifications: dict[str, Notification] = {}
        self._expiry_timers: dict[str, asyncio.TimerHandle] = {}

        self._confirm_lock = asyncio.Lock()
        self._confirmation: Optional[_PendingConfirmation] = None

        self._progress = ProgressState()
        self._progress_timer: Optional[asyncio.TimerHandle] = None

    # Notifications

    @property
    def notifications(self) -> list[Notification]:
        return list(self._notifications.values())

    def notify(
        self,
        message: str,
        kind: NotificationKind = NotificationKind.INFO,
        *,
        duration: Optional[float] = None,
        notification_id: Optional[str] = None,
        action_label: Optional[str] = None,
        on_action: Optional[Callable[[], Any]] = None,
    ) -> str:
        """Show a dismissible notification.

        Args:
            message: Text to show
            kind: Visual kind of the notification
            duration: Seconds before auto-expiry; 0 keeps it until dismissed
            notification_id: Explicit id; reusing one replaces that notification
            action_label: Label of an optional action button
            on_action: Callback run by ``trigger_action``

        Returns:
            The notification id
        """
        notification_id = notification_id or uuid.uuid4().hex[:12]
        duration = self._default_duration if duration is None else duration

        self._cancel_expiry(notification_id)
        self._notifications[notification_id] = Notification(
            id=notification_id,
            message=message,
            kind=kind,
            duration=duration,
            action_label=action_label,
            on_action=on_action,
        )
        if duration > 0:
            self._expiry_timers[notification_id] = asyncio.get_running_loop().call_later(
                duration, self._expire, notification_id
            )

        logger.debug(f"Notification {notification_id} ({kind.value}): {message}")
        self._fire_notifications()
        return notification_id

    def dismiss(self, notification_id: str) -> bool:
        """Remove a notification. Returns False if it was already gone."""
        self._cancel_expiry(notification_id)
        if self._notifications.pop(notification_id, None) is None:
            return False
        self._fire_notifications()
        return True

    def clear(self) -> None:
        for notification_id in list(self._expiry_timers):
            self._cancel_expiry(notification_id)
        if self._notifications:
            self._notifications.clear()
            self._fire_notifications()

    @log_exception("Notification action for {notification_id}")
    def trigger_action(self, notification_id: str) -> None:
        """Run a notification's action callback and dismiss it."""
        notification = self._notifications.get(notification_id)
        if notification is None:
            return
        self.dismiss(notification_id)
        if notification.on_action is not None:
            notification.on_action()

    @log_exception("Expire notification {notification_id}")
    def _expire(self, notification_id: str) -> None:
        self._expiry_timers.pop(notification_id, None)
        self.dismiss(notification_id)

    def _cancel_expiry(self, notification_id: str) -> None:
        timer = self._expiry_timers.pop(notification_id, None)
        if timer is not None:
            timer.cancel()

    def _fire_notifications(self) -> None:
        self._dispatcher.fire(NotificationsChangedEvent(notifications=self.notifications))

    # Confirmations

    @property
    def pending_confirmation(self) -> Optional[ConfirmationConfig]:
        return self._confirmation.config if self._confirmation else None

    async def confirm(self, config: Optional[ConfirmationConfig] = None) -> bool:
        """Open the confirmation slot and wait for the user's answer.

        Requests issued while one is open wait for it to close first. The
        returned value settles exactly once: True after ``on_confirm`` has
        completed, False on cancel. If ``on_confirm`` raises, that exception
        is raised here instead. The slot always closes on settlement.
        """
        config = config or ConfirmationConfig()
        async with self._confirm_lock:
            future: asyncio.Future[bool] = asyncio.get_running_loop().create_future()
            self._confirmation = _PendingConfirmation(config, future)
            self._dispatcher.fire(ConfirmationChangedEvent(request=config))
            try:
                return await future
            finally:
                self._confirmation = None
                self._dispatcher.fire(ConfirmationChangedEvent(request=None))

    async def accept_confirmation(self) -> bool:
        """Confirm the open request. Returns False if nothing was pending."""
        pending = self._confirmation
        if pending is None or pending.settling or pending.future.done():
            return False
        pending.settling = True

        try:
            if pending.config.on_confirm is not None:
                result = pending.config.on_confirm()
                if inspect.isawaitable(result):
                    await result
        except Exception as e:
            logger.warning(f"Confirmation callback failed: {e}")
            if not pending.future.done():
                pending.future.set_exception(e)
            return True

        if not pending.future.done():
            pending.future.set_result(True)
        return True

    def cancel_confirmation(self) -> bool:
        """Cancel the open request. Returns False if nothing was pending."""
        pending = self._confirmation
        if pending is None or pending.settling or pending.future.done():
            return False
        pending.settling = True

        if pending.config.on_cancel is not None:
            log_exception("Confirmation cancel callback")(pending.config.on_cancel)()
        pending.future.set_result(False)
        return True

    # Progress

    @property
    def progress(self) -> ProgressState:
        return self._progress

    def begin_progress(
        self,
        title: str = "Working...",
        message: str = "",
        progress: Optional[float] = None,
        status: ProgressStatus = ProgressStatus.PENDING,
        closable: bool = False,
    ) -> None:
        """Open the progress slot, replacing whatever it showed before."""
        self._cancel_progress_timer()
        self._set_progress(
            ProgressState(
                open=True,
                title=title,
                message=message,
                progress=progress,
                status=status,
                closable=closable,
            )
        )

    def update_progress(
        self,
        *,
        title: Optional[str] = None,
        message: Optional[str] = None,
        progress: Optional[float] = None,
        status: Optional[ProgressStatus] = None,
        closable: Optional[bool] = None,
    ) -> None:
        """Apply a partial update. Ignored while the slot is closed."""
        if not self._progress.open:
            return
        updates = {
            "title": title,
            "message": message,
            "progress": progress,
            "status": status,
            "closable": closable,
        }
        updates = {k: v for k, v in updates.items() if v is not None}
        if updates:
            self._set_progress(self._progress.model_copy(update=updates))

    def complete_progress(
        self,
        status: ProgressStatus = ProgressStatus.SUCCESS,
        message: Optional[str] = None,
        auto_dismiss: Optional[float] = _UNSET,
    ) -> None:
        """Mark the slot terminal and schedule its dismissal.

        Args:
            status: Terminal status to show
            message: Replacement message, or None to keep the current one
            auto_dismiss: Seconds before the slot closes; None or 0 keeps it open
        """
        self._cancel_progress_timer()
        if auto_dismiss is _UNSET:
            auto_dismiss = self._default_auto_dismiss

        if self._progress.open:
            self._set_progress(
                self._progress.model_copy(
                    update={
                        "status": status,
                        "message": self._progress.message if message is None else message,
                        "closable": True,
                    }
                )
            )

        if auto_dismiss:
            self._progress_timer = asyncio.get_running_loop().call_later(
                auto_dismiss, self._auto_dismiss_progress
            )

    def end_progress(self) -> None:
        """Close the slot. Safe to call when already closed."""
        self._cancel_progress_timer()
        if self._progress.open:
            self._set_progress(ProgressState())

    @log_exception("Progress auto-dismiss")
    def _auto_dismiss_progress(self) -> None:
        self._progress_timer = None
        self.end_progress()

    def _cancel_progress_timer(self) -> None:
        if self._progress_timer is not None:
            self._progress_timer.cancel()
            self._progress_timer = None

    def _set_progress(self, state: ProgressState) -> None:
        self._progress = state
        self._dispatcher.fire(ProgressChangedEvent(state=state))

    # Lifecycle

    def reset(self) -> None:
        """Drop every notification, cancel any confirmation and close progress."""
        self.clear()
        self.cancel_confirmation()
        self.end_progress()
