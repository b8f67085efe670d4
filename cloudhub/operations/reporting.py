"""Reports operation outcomes to tickets, the progress slot and notifications."""

from typing import Optional, Sequence, Union

from ..api.errors import CloudError, RemoteError, TransportError
from ..events.base import SessionExpiredEvent
from ..events.dispatcher import EventDispatcher
from ..logger import logger
from ..models import NotificationKind, OperationTicket, ProgressStatus, TicketKind
from ..notifications.broker import NotificationBroker
from .tickets import TicketRegistry


class OutcomeReporter:
    """Surfaces every outcome exactly once through the broker."""

    def __init__(
        self,
        broker: NotificationBroker,
        tickets: TicketRegistry,
        dispatcher: EventDispatcher,
    ):
        self.broker = broker
        self.tickets = tickets
        self._dispatcher = dispatcher

    def start(
        self,
        kind: TicketKind,
        target_ids: Sequence[Union[int, str]],
        title: str,
        message: str = "",
        progress: Optional[float] = None,
    ) -> OperationTicket:
        ticket = self.tickets.open(kind, target_ids, message=message)
        self.broker.begin_progress(title=title, message=message, progress=progress)
        return ticket

    def succeed(
        self,
        ticket: OperationTicket,
        message: str,
        notification: Optional[str] = None,
    ) -> None:
        self.tickets.succeed(ticket.ticket_id, message)
        self.broker.complete_progress(ProgressStatus.SUCCESS, message)
        self.broker.notify(notification or message, NotificationKind.SUCCESS)

    def fail(
        self,
        ticket: Optional[OperationTicket],
        error: CloudError,
        label: str = "Operation",
    ) -> None:
        """Log by error kind and report the failure once."""
        if isinstance(error, TransportError):
            logger.warning(f"[transport] {label} failed: {error.message}")
        elif isinstance(error, RemoteError):
            logger.warning(
                f"[remote status={error.status_code}] {label} failed: {error.message}"
            )
        else:
            logger.info(f"[{error.kind.value}] {label} rejected: {error.message}")

        if ticket is not None:
            self.tickets.fail(ticket.ticket_id, error.message)
            self.broker.complete_progress(ProgressStatus.ERROR, error.message)
        self.broker.notify(error.message, NotificationKind.ERROR)

        if isinstance(error, RemoteError) and error.is_auth_expired:
            self._dispatcher.fire(SessionExpiredEvent(reason=error.message))
