import asyncio
from datetime import datetime
from typing import Optional, Sequence, Union

from ..config import settings
from ..events.base import TicketChangedEvent
from ..events.dispatcher import EventDispatcher
from ..logger import log_exception, logger
from ..models import OperationTicket, TicketKind, TicketStatus


class TicketRegistry:
    """Tracks in-flight operations for display.

    Settled tickets stay visible for ``display_seconds`` and are then
    discarded automatically.
    """

    def __init__(
        self, dispatcher: EventDispatcher, display_seconds: Optional[float] = None
    ):
        self._dispatcher = dispatcher
        self._display_seconds = (
            settings.ticket_display_seconds
            if display_seconds is None
            else display_seconds
        )
        self._tickets: dict[str, OperationTicket] = {}
        self._discard_timers: dict[str, asyncio.TimerHandle] = {}

    def open(
        self,
        kind: TicketKind,
        target_ids: Sequence[Union[int, str]],
        message: str = "",
    ) -> OperationTicket:
        """Create a pending ticket for a starting operation."""
        ticket = OperationTicket(kind=kind, target_ids=list(target_ids), message=message)
        self._tickets[ticket.ticket_id] = ticket
        logger.debug(
            f"Ticket {ticket.ticket_id} opened, kind={kind.value}, targets={ticket.target_ids}"
        )
        self._fire(ticket)
        return ticket

    def update_progress(self, ticket_id: str, percent: int) -> None:
        ticket = self._tickets.get(ticket_id)
        if not ticket or ticket.status != TicketStatus.PENDING:
            return
        ticket.progress_percent = percent
        self._fire(ticket)

    def succeed(self, ticket_id: str, message: str = "") -> None:
        self._settle(ticket_id, TicketStatus.SUCCESS, message)

    def fail(self, ticket_id: str, message: str) -> None:
        self._settle(ticket_id, TicketStatus.ERROR, message)

    def get_ticket(self, ticket_id: str) -> OperationTicket | None:
        return self._tickets.get(ticket_id)

    def get_all_tickets(self) -> list[OperationTicket]:
        return list(self._tickets.values())

    def get_active_tickets(self) -> list[OperationTicket]:
        return [t for t in self._tickets.values() if t.status == TicketStatus.PENDING]

    def remove_ticket(self, ticket_id: str) -> bool:
        """Remove a settled ticket. Pending tickets cannot be removed."""
        ticket = self._tickets.get(ticket_id)
        if not ticket or ticket.status == TicketStatus.PENDING:
            return False
        del self._tickets[ticket_id]
        timer = self._discard_timers.pop(ticket_id, None)
        if timer is not None:
            timer.cancel()
        self._fire(ticket, discarded=True)
        return True

    def clear_settled(self) -> int:
        to_remove = [
            tid for tid, t in self._tickets.items() if t.status != TicketStatus.PENDING
        ]
        for tid in to_remove:
            self.remove_ticket(tid)
        return len(to_remove)

    def _settle(self, ticket_id: str, status: TicketStatus, message: str) -> None:
        ticket = self._tickets.get(ticket_id)
        if not ticket or ticket.status != TicketStatus.PENDING:
            return
        ticket.status = status
        ticket.message = message
        ticket.ended_at = datetime.now()
        if status == TicketStatus.SUCCESS and ticket.progress_percent is not None:
            ticket.progress_percent = 100
        logger.info(
            f"Ticket {ticket_id} ({ticket.kind.value}) settled: {status.value}"
        )
        self._fire(ticket)

        if self._display_seconds > 0:
            self._discard_timers[ticket_id] = asyncio.get_running_loop().call_later(
                self._display_seconds, self._discard, ticket_id
            )

    @log_exception("Discard ticket {ticket_id}")
    def _discard(self, ticket_id: str) -> None:
        self._discard_timers.pop(ticket_id, None)
        self.remove_ticket(ticket_id)

    def _fire(self, ticket: OperationTicket, discarded: bool = False) -> None:
        self._dispatcher.fire(
            TicketChangedEvent(ticket=ticket.model_copy(), discarded=discarded)
        )
