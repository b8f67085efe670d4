"""Tests for the operation ticket registry."""

import asyncio

import pytest

from cloudhub.events.base import TicketChangedEvent
from cloudhub.models import TicketKind, TicketStatus
from cloudhub.operations.tickets import TicketRegistry


class TestTicketLifecycle:
    @pytest.mark.asyncio
    async def test_open_and_succeed(self, tickets):
        ticket = tickets.open(TicketKind.RENAME, [7], message="new.txt")

        assert ticket.status == TicketStatus.PENDING
        assert tickets.get_active_tickets() == [ticket]

        tickets.succeed(ticket.ticket_id, "Renamed")

        settled = tickets.get_ticket(ticket.ticket_id)
        assert settled.status == TicketStatus.SUCCESS
        assert settled.message == "Renamed"
        assert settled.ended_at is not None
        assert tickets.get_active_tickets() == []

    @pytest.mark.asyncio
    async def test_settles_once(self, tickets):
        ticket = tickets.open(TicketKind.DELETE, [1])

        tickets.fail(ticket.ticket_id, "Not found")
        tickets.succeed(ticket.ticket_id, "Deleted")

        assert tickets.get_ticket(ticket.ticket_id).status == TicketStatus.ERROR
        assert tickets.get_ticket(ticket.ticket_id).message == "Not found"

    @pytest.mark.asyncio
    async def test_progress_completes_on_success(self, tickets):
        ticket = tickets.open(TicketKind.UPLOAD, ["a.txt"])
        tickets.update_progress(ticket.ticket_id, 60)
        assert tickets.get_ticket(ticket.ticket_id).progress_percent == 60

        tickets.succeed(ticket.ticket_id)

        assert tickets.get_ticket(ticket.ticket_id).progress_percent == 100

    @pytest.mark.asyncio
    async def test_progress_ignored_after_settle(self, tickets):
        ticket = tickets.open(TicketKind.UPLOAD, ["a.txt"])
        tickets.fail(ticket.ticket_id, "boom")

        tickets.update_progress(ticket.ticket_id, 80)

        assert tickets.get_ticket(ticket.ticket_id).progress_percent is None


class TestTicketCleanup:
    @pytest.mark.asyncio
    async def test_pending_ticket_cannot_be_removed(self, tickets):
        ticket = tickets.open(TicketKind.COPY, [1])

        assert tickets.remove_ticket(ticket.ticket_id) is False
        assert tickets.get_ticket(ticket.ticket_id) is not None

    @pytest.mark.asyncio
    async def test_clear_settled(self, tickets):
        done = tickets.open(TicketKind.COPY, [1])
        running = tickets.open(TicketKind.MOVE, [2])
        tickets.succeed(done.ticket_id)

        assert tickets.clear_settled() == 1
        assert tickets.get_all_tickets() == [running]

    @pytest.mark.asyncio
    async def test_settled_ticket_discarded_after_display_time(self, dispatcher):
        registry = TicketRegistry(dispatcher, display_seconds=0.01)
        ticket = registry.open(TicketKind.SYNC, [3])
        registry.succeed(ticket.ticket_id)

        await asyncio.sleep(0.05)

        assert registry.get_ticket(ticket.ticket_id) is None

    @pytest.mark.asyncio
    async def test_events_carry_snapshots(self, tickets, dispatcher):
        events: list[TicketChangedEvent] = []
        dispatcher.on_ticket_changed(events.append)

        ticket = tickets.open(TicketKind.DELETE, [1])
        tickets.succeed(ticket.ticket_id)
        tickets.remove_ticket(ticket.ticket_id)
        await dispatcher.drain()

        assert [e.ticket.status for e in events] == [
            TicketStatus.PENDING,
            TicketStatus.SUCCESS,
            TicketStatus.SUCCESS,
        ]
        assert [e.discarded for e in events] == [False, False, True]
