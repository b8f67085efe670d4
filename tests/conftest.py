"""Shared fixtures for cloudhub tests."""

from unittest.mock import MagicMock

import pytest

from cloudhub.api.client import CloudApiClient
from cloudhub.events.dispatcher import EventDispatcher
from cloudhub.notifications.broker import NotificationBroker
from cloudhub.operations.coordinator import OperationCoordinator
from cloudhub.operations.tickets import TicketRegistry
from cloudhub.state.accounts import AccountRegistry
from cloudhub.state.listing import FileListingCache


@pytest.fixture
def dispatcher():
    return EventDispatcher()


@pytest.fixture
def api():
    """CloudApiClient double; its coroutine methods come out as AsyncMocks."""
    mock = MagicMock(spec=CloudApiClient)
    mock.list_accounts.return_value = []
    mock.list_files.return_value = []
    mock.search_files.return_value = []
    mock.list_all_files.return_value = []
    return mock


@pytest.fixture
def listing(api, dispatcher):
    return FileListingCache(api, dispatcher)


@pytest.fixture
def registry(api, listing, dispatcher):
    return AccountRegistry(api, listing, dispatcher, auto_select_first=False)


@pytest.fixture
def broker(dispatcher):
    return NotificationBroker(dispatcher, default_duration=0, default_auto_dismiss=0)


@pytest.fixture
def tickets(dispatcher):
    return TicketRegistry(dispatcher, display_seconds=0)


@pytest.fixture
def coordinator(api, registry, listing, broker, dispatcher, tickets):
    return OperationCoordinator(api, registry, listing, broker, dispatcher, tickets)
