"""Tests for the account registry."""

import asyncio

import pytest

from cloudhub.api.errors import RemoteError, TransportError
from cloudhub.api.types import ProviderKind
from cloudhub.events.base import AccountSelectedEvent, AccountsChangedEvent
from cloudhub.models import FolderKey
from cloudhub.state.accounts import AccountRegistry
from tests.fixtures.builders import Gate, make_account, make_file


class TestListAccounts:
    """Fetching and replacing the account list."""

    @pytest.mark.asyncio
    async def test_replaces_list_and_publishes(self, api, registry, dispatcher):
        api.list_accounts.return_value = [make_account(1), make_account(2)]
        events: list[AccountsChangedEvent] = []
        dispatcher.on_accounts_changed(events.append)

        accounts = await registry.list_accounts()

        assert [a.id for a in accounts] == [1, 2]
        assert registry.error is None
        assert len(events) == 1
        assert [a.id for a in events[0].accounts] == [1, 2]

    @pytest.mark.asyncio
    async def test_failure_keeps_previous_list(self, api, registry):
        """Stale-but-available: the old list survives and the error is set."""
        api.list_accounts.return_value = [make_account(1)]
        await registry.list_accounts()

        api.list_accounts.side_effect = TransportError("Unable to reach the server: timeout")
        accounts = await registry.list_accounts()

        assert [a.id for a in accounts] == [1]
        assert registry.error == "Unable to reach the server: timeout"

    @pytest.mark.asyncio
    async def test_success_clears_error(self, api, registry):
        api.list_accounts.side_effect = RemoteError("down", 503)
        await registry.list_accounts()
        assert registry.error == "down"

        api.list_accounts.side_effect = None
        api.list_accounts.return_value = [make_account(1)]
        await registry.list_accounts()

        assert registry.error is None

    @pytest.mark.asyncio
    async def test_stale_response_is_discarded(self, api, registry):
        gates = [Gate([make_account(1)]), Gate([make_account(2)])]
        calls = iter(gates)

        async def list_accounts():
            return await next(calls).wait()

        api.list_accounts.side_effect = list_accounts

        first = asyncio.create_task(registry.list_accounts())
        await asyncio.sleep(0)
        second = asyncio.create_task(registry.list_accounts())
        await asyncio.sleep(0)

        gates[1].release()
        await second
        gates[0].release()
        await first

        assert [a.id for a in registry.accounts] == [2]

    @pytest.mark.asyncio
    async def test_refreshes_selected_account_data(self, api, registry):
        api.list_accounts.return_value = [make_account(1, email="old@example.com")]
        await registry.list_accounts()
        await registry.select_account(registry.accounts[0])

        api.list_accounts.return_value = [make_account(1, email="new@example.com")]
        await registry.list_accounts()

        assert registry.selected.account_email == "new@example.com"


class TestAutoSelect:
    @pytest.mark.asyncio
    async def test_first_load_selects_first_account(self, api, listing, dispatcher):
        registry = AccountRegistry(api, listing, dispatcher, auto_select_first=True)
        api.list_accounts.return_value = [make_account(4), make_account(5)]
        api.list_files.return_value = [make_file(1)]

        await registry.list_accounts()

        assert registry.selected.id == 4
        api.list_files.assert_awaited_once_with(4, "")
        assert listing.snapshot.key == FolderKey(account_id=4, path="")

    @pytest.mark.asyncio
    async def test_later_loads_do_not_auto_select(self, api, listing, dispatcher):
        registry = AccountRegistry(api, listing, dispatcher, auto_select_first=True)
        api.list_accounts.return_value = []
        await registry.list_accounts()

        api.list_accounts.return_value = [make_account(4)]
        await registry.list_accounts()

        assert registry.selected is None

    @pytest.mark.asyncio
    async def test_disabled(self, api, registry):
        api.list_accounts.return_value = [make_account(4)]

        await registry.list_accounts()

        assert registry.selected is None
        api.list_files.assert_not_awaited()


class TestSelectAccount:
    @pytest.mark.asyncio
    async def test_select_loads_root_and_publishes(self, api, registry, listing, dispatcher):
        account = make_account(3, ProviderKind.DROPBOX)
        api.list_files.return_value = [make_file(10)]
        selected: list[AccountSelectedEvent] = []
        dispatcher.on_account_selected(selected.append)

        await registry.select_account(account)

        assert registry.selected == account
        assert selected[0].account == account
        assert listing.snapshot.key == FolderKey(account_id=3, path="")
        assert listing.snapshot.ids == {10}

    @pytest.mark.asyncio
    async def test_switching_account_drops_old_listing(self, api, registry, listing):
        api.list_files.return_value = [make_file(10)]
        await registry.select_account(make_account(1))
        listing.selection.select(10)

        api.list_files.return_value = [make_file(20)]
        await registry.select_account(make_account(2))

        assert listing.snapshot.ids == {20}
        assert len(listing.selection) == 0

    @pytest.mark.asyncio
    async def test_select_none_clears_listing(self, api, registry, listing):
        api.list_files.return_value = [make_file(10)]
        await registry.select_account(make_account(1))

        await registry.select_account(None)

        assert registry.selected is None
        assert listing.snapshot.key is None
        assert listing.entries == ()


class TestDisconnect:
    @pytest.mark.asyncio
    async def test_disconnect_selected_account(self, api, registry, listing):
        """Disconnecting the selected account clears selection and listing."""
        api.list_accounts.return_value = [make_account(1), make_account(2)]
        await registry.list_accounts()
        api.list_files.return_value = [make_file(10)]
        await registry.select_account(registry.get_account(1))

        api.list_accounts.return_value = [make_account(2)]
        await registry.disconnect_account(1)

        api.disconnect_account.assert_awaited_once_with(1)
        assert registry.selected is None
        assert [a.id for a in registry.accounts] == [2]
        assert listing.snapshot.key is None
        assert listing.entries == ()

    @pytest.mark.asyncio
    async def test_disconnect_other_account_keeps_selection(self, api, registry):
        api.list_accounts.return_value = [make_account(1), make_account(2)]
        await registry.list_accounts()
        await registry.select_account(registry.get_account(1))

        api.list_accounts.return_value = [make_account(1)]
        await registry.disconnect_account(2)

        assert registry.selected.id == 1
        assert [a.id for a in registry.accounts] == [1]

    @pytest.mark.asyncio
    async def test_failed_disconnect_changes_nothing(self, api, registry):
        api.list_accounts.return_value = [make_account(1)]
        await registry.list_accounts()
        await registry.select_account(registry.get_account(1))
        api.disconnect_account.side_effect = RemoteError("Cannot disconnect", 409)

        with pytest.raises(RemoteError):
            await registry.disconnect_account(1)

        assert registry.selected.id == 1
        assert [a.id for a in registry.accounts] == [1]
        assert api.list_accounts.await_count == 1

    @pytest.mark.asyncio
    async def test_disconnect_does_not_auto_select(self, api, listing, dispatcher):
        registry = AccountRegistry(api, listing, dispatcher, auto_select_first=True)
        api.list_accounts.return_value = [make_account(1), make_account(2)]
        await registry.list_accounts()
        assert registry.selected.id == 1

        api.list_accounts.return_value = [make_account(2)]
        await registry.disconnect_account(1)

        assert registry.selected is None


@pytest.mark.asyncio
async def test_reset_drops_everything(api, registry, listing):
    api.list_accounts.return_value = [make_account(1)]
    await registry.list_accounts()
    await registry.select_account(registry.get_account(1))

    await registry.reset()

    assert registry.accounts == []
    assert registry.selected is None
    assert listing.snapshot.key is None


def test_authorize_url_delegates(api, registry):
    api.authorize_url.return_value = "http://server/oauth2/authorize/google"

    assert registry.authorize_url(ProviderKind.DRIVE) == "http://server/oauth2/authorize/google"
    api.authorize_url.assert_called_once_with(ProviderKind.DRIVE, None)
