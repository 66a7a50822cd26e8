import asyncio

import pytest

from crowdfund_client.session import AccountEvents
from crowdfund_client._testing import DONOR, OWNER


@pytest.mark.asyncio
async def test_first_automatic_failure_is_quiet(client):
    client.gateway.available = False
    assert not await client.session.connect(automatic=True)
    assert client.alerts.pending() == ()
    assert not client.session.connected


@pytest.mark.asyncio
async def test_later_failures_are_reported(client):
    client.gateway.available = False
    await client.session.connect(automatic=True)
    await client.session.connect(automatic=True)
    await client.session.connect()
    assert client.levels() == ['danger', 'danger']


@pytest.mark.asyncio
async def test_manual_first_failure_is_reported(client):
    client.gateway.available = False
    await client.session.connect()
    assert client.levels() == ['danger']


@pytest.mark.asyncio
async def test_empty_account_list_is_a_wallet_error(client):
    client.gateway.accounts = []
    await client.session.connect()
    assert client.messages() == ["User denied account access or error occurred"]
    assert client.session.account is None


@pytest.mark.asyncio
async def test_connect_logs_in_and_refreshes(client):
    assert await client.session.connect(automatic=True)
    assert client.session.account == OWNER
    assert client.session.context.gateway is client.gateway
    assert len(client.board.cards) == 1
    assert client.messages() == ["Wallet connected successfully!"]


@pytest.mark.asyncio
async def test_reconnecting_same_account_is_a_noop(client):
    await client.session.connect()
    client.gateway.calls.clear()
    assert await client.session.connect()
    assert client.gateway.calls == [('request_accounts',)]


@pytest.mark.asyncio
async def test_account_change_relogs_and_refreshes(client):
    await client.session.connect()
    client.gateway.calls.clear()
    await client.session.accounts_changed([DONOR])
    assert client.session.account == DONOR
    assert ('get_contribution', 1, DONOR) in client.gateway.calls
    assert client.board.snapshot.account == DONOR


@pytest.mark.asyncio
async def test_empty_accounts_event_keeps_session(client):
    await client.session.connect()
    await client.session.accounts_changed([])
    assert client.session.account == OWNER


@pytest.mark.asyncio
async def test_logout_tears_down_context(client):
    await client.session.connect()
    client.alerts.drain()
    await client.session.logout()
    assert client.session.context is None
    assert client.board.cards == ()
    assert client.alerts.pending()[0].level == 'info'
    # second logout is silent
    await client.session.logout()
    assert len(client.alerts.pending()) == 1


@pytest.mark.asyncio
async def test_listen_consumes_account_events(client):
    events = AccountEvents()
    listener = asyncio.ensure_future(client.session.listen(events))
    events.publish([OWNER])
    await events.join()
    assert client.session.account == OWNER
    events.publish([DONOR.upper().replace('0X', '0x')])
    await events.join()
    assert client.session.account.lower() == DONOR.lower()
    listener.cancel()
    with pytest.raises(asyncio.CancelledError):
        await listener


@pytest.mark.asyncio
async def test_listener_survives_unexpected_errors(client):
    events = AccountEvents()
    listener = asyncio.ensure_future(client.session.listen(events))

    client.gateway.failures['get_project'] = RuntimeError("decoder exploded")
    events.publish([OWNER])
    await events.join()
    assert client.messages()[-1] == "Error loading projects: decoder exploded"
    assert not client.busy.active

    original = client.board.refresh

    async def broken_refresh(session=None):
        raise RuntimeError("render target gone")

    client.board.refresh = broken_refresh
    events.publish([DONOR])
    await events.join()

    del client.gateway.failures['get_project']
    client.board.refresh = original
    events.publish([OWNER])
    await events.join()
    assert client.session.account == OWNER
    assert len(client.board.cards) == 1

    listener.cancel()
    with pytest.raises(asyncio.CancelledError):
        await listener
