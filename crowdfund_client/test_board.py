import asyncio

import pytest

from crowdfund_client.models import ProjectStatus
from crowdfund_client.session import SessionContext
from crowdfund_client._testing import DONOR, OWNER, T0, make_project


def context(client, account):
    return SessionContext(account, client.gateway)


@pytest.mark.asyncio
async def test_refresh_walks_ids_in_order(client):
    gw = client.gateway
    gw.projects = [make_project(i, owner=OWNER if i % 2 else DONOR) for i in range(1, 5)]
    snapshot = await client.board.refresh(context(client, DONOR))
    assert [c.project.id for c in snapshot.cards] == [1, 2, 3, 4]
    fetched = [c[1] for c in gw.calls if c[0] == 'get_project']
    assert fetched == [1, 2, 3, 4]
    # contributions only for projects the account does not own
    assert [c[1] for c in gw.calls if c[0] == 'get_contribution'] == [1, 3]


@pytest.mark.asyncio
async def test_refresh_reads_clock_once(client, clock):
    client.gateway.projects = [make_project(i) for i in range(1, 4)]
    await client.board.refresh(context(client, DONOR))
    assert clock.reads == 1
    assert client.board.snapshot.observed_at == T0


@pytest.mark.asyncio
async def test_refresh_reconciles_each_project(client, clock):
    gw = client.gateway
    gw.projects = [
        make_project(1),
        make_project(2, funds_raised=40, deadline=T0 - 1),
        make_project(3, funds_raised=0, is_completed=True),
    ]
    gw.contributions[(2, DONOR.lower())] = 40
    cards = (await client.board.refresh(context(client, DONOR))).cards
    assert [c.state.status for c in cards] == [
        ProjectStatus.ACTIVE, ProjectStatus.EXPIRED, ProjectStatus.COMPLETED]
    assert cards[1].state.can_refund
    assert cards[2].state.raised_for_display == 1000
    assert cards[2].progress == 100.0


@pytest.mark.asyncio
async def test_refresh_without_account_skips_contributions(client):
    snapshot = await client.board.refresh(None)
    assert snapshot.account is None
    assert not [c for c in client.gateway.calls if c[0] == 'get_contribution']


@pytest.mark.asyncio
async def test_failed_refresh_reports_and_keeps_previous(client, remote_error):
    await client.board.refresh(context(client, DONOR))
    before = client.board.snapshot
    client.gateway.failures['get_project'] = remote_error
    assert await client.board.refresh(context(client, DONOR)) is None
    assert client.board.snapshot is before
    assert client.messages() == ["Error loading projects: execution reverted: Project is not active"]
    assert not client.busy.active


@pytest.mark.asyncio
async def test_newer_refresh_supersedes_older(client):
    gw = client.gateway
    gate = asyncio.Event()
    original = gw.get_project

    async def slow_get_project(project_id):
        await gate.wait()
        return await original(project_id)

    gw.get_project = slow_get_project
    first = asyncio.ensure_future(client.board.refresh(context(client, OWNER)))
    for _ in range(3):
        await asyncio.sleep(0)

    gw.get_project = original
    second = await client.board.refresh(context(client, DONOR))
    gate.set()

    assert await first is None
    assert second.account == DONOR
    assert client.board.snapshot is second
    assert not client.busy.active


@pytest.mark.asyncio
async def test_clear_drops_cards(client):
    await client.board.refresh(context(client, OWNER))
    client.board.clear()
    assert client.board.cards == ()
