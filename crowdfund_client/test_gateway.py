import pytest
from web3 import Web3
from web3.exceptions import ContractLogicError, MismatchedABI

from crowdfund_client.contract_data import CONTRACT_ADDRESS
from crowdfund_client.errors import RemoteCallError, WalletError
from crowdfund_client.gateway import ChainGateway
from crowdfund_client._testing import DONOR, OWNER, T0

TX_HASH = bytes(range(32))


@pytest.fixture
def w3(mocker):
    w3 = mocker.MagicMock()
    w3.is_connected = mocker.AsyncMock(return_value=True)
    w3.eth.wait_for_transaction_receipt = mocker.AsyncMock(return_value={'status': 1, 'logs': []})
    return w3


@pytest.fixture
def contract(w3):
    return w3.eth.contract.return_value


@pytest.fixture
def gw(w3):
    return ChainGateway(w3, address=CONTRACT_ADDRESS.lower(), receipt_timeout=5)


def writable(mocker, contract, name):
    fn = getattr(contract.functions, name).return_value
    fn.transact = mocker.AsyncMock(return_value=TX_HASH)
    return fn


def test_contract_bound_to_checksum_address(w3, gw):
    w3.eth.contract.assert_called_once()
    assert w3.eth.contract.call_args.kwargs['address'] == Web3.to_checksum_address(CONTRACT_ADDRESS)


@pytest.mark.asyncio
async def test_get_project_builds_model(mocker, contract, gw):
    contract.functions.getProject.return_value.call = mocker.AsyncMock(
        return_value=(OWNER, "Well", "Clean water", 1000, T0, 250, False))
    project = await gw.get_project(2)
    contract.functions.getProject.assert_called_with(2)
    assert project.id == 2
    assert project.owner == OWNER
    assert project.funds_raised == 250
    assert not project.is_completed


@pytest.mark.asyncio
async def test_reads_wrap_failures(mocker, contract, gw):
    contract.functions.projectCount.return_value.call = mocker.AsyncMock(
        side_effect=ContractLogicError("execution reverted: nope"))
    with pytest.raises(RemoteCallError) as exc:
        await gw.get_project_count()
    assert "nope" in exc.value.message
    assert isinstance(exc.value.cause, ContractLogicError)


@pytest.mark.asyncio
async def test_get_contribution_checksums_account(mocker, contract, gw):
    contract.functions.contributions.return_value.call = mocker.AsyncMock(return_value=77)
    assert await gw.get_contribution(1, DONOR.lower()) == 77
    contract.functions.contributions.assert_called_with(1, DONOR)


@pytest.mark.asyncio
async def test_contribute_attaches_value_and_waits_for_receipt(mocker, w3, contract, gw):
    fn = writable(mocker, contract, 'contribute')
    await gw.submit_contribute(OWNER, 3, 500)
    fn.transact.assert_awaited_once_with({'from': OWNER, 'value': 500})
    w3.eth.wait_for_transaction_receipt.assert_awaited_once_with(TX_HASH, timeout=5)


@pytest.mark.asyncio
async def test_reverted_receipt_is_a_remote_error(mocker, w3, contract, gw):
    writable(mocker, contract, 'withdrawFunds')
    w3.eth.wait_for_transaction_receipt.return_value = {'status': 0}
    with pytest.raises(RemoteCallError, match="reverted"):
        await gw.submit_withdraw(OWNER, 1)


@pytest.mark.asyncio
async def test_rejected_transaction_is_a_remote_error(mocker, contract, gw):
    fn = writable(mocker, contract, 'refund')
    fn.transact.side_effect = ValueError("User denied transaction signature")
    with pytest.raises(RemoteCallError, match="User denied"):
        await gw.submit_refund(DONOR, 1)


@pytest.mark.asyncio
async def test_create_returns_id_from_event(mocker, contract, gw):
    fn = writable(mocker, contract, 'createProject')
    contract.events.ProjectCreated.return_value.process_receipt.return_value = [
        {'args': {'projectId': 4, 'title': "Well", 'goal': 1000, 'deadline': T0}}]
    assert await gw.submit_create(OWNER, "Well", "Clean water", 1000, 3) == 4
    contract.functions.createProject.assert_called_with("Well", "Clean water", 1000, 3)
    fn.transact.assert_awaited_once_with({'from': OWNER})


@pytest.mark.asyncio
async def test_request_accounts_without_node(w3, gw):
    w3.is_connected.return_value = False
    with pytest.raises(WalletError):
        await gw.request_accounts()


@pytest.mark.asyncio
async def test_request_accounts(w3, gw):
    async def accounts():
        return [DONOR]

    w3.eth.accounts = accounts()
    assert await gw.request_accounts() == [DONOR]


@pytest.mark.asyncio
async def test_optional_views(mocker, contract, gw):
    contract.functions.platformOwner.return_value.call = mocker.AsyncMock(return_value=OWNER)
    contract.functions.getActiveProjects.return_value.call = mocker.AsyncMock(return_value=(1, 3))
    assert await gw.get_platform_owner() == OWNER
    assert await gw.get_active_projects() == [1, 3]


@pytest.mark.asyncio
async def test_chain_status(mocker, w3, gw):
    async def value(v):
        return v

    w3.eth.block_number = value(12)
    w3.eth.gas_price = value(2 * 10 ** 9)
    w3.eth.get_balance = mocker.AsyncMock(return_value=15 * 10 ** 17)
    status = await gw.chain_status(DONOR)
    assert status == {'connected': True, 'block_number': 12, 'gas_price': '2.0', 'user_balance': '1.5000'}


@pytest.mark.asyncio
async def test_bad_call_arguments_are_a_remote_error(contract, gw):
    contract.functions.withdrawFunds.side_effect = MismatchedABI("Could not identify the intended function")
    with pytest.raises(RemoteCallError, match="intended function"):
        await gw.submit_withdraw(OWNER, 2 ** 256)
    contract.functions.getProject.side_effect = MismatchedABI("Could not identify the intended function")
    with pytest.raises(RemoteCallError):
        await gw.get_project(2 ** 256)


@pytest.mark.asyncio
async def test_malformed_project_tuple_is_a_remote_error(mocker, contract, gw):
    contract.functions.getProject.return_value.call = mocker.AsyncMock(
        return_value=(OWNER, "Well", "Clean water", -1, T0, 0, False))
    with pytest.raises(RemoteCallError, match="Malformed data for project 1"):
        await gw.get_project(1)
