"""
Thin adapter over web3.py for the crowdfunding contract.

The node behind ``RPC_URL`` plays the wallet: it owns the accounts and signs
``eth_sendTransaction`` requests, so no key material ever passes through here.
No call is retried; every failure is raised once as a CrowdfundError.
"""

import logging

from pydantic import ValidationError as PydanticValidationError
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.logs import DISCARD

from crowdfund_client import config
from crowdfund_client.contract_data import ABI
from crowdfund_client.errors import RemoteCallError, WalletError
from crowdfund_client.models import Project

logger = logging.getLogger(__name__)


def _reason(error):
    message = getattr(error, 'message', None) or str(error)
    return message or error.__class__.__name__


class ChainGateway:

    def __init__(self, w3, address=None, abi=ABI, receipt_timeout=None):
        self.w3 = w3
        self.address = Web3.to_checksum_address(address or config.CONTRACT_ADDRESS)
        self.contract = w3.eth.contract(address=self.address, abi=abi)
        self.receipt_timeout = receipt_timeout or config.RECEIPT_TIMEOUT

    @classmethod
    def from_url(cls, url=None, **kwargs):
        url = url or config.RPC_URL
        logger.info(f"Connecting to node at {url}")
        return cls(AsyncWeb3(AsyncHTTPProvider(url)), **kwargs)

    # --- WALLET ---

    async def is_available(self):
        try:
            return await self.w3.is_connected()
        except Exception as e:
            logger.debug(f"Node not reachable: {e}")
            return False

    async def request_accounts(self):
        """Accounts the wallet exposes, first one is the active account."""
        if not await self.is_available():
            raise WalletError("No wallet provider is reachable. Start your node or wallet and try again.")
        try:
            accounts = await self.w3.eth.accounts
        except Exception as e:
            logger.error(f"Error requesting accounts: {e}")
            raise WalletError("User denied account access or error occurred") from e
        return [Web3.to_checksum_address(a) for a in accounts]

    async def chain_status(self, account=None):
        status = {
            'connected': False,
            'user_balance': '0.0000',
            'gas_price': '0',
            'block_number': '0',
        }
        if not await self.is_available():
            return status
        status['connected'] = True
        status['block_number'] = await self._read('block number', lambda: self.w3.eth.block_number)
        gas_wei = await self._read('gas price', lambda: self.w3.eth.gas_price)
        status['gas_price'] = "{:.1f}".format(Web3.from_wei(gas_wei, 'gwei'))
        if account:
            bal_wei = await self._read(
                'balance', lambda: self.w3.eth.get_balance(Web3.to_checksum_address(account)))
            status['user_balance'] = "{:.4f}".format(float(Web3.from_wei(bal_wei, 'ether')))
        return status

    # --- VIEW CALLS ---

    async def _read(self, what, make):
        """Await ``make()``; building the call is guarded too, web3 validates arguments there."""
        try:
            return await make()
        except Exception as e:
            logger.error(f"Error reading {what}: {e}")
            raise RemoteCallError(_reason(e), cause=e) from e

    async def get_project_count(self):
        return await self._read('projectCount', lambda: self.contract.functions.projectCount().call())

    async def get_project(self, project_id):
        raw = await self._read(
            f'project {project_id}', lambda: self.contract.functions.getProject(project_id).call())
        try:
            return Project.from_tuple(project_id, raw)
        except (PydanticValidationError, ValueError) as e:
            logger.error(f"Malformed project {project_id}: {e}")
            raise RemoteCallError(f"Malformed data for project {project_id}", cause=e) from e

    async def get_contribution(self, project_id, account):
        return await self._read(
            f'contribution to {project_id}',
            lambda: self.contract.functions.contributions(project_id, Web3.to_checksum_address(account)).call())

    async def get_platform_owner(self):
        return await self._read('platformOwner', lambda: self.contract.functions.platformOwner().call())

    async def get_active_projects(self):
        ids = await self._read('getActiveProjects', lambda: self.contract.functions.getActiveProjects().call())
        return list(ids)

    # --- STATE-MUTATING CALLS ---

    async def _send(self, name, args, account, value=0):
        try:
            fn = getattr(self.contract.functions, name)(*args)
            tx = {'from': Web3.to_checksum_address(account)}
            if value:
                tx['value'] = value
            tx_hash = await fn.transact(tx)
            logger.info(f"Sent {name} from {account}: {tx_hash.hex()}")
            receipt = await self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
        except Exception as e:
            logger.error(f"{name} failed: {e}")
            raise RemoteCallError(_reason(e), cause=e) from e
        if receipt['status'] == 0:
            raise RemoteCallError(f"Transaction {tx_hash.hex()} reverted")
        return receipt

    async def submit_create(self, account, title, description, goal, duration_days):
        """Send createProject and return the new project id from its ProjectCreated event."""
        receipt = await self._send('createProject', (title, description, goal, duration_days), account)
        events = self.contract.events.ProjectCreated().process_receipt(receipt, errors=DISCARD)
        if not events:
            return None
        return events[0]['args']['projectId']

    async def submit_contribute(self, account, project_id, amount):
        return await self._send('contribute', (project_id,), account, value=amount)

    async def submit_withdraw(self, account, project_id):
        return await self._send('withdrawFunds', (project_id,), account)

    async def submit_refund(self, account, project_id):
        return await self._send('refund', (project_id,), account)
