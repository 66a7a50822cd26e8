"""
Wallet session lifecycle: Disconnected or Connected(account).

Account switches reported by the wallet arrive on a single AccountEvents
stream; the session manager is its only consumer.
"""

import asyncio
import logging
from typing import Tuple

from pydantic import BaseModel, ConfigDict

from crowdfund_client.errors import WalletError
from crowdfund_client.reconciler import same_account

logger = logging.getLogger(__name__)


class SessionContext:
    """Everything an action needs to act as the connected account."""

    def __init__(self, account, gateway):
        self.account = account
        self.gateway = gateway

    def __repr__(self):
        return f"SessionContext({self.account})"


class AccountsChanged(BaseModel):
    model_config = ConfigDict(frozen=True)

    accounts: Tuple[str, ...]


class AccountEvents:
    """Queue of AccountsChanged messages. Must be fed from the loop thread."""

    def __init__(self):
        self._queue = asyncio.Queue()

    def publish(self, accounts):
        self._queue.put_nowait(AccountsChanged(accounts=tuple(accounts)))

    async def next(self):
        return await self._queue.get()

    def done(self):
        self._queue.task_done()

    async def join(self):
        await self._queue.join()


class SessionManager:

    def __init__(self, gateway, board, alerts):
        self.gateway = gateway
        self.board = board
        self.alerts = alerts
        self.context = None
        self._first_attempt = True

    @property
    def account(self):
        return self.context.account if self.context else None

    @property
    def connected(self):
        return self.context is not None

    def require_context(self):
        if self.context is None:
            raise WalletError("Please connect your wallet first.")
        return self.context

    async def connect(self, automatic=False):
        """
        Ask the wallet for its accounts and log in as the first one.

        The very first automatic attempt fails quietly: a user who simply has
        no wallet running yet should not be greeted by an error.
        """
        quiet = automatic and self._first_attempt
        self._first_attempt = False
        try:
            accounts = await self.gateway.request_accounts()
            if not accounts:
                raise WalletError("User denied account access or error occurred")
        except WalletError as e:
            if quiet:
                logger.info(f"Automatic wallet connection skipped: {e.message}")
            else:
                logger.error(f"Error connecting wallet: {e.message}")
                self.alerts.report(e)
            return False

        if same_account(self.account, accounts[0]):
            return True
        await self._login(accounts[0])
        return True

    async def logout(self):
        if self.context is None:
            return
        logger.info(f"Logout {self.context.account}")
        self.context = None
        self.board.clear()
        self.alerts.push('Logged out successfully.', 'info')

    async def accounts_changed(self, accounts):
        if not accounts:
            # TODO: treat an emptied account list as a wallet lock and log out
            logger.warning("Wallet reported no accounts, keeping the current session")
            return
        if same_account(self.account, accounts[0]):
            return
        logger.info(f"Active account changed to {accounts[0]}")
        await self._login(accounts[0])

    async def listen(self, events):
        while True:
            event = await events.next()
            try:
                await self.accounts_changed(event.accounts)
            except Exception:
                logger.exception(f"Error handling account change to {event.accounts}")
            finally:
                events.done()

    async def _login(self, account):
        self.context = SessionContext(account, self.gateway)
        logger.info(f"Login successful {account}")
        self.alerts.push('Wallet connected successfully!', 'success')
        await self.board.refresh(self.context)
