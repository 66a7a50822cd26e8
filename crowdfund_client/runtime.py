"""
Owns the single event loop every core component runs on.

Flask handles requests on its own threads; those threads never touch core
state directly. They hand coroutines to the loop with ``call`` and wait for
the result, or read the immutable snapshots the core publishes.
"""

import asyncio
import logging
import threading
import time

from crowdfund_client.board import ProjectBoard
from crowdfund_client.dispatcher import ActionDispatcher
from crowdfund_client.gateway import ChainGateway
from crowdfund_client.notifications import AlertChannel, BusyIndicator
from crowdfund_client.session import AccountEvents, SessionManager

logger = logging.getLogger(__name__)


class DappRuntime:

    def __init__(self, gateway=None, clock=time.time):
        self.gateway = gateway or ChainGateway.from_url()
        self.alerts = AlertChannel(clock=clock)
        self.busy = BusyIndicator()
        self.events = AccountEvents()
        self.board = ProjectBoard(self.gateway, self.alerts, self.busy, clock=clock)
        self.session = SessionManager(self.gateway, self.board, self.alerts)
        self.dispatcher = ActionDispatcher(self.session, self.board, self.alerts, self.busy)
        self.loop = None
        self._thread = None
        self._listener = None
        self._boot = None

    # --- LIFECYCLE ---

    def start(self, auto_connect=True):
        if self.loop is not None:
            return self
        self.loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._serve, name='crowdfund-loop', daemon=True)
        self._thread.start()
        self._boot = asyncio.run_coroutine_threadsafe(self._startup(auto_connect), self.loop)
        return self

    def stop(self):
        if self.loop is None:
            return
        if self._boot is not None:
            self._boot.cancel()
        self.call(self._shutdown())
        self.loop.call_soon_threadsafe(self.loop.stop)
        self._thread.join()
        self.loop.close()
        self.loop = None
        logger.info("Runtime stopped")

    def _serve(self):
        asyncio.set_event_loop(self.loop)
        self.loop.run_forever()

    async def _startup(self, auto_connect):
        self._listener = asyncio.create_task(self.session.listen(self.events))
        if auto_connect:
            await self.session.connect(automatic=True)

    async def _shutdown(self):
        if self._listener is not None:
            self._listener.cancel()
        self.board.clear()

    # --- BRIDGE FOR REQUEST THREADS ---

    def call(self, coro, timeout=None):
        """Run ``coro`` on the loop and block the calling thread for its result."""
        return asyncio.run_coroutine_threadsafe(coro, self.loop).result(timeout)

    def switch_account(self, account):
        """Report a new active wallet account and wait until the session has handled it."""
        return self.call(self._publish_accounts([account]))

    async def _publish_accounts(self, accounts):
        self.events.publish(accounts)
        await self.events.join()
        return self.session.account

    def drain_alerts(self):
        return self.call(self._drain_alerts())

    async def _drain_alerts(self):
        return self.alerts.drain()

    def state(self):
        """JSON-friendly view of the current session, board and alerts."""
        return self.call(self._state())

    async def _state(self):
        snapshot = self.board.snapshot
        return {
            'account': self.session.account,
            'connected': self.session.connected,
            'busy': self.busy.active,
            'observed_at': snapshot.observed_at,
            'projects': [card.model_dump(mode='json') for card in snapshot.cards],
            'alerts': [alert.model_dump(mode='json') for alert in self.alerts.pending()],
        }
