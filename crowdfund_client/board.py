"""
The project list: one refresh pass fetches every project in id order,
reconciles it for the connected account and publishes a BoardSnapshot.
"""

import asyncio
import logging
import time

from crowdfund_client.errors import CrowdfundError
from crowdfund_client.models import BoardSnapshot, ProjectCard
from crowdfund_client.reconciler import progress_percent, reconcile, same_account

logger = logging.getLogger(__name__)


class ProjectBoard:

    def __init__(self, gateway, alerts, busy, clock=time.time):
        self.gateway = gateway
        self.alerts = alerts
        self.busy = busy
        self._clock = clock
        self.snapshot = BoardSnapshot()
        self._task = None

    @property
    def cards(self):
        return self.snapshot.cards

    async def refresh(self, session=None):
        """
        Run a new pass and wait for it.

        A pass still in flight is cancelled first, so an older, slower pass
        can never publish over a newer one. Returns the published snapshot,
        or None when this pass failed or was itself superseded.
        """
        if self._task is not None and not self._task.done():
            logger.info("Cancelling refresh in flight")
            self._task.cancel()
        task = asyncio.ensure_future(self._run(session.account if session else None))
        self._task = task
        await asyncio.wait({task})
        if task.cancelled():
            return None
        return task.result()

    def clear(self):
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self.snapshot = BoardSnapshot()

    async def _run(self, account):
        with self.busy.hold():
            try:
                snapshot = await self._load(account)
            except CrowdfundError as e:
                logger.error(f"Error loading projects: {e.message}")
                self.alerts.report(e, prefix='Error loading projects')
                return None
            except Exception as e:
                logger.exception("Unexpected error loading projects")
                self.alerts.push(f"Error loading projects: {e}", 'danger')
                return None
        self.snapshot = snapshot
        return snapshot

    async def _load(self, account):
        now = int(self._clock())
        count = await self.gateway.get_project_count()
        cards = []
        for project_id in range(1, count + 1):
            project = await self.gateway.get_project(project_id)
            contribution = 0
            if account and not same_account(account, project.owner):
                contribution = await self.gateway.get_contribution(project_id, account)
            state = reconcile(project, now, account, contribution)
            cards.append(ProjectCard(
                project=project,
                state=state,
                progress=progress_percent(state.raised_for_display, project.goal),
            ))
        logger.debug(f"Loaded {len(cards)} projects for {account}")
        return BoardSnapshot(account=account, observed_at=now, cards=tuple(cards))
