"""Fakes shared by the test modules."""

from crowdfund_client.board import ProjectBoard
from crowdfund_client.dispatcher import ActionDispatcher
from crowdfund_client.errors import WalletError
from crowdfund_client.models import Project
from crowdfund_client.notifications import AlertChannel, BusyIndicator
from crowdfund_client.session import SessionManager

T0 = 1_700_000_000
OWNER = "0x1111111111111111111111111111111111111111"
DONOR = "0x2222222222222222222222222222222222222222"


class FakeClock:
    def __init__(self, now=T0):
        self.now = now
        self.reads = 0

    def __call__(self):
        self.reads += 1
        return self.now


class FakeGateway:
    """In-memory stand-in for ChainGateway; records every remote call."""

    def __init__(self, projects=(), accounts=(OWNER,), available=True):
        self.projects = list(projects)
        self.accounts = list(accounts)
        self.available = available
        self.contributions = {}
        self.calls = []
        self.failures = {}

    def _record(self, name, *args):
        self.calls.append((name,) + args)
        if name in self.failures:
            raise self.failures[name]

    @property
    def writes(self):
        return [c for c in self.calls if c[0].startswith('submit_')]

    async def is_available(self):
        return self.available

    async def request_accounts(self):
        self._record('request_accounts')
        if not self.available:
            raise WalletError("No wallet provider is reachable. Start your node or wallet and try again.")
        return list(self.accounts)

    async def chain_status(self, account=None):
        return {'connected': self.available, 'user_balance': '1.0000', 'gas_price': '1.0', 'block_number': 7}

    async def get_project_count(self):
        self._record('get_project_count')
        return len(self.projects)

    async def get_project(self, project_id):
        self._record('get_project', project_id)
        return self.projects[project_id - 1]

    async def get_contribution(self, project_id, account):
        self._record('get_contribution', project_id, account)
        return self.contributions.get((project_id, account.lower()), 0)

    async def submit_create(self, account, title, description, goal, duration_days):
        self._record('submit_create', account, title, description, goal, duration_days)
        self.projects.append(make_project(
            len(self.projects) + 1, owner=account, title=title, description=description,
            goal=goal, deadline=T0 + duration_days * 86400))
        return len(self.projects)

    async def submit_contribute(self, account, project_id, amount):
        self._record('submit_contribute', account, project_id, amount)
        return {'status': 1}

    async def submit_withdraw(self, account, project_id):
        self._record('submit_withdraw', account, project_id)
        return {'status': 1}

    async def submit_refund(self, account, project_id):
        self._record('submit_refund', account, project_id)
        return {'status': 1}


def make_project(project_id=1, owner=OWNER, title="Well", description="Clean water",
                 goal=1000, deadline=T0 + 86400, funds_raised=0, is_completed=False):
    return Project(
        id=project_id, owner=owner, title=title, description=description,
        goal=goal, deadline=deadline, funds_raised=funds_raised, is_completed=is_completed,
    )


class Client:
    """Session, board and dispatcher wired the way the runtime wires them."""

    def __init__(self, gateway, clock):
        self.gateway = gateway
        self.clock = clock
        self.alerts = AlertChannel(clock=clock)
        self.busy = BusyIndicator()
        self.board = ProjectBoard(gateway, self.alerts, self.busy, clock=clock)
        self.session = SessionManager(gateway, self.board, self.alerts)
        self.dispatcher = ActionDispatcher(self.session, self.board, self.alerts, self.busy)

    def levels(self):
        return [a.level for a in self.alerts.pending()]

    def messages(self):
        return [a.message for a in self.alerts.pending()]
