import pytest

from crowdfund_client.errors import RemoteCallError
from crowdfund_client._testing import Client, FakeClock, FakeGateway, make_project


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def gateway():
    return FakeGateway(projects=[make_project()])


@pytest.fixture
def client(gateway, clock):
    return Client(gateway, clock)


@pytest.fixture
def remote_error():
    return RemoteCallError("execution reverted: Project is not active")
