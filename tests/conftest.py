import pytest

from nyxflare.controller import AppController
from nyxflare.models import Account, Zone
from nyxflare.orchestrator import RequestOrchestrator
from nyxflare.providers.mock import MockProvider


class DeferredRunner:
    """Collects submitted jobs so tests choose when (and in what order) they run."""

    def __init__(self):
        self.jobs = []

    def __call__(self, job):
        self.jobs.append(job)

    def run_all(self):
        while self.jobs:
            self.jobs.pop(0)()

    def run(self, index):
        self.jobs.pop(index)()


class RecordingProvider(MockProvider):
    """Offline provider that counts the calls it receives."""

    def __init__(self, accounts=None, fail=None):
        super().__init__(accounts)
        self.calls = []
        self.fail = fail or {}

    def _hit(self, name, *args):
        self.calls.append((name,) + args)
        if name in self.fail:
            raise self.fail[name]

    def list_accounts(self):
        self._hit("list_accounts")
        return super().list_accounts()

    def list_zones(self, account):
        self._hit("list_zones", account.name)
        return super().list_zones(account)

    def list_records(self, zone, account):
        self._hit("list_records", zone.id)
        return super().list_records(zone, account)

    def create_record(self, zone, account, draft):
        self._hit("create_record", zone.id)
        return super().create_record(zone, account, draft)

    def update_record(self, zone, account, record_id, draft):
        self._hit("update_record", record_id)
        return super().update_record(zone, account, record_id, draft)

    def delete_record(self, zone, account, record_id):
        self._hit("delete_record", record_id)
        return super().delete_record(zone, account, record_id)

    def count(self, name):
        return sum(1 for call in self.calls if call[0] == name)


@pytest.fixture()
def accounts():
    return [
        Account(name="Personal", api_token="tok-personal"),
        Account(name="Work Corp", api_token="tok-work"),
    ]


@pytest.fixture()
def zones():
    return [Zone(id="z1", name="example.com"), Zone(id="z2", name="example.org")]


@pytest.fixture()
def runner():
    return DeferredRunner()


@pytest.fixture()
def provider(accounts):
    return RecordingProvider(accounts)


@pytest.fixture()
def orchestrator(runner):
    return RequestOrchestrator(runner=runner)


@pytest.fixture()
def controller(provider, orchestrator):
    return AppController(provider, orchestrator)


def settle(controller, runner):
    """Run every queued job (including follow-up fetches) and apply results."""
    while runner.jobs:
        runner.run_all()
        controller.pump()


@pytest.fixture()
def settled(controller, runner):
    return lambda: settle(controller, runner)


@pytest.fixture()
def loaded(controller, runner):
    """A controller with accounts, zones and records of the first zone loaded."""
    controller.start()
    settle(controller, runner)
    return controller
