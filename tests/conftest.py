from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine

from milkchain.directory import DirectoryService
from milkchain.reconciliation import ReconciliationService
from milkchain.store import LocalCache, LocalStore, MirroredRepository, RemoteStore, create_schema

TODAY = "2025-03-14"


class FixedClock:
    """Callable clock that only moves when told to"""

    def __init__(self, start=datetime(2025, 3, 14, 8, 0, 0)):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def local_store(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'cache.db'}")
    return LocalStore(LocalCache(engine))


@pytest.fixture
def remote_store(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'remote.db'}")
    create_schema(engine)
    return RemoteStore(engine)


@pytest.fixture
def broken_remote(tmp_path):
    # no schema: every statement fails with OperationalError
    engine = create_engine(f"sqlite:///{tmp_path / 'empty.db'}")
    return RemoteStore(engine)


@pytest.fixture
def repository(local_store, remote_store):
    return MirroredRepository(local_store, remote_store)


@pytest.fixture
def directory(repository, clock):
    return DirectoryService(repository, clock=clock)


@pytest.fixture
def service(repository, directory, clock):
    return ReconciliationService(
        repository, directory, clock=clock,
        dedupe_deliveries=False, scheduled_time="08:00 AM",
    )


def seed_dairy(service, directory, quantities=(10, 20, 30)):
    supplier = directory.add_supplier(
        "Green Valley Dairy", "orders@greenvalley.in", "greenvalley", "gv-secret",
        status="approved",
    ).data["supplier"]
    partner = directory.add_delivery_partner(
        supplier.id, "Ravi Kumar", "ravi@greenvalley.in", "98765 43210", "ravi123", "KA-01-1234",
    ).data["partner"]

    customers = []
    for i, quantity in enumerate(quantities, start=1):
        customers.append(directory.add_customer(
            supplier.id, f"Customer {i}", f"90000 0000{i}", f"{i} MG Road", quantity,
        ).data["customer"])

    service.assign_customers_to_partner(partner.id, [c.id for c in customers])
    return SimpleNamespace(supplier=supplier, partner=partner, customers=customers)


@pytest.fixture
def dairy(service, directory):
    return seed_dairy(service, directory)
