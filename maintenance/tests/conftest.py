from types import SimpleNamespace

import pytest

from maintenance.constants import MaintenanceStatus
from maintenance.exceptions import PersistenceError
from maintenance.models import MaintenanceRecord


@pytest.fixture
def operator(django_user_model):
    return django_user_model.objects.create_user(username='counter1', password='scan-pass-123')


@pytest.fixture
def make_record(db):
    def _make(maint_no='MAINT-100', status=MaintenanceStatus.IN_SHOP, **extra):
        extra.setdefault('item_name', 'Samsung A54')
        extra.setdefault('customer_name', 'Ahmad Saleh')
        return MaintenanceRecord.objects.create(maint_no=maint_no, status=status, **extra)
    return _make


class FakeRepository:
    """In-memory stand-in for MaintenanceRepository."""

    def __init__(self, records=None, fail_updates=False, on_fetch=None):
        self.records = {
            maint_no: SimpleNamespace(
                maint_no=maint_no, status=status, item_name='Router', customer_name='Lina'
            )
            for maint_no, status in (records or {}).items()
        }
        self.fail_updates = fail_updates
        self.on_fetch = on_fetch
        self.fetches = []
        self.updates = []

    def fetch_maintenance_record(self, maint_no):
        self.fetches.append(maint_no)
        if self.on_fetch is not None:
            self.on_fetch(maint_no)
        return self.records.get(maint_no)

    def update_maintenance_record(self, maint_no, status, history_note='', changed_by=None,
                                  expected_status=None):
        self.updates.append((maint_no, status, history_note, changed_by))
        if self.fail_updates:
            raise PersistenceError(maint_no=maint_no)
        self.records[maint_no].status = status
        return self.records[maint_no]


@pytest.fixture
def fake_repository():
    return FakeRepository
