"""Shared fixtures.

Fixture loan: 500K principal, 7.5% rate, 20 years (EMI 4028), the defaults a
new store is created with.
"""

from decimal import Decimal

import pytest

from loan_tracker.config import Config
from loan_tracker.ledger import default_store
from loan_tracker.service import LoanTrackerService
from loan_tracker.store import LoanStoreRepository


@pytest.fixture
def store():
    return default_store(Decimal("500000"), Decimal("7.5"), 20)


@pytest.fixture
def small_loan_store():
    """10K at 12% for one year (EMI 888)."""
    return default_store(Decimal("10000"), Decimal("12"), 1)


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'loan_tracker.sqlite3'}"


@pytest.fixture
def repository(database_url):
    repo = LoanStoreRepository(database_url, config=Config(database_url=database_url))
    yield repo
    repo.dispose()


@pytest.fixture
def service(repository):
    return LoanTrackerService(repository)
