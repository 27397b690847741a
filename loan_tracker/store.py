"""Persistence layer for the loan store.

The amortization core never touches storage: it receives a fully loaded
:class:`~loan_tracker.data_models.LoanStore` and hands back a new one. This
module keeps that aggregate in a database. It defaults to SQLite for local
use, but accepts any SQLAlchemy-compatible URL (e.g. PostgreSQL/MySQL).

The settings, the ledger and the summary are stored as JSON documents in a
single row, with amounts written as decimal strings.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime

from sqlalchemy import Column, DateTime, String, Text, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import Config, DEFAULT_DATABASE_URL
from .data_models import LoanStore
from .ledger import default_store
from .serialization import (
    payment_to_dict,
    settings_to_dict,
    store_from_dict,
    summary_to_dict,
)

logger = logging.getLogger(__name__)

Base = declarative_base()

DEFAULT_STORE_ID = "default"


class LoanStoreModel(Base):
    __tablename__ = "loan_stores"

    id = Column(String(64), primary_key=True)
    settings_json = Column(Text, nullable=False)
    payments_json = Column(Text, nullable=False)
    summary_json = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class LoanStoreRepository:
    """Database-backed loan store.

    ``load`` creates and saves a store with the configured defaults the first
    time it is called. Concurrent writers are not coordinated here; callers
    serialize mutations of the same store.
    """

    def __init__(self, url: str, *, config: Config | None = None, store_id: str = DEFAULT_STORE_ID) -> None:
        self._engine = create_engine(url, future=True)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)
        self._config = config or Config()
        self._store_id = store_id

    def load(self) -> LoanStore:
        with self._session_factory() as session:
            row = session.get(LoanStoreModel, self._store_id)
            if row is not None:
                return self._to_store(row)
        logger.info("No loan store %r found; creating one with default settings", self._store_id)
        store = default_store(
            self._config.default_principal,
            self._config.default_rate,
            self._config.default_tenure_years,
        )
        self.save(store)
        return store

    def save(self, store: LoanStore) -> None:
        settings_json = json.dumps(settings_to_dict(store.loan_settings, numeric=False))
        payments_json = json.dumps([payment_to_dict(p, numeric=False) for p in store.monthly_payments])
        summary_json = json.dumps(summary_to_dict(store.summary, numeric=False))
        with self._session_factory() as session:
            row = session.get(LoanStoreModel, self._store_id)
            if row is None:
                row = LoanStoreModel(id=self._store_id)
                session.add(row)
            row.settings_json = settings_json
            row.payments_json = payments_json
            row.summary_json = summary_json
            session.commit()

    def dispose(self) -> None:
        self._engine.dispose()

    @staticmethod
    def _to_store(row: LoanStoreModel) -> LoanStore:
        return store_from_dict(
            {
                "loanSettings": json.loads(row.settings_json),
                "monthlyPayments": json.loads(row.payments_json),
                "summary": json.loads(row.summary_json),
            }
        )


def create_repository_from_env(url: str | None, config: Config | None = None) -> LoanStoreRepository:
    return LoanStoreRepository(url or DEFAULT_DATABASE_URL, config=config)
