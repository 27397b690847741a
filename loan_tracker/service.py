"""Loan tracker service layer.

Each public method is one logical unit of work: load the store from the
repository, run the pure ledger/engine code on it and save the result. The
service keeps no state of its own besides the repository it was given.
"""

from __future__ import annotations

import logging
from typing import Optional

from . import ledger
from .data_models import Forecast, LoanStore, MonthlyPayment
from .engine import generate_forecast
from .store import LoanStoreRepository
from .utils import Number

logger = logging.getLogger(__name__)


class LoanTrackerService:
    def __init__(self, repository: LoanStoreRepository) -> None:
        self._repository = repository

    def get_store(self) -> LoanStore:
        """Return the current store with its EMI computed."""
        return ledger.with_calculated_emi(self._repository.load())

    def update_settings(
        self,
        principal_amount: Optional[Number] = None,
        annual_interest_rate: Optional[Number] = None,
        tenure_years: Optional[Number] = None,
    ) -> LoanStore:
        """Change the loan settings; this discards every recorded payment."""
        store = self._repository.load()
        updated = ledger.reset_for_settings(
            store,
            principal_amount=principal_amount,
            annual_interest_rate=annual_interest_rate,
            tenure_years=tenure_years,
        )
        updated = ledger.with_calculated_emi(updated)
        if store.monthly_payments:
            logger.info("Settings changed; discarding %d recorded payments", len(store.monthly_payments))
        logger.info(
            "Loan settings updated: principal=%s rate=%s%% tenure=%sy emi=%s",
            updated.loan_settings.principal_amount,
            updated.loan_settings.annual_interest_rate,
            updated.loan_settings.tenure_years,
            updated.loan_settings.calculated_emi,
        )
        self._repository.save(updated)
        return updated

    def add_payment(self, month: str, emi_paid: Number, extra_paid: Optional[Number] = None) -> MonthlyPayment:
        """Record (or replace) the payment for ``month`` and return it recalculated."""
        payment = ledger.make_payment(month, emi_paid, extra_paid)
        store = ledger.upsert_payment(self._repository.load(), payment)
        self._repository.save(store)
        logger.info("Recorded payment for %s (emi=%s, extra=%s)", month, payment.emi_paid, payment.extra_paid)
        return ledger.find_payment(store, month)

    def edit_payment(
        self, old_month: str, month: str, emi_paid: Number, extra_paid: Optional[Number] = None
    ) -> MonthlyPayment:
        payment = ledger.make_payment(month, emi_paid, extra_paid)
        store = ledger.edit_payment(self._repository.load(), old_month, payment)
        self._repository.save(store)
        logger.info("Edited payment %s -> %s", old_month, month)
        return ledger.find_payment(store, month)

    def delete_payment(self, month: str) -> LoanStore:
        store = ledger.delete_payment(self._repository.load(), month)
        self._repository.save(store)
        logger.info("Deleted payment for %s", month)
        return ledger.with_calculated_emi(store)

    def forecast(self) -> Forecast:
        return generate_forecast(self.get_store())
