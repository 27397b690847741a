from decimal import Decimal
from itertools import permutations

import pytest

from loan_tracker.exceptions import PaymentNotFoundError, ValidationError
from loan_tracker.ledger import (
    default_store,
    delete_payment,
    edit_payment,
    make_payment,
    make_settings,
    recalculate,
    reset_for_settings,
    upsert_payment,
    with_calculated_emi,
)


def _record(store, *payments):
    for p in payments:
        store = upsert_payment(store, p)
    return store


class TestRecalculate:
    def test_empty_ledger(self, store):
        ledger, summary = recalculate(store.loan_settings, [])
        assert ledger == ()
        assert summary.total_paid == 0
        assert summary.total_interest_paid == 0
        assert summary.remaining_principal == Decimal("500000")
        assert summary.months_completed == 0
        assert summary.forecasted_end_date is None
        assert summary.principal_paid_from_emi == 0
        assert summary.principal_paid_from_extra == 0
        assert summary.interest_saved_due_to_extra == 0

    def test_recorded_emi_drives_the_split(self, store):
        """A payment of 4026 instead of the calculated 4028 is replayed as recorded."""
        ledger, summary = recalculate(store.loan_settings, [make_payment("2024-01", 4026)])
        entry = ledger[0]
        assert entry.interest_component == Decimal("3125")
        assert entry.principal_component == Decimal("901")
        assert entry.remaining_principal == Decimal("499099")
        assert summary.remaining_principal == Decimal("499099")

    def test_three_months(self, store):
        payments = [
            make_payment("2024-01", 4028),
            make_payment("2024-02", 4028, 10000),
            make_payment("2024-03", 5000),
        ]
        ledger, summary = recalculate(store.loan_settings, payments)
        assert [p.interest_component for p in ledger] == [Decimal("3125"), Decimal("3119"), Decimal("3051")]
        assert [p.principal_component for p in ledger] == [Decimal("903"), Decimal("909"), Decimal("1949")]
        assert [p.remaining_principal for p in ledger] == [
            Decimal("499097"),
            Decimal("488188"),
            Decimal("486239"),
        ]
        assert summary.total_paid == Decimal("23056")
        assert summary.total_interest_paid == Decimal("9295")
        assert summary.principal_paid_from_emi == Decimal("3761")
        assert summary.principal_paid_from_extra == Decimal("10000")
        assert summary.remaining_principal == Decimal("486239")
        assert summary.months_completed == 3
        assert summary.forecasted_end_date is None
        assert summary.interest_saved_due_to_extra == Decimal("32761")

    def test_order_independent(self, store):
        payments = [
            make_payment("2024-01", 4028),
            make_payment("2024-02", 4028, 10000),
            make_payment("2024-03", 5000),
        ]
        results = {recalculate(store.loan_settings, list(order)) for order in permutations(payments)}
        assert len(results) == 1

    def test_recorded_amounts_are_not_overwritten(self, store):
        ledger, _ = recalculate(store.loan_settings, [make_payment("2024-01", 4100, 250)])
        assert ledger[0].emi_paid == Decimal("4100")
        assert ledger[0].extra_paid == Decimal("250")

    def test_inputs_are_not_mutated(self, store):
        payment = make_payment("2024-01", 4028)
        recalculate(store.loan_settings, [payment])
        assert payment.interest_component == 0
        assert payment.remaining_principal == 0

    def test_paid_off_sets_end_date(self, small_loan_store):
        ledger, summary = recalculate(
            small_loan_store.loan_settings,
            [make_payment("2024-04", 888), make_payment("2024-05", 888, 9500)],
        )
        assert summary.remaining_principal == 0
        assert summary.forecasted_end_date == "2024-05"
        assert ledger[-1].remaining_principal == 0


class TestMutations:
    def test_upsert_keeps_months_unique(self, store):
        store = upsert_payment(store, make_payment("2024-01", 4028))
        store = upsert_payment(store, make_payment("2024-01", 5000, 100))
        assert len(store.monthly_payments) == 1
        assert store.monthly_payments[0].emi_paid == Decimal("5000")
        assert store.monthly_payments[0].principal_component == Decimal("1875")
        assert store.summary.months_completed == 1

    def test_ledger_is_sorted(self, store):
        store = _record(store, make_payment("2024-03", 4028), make_payment("2023-12", 4028))
        assert [p.month for p in store.monthly_payments] == ["2023-12", "2024-03"]

    def test_edit_moves_entry(self, store):
        store = _record(store, make_payment("2024-01", 4028), make_payment("2024-02", 4028))
        store = edit_payment(store, "2024-02", make_payment("2024-03", 4028, 1000))
        assert [p.month for p in store.monthly_payments] == ["2024-01", "2024-03"]
        assert store.summary.principal_paid_from_extra == Decimal("1000")

    def test_edit_onto_existing_month_replaces_it(self, store):
        store = _record(store, make_payment("2024-01", 4028), make_payment("2024-02", 4028))
        store = edit_payment(store, "2024-01", make_payment("2024-02", 6000))
        assert [p.month for p in store.monthly_payments] == ["2024-02"]
        assert store.monthly_payments[0].emi_paid == Decimal("6000")

    def test_edit_unknown_month(self, store):
        store = upsert_payment(store, make_payment("2024-01", 4028))
        with pytest.raises(PaymentNotFoundError) as excinfo:
            edit_payment(store, "2024-02", make_payment("2024-02", 4028))
        assert excinfo.value.month == "2024-02"
        assert len(store.monthly_payments) == 1

    def test_delete_recalculates(self, store):
        store = _record(store, make_payment("2024-01", 4028), make_payment("2024-02", 4028, 10000))
        store = delete_payment(store, "2024-01")
        only = store.monthly_payments[0]
        assert only.month == "2024-02"
        assert only.interest_component == Decimal("3125")
        assert only.remaining_principal == Decimal("489097")

    def test_delete_sole_entry_resets_end_date(self, small_loan_store):
        store = upsert_payment(small_loan_store, make_payment("2024-05", 888, 9500))
        assert store.summary.forecasted_end_date == "2024-05"
        store = delete_payment(store, "2024-05")
        assert store.monthly_payments == ()
        assert store.summary.forecasted_end_date is None
        assert store.summary.remaining_principal == Decimal("10000")

    def test_delete_unknown_month(self, store):
        with pytest.raises(PaymentNotFoundError):
            delete_payment(store, "2024-01")

    def test_reset_for_settings(self, store):
        store = with_calculated_emi(upsert_payment(store, make_payment("2024-01", 4028)))
        store = reset_for_settings(store, annual_interest_rate=Decimal("8"))
        assert store.loan_settings.principal_amount == Decimal("500000")
        assert store.loan_settings.annual_interest_rate == Decimal("8")
        assert store.loan_settings.calculated_emi is None
        assert store.monthly_payments == ()
        assert store.summary.remaining_principal == Decimal("500000")
        assert store.summary.months_completed == 0

    def test_reset_rejects_unknown_fields(self, store):
        with pytest.raises(ValidationError):
            reset_for_settings(store, currency="EUR")

    def test_reset_rejects_calculated_emi(self, store):
        with pytest.raises(ValidationError):
            reset_for_settings(store, calculated_emi=Decimal("1"))

    def test_with_calculated_emi(self, store):
        assert store.loan_settings.calculated_emi is None
        assert with_calculated_emi(store).loan_settings.calculated_emi == Decimal("4028")


class TestValidation:
    @pytest.mark.parametrize(
        "principal, rate, tenure",
        [(0, 7.5, 20), (-1, 7.5, 20), (500000, 0, 20), (500000, -2, 20), (500000, 7.5, 0), (500000, 7.5, 2.5)],
    )
    def test_invalid_settings(self, principal, rate, tenure):
        with pytest.raises(ValidationError):
            make_settings(principal, rate, tenure)

    def test_settings_accept_strings(self):
        settings = make_settings("1,200,000", "8.25", "15")
        assert settings.principal_amount == Decimal("1200000")
        assert settings.tenure_years == 15

    @pytest.mark.parametrize("month", ["2024-1", "24-01", "2024-13", "2024/01", "", "2024-01-15"])
    def test_invalid_month(self, month):
        with pytest.raises(ValidationError):
            make_payment(month, 4028)

    @pytest.mark.parametrize("emi", [0, -100, "abc"])
    def test_invalid_emi(self, emi):
        with pytest.raises(ValidationError):
            make_payment("2024-01", emi)

    def test_negative_extra(self):
        with pytest.raises(ValidationError):
            make_payment("2024-01", 4028, -1)

    def test_extra_defaults_to_zero(self):
        assert make_payment("2024-01", 4028).extra_paid == 0
        assert make_payment("2024-01", 4028, None).extra_paid == 0

    def test_default_store(self):
        store = default_store(500000, 7.5, 20)
        assert store.summary.remaining_principal == Decimal("500000")
        assert store.loan_settings.calculated_emi is None
