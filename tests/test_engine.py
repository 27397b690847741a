from decimal import Decimal

from loan_tracker.engine import (
    build_extras_by_month_index,
    calculate_emi,
    calculate_monthly_amortization,
    generate_forecast,
    generate_schedule,
)
from loan_tracker.ledger import make_payment, upsert_payment, with_calculated_emi


class TestCalculateEmi:
    def test_standard_home_loan(self):
        """500K at 7.5% for 20 years: 4027.97 rounds to 4028."""
        emi = calculate_emi(Decimal("500000"), Decimal("7.5"), 20)
        assert emi == Decimal("4028")

    def test_returns_whole_units(self):
        emi = calculate_emi(Decimal("333333"), Decimal("7.77"), 17)
        assert emi == emi.to_integral_value()
        assert emi > 0

    def test_zero_rate(self):
        emi = calculate_emi(Decimal("120000"), Decimal("0"), 10)
        assert emi == Decimal("1000")

    def test_zero_rate_covers_principal(self):
        emi = calculate_emi(Decimal("100000"), Decimal("0"), 7)
        assert abs(emi * 7 * 12 - Decimal("100000")) <= Decimal("0.5") * 7 * 12

    def test_accepts_int_float_and_str(self):
        assert calculate_emi(500000, 7.5, 20) == calculate_emi("500000", "7.5", 20) == Decimal("4028")

    def test_one_year_loan(self):
        assert calculate_emi(Decimal("10000"), Decimal("12"), 1) == Decimal("888")


class TestMonthlyAmortization:
    def test_first_month_split(self):
        step = calculate_monthly_amortization(Decimal("500000"), Decimal("4026"), Decimal("7.5"))
        assert step["interest"] == Decimal("3125")
        assert step["principal_from_emi"] == Decimal("901")
        assert step["new_remaining_principal"] == Decimal("499099")

    def test_extra_reduces_balance(self):
        step = calculate_monthly_amortization(
            Decimal("500000"), Decimal("4028"), Decimal("7.5"), Decimal("10000")
        )
        assert step["total_reduction"] == Decimal("10903")
        assert step["new_remaining_principal"] == Decimal("489097")

    def test_balance_never_negative(self):
        step = calculate_monthly_amortization(Decimal("500"), Decimal("4028"), Decimal("7.5"), Decimal("1000"))
        assert step["new_remaining_principal"] == Decimal("0")


class TestGenerateSchedule:
    def test_base_schedule(self):
        schedule = generate_schedule(Decimal("500000"), Decimal("7.5"), 20, Decimal("4028"))
        # Rounding the interest each month leaves a small 241st payment.
        assert len(schedule.entries) == 241
        assert schedule.total_interest == Decimal("466722")
        assert schedule.entries[-1].remaining_principal == 0
        assert not schedule.truncated

    def test_first_entry(self):
        schedule = generate_schedule(Decimal("500000"), Decimal("7.5"), 20, Decimal("4028"))
        first = schedule.entries[0]
        assert first.month_index == 1
        assert first.interest_paid == Decimal("3125")
        assert first.principal_paid == Decimal("903")
        assert first.extra_paid == 0
        assert first.remaining_principal == Decimal("499097")

    def test_balance_non_increasing(self):
        schedule = generate_schedule(Decimal("500000"), Decimal("7.5"), 20, Decimal("4028"))
        balances = [e.remaining_principal for e in schedule.entries]
        assert all(later <= earlier for earlier, later in zip(balances, balances[1:]))

    def test_month_indexes_are_sequential(self):
        schedule = generate_schedule(Decimal("10000"), Decimal("12"), 1, Decimal("888"))
        assert [e.month_index for e in schedule.entries] == list(range(1, len(schedule.entries) + 1))

    def test_idempotent(self):
        extras = {"m2": Decimal("10000")}
        first = generate_schedule(Decimal("500000"), Decimal("7.5"), 20, Decimal("4028"), extras)
        second = generate_schedule(Decimal("500000"), Decimal("7.5"), 20, Decimal("4028"), extras)
        assert first == second

    def test_extra_in_first_month(self):
        schedule = generate_schedule(
            Decimal("500000"), Decimal("7.5"), 20, Decimal("4028"), {"m1": Decimal("100000")}
        )
        assert len(schedule.entries) == 156
        assert schedule.total_interest == Decimal("228303")
        assert schedule.entries[0].extra_paid == Decimal("100000")

    def test_zero_rate(self):
        schedule = generate_schedule(Decimal("120000"), Decimal("0"), 10, Decimal("1000"))
        assert len(schedule.entries) == 120
        assert schedule.total_interest == 0

    def test_emi_below_interest_is_truncated(self):
        schedule = generate_schedule(Decimal("100000"), Decimal("12"), 1, Decimal("500"))
        assert schedule.truncated
        assert len(schedule.entries) == 24
        assert schedule.entries[-1].remaining_principal > Decimal("100000")


class TestExtrasByMonthIndex:
    def test_chronological_numbering_ignores_gaps(self):
        payments = [
            make_payment("2024-05", 4028, 300),
            make_payment("2024-01", 4028, 100),
            make_payment("2024-02", 4028, 0),
        ]
        assert build_extras_by_month_index(payments) == {
            "m1": Decimal("100"),
            "m2": Decimal("0"),
            "m3": Decimal("300"),
        }


class TestForecast:
    def test_no_extras_saves_nothing(self, store):
        store = upsert_payment(store, make_payment("2024-01", 4028))
        forecast = generate_forecast(store)
        assert forecast.months_saved == 0
        assert forecast.interest_saved == 0
        assert forecast.base == forecast.with_extras

    def test_empty_ledger(self, store):
        forecast = generate_forecast(store)
        assert forecast.months_saved == 0
        assert forecast.interest_saved == 0
        assert forecast.projected_end_month is None
        assert forecast.emi == Decimal("4028")

    def test_extra_payment_savings(self, store):
        store = upsert_payment(store, make_payment("2024-01", 4028))
        store = upsert_payment(store, make_payment("2024-02", 4028, 10000))
        forecast = generate_forecast(store)
        assert len(forecast.base.entries) == 241
        assert len(forecast.with_extras.entries) == 230
        assert forecast.months_saved == 11
        assert forecast.interest_saved == Decimal("32761")
        assert forecast.projected_end_month == "2043-02"

    def test_uses_stored_emi(self, store):
        store = with_calculated_emi(store)
        assert generate_forecast(store).emi == store.loan_settings.calculated_emi
