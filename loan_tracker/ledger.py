"""Ledger recalculation for the loan tracker.

The ledger is the list of payments the borrower actually made, one per
``YYYY-MM`` month. Every mutation (settings change, payment added, edited or
deleted) goes through this module and ends with a full replay of the sorted
ledger, so the derived per-payment fields and the summary are always a
function of the settings and the set of recorded payments, never of the
order in which they were entered.
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from .data_models import LoanSettings, LoanStore, MonthlyPayment, SummaryStats
from .engine import ZERO, calculate_emi, generate_forecast
from .exceptions import PaymentNotFoundError, ValidationError
from .utils import Number, monthly_rate, parse_year_month, round_currency, to_decimal

SETTINGS_FIELDS = ("principal_amount", "annual_interest_rate", "tenure_years")


def _tenure_from(value: Number) -> int:
    tenure = to_decimal(value)
    if tenure != tenure.to_integral_value():
        raise ValidationError(f"Tenure must be a whole number of years; got {value}")
    return int(tenure)


def make_settings(principal_amount: Number, annual_interest_rate: Number, tenure_years: Number) -> LoanSettings:
    """Validate raw settings and build a :class:`LoanSettings` without an EMI."""
    principal = to_decimal(principal_amount)
    rate = to_decimal(annual_interest_rate)
    tenure = _tenure_from(tenure_years)
    if principal <= 0:
        raise ValidationError("Principal amount must be positive", details={"principal_amount": str(principal)})
    if rate <= 0:
        raise ValidationError("Annual interest rate must be positive", details={"annual_interest_rate": str(rate)})
    if tenure <= 0:
        raise ValidationError("Tenure must be positive", details={"tenure_years": tenure})
    return LoanSettings(principal_amount=principal, annual_interest_rate=rate, tenure_years=tenure)


def make_payment(month: str, emi_paid: Number, extra_paid: Optional[Number] = None) -> MonthlyPayment:
    """Validate a submitted payment and build a :class:`MonthlyPayment`.

    Only the month and the amounts paid are taken from the caller; the
    derived fields are filled in by :func:`recalculate`.
    """
    parse_year_month(month)
    emi = to_decimal(emi_paid)
    extra = to_decimal(extra_paid) if extra_paid not in (None, "") else ZERO
    if emi <= 0:
        raise ValidationError("EMI paid must be positive", details={"month": month, "emi_paid": str(emi)})
    if extra < 0:
        raise ValidationError("Extra payment cannot be negative", details={"month": month, "extra_paid": str(extra)})
    return MonthlyPayment(month=month, emi_paid=emi, extra_paid=extra)


def empty_summary(principal_amount: Decimal) -> SummaryStats:
    return SummaryStats(
        total_paid=ZERO,
        total_interest_paid=ZERO,
        remaining_principal=principal_amount,
        months_completed=0,
        forecasted_end_date=None,
        interest_saved_due_to_extra=ZERO,
        principal_paid_from_emi=ZERO,
        principal_paid_from_extra=ZERO,
    )


def default_store(principal_amount: Number, annual_interest_rate: Number, tenure_years: Number) -> LoanStore:
    """Return a fresh store with an empty ledger."""
    settings = make_settings(principal_amount, annual_interest_rate, tenure_years)
    return LoanStore(
        loan_settings=settings,
        monthly_payments=(),
        summary=empty_summary(settings.principal_amount),
    )


def recalculate(
    settings: LoanSettings, payments: Iterable[MonthlyPayment]
) -> Tuple[Tuple[MonthlyPayment, ...], SummaryStats]:
    """Replay the whole ledger and derive every computed field.

    Payments are sorted by month and walked from the original principal.
    Each month's interest is charged on the balance left after the previous
    recorded month and the recorded ``emi_paid`` (not the theoretical EMI)
    pays it off first; whatever is left of the EMI plus ``extra_paid``
    reduces the balance.

    Returns
    -------
    payments: tuple of MonthlyPayment
        New records in chronological order with ``interest_component``,
        ``principal_component`` and ``remaining_principal`` filled in.
    summary: SummaryStats
        Totals over the ledger. ``forecasted_end_date`` is the last recorded
        month once the balance has reached zero, otherwise ``None``.
    """
    rate = monthly_rate(settings.annual_interest_rate)
    ordered = sorted(payments, key=lambda p: p.month)

    remaining = settings.principal_amount
    total_paid = ZERO
    total_interest = ZERO
    from_emi = ZERO
    from_extra = ZERO
    recalculated: List[MonthlyPayment] = []
    for payment in ordered:
        interest = round_currency(remaining * rate)
        principal_component = round_currency(payment.emi_paid - interest)
        extra = payment.extra_paid or ZERO
        remaining = max(ZERO, round_currency(remaining - principal_component - extra))

        total_paid += payment.emi_paid + extra
        total_interest += interest
        from_emi += principal_component
        from_extra += extra
        recalculated.append(
            replace(
                payment,
                interest_component=interest,
                principal_component=principal_component,
                remaining_principal=remaining,
            )
        )

    summary = SummaryStats(
        total_paid=round_currency(total_paid),
        total_interest_paid=round_currency(total_interest),
        remaining_principal=remaining,
        months_completed=len(recalculated),
        forecasted_end_date=recalculated[-1].month if recalculated and remaining <= 0 else None,
        interest_saved_due_to_extra=_interest_saved(settings, recalculated),
        principal_paid_from_emi=from_emi,
        principal_paid_from_extra=from_extra,
    )
    return tuple(recalculated), summary


def _interest_saved(settings: LoanSettings, payments: List[MonthlyPayment]) -> Decimal:
    # Without any extra payment both forecast schedules are identical.
    if not any(p.extra_paid for p in payments):
        return ZERO
    snapshot = LoanStore(loan_settings=settings, monthly_payments=tuple(payments), summary=empty_summary(ZERO))
    return generate_forecast(snapshot).interest_saved


def _rebuild(store: LoanStore, payments: Iterable[MonthlyPayment]) -> LoanStore:
    ledger, summary = recalculate(store.loan_settings, payments)
    return replace(store, monthly_payments=ledger, summary=summary)


def find_payment(store: LoanStore, month: str) -> MonthlyPayment:
    for payment in store.monthly_payments:
        if payment.month == month:
            return payment
    raise PaymentNotFoundError(month)


def upsert_payment(store: LoanStore, payment: MonthlyPayment) -> LoanStore:
    """Add a payment, replacing any entry already recorded for its month."""
    payments = [p for p in store.monthly_payments if p.month != payment.month]
    payments.append(payment)
    return _rebuild(store, payments)


def edit_payment(store: LoanStore, old_month: str, payment: MonthlyPayment) -> LoanStore:
    """Replace the entry for ``old_month`` with ``payment``.

    The new entry may carry a different month; an entry already recorded for
    that month is replaced as well so months stay unique.
    """
    find_payment(store, old_month)
    payments = [p for p in store.monthly_payments if p.month not in (old_month, payment.month)]
    payments.append(payment)
    return _rebuild(store, payments)


def delete_payment(store: LoanStore, month: str) -> LoanStore:
    find_payment(store, month)
    return _rebuild(store, [p for p in store.monthly_payments if p.month != month])


def reset_for_settings(store: LoanStore, **changes: Number) -> LoanStore:
    """Merge changed settings into the store and clear the recorded history.

    Changing the principal, rate or tenure changes the amortization baseline,
    so the ledger and the summary are reset and the cached EMI is dropped.
    Fields that are not given keep their current values. The EMI is always
    derived, so passing ``calculated_emi`` is rejected like any unknown field.
    """
    unknown = set(changes) - set(SETTINGS_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown loan settings: {', '.join(sorted(unknown))}")
    current: Dict[str, Number] = {
        "principal_amount": store.loan_settings.principal_amount,
        "annual_interest_rate": store.loan_settings.annual_interest_rate,
        "tenure_years": store.loan_settings.tenure_years,
    }
    current.update({k: v for k, v in changes.items() if k in SETTINGS_FIELDS and v is not None})
    settings = make_settings(**current)
    return LoanStore(
        loan_settings=settings,
        monthly_payments=(),
        summary=empty_summary(settings.principal_amount),
    )


def with_calculated_emi(store: LoanStore) -> LoanStore:
    """Return the store with ``calculated_emi`` filled in if it is missing."""
    settings = store.loan_settings
    if settings.calculated_emi is not None:
        return store
    emi = calculate_emi(settings.principal_amount, settings.annual_interest_rate, settings.tenure_years)
    return replace(store, loan_settings=replace(settings, calculated_emi=emi))
