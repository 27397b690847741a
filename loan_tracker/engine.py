"""Core calculation engine for the loan tracker.

This module implements the annuity installment (EMI) formula, the projected
amortization schedule with optional extra payments and the forecast that
compares a baseline schedule with one that includes the extra payments
recorded in the ledger. Every function is pure: results depend only on the
arguments and nothing is cached between calls.

All amounts are rounded to whole currency units at each step, exactly as the
tracker has always stored them, so recomputing a schedule reproduces the
stored numbers.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, List, Mapping, Optional

from .data_models import (
    AmortizationSchedule,
    AmortizationScheduleEntry,
    Forecast,
    LoanStore,
    MonthlyPayment,
)
from .utils import Number, monthly_rate, round_currency, shift_month_key, to_decimal

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# The schedule is cut off after this many multiples of the nominal term.
SAFETY_TERM_MULTIPLIER = 2


def calculate_emi(principal: Number, annual_rate: Number, tenure_years: int) -> Decimal:
    """Return the equated monthly installment, rounded to a whole unit.

    The formula is:

        emi = P * (r * (1 + r)^n) / ((1 + r)^n - 1)

    where ``P`` is the principal, ``r`` is the monthly interest rate and
    ``n`` is the number of monthly payments. When the interest rate is zero,
    the installment simplifies to ``P / n``.

    Inputs are not validated here; callers validate settings before they get
    this far.
    """
    principal = to_decimal(principal)
    rate = monthly_rate(to_decimal(annual_rate))
    n = int(tenure_years) * 12
    if rate == 0:
        return round_currency(principal / Decimal(n))
    factor = (1 + rate) ** n
    return round_currency(principal * rate * factor / (factor - 1))


def calculate_monthly_amortization(
    remaining_principal: Decimal,
    emi: Decimal,
    annual_rate: Decimal,
    extra_payment: Decimal = ZERO,
) -> Dict[str, Decimal]:
    """Split one month's installment into interest and principal.

    Returns a dict with ``interest``, ``principal_from_emi``, ``extra``,
    ``total_reduction`` and ``new_remaining_principal``. The new balance
    never goes below zero.
    """
    interest = round_currency(remaining_principal * monthly_rate(annual_rate))
    principal_from_emi = round_currency(emi - interest)
    total_reduction = principal_from_emi + extra_payment
    return {
        "interest": interest,
        "principal_from_emi": principal_from_emi,
        "extra": extra_payment,
        "total_reduction": total_reduction,
        "new_remaining_principal": max(ZERO, remaining_principal - total_reduction),
    }


def month_index_key(month_index: int) -> str:
    return f"m{month_index}"


def generate_schedule(
    principal: Number,
    annual_rate: Number,
    tenure_years: int,
    emi: Number,
    extras_by_month_index: Optional[Mapping[str, Number]] = None,
) -> AmortizationSchedule:
    """Project the month-by-month schedule until the balance reaches zero.

    Parameters
    ----------
    principal, annual_rate, tenure_years:
        The loan parameters. ``annual_rate`` is a percentage.
    emi:
        The fixed installment paid every month. It is not recomputed here.
    extras_by_month_index:
        Optional extra payments keyed ``"m1"``, ``"m2"``, ... by the 1-based
        month index of the schedule.

    Returns
    -------
    AmortizationSchedule
        The entries, their total interest and whether the schedule was cut
        off at ``tenure_years * 12 * 2`` months with principal still
        outstanding.
    """
    remaining = to_decimal(principal)
    rate = to_decimal(annual_rate)
    emi = to_decimal(emi)
    extras = extras_by_month_index or {}
    limit = int(tenure_years) * 12 * SAFETY_TERM_MULTIPLIER

    entries: List[AmortizationScheduleEntry] = []
    total_interest = ZERO
    month_index = 0
    while remaining > 0 and month_index < limit:
        month_index += 1
        extra = to_decimal(extras.get(month_index_key(month_index)) or 0)
        step = calculate_monthly_amortization(remaining, emi, rate, extra)
        remaining = step["new_remaining_principal"]
        total_interest += step["interest"]
        entries.append(
            AmortizationScheduleEntry(
                month_index=month_index,
                interest_paid=step["interest"],
                principal_paid=step["principal_from_emi"],
                extra_paid=extra,
                remaining_principal=remaining,
            )
        )

    truncated = remaining > 0
    if truncated:
        logger.warning(
            "Amortization did not converge within %d months (emi=%s, balance left=%s)",
            limit,
            emi,
            remaining,
        )
    return AmortizationSchedule(entries=entries, total_interest=total_interest, truncated=truncated)


def build_extras_by_month_index(payments: List[MonthlyPayment]) -> Dict[str, Decimal]:
    """Map the Nth recorded payment's extra amount to projected month ``mN``.

    Recorded months are taken in chronological order and numbered
    sequentially; gaps between recorded calendar months are not counted.
    """
    ordered = sorted(payments, key=lambda p: p.month)
    return {month_index_key(i): p.extra_paid for i, p in enumerate(ordered, start=1)}


def generate_forecast(store: LoanStore) -> Forecast:
    """Compare the baseline schedule with one that includes recorded extras."""
    settings = store.loan_settings
    emi = settings.calculated_emi or calculate_emi(
        settings.principal_amount, settings.annual_interest_rate, settings.tenure_years
    )
    base = generate_schedule(
        settings.principal_amount, settings.annual_interest_rate, settings.tenure_years, emi
    )
    extras = build_extras_by_month_index(list(store.monthly_payments))
    with_extras = generate_schedule(
        settings.principal_amount,
        settings.annual_interest_rate,
        settings.tenure_years,
        emi,
        extras,
    )

    projected_end_month = None
    if store.monthly_payments and with_extras.entries and not with_extras.truncated:
        first_month = min(p.month for p in store.monthly_payments)
        projected_end_month = shift_month_key(first_month, len(with_extras.entries) - 1)

    return Forecast(
        base=base,
        with_extras=with_extras,
        months_saved=len(base.entries) - len(with_extras.entries),
        interest_saved=round_currency(base.total_interest - with_extras.total_interest),
        emi=emi,
        projected_end_month=projected_end_month,
        extras_by_month_index=extras,
    )
