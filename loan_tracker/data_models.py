"""Data models for the loan tracker.

This module defines dataclasses representing the entities handled by the
tracker: the loan settings, recorded monthly payments, the running summary,
the aggregate loan store and the entries of a projected amortization
schedule. All records are frozen; recalculation builds new instances instead
of patching existing ones, so a ledger that is being read elsewhere never
changes underneath the reader.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class LoanSettings:
    """Configuration of the tracked loan.

    Attributes
    ----------
    principal_amount: Decimal
        The amount originally borrowed.
    annual_interest_rate: Decimal
        Annual nominal interest rate in percent (``Decimal("7.5")`` is 7.5 %).
    tenure_years: int
        Loan tenure in whole years.
    calculated_emi: Optional[Decimal]
        The fixed monthly installment derived from the three values above, or
        ``None`` when it has not been computed since the settings changed.
    """

    principal_amount: Decimal
    annual_interest_rate: Decimal
    tenure_years: int
    calculated_emi: Optional[Decimal] = None


@dataclass(frozen=True)
class MonthlyPayment:
    """A payment recorded for one calendar month.

    ``emi_paid`` and ``extra_paid`` are what the borrower actually paid. The
    remaining three fields are derived by the ledger recalculation and are
    overwritten every time the ledger changes.
    """

    month: str  # YYYY-MM
    emi_paid: Decimal
    extra_paid: Decimal = Decimal("0")
    interest_component: Decimal = Decimal("0")
    principal_component: Decimal = Decimal("0")
    remaining_principal: Decimal = Decimal("0")


@dataclass(frozen=True)
class SummaryStats:
    """Aggregate figures derived from the settings and the full ledger."""

    total_paid: Decimal
    total_interest_paid: Decimal
    remaining_principal: Decimal
    months_completed: int
    forecasted_end_date: Optional[str]  # YYYY-MM once the loan is paid off
    interest_saved_due_to_extra: Decimal
    principal_paid_from_emi: Decimal
    principal_paid_from_extra: Decimal


@dataclass(frozen=True)
class LoanStore:
    """Aggregate root: the settings, the ledger sorted by month and the summary."""

    loan_settings: LoanSettings
    monthly_payments: Tuple[MonthlyPayment, ...]
    summary: SummaryStats


@dataclass(frozen=True)
class AmortizationScheduleEntry:
    """One month of a projected amortization schedule."""

    month_index: int  # 1-based
    interest_paid: Decimal
    principal_paid: Decimal
    extra_paid: Decimal
    remaining_principal: Decimal


@dataclass(frozen=True)
class AmortizationSchedule:
    """A projected schedule.

    ``truncated`` is True when the engine gave up after its iteration limit
    with principal still outstanding, e.g. because the installment does not
    even cover the monthly interest.
    """

    entries: List[AmortizationScheduleEntry]
    total_interest: Decimal
    truncated: bool = False


@dataclass(frozen=True)
class Forecast:
    """Comparison of the baseline schedule with one including extra payments."""

    base: AmortizationSchedule
    with_extras: AmortizationSchedule
    months_saved: int
    interest_saved: Decimal
    emi: Decimal
    projected_end_month: Optional[str] = None
    extras_by_month_index: dict = field(default_factory=dict)
