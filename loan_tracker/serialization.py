"""Conversion between loan tracker records and JSON-compatible dictionaries.

Keys use the camelCase names the tracker's clients have always exchanged
(``principalAmount``, ``emiPaid``, ...). Amounts are written either as JSON
numbers (API responses, exports) or as decimal strings (database columns,
where no precision may be lost).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional

from .data_models import (
    AmortizationSchedule,
    Forecast,
    LoanSettings,
    LoanStore,
    MonthlyPayment,
    SummaryStats,
)
from .utils import to_decimal


def amount_to_json(value: Optional[Decimal], numeric: bool = True) -> Any:
    if value is None:
        return None
    if not numeric:
        return str(value)
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def _amount(value: Any) -> Optional[Decimal]:
    return None if value is None else to_decimal(value)


def settings_to_dict(settings: LoanSettings, numeric: bool = True) -> Dict[str, Any]:
    return {
        "principalAmount": amount_to_json(settings.principal_amount, numeric),
        "annualInterestRate": amount_to_json(settings.annual_interest_rate, numeric),
        "tenureYears": settings.tenure_years,
        "calculatedEmi": amount_to_json(settings.calculated_emi, numeric),
    }


def payment_to_dict(payment: MonthlyPayment, numeric: bool = True) -> Dict[str, Any]:
    return {
        "month": payment.month,
        "emiPaid": amount_to_json(payment.emi_paid, numeric),
        "extraPaid": amount_to_json(payment.extra_paid, numeric),
        "interestComponent": amount_to_json(payment.interest_component, numeric),
        "principalComponent": amount_to_json(payment.principal_component, numeric),
        "remainingPrincipal": amount_to_json(payment.remaining_principal, numeric),
    }


def summary_to_dict(summary: SummaryStats, numeric: bool = True) -> Dict[str, Any]:
    return {
        "totalPaid": amount_to_json(summary.total_paid, numeric),
        "totalInterestPaid": amount_to_json(summary.total_interest_paid, numeric),
        "remainingPrincipal": amount_to_json(summary.remaining_principal, numeric),
        "monthsCompleted": summary.months_completed,
        "forecastedEndDate": summary.forecasted_end_date,
        "interestSavedDueToExtra": amount_to_json(summary.interest_saved_due_to_extra, numeric),
        "principalPaidFromEmi": amount_to_json(summary.principal_paid_from_emi, numeric),
        "principalPaidFromExtra": amount_to_json(summary.principal_paid_from_extra, numeric),
    }


def store_to_dict(store: LoanStore, numeric: bool = True) -> Dict[str, Any]:
    return {
        "loanSettings": settings_to_dict(store.loan_settings, numeric),
        "monthlyPayments": [payment_to_dict(p, numeric) for p in store.monthly_payments],
        "summary": summary_to_dict(store.summary, numeric),
    }


def settings_from_dict(data: Dict[str, Any]) -> LoanSettings:
    return LoanSettings(
        principal_amount=to_decimal(data["principalAmount"]),
        annual_interest_rate=to_decimal(data["annualInterestRate"]),
        tenure_years=int(data["tenureYears"]),
        calculated_emi=_amount(data.get("calculatedEmi")),
    )


def payment_from_dict(data: Dict[str, Any]) -> MonthlyPayment:
    return MonthlyPayment(
        month=data["month"],
        emi_paid=to_decimal(data["emiPaid"]),
        extra_paid=to_decimal(data.get("extraPaid") or 0),
        interest_component=to_decimal(data.get("interestComponent") or 0),
        principal_component=to_decimal(data.get("principalComponent") or 0),
        remaining_principal=to_decimal(data.get("remainingPrincipal") or 0),
    )


def summary_from_dict(data: Dict[str, Any]) -> SummaryStats:
    return SummaryStats(
        total_paid=to_decimal(data.get("totalPaid") or 0),
        total_interest_paid=to_decimal(data.get("totalInterestPaid") or 0),
        remaining_principal=to_decimal(data.get("remainingPrincipal") or 0),
        months_completed=int(data.get("monthsCompleted") or 0),
        forecasted_end_date=data.get("forecastedEndDate"),
        interest_saved_due_to_extra=to_decimal(data.get("interestSavedDueToExtra") or 0),
        principal_paid_from_emi=to_decimal(data.get("principalPaidFromEmi") or 0),
        principal_paid_from_extra=to_decimal(data.get("principalPaidFromExtra") or 0),
    )


def store_from_dict(data: Dict[str, Any]) -> LoanStore:
    return LoanStore(
        loan_settings=settings_from_dict(data["loanSettings"]),
        monthly_payments=tuple(payment_from_dict(p) for p in data.get("monthlyPayments", [])),
        summary=summary_from_dict(data["summary"]),
    )


def schedule_to_list(schedule: AmortizationSchedule) -> List[Dict[str, Any]]:
    """Convert schedule entries into JSON-serialisable dictionaries."""
    return [
        {
            "monthIndex": e.month_index,
            "interestPaid": amount_to_json(e.interest_paid),
            "principalPaid": amount_to_json(e.principal_paid),
            "extraPaid": amount_to_json(e.extra_paid),
            "remainingPrincipal": amount_to_json(e.remaining_principal),
        }
        for e in schedule.entries
    ]


def forecast_to_dict(forecast: Forecast) -> Dict[str, Any]:
    return {
        "emi": amount_to_json(forecast.emi),
        "base": schedule_to_list(forecast.base),
        "withExtras": schedule_to_list(forecast.with_extras),
        "monthsSaved": forecast.months_saved,
        "interestSaved": amount_to_json(forecast.interest_saved),
        "baseTruncated": forecast.base.truncated,
        "withExtrasTruncated": forecast.with_extras.truncated,
        "projectedEndMonth": forecast.projected_end_month,
        "extrasByMonthIndex": {key: amount_to_json(value) for key, value in forecast.extras_by_month_index.items()},
    }
