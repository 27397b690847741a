"""Output helpers for the loan tracker.

This module provides simple functions to render the loan store, the payment
ledger, projected schedules and the forecast in a tabular text format using
built‑in printing and string formatting.
"""

from __future__ import annotations

from typing import Iterable

from .data_models import AmortizationSchedule, Forecast, LoanStore, MonthlyPayment


def print_summary(store: LoanStore) -> None:
    """Print the loan settings and running summary in a human‑readable format."""
    settings = store.loan_settings
    summary = store.summary
    print("Loan")
    print("-" * 72)
    print(f"Principal          : {settings.principal_amount:.0f}")
    print(f"Interest rate      : {settings.annual_interest_rate}%")
    print(f"Tenure             : {settings.tenure_years} years")
    if settings.calculated_emi is not None:
        print(f"EMI                : {settings.calculated_emi:.0f}")
    print("-" * 72)
    print("Summary")
    print("-" * 72)
    print(f"Months completed   : {summary.months_completed}")
    print(f"Total paid         : {summary.total_paid:.0f}")
    print(f"Interest paid      : {summary.total_interest_paid:.0f}")
    print(f"Principal from EMI : {summary.principal_paid_from_emi:.0f}")
    if summary.principal_paid_from_extra:
        print(f"Principal (extra)  : {summary.principal_paid_from_extra:.0f}")
        print(f"Interest saved     : {summary.interest_saved_due_to_extra:.0f}")
    print(f"Remaining principal: {summary.remaining_principal:.0f}")
    if summary.forecasted_end_date:
        print(f"Paid off in        : {summary.forecasted_end_date}")
    print("-" * 72)


def print_ledger(payments: Iterable[MonthlyPayment]) -> None:
    """Print the recorded payments as a simple table."""
    headers = ["Month", "EMI", "Extra", "Interest", "Principal", "Remaining"]
    print("\t".join(headers))
    for p in payments:
        row = [
            p.month,
            f"{p.emi_paid:.0f}",
            f"{p.extra_paid:.0f}",
            f"{p.interest_component:.0f}",
            f"{p.principal_component:.0f}",
            f"{p.remaining_principal:.0f}",
        ]
        print("\t".join(row))


def print_schedule(schedule: AmortizationSchedule, max_rows: int = 0) -> None:
    """Print a projected schedule; ``max_rows`` limits the rows shown (0 shows all)."""
    print("\t".join(["Month#", "Interest", "Principal", "Extra", "Remaining"]))
    entries = schedule.entries[:max_rows] if max_rows else schedule.entries
    for e in entries:
        print(
            "\t".join(
                [
                    str(e.month_index),
                    f"{e.interest_paid:.0f}",
                    f"{e.principal_paid:.0f}",
                    f"{e.extra_paid:.0f}",
                    f"{e.remaining_principal:.0f}",
                ]
            )
        )
    if len(entries) < len(schedule.entries):
        print(f"... {len(schedule.entries) - len(entries)} more rows")
    if schedule.truncated:
        print("Warning: schedule stopped before the loan was paid off (installment too small).")


def print_forecast(forecast: Forecast) -> None:
    """Print the baseline and with‑extras scenarios side by side.

    A positive difference means the extra payments shorten the loan or save
    interest.
    """
    print("Forecast")
    print("=" * 72)
    print(f"EMI used           : {forecast.emi:.0f}")
    print(f"{'Metric':20s} {'Baseline':>15s} {'With extras':>15s} {'Saved':>15s}")
    print(
        f"{'months':20s} {len(forecast.base.entries):15d} "
        f"{len(forecast.with_extras.entries):15d} {forecast.months_saved:15d}"
    )
    print(
        f"{'total_interest':20s} {forecast.base.total_interest:15.0f} "
        f"{forecast.with_extras.total_interest:15.0f} {forecast.interest_saved:15.0f}"
    )
    if forecast.projected_end_month:
        print(f"Projected payoff   : {forecast.projected_end_month}")
    extras = {key: value for key, value in forecast.extras_by_month_index.items() if value}
    if extras:
        print("Extras applied     : " + ", ".join(f"{key}={value:.0f}" for key, value in extras.items()))
    if forecast.base.truncated or forecast.with_extras.truncated:
        print("Warning: a schedule stopped before the loan was paid off (installment too small).")
    print("=" * 72)
