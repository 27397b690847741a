"""Command‑line interface for the loan tracker.

This module uses the ``click`` library to implement a multi‑command
interface over a persistent loan store. Users can change the loan settings,
record, edit and delete monthly payments, view the running summary and
forecast the payoff with and without extra payments. The store can be
exported to JSON or CSV files.
"""

from __future__ import annotations

import csv
import json
from decimal import Decimal
from pathlib import Path
from typing import Optional

import click

from .config import Config, configure_logging
from .engine import calculate_emi
from .exceptions import LoanTrackerError, PaymentNotFoundError
from .formatter import print_forecast, print_ledger, print_schedule, print_summary
from .ledger import make_settings
from .serialization import forecast_to_dict, store_to_dict
from .service import LoanTrackerService
from .store import create_repository_from_env
from .utils import to_decimal


def parse_amount(value: Optional[str]) -> Optional[Decimal]:
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("500000") and shorthand with ``k``/``m`` suffixes
    (e.g., "500k" meaning 500_000).
    """
    if value is None:
        return None
    cleaned = value.strip().lower().replace(",", "")
    factor = Decimal(1)
    if cleaned.endswith("k"):
        factor = Decimal(1_000)
        cleaned = cleaned[:-1]
    elif cleaned.endswith("m"):
        factor = Decimal(1_000_000)
        cleaned = cleaned[:-1]
    try:
        return to_decimal(cleaned) * factor
    except LoanTrackerError:
        raise click.BadParameter(f"Invalid amount: {value}")


def _service(ctx: click.Context) -> LoanTrackerService:
    return ctx.obj["service"]


def _run(action):
    """Turn loan tracker errors into click errors with a readable message."""
    try:
        return action()
    except PaymentNotFoundError as exc:
        raise click.ClickException(str(exc))
    except LoanTrackerError as exc:
        raise click.BadParameter(str(exc))


def export_to_json(path: Path, store, forecast) -> None:
    """Export the store and its forecast to a JSON file."""
    data = store_to_dict(store)
    data["forecast"] = forecast_to_dict(forecast)
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_to_csv(path: Path, store) -> None:
    """Export the payment ledger to a CSV file."""
    header = ["Month", "EMI_Paid", "Extra_Paid", "Interest", "Principal", "Remaining_Principal"]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for p in store.monthly_payments:
            writer.writerow(
                [
                    p.month,
                    str(p.emi_paid),
                    str(p.extra_paid),
                    str(p.interest_component),
                    str(p.principal_component),
                    str(p.remaining_principal),
                ]
            )


@click.group()
@click.option(
    "--database-url",
    envvar="LOAN_TRACKER_DATABASE_URL",
    help="SQLAlchemy URL of the loan store (default: local SQLite file)",
)
@click.pass_context
def cli(ctx: click.Context, database_url: Optional[str]) -> None:
    """Track a home loan: record payments and forecast the payoff."""
    try:
        config = Config.from_env()
    except LoanTrackerError as exc:
        raise click.ClickException(f"Invalid configuration: {exc}")
    configure_logging(config.log_level)
    repository = create_repository_from_env(database_url or config.database_url, config)
    ctx.ensure_object(dict)
    ctx.obj["service"] = LoanTrackerService(repository)
    ctx.call_on_close(repository.dispose)


@cli.command()
@click.option("--ledger/--no-ledger", default=True, help="Also list the recorded payments")
@click.pass_context
def show(ctx: click.Context, ledger: bool) -> None:
    """Print the loan settings, the summary and the recorded payments."""
    store = _service(ctx).get_store()
    print_summary(store)
    if ledger and store.monthly_payments:
        print_ledger(store.monthly_payments)


@cli.command()
@click.option("--principal", "-p", "principal", help="Loan amount, e.g. 500k")
@click.option("--rate", "-r", "rate", type=float, help="Annual interest rate (percent)")
@click.option("--tenure", "-t", "tenure", type=int, help="Loan tenure in years")
@click.option("--yes", is_flag=True, help="Do not ask before discarding recorded payments")
@click.pass_context
def settings(ctx: click.Context, principal: Optional[str], rate: Optional[float], tenure: Optional[int], yes: bool) -> None:
    """Change the loan settings. This clears every recorded payment."""
    if principal is None and rate is None and tenure is None:
        raise click.UsageError("Give at least one of --principal, --rate or --tenure")
    service = _service(ctx)
    if not yes and service.get_store().monthly_payments:
        click.confirm("Changing the settings deletes all recorded payments. Continue?", abort=True)
    store = _run(lambda: service.update_settings(parse_amount(principal), rate, tenure))
    click.echo(f"Settings saved. EMI is now {store.loan_settings.calculated_emi:.0f}")


@cli.command()
@click.argument("month")
@click.option("--emi", "emi", help="EMI paid (defaults to the calculated EMI)")
@click.option("--extra", "extra", default="0", show_default=True, help="Extra prepayment")
@click.pass_context
def pay(ctx: click.Context, month: str, emi: Optional[str], extra: str) -> None:
    """Record the payment for MONTH (YYYY-MM); an existing entry is replaced."""
    service = _service(ctx)
    emi_paid = parse_amount(emi) if emi else service.get_store().loan_settings.calculated_emi
    payment = _run(lambda: service.add_payment(month, emi_paid, parse_amount(extra)))
    click.echo(
        f"{payment.month}: interest {payment.interest_component:.0f}, "
        f"principal {payment.principal_component:.0f}, remaining {payment.remaining_principal:.0f}"
    )


@cli.command()
@click.argument("old_month")
@click.option("--month", "month", help="New month (defaults to OLD_MONTH)")
@click.option("--emi", "emi", required=True, help="EMI paid")
@click.option("--extra", "extra", default="0", show_default=True, help="Extra prepayment")
@click.pass_context
def edit(ctx: click.Context, old_month: str, month: Optional[str], emi: str, extra: str) -> None:
    """Replace the payment recorded for OLD_MONTH."""
    service = _service(ctx)
    payment = _run(lambda: service.edit_payment(old_month, month or old_month, parse_amount(emi), parse_amount(extra)))
    click.echo(f"{payment.month}: remaining {payment.remaining_principal:.0f}")


@cli.command()
@click.argument("month")
@click.pass_context
def delete(ctx: click.Context, month: str) -> None:
    """Delete the payment recorded for MONTH."""
    store = _run(lambda: _service(ctx).delete_payment(month))
    click.echo(f"Deleted {month}. Remaining principal {store.summary.remaining_principal:.0f}")


@cli.command()
@click.option(
    "--schedule",
    "which",
    type=click.Choice(["none", "base", "extras"]),
    default="none",
    help="Also print one of the projected schedules",
)
@click.option("--rows", type=int, default=120, show_default=True, help="Maximum schedule rows to print (0 for all)")
@click.pass_context
def forecast(ctx: click.Context, which: str, rows: int) -> None:
    """Compare the payoff with and without the recorded extra payments."""
    result = _service(ctx).forecast()
    print_forecast(result)
    if which == "base":
        print_schedule(result.base, max_rows=rows)
    elif which == "extras":
        print_schedule(result.with_extras, max_rows=rows)


@cli.command()
@click.option("--principal", "-p", "principal", required=True, help="Loan amount")
@click.option("--rate", "-r", "rate", required=True, type=float, help="Annual interest rate (percent)")
@click.option("--tenure", "-t", "tenure", required=True, type=int, help="Loan tenure in years")
def emi(principal: str, rate: float, tenure: int) -> None:
    """Compute the EMI for a loan without touching the store."""
    loan = _run(lambda: make_settings(parse_amount(principal), rate, tenure))
    click.echo(f"{calculate_emi(loan.principal_amount, loan.annual_interest_rate, loan.tenure_years):.0f}")


@cli.command()
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_context
def export(ctx: click.Context, output: Path) -> None:
    """Export the store to OUTPUT (.json with forecast, or .csv ledger)."""
    service = _service(ctx)
    suffix = output.suffix.lower()
    if suffix == ".json":
        export_to_json(output, service.get_store(), service.forecast())
    elif suffix == ".csv":
        export_to_csv(output, service.get_store())
    else:
        raise click.BadParameter("Unsupported output format; use .json or .csv")
    click.echo(f"Store exported to {output}")


if __name__ == "__main__":
    cli()
