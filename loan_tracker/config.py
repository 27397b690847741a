"""Runtime configuration for the loan tracker.

Settings are read from environment variables so the same code runs from the
command line, under the Flask development server or in a container. Loan
defaults only apply when a store is created for the first time.
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping, Optional

from .exceptions import ValidationError
from .utils import to_decimal

DEFAULT_DATABASE_URL = "sqlite:///loan_tracker.sqlite3"


@dataclass(frozen=True)
class Config:
    database_url: str = DEFAULT_DATABASE_URL
    log_level: str = "INFO"
    default_principal: Decimal = Decimal("500000")
    default_rate: Decimal = Decimal("7.5")
    default_tenure_years: int = 20

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Config":
        env = os.environ if environ is None else environ
        return cls(
            database_url=env.get("LOAN_TRACKER_DATABASE_URL") or DEFAULT_DATABASE_URL,
            log_level=env.get("LOAN_TRACKER_LOG_LEVEL", "INFO").upper(),
            default_principal=to_decimal(env.get("LOAN_TRACKER_DEFAULT_PRINCIPAL", "500000")),
            default_rate=to_decimal(env.get("LOAN_TRACKER_DEFAULT_RATE", "7.5")),
            default_tenure_years=_whole_years(env.get("LOAN_TRACKER_DEFAULT_TENURE", "20")),
        )


def _whole_years(value: str) -> int:
    tenure = to_decimal(value)
    if tenure != tenure.to_integral_value():
        raise ValidationError(f"LOAN_TRACKER_DEFAULT_TENURE must be a whole number of years; got {value!r}")
    return int(tenure)


def configure_logging(level: str = "INFO") -> None:
    """Send log records to stderr; repeated calls are harmless."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
