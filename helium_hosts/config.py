"""
Report settings, ISO-8601 handling and startup validation.

Anything wrong here is fatal: ReportSettings.build raises ConfigError before
a single request is made or a file is created.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Optional, Union

DEFAULT_API_URL = os.getenv("HELIUM_API_URL", "https://api.helium.io/v1")
EXPLORER_URL = "https://explorer.helium.com"

PAYMENT_MINIMUM_AMOUNT = "0.4"  # HNT
MAX_HOTSPOTS = 30
MAX_TRANSACTIONS_PAGES = 300
TRANSACTIONS_PAGE_SIZE = 50
LOWEST_BLOCK_INDEX = 468000  # genesis is 1

PAST_DATE = datetime.fromtimestamp(0, tz=timezone.utc)
FOREVER_YEARS = 100

RUN_STAMP_FORMAT = "%Y%m%d%H%M%S"


class ConfigError(ValueError):
    pass


def parse_iso8601_utc(ts: str) -> datetime:
    """Parse an ISO-8601 string; naive values are taken as UTC.

    Extended and basic forms are accepted (2021-10-01T00:00:00.5Z,
    20211001T000000Z, 2021-10-01), as datetime.fromisoformat reads them on 3.11+.
    """
    if not isinstance(ts, str) or not ts.strip():
        raise ConfigError(f"Not an ISO 8601 string: {ts!r}")
    ts = ts.strip()
    try:
        dt = datetime.fromisoformat(ts)
    except ValueError:
        raise ConfigError(f"Not a valid ISO 8601 string: {ts!r}") from None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def iso_utc(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def from_epoch_seconds(seconds: Union[int, float]) -> datetime:
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def add_years(dt: datetime, years: int) -> datetime:
    try:
        return dt.replace(year=dt.year + years)
    except ValueError:
        # Feb 29 into a non-leap year
        return dt.replace(year=dt.year + years, day=28)


def future_date(run_start: datetime) -> datetime:
    return add_years(run_start, FOREVER_YEARS)


def parse_decimal(value: Any, what: str) -> Decimal:
    try:
        d = Decimal(str(value).strip())
    except (InvalidOperation, AttributeError):
        raise ConfigError(f"{what} is not a number: {value!r}") from None
    if not d.is_finite():
        raise ConfigError(f"{what} is not a finite number: {value!r}")
    return d


def parse_share(value: Any, what: str) -> Decimal:
    share = parse_decimal(value, what)
    if share < 0 or share > 1:
        raise ConfigError(f"{what} must be between 0 and 1: {value!r}")
    return share


def _positive_int(value: Any, what: str) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{what} must be an integer: {value!r}") from None
    if n < 1:
        raise ConfigError(f"{what} must be positive: {value!r}")
    return n


@dataclass
class ReportSettings:
    wallet: str
    report_start: datetime
    report_end: datetime
    memo: str
    payment_minimum: Decimal
    lowest_block: int = LOWEST_BLOCK_INDEX
    max_hotspots: int = MAX_HOTSPOTS
    max_pages: int = MAX_TRANSACTIONS_PAGES
    page_size: int = TRANSACTIONS_PAGE_SIZE
    run_start: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    out_dir: Path = Path(".")

    @classmethod
    def build(
        cls,
        wallet: str,
        report_start: str,
        report_end: str,
        memo: str,
        payment_minimum: Any = PAYMENT_MINIMUM_AMOUNT,
        lowest_block: Any = LOWEST_BLOCK_INDEX,
        max_hotspots: Any = MAX_HOTSPOTS,
        max_pages: Any = MAX_TRANSACTIONS_PAGES,
        page_size: Any = TRANSACTIONS_PAGE_SIZE,
        run_start: Optional[datetime] = None,
        out_dir: Union[str, Path] = ".",
    ) -> "ReportSettings":
        if not wallet:
            raise ConfigError("A wallet address is required")

        start = parse_iso8601_utc(report_start)
        end = parse_iso8601_utc(report_end)
        if start > end:
            raise ConfigError(
                f"Report start ({iso_utc(start)}) is later than report end ({iso_utc(end)})"
            )

        minimum = parse_decimal(payment_minimum, "Payment minimum")
        if minimum <= 0:
            raise ConfigError(f"Payment minimum must be positive: {payment_minimum!r}")

        return cls(
            wallet=wallet.strip(),
            report_start=start,
            report_end=end,
            memo=memo or "",
            payment_minimum=minimum,
            lowest_block=_positive_int(lowest_block, "Lowest block"),
            max_hotspots=_positive_int(max_hotspots, "Max hotspots"),
            max_pages=_positive_int(max_pages, "Max transaction pages"),
            page_size=_positive_int(page_size, "Page size"),
            run_start=run_start or datetime.now(timezone.utc),
            out_dir=Path(out_dir),
        )

    @property
    def period_stamp(self) -> str:
        return f"{self.report_start.strftime(RUN_STAMP_FORMAT)}-{self.report_end.strftime(RUN_STAMP_FORMAT)}"

    @property
    def run_stamp(self) -> str:
        return self.run_start.strftime(RUN_STAMP_FORMAT)

    @property
    def future_date(self) -> datetime:
        return future_date(self.run_start)
