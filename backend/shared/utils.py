import re
from datetime import datetime, timedelta, timezone

from dateutil import parser as date_parser

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(dt: datetime) -> str:
    """Format a datetime as a second-precision UTC ISO string.

    Stored timestamps all use this format so they compare correctly as strings.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="seconds")


def timestamp_days_ago(days: int) -> str:
    """Cutoff timestamp for retention windows."""
    return format_timestamp(utc_now() - timedelta(days=days))


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """Parse a stored timestamp into an aware datetime (UTC assumed when naive)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = date_parser.isoparse(value)
        except (ValueError, OverflowError, TypeError):
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def is_valid_email(value: str | None) -> bool:
    if not value or not isinstance(value, str):
        return False
    return EMAIL_PATTERN.match(value.strip()) is not None


def parse_price(value: str | int | float | None) -> float | None:
    """
    Parse a displayed price ("$1,250,000") into a number.

    Returns None for missing, unparsable, or non-positive prices.
    """
    if value is None:
        return None
    if isinstance(value, (int, float)):
        price = float(value)
    else:
        cleaned = value.replace("$", "").replace(",", "").strip()
        try:
            price = float(cleaned)
        except ValueError:
            return None
    return price if price > 0 else None


def print_summary(title: str, stats: dict[str, int]) -> None:
    """Print processing summary."""
    print(f"\n{'=' * 60}")
    print(f"[{datetime.now()}] {title}")
    print(f"{'=' * 60}")
    for label, value in stats.items():
        print(f"{label + ':':<10}{value}")
    print(f"{'=' * 60}\n")
