"""
Utility functions for number parsing, abbreviation and timestamps.
"""
import math
import re
from datetime import datetime, timezone
from typing import Any, Optional

SUFFIXES = ["", "K", "M", "B", "T"]


def utc_now() -> datetime:
    """Return the current UTC time as an aware datetime."""
    return datetime.now(timezone.utc)


def clean_text(s: Optional[str]) -> str:
    """Clean and normalize text by removing extra whitespace."""
    if not s:
        return ""
    s = re.sub(r"\s+", " ", s)
    return s.strip()


def to_float(value: Any) -> Optional[float]:
    """Safely convert a value to float."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def to_int(value: Any) -> Optional[int]:
    """
    Parse an integer the way a number input does.

    Accepts ints, integral floats and digit strings with an optional sign
    and trailing junk ("12abc" -> 12). Returns None when nothing parses.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value == value and value not in (float("inf"), float("-inf")) else None
    m = re.match(r"\s*([+-]?\d+)", str(value))
    if not m:
        return None
    return int(m.group(1))


def _significant(n: float, digits: int):
    """Round a non-negative number to `digits` significant digits; returns (value, decimals)."""
    if n == 0:
        return 0.0, 0
    decimals = max(0, digits - 1 - math.floor(math.log10(n)))
    return round(n, decimals), decimals


def abbreviate(value: float, digits: int = 3) -> str:
    """
    Abbreviate a number with 1000-based suffixes, keeping at most `digits`
    significant digits.

    1250000 -> "1.25M", 123456 -> "123K", 85000 -> "85K", 999 -> "999".
    """
    if value is None:
        return "0"
    sign = "-" if value < 0 else ""
    n = abs(float(value))
    unit = 0
    while n >= 1000 and unit < len(SUFFIXES) - 1:
        n /= 1000.0
        unit += 1
    n, decimals = _significant(n, digits)
    # 999_999 rounds up to 1000K; carry into the next unit
    if n >= 1000 and unit < len(SUFFIXES) - 1:
        n, decimals = _significant(n / 1000.0, digits)
        unit += 1
    text = f"{n:.{decimals}f}"
    if decimals:
        text = text.rstrip("0").rstrip(".")
    return f"{sign}{text}{SUFFIXES[unit]}"


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse epoch seconds or an ISO-8601 string into an aware UTC datetime."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    text = str(value).strip()
    epoch = to_float(text)
    if epoch is not None:
        return parse_timestamp(epoch)
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
