from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
import secrets
import string
import time
from typing import Any, Iterator, Sequence


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def chunked(items: Sequence, size: int) -> Iterator[Sequence]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


def round_half_up(value: float, digits: int = 0) -> float | int:
    """Round the way dashboards expect (2.5 -> 3), not banker's rounding."""
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded) if digits == 0 else float(rounded)


def to_datetime(value: Any) -> datetime | None:
    """
    Normalise the timestamp shapes found in stored documents.

    Handles Firestore timestamps (datetime subclasses), serialized
    ``{"_seconds": ...}`` maps, ISO strings and epoch milliseconds.
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, dict) and "_seconds" in value:
        return datetime.fromtimestamp(value["_seconds"], tz=timezone.utc)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


def iso(value: datetime) -> str:
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def to_iso(value: Any) -> str:
    """ISO-8601 UTC string for any stored timestamp, '' when absent."""
    if isinstance(value, str):
        return value
    parsed = to_datetime(value)
    return iso(parsed) if parsed else ""


def to_iso_or_now(value: Any) -> str:
    return to_iso(value) or iso(utcnow())


def base36(number: int) -> str:
    alphabet = string.digits + string.ascii_uppercase
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(alphabet[remainder])
    return "".join(reversed(digits))


def generate_receipt_id(prefix: str = "COD") -> str:
    suffix = "".join(secrets.choice(string.ascii_uppercase + string.digits) for _ in range(4))
    return f"{prefix}-{base36(int(time.time() * 1000))}-{suffix}"
