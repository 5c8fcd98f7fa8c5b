"""
Time helpers. All stored timestamps are naive UTC datetimes.
"""
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current UTC time as a naive datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def from_epoch_seconds(value: float) -> datetime:
    """
    Convert a device-supplied epoch timestamp to a naive UTC datetime.
    Values the platform cannot represent raise ValueError.
    """
    try:
        return datetime.fromtimestamp(value, tz=timezone.utc).replace(tzinfo=None)
    except (OverflowError, OSError, ValueError) as e:
        raise ValueError(f"timestamp {value!r} is out of range") from e
