# rentals/utils/dates.py
from datetime import datetime, timezone


def as_utc(value: datetime | None) -> datetime | None:
    """Naive timestamps (e.g. read back from SQLite) are taken to be UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
