from datetime import datetime, timezone


def utc_now() -> datetime:
    """Naive UTC timestamp (DB columns are stored without tzinfo)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
