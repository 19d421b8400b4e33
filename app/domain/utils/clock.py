from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def current_year() -> int:
    return utc_now().year


def epoch_seconds(dt: datetime | None = None) -> int:
    return int((dt or utc_now()).timestamp())


def as_utc(dt: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes read back from storage."""
    if dt is None or dt.tzinfo is not None:
        return dt
    return dt.replace(tzinfo=timezone.utc)
