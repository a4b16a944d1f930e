"""Shared utilities."""

from datetime import datetime, timezone


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def ensure_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes (e.g. read back from SQLite) as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
