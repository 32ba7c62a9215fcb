"""
Timezone-aware datetime helpers.
- Store instants as UTC datetimes or epoch milliseconds.
- Shift rules and API responses use the deployment timezone (settings.APP_TIMEZONE).
"""
from datetime import datetime, timezone
from typing import Optional

from app.core.config import settings

UTC = timezone.utc


def now_utc() -> datetime:
    """Current time in UTC (timezone-aware)."""
    return datetime.now(UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """If dt is naive, treat as UTC and return timezone-aware UTC. If already aware, convert to UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def to_local(dt: Optional[datetime]) -> Optional[datetime]:
    """Convert to the deployment timezone. Naive datetimes are treated as UTC before converting."""
    if dt is None:
        return None
    return ensure_utc(dt).astimezone(settings.get_timezone())


def iso_local(dt: Optional[datetime]) -> Optional[str]:
    """ISO-8601 in the deployment timezone, with offset."""
    if dt is None:
        return None
    return to_local(dt).isoformat()


def to_epoch_ms(dt: datetime) -> int:
    """Epoch milliseconds for a datetime (naive = UTC)."""
    return int(ensure_utc(dt).timestamp() * 1000)


def from_epoch_ms(ms: int) -> datetime:
    """UTC datetime for epoch milliseconds."""
    return datetime.fromtimestamp(ms / 1000, tz=UTC)
