"""
Date and time utility functions for HealthFlow.
"""

from datetime import datetime, timezone


def get_current_timestamp() -> datetime:
    """Get current UTC timestamp."""
    return datetime.now(timezone.utc)


def ensure_utc(timestamp: datetime) -> datetime:
    """Treat naive timestamps as UTC."""
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp
