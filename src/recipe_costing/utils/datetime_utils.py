"""Datetime utilities for timezone-aware UTC timestamps.

Usage:
    from recipe_costing.utils.datetime_utils import utc_now

    # For SQLAlchemy Column defaults
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)
