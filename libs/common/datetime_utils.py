"""Timezone-aware timestamp helpers shared by models and services."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime.

    Used as the column default for every ``created_at``/``updated_at`` and for
    lifecycle timestamps such as ``cancelled_at``.
    """
    return datetime.now(timezone.utc)


def compact_timestamp(moment: datetime | None = None) -> str:
    """UTC ``yyyymmddHHMMSS`` stamp used in human readable identifiers."""
    return (moment or utc_now()).astimezone(timezone.utc).strftime("%Y%m%d%H%M%S")
