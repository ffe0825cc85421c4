"""
Date and label formatting shared by every report page.

All timestamps are shown in UTC. Naive datetimes coming from the database are
already UTC.
"""

from datetime import date, datetime, timezone
from typing import Optional, Union


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc)


def format_long_date(value: Optional[Union[date, datetime]], missing: str = "N/A") -> str:
    """5 March 2025"""
    if value is None:
        return missing
    if isinstance(value, datetime):
        value = _as_utc(value)
    return f"{value.day} {value.strftime('%B %Y')}"


def format_short_date(value: Optional[Union[date, datetime]], missing: str = "N/A") -> str:
    """05/03/2025"""
    if value is None:
        return missing
    if isinstance(value, datetime):
        value = _as_utc(value)
    return value.strftime("%d/%m/%Y")


def format_timestamp(value: datetime) -> str:
    """05 Mar 2025 14:32"""
    return _as_utc(value).strftime("%d %b %Y %H:%M")


def upload_label(value: datetime) -> str:
    return f"Uploaded: {format_timestamp(value)} (UTC)"


def type_label(asset_type: str) -> str:
    """checkin_photo -> checkin, walkthrough_video -> walkthrough video"""
    return asset_type.replace("_photo", "").replace("_", " ")


def plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"
