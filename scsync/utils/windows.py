from __future__ import annotations
"""
Date window and freshness logic for Search Console snapshots.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Optional, Tuple

import pytz

from scsync.settings import settings

DEFAULT_CRON_TIMEZONE = "America/New_York"


def build_date_range(days: int, today: Optional[date] = None) -> Tuple[str, str]:
    """Return (start, end) as YYYY-MM-DD covering [today - days, today]"""
    end_date = today or date.today()
    start_date = end_date - timedelta(days=days)
    return start_date.strftime('%Y-%m-%d'), end_date.strftime('%Y-%m-%d')


def utc_now_json(now: Optional[datetime] = None) -> str:
    """UTC timestamp in the YYYY-MM-DDTHH:MM:SS.mmmZ shape stored as lastFetched"""
    current = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return current.strftime('%Y-%m-%dT%H:%M:%S.') + f"{current.microsecond // 1000:03d}Z"


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp into an aware datetime. Naive values are taken as UTC."""
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith(('Z', 'z')):
        text = text[:-1] + '+00:00'
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _get_timezone(timezone_setting: Optional[str]):
    name = timezone_setting or settings.CRON_TIMEZONE or DEFAULT_CRON_TIMEZONE
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        print(f"[SEARCH_CONSOLE] Unknown timezone '{name}', using {DEFAULT_CRON_TIMEZONE}")
        return pytz.timezone(DEFAULT_CRON_TIMEZONE)


def is_search_console_data_fresh_for_today(
    last_fetched: Optional[str],
    timezone_setting: Optional[str] = None,
    now: Optional[datetime] = None,
) -> bool:
    """
    True only when last_fetched falls on the same calendar day as now,
    both evaluated in the configured zone (CRON_TIMEZONE by default).
    Empty or unparseable timestamps are never fresh.
    """
    parsed = parse_timestamp(last_fetched)
    if parsed is None:
        return False

    tz = _get_timezone(timezone_setting)
    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)

    return parsed.astimezone(tz).date() == current.astimezone(tz).date()
