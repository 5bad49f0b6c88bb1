from __future__ import annotations
"""
Search Console Sync Engine

Per-domain flow:
  credentials -> 3 keyword windows (3/7/30 days) -> 30 day stat series -> snapshot write

A sync replaces the snapshot wholesale. Only lastFetched survives from the
previous snapshot, so a window that fails this pass comes back empty with the
reason in lastFetchError.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from scsync.auth.credential_resolver import (
    get_search_console_api_info,
    resolve_search_console_credentials,
)
from scsync.auth.credentials_model import SCCredentials
from scsync.config.date_windows import INTEGRATION_CHECK_DAYS, SC_WINDOWS, STAT_WINDOW_DAYS
from scsync.gsc_client import STAT_MODE, FetchError, FetchResult, fetch_search_console_data
from scsync.models import DomainRecord, empty_sc_snapshot
from scsync.sc_data_store import SCDataStore, default_store
from scsync.settings import settings
from scsync.utils.windows import is_search_console_data_fresh_for_today, utc_now_json

Fetcher = Callable[..., FetchResult]

NOT_INTEGRATED_ERROR = 'Google Search Console is not Integrated.'
FETCH_STATS_ERROR = 'Error Fetching Stats from Google Search Console.'


def log_sync(domain: str, message: str, level: str = "INFO"):
    """Log with timestamp and domain context"""
    timestamp = datetime.now().strftime("%H:%M:%S")
    prefix = {
        "INFO": "ℹ️ ",
        "SUCCESS": "✅",
        "ERROR": "❌",
        "WARNING": "⚠️ ",
        "PROGRESS": "⏳"
    }.get(level, "")
    print(f"[{timestamp}] [SC_SYNC] [DOMAIN: {domain}] {prefix} {message}")


def _fetch_windows(
    domain: DomainRecord,
    credentials: SCCredentials,
    fetcher: Fetcher,
) -> List[Tuple[int, FetchResult]]:
    """Fetch every keyword window, returned in window order"""
    days_list = list(SC_WINDOWS.keys())

    if settings.SC_FETCH_WINDOWS_CONCURRENTLY:
        with ThreadPoolExecutor(max_workers=len(days_list)) as executor:
            futures = [
                executor.submit(fetcher, domain, days, None, credentials)
                for days in days_list
            ]
            return [(days, future.result()) for days, future in zip(days_list, futures)]

    return [(days, fetcher(domain, days, None, credentials)) for days in days_list]


def fetch_domain_sc_data(
    domain: Optional[DomainRecord],
    sc_domain_api: Optional[SCCredentials] = None,
    sc_global_api: Optional[SCCredentials] = None,
    store: Optional[SCDataStore] = None,
    fetcher: Optional[Fetcher] = None,
) -> Optional[Dict[str, Any]]:
    """
    Sync a domain's Search Console data and persist the snapshot.
    Domain level credentials take precedence over global credentials.

    Args:
        domain: Domain record to sync. None is a no-op.
        sc_domain_api: Domain specific credentials
        sc_global_api: Global credentials used as fallback
        store: Snapshot store (defaults to the file store)
        fetcher: Window fetch function (defaults to fetch_search_console_data)

    Returns:
        The new snapshot; the unfetched snapshot when no credentials are usable;
        None when domain is None or the snapshot could not be written.
    """
    if domain is None:
        return None

    store = store or default_store
    fetcher = fetcher or fetch_search_console_data
    domain_name = domain.domain

    existing_data = store.read(domain_name) or empty_sc_snapshot()
    sc_domain_data = empty_sc_snapshot()
    sc_domain_data['lastFetched'] = existing_data.get('lastFetched') or ''

    api_creds = resolve_search_console_credentials(sc_domain_api, sc_global_api)
    if not api_creds or not api_creds.is_complete:
        log_sync(domain_name, "No usable Search Console credentials, skipping fetch", "WARNING")
        return sc_domain_data

    log_sync(domain_name, "Fetching Search Console windows...", "PROGRESS")

    for days, items in _fetch_windows(domain, api_creds, fetcher):
        if isinstance(items, FetchError):
            sc_domain_data['lastFetchError'] = items.error_msg
            log_sync(domain_name, f"{days} day window failed: {items.error_msg}", "ERROR")
        elif items:
            sc_domain_data['lastFetched'] = utc_now_json()
            sc_domain_data[SC_WINDOWS[days]] = items
            log_sync(domain_name, f"{days} day window: {len(items)} rows")

    stats = fetcher(domain, STAT_WINDOW_DAYS, STAT_MODE, api_creds)
    if isinstance(stats, list) and stats:
        sc_domain_data['stats'] = stats

    if store.write(domain_name, sc_domain_data) is False:
        log_sync(domain_name, "Snapshot could not be written", "ERROR")
        return None

    log_sync(domain_name, "Search Console data synced", "SUCCESS")
    return sc_domain_data


def check_search_console_integration(
    domain: DomainRecord,
    fetcher: Optional[Fetcher] = None,
) -> Dict[str, Any]:
    """
    Validate the credentials stored on a domain with a small 3 day fetch.

    Returns:
        {'isValid': bool, 'error': str}
    """
    fetcher = fetcher or fetch_search_console_data
    res = {'isValid': False, 'error': ''}

    try:
        sc_settings = domain.search_console_settings() if domain else {}
    except ValueError as e:
        res['error'] = f"Invalid Search Console settings: {e}"
        return res

    credentials = SCCredentials(
        client_email=sc_settings.get('client_email') or '',
        private_key=sc_settings.get('private_key') or '',
    )
    response = fetcher(domain, INTEGRATION_CHECK_DAYS, None, credentials)
    if isinstance(response, list):
        res['isValid'] = True
    elif isinstance(response, FetchError) and response.error_msg:
        res['error'] = response.error_msg
    return res


def _has_window_data(snapshot: Dict[str, Any]) -> bool:
    return any(snapshot.get(key) for key in SC_WINDOWS.values())


def load_domain_sc_data(
    domain: DomainRecord,
    store: Optional[SCDataStore] = None,
    fetcher: Optional[Fetcher] = None,
    credential_lookup: Optional[Callable[[Optional[DomainRecord]], SCCredentials]] = None,
) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
    """
    Read path used by dashboard callers: serve today's cached snapshot,
    otherwise sync first.

    Returns:
        (snapshot, error). Exactly one of them is None.
    """
    store = store or default_store
    credential_lookup = credential_lookup or get_search_console_api_info
    domain_name = domain.domain

    local_sc_data = store.read(domain_name)
    if local_sc_data and _has_window_data(local_sc_data) \
            and is_search_console_data_fresh_for_today(local_sc_data.get('lastFetched')):
        return local_sc_data, None

    sc_domain_api = credential_lookup(domain) if domain.search_console else SCCredentials()
    sc_global_api = credential_lookup(None)
    if not sc_domain_api.is_complete and not sc_global_api.is_complete:
        return None, NOT_INTEGRATED_ERROR

    sc_data = fetch_domain_sc_data(domain, sc_domain_api, sc_global_api, store=store, fetcher=fetcher)
    if sc_data and sc_data.get('thirtyDays'):
        return sc_data, None
    return None, FETCH_STATS_ERROR
