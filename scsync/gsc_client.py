from __future__ import annotations
"""
Google Search Console API Client
Service account authentication, Search Analytics queries and row normalization
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union
from urllib.parse import urlsplit

import httplib2
from google.oauth2 import service_account
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from scsync.auth.credentials_model import SCCredentials
from scsync.config.date_windows import SC_DATA_STATE, SC_ROW_LIMIT
from scsync.models import DomainRecord
from scsync.settings import settings
from scsync.utils.countries import get_country_code_from_alpha_three
from scsync.utils.windows import build_date_range

SCOPES = ['https://www.googleapis.com/auth/webmasters.readonly']

STAT_MODE = 'stat'

DEFAULT_PORTS = {'http': ':80', 'https': ':443'}


class AuthError(Exception):
    """Raised when service account credentials cannot be turned into an API client"""
    pass


@dataclass
class FetchError:
    """Tagged failure result of a Search Analytics fetch"""
    error_msg: str
    error: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {'error': self.error, 'errorMsg': self.error_msg}


FetchResult = Union[List[Dict[str, Any]], FetchError]


def build_sc_uid(country: str, device: str, keyword: str) -> str:
    """Composite join key shared by analytics items and tracked keywords"""
    return f"{(country or '').lower()}:{device}:{(keyword or '').replace(' ', '_')}"


class SearchConsoleClient:
    """Client for the Search Console API authenticated with a service account"""

    def __init__(self, credentials: SCCredentials, timeout: Optional[int] = None):
        self.timeout = timeout if timeout is not None else settings.SC_REQUEST_TIMEOUT
        self.credentials = self._load_credentials(credentials)
        self.service = self._init_service()

    def _load_credentials(self, credentials: SCCredentials) -> service_account.Credentials:
        if not credentials or not credentials.is_complete:
            raise AuthError("Search Console API data is not available.")
        try:
            return service_account.Credentials.from_service_account_info(
                credentials.to_service_account_info(),
                scopes=SCOPES,
            )
        except (ValueError, KeyError) as e:
            raise AuthError(f"Invalid Search Console service account credentials: {e}") from e

    def _init_service(self):
        # Bounded transport timeout; a hung socket surfaces as an exception
        http = AuthorizedHttp(self.credentials, http=httplib2.Http(timeout=self.timeout))
        return build("searchconsole", "v1", http=http, cache_discovery=False)

    def query(self, site_url: str, request_body: Dict[str, Any]) -> Dict[str, Any]:
        return self.service.searchanalytics().query(
            siteUrl=site_url,
            body=request_body
        ).execute()


def build_search_console_service(credentials: SCCredentials) -> SearchConsoleClient:
    return SearchConsoleClient(credentials)


def get_site_url(domain: DomainRecord) -> str:
    """URL-prefix properties use their stored url, everything else the domain property"""
    try:
        sc_settings = domain.search_console_settings()
    except ValueError:
        sc_settings = {}
    if sc_settings.get('property_type') == 'url' and sc_settings.get('url'):
        return sc_settings['url']
    return f"sc-domain:{domain.domain}"


def build_request_body(days: int, mode: Optional[str] = None) -> Dict[str, Any]:
    start_date, end_date = build_date_range(days)
    if mode == STAT_MODE:
        return {
            'startDate': start_date,
            'endDate': end_date,
            'dataState': SC_DATA_STATE,
            'dimensions': ['date'],
        }
    return {
        'startDate': start_date,
        'endDate': end_date,
        'type': 'web',
        'rowLimit': SC_ROW_LIMIT,
        'dataState': SC_DATA_STATE,
        'dimensions': ['query', 'device', 'country', 'page'],
    }


def _describe_error(e: Exception) -> str:
    if isinstance(e, HttpError):
        status_text = getattr(e.resp, 'reason', '') or str(getattr(e, 'status_code', ''))
        detail = getattr(e, 'reason', '')
        return f"{status_text}. {detail}"
    return str(e) or type(e).__name__


def fetch_search_console_data(
    domain: Optional[DomainRecord],
    days: int,
    mode: Optional[str] = None,
    credentials: Optional[SCCredentials] = None,
    service_builder: Optional[Callable[[SCCredentials], Any]] = None,
) -> FetchResult:
    """
    Fetch one Search Analytics window for a domain.

    Args:
        domain: Domain record to query
        days: Lookback window in days
        mode: None for keyword rows, 'stat' for the daily aggregate series
        credentials: Service account pair to authenticate with
        service_builder: Factory returning an object with query(site_url, body)

    Returns:
        List of normalized rows, or FetchError. Never raises.
    """
    if not domain or not domain.domain:
        return FetchError('Domain Not Provided!')
    if not credentials or not credentials.is_complete:
        return FetchError('Search Console API data is not available.')

    domain_name = domain.domain
    query_type = '(stats)' if mode == STAT_MODE else f"({days}days)"

    try:
        client = (service_builder or build_search_console_service)(credentials)
        response = client.query(get_site_url(domain), build_request_body(days, mode))
        rows = (response or {}).get('rows', []) or []

        if mode == STAT_MODE:
            return [parse_search_console_stat(row) for row in rows]
        return [parse_search_console_item(row, domain_name) for row in rows]

    except Exception as e:
        error_msg = _describe_error(e)
        print(f"[ERROR] Search Console API Error for {domain_name} {query_type} : {error_msg}")
        return FetchError(error_msg)


def _normalize_page(raw_page: str, domain_name: str) -> str:
    normalized_domain = domain_name.lower()
    page = ''

    if raw_page:
        try:
            url = urlsplit(raw_page)
            if not url.scheme or not url.netloc:
                raise ValueError(f"Not an absolute URL: {raw_page}")
            host = url.netloc.rsplit('@', 1)[-1].lower()
            # Default ports are not part of the host
            default_port = DEFAULT_PORTS.get(url.scheme.lower())
            if default_port and host.endswith(default_port):
                host = host[:-len(default_port)]
            is_root_domain = host in (normalized_domain, f"www.{normalized_domain}")
            host_without_www = host[4:] if host.startswith('www.') else host
            suffix = url.path
            if url.query:
                suffix += f"?{url.query}"
            if url.fragment:
                suffix += f"#{url.fragment}"
            page = suffix if is_root_domain else f"{host_without_www}{suffix}"
        except ValueError:
            without_protocol = re.sub(r'^https?://(?:www\.)?', '', raw_page, flags=re.IGNORECASE)
            escaped = re.escape(normalized_domain)
            page = re.sub(rf'^(?:{escaped}|www\.{escaped})', '', without_protocol, flags=re.IGNORECASE)

    if page in ('/', ''):
        return ''
    if not page.startswith('/'):
        return f"/{page}"
    return page


def parse_search_console_item(row: Dict[str, Any], domain_name: str) -> Dict[str, Any]:
    """Normalize a raw [query, device, country, page] row into an analytics item"""
    keys = row.get('keys') or []
    clicks = row.get('clicks', 0) or 0
    impressions = row.get('impressions', 0) or 0
    ctr = row.get('ctr', 0) or 0
    position = row.get('position', 0) or 0

    keyword = keys[0] if len(keys) > 0 else ''
    device = keys[1].lower() if len(keys) > 1 and keys[1] else 'desktop'
    raw_country = keys[2] if len(keys) > 2 else ''
    if raw_country:
        country = get_country_code_from_alpha_three(raw_country) or raw_country.upper()
    else:
        country = 'ZZ'
    page = _normalize_page(keys[3] if len(keys) > 3 and keys[3] else '', domain_name)

    return {
        'keyword': keyword,
        'uid': build_sc_uid(country, device, keyword),
        'device': device,
        'country': country,
        'clicks': clicks,
        'impressions': impressions,
        'ctr': ctr * 100,
        'position': position,
        'page': page,
    }


def parse_search_console_stat(row: Dict[str, Any]) -> Dict[str, Any]:
    """Normalize a raw [date] row into a daily stat item"""
    keys = row.get('keys') or ['']
    return {
        'date': keys[0],
        'clicks': row.get('clicks', 0) or 0,
        'impressions': row.get('impressions', 0) or 0,
        'ctr': (row.get('ctr', 0) or 0) * 100,
        'position': row.get('position', 0) or 0,
    }
