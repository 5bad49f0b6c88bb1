"""
Test the per-domain sync orchestration, integration check and read path.
"""
import json

from scsync.auth.credentials_model import SCCredentials
from scsync.gsc_client import FetchError
from scsync.models import DomainRecord, empty_sc_snapshot
from scsync.sc_data_store import InMemorySCDataStore
from scsync.settings import settings
from scsync.sync_engine import (
    FETCH_STATS_ERROR,
    NOT_INTEGRATED_ERROR,
    check_search_console_integration,
    fetch_domain_sc_data,
    load_domain_sc_data,
)
from scsync.utils.windows import utc_now_json

DOMAIN = DomainRecord("example.com")
DOMAIN_CREDS = SCCredentials("domain@example.com", "domain-key")
GLOBAL_CREDS = SCCredentials("global@example.com", "global-key")


def _item(keyword, days):
    return {"keyword": keyword, "uid": f"us:desktop:{keyword}", "device": "desktop", "country": "US",
            "clicks": days, "impressions": days * 10, "ctr": 10.0, "position": 2.0, "page": ""}


class RecordingFetcher:
    """Fake window fetcher. `results` maps (days, mode) to a result."""

    def __init__(self, results=None):
        self.results = results or {}
        self.calls = []

    def __call__(self, domain, days, mode=None, credentials=None):
        self.calls.append((days, mode, credentials))
        if (days, mode) in self.results:
            return self.results[(days, mode)]
        if mode == "stat":
            return [{"date": "2024-05-01", "clicks": 1, "impressions": 2, "ctr": 50.0, "position": 1.0}]
        return [_item("shoes", days)]


class FailingWriteStore(InMemorySCDataStore):
    def _save(self, path, content):
        raise OSError("disk full")


def test_none_domain_is_noop():
    assert fetch_domain_sc_data(None, DOMAIN_CREDS, GLOBAL_CREDS) is None


def test_sync_fills_every_window():
    store = InMemorySCDataStore()
    fetcher = RecordingFetcher()

    result = fetch_domain_sc_data(DOMAIN, DOMAIN_CREDS, GLOBAL_CREDS, store=store, fetcher=fetcher)

    assert result["threeDays"] == [_item("shoes", 3)]
    assert result["sevenDays"] == [_item("shoes", 7)]
    assert result["thirtyDays"] == [_item("shoes", 30)]
    assert result["stats"][0]["date"] == "2024-05-01"
    assert result["lastFetched"].endswith("Z")
    assert result["lastFetchError"] == ""
    assert [(days, mode) for days, mode, _ in fetcher.calls] == [(3, None), (7, None), (30, None), (30, "stat")]
    assert store.read("example.com") == result


def test_domain_credentials_take_precedence():
    fetcher = RecordingFetcher()
    fetch_domain_sc_data(DOMAIN, DOMAIN_CREDS, GLOBAL_CREDS, store=InMemorySCDataStore(), fetcher=fetcher)
    assert {creds.client_email for _, _, creds in fetcher.calls} == {"domain@example.com"}


def test_global_credentials_used_when_domain_incomplete():
    fetcher = RecordingFetcher()
    fetch_domain_sc_data(DOMAIN, SCCredentials("domain@example.com", ""), GLOBAL_CREDS,
                         store=InMemorySCDataStore(), fetcher=fetcher)
    assert {creds.client_email for _, _, creds in fetcher.calls} == {"global@example.com"}


def test_no_credentials_returns_unfetched_snapshot():
    store = InMemorySCDataStore()
    previous = empty_sc_snapshot()
    previous["lastFetched"] = "2024-04-01T00:00:00.000Z"
    previous["threeDays"] = [_item("old", 3)]
    store.write("example.com", previous)
    fetcher = RecordingFetcher()

    result = fetch_domain_sc_data(DOMAIN, SCCredentials(), None, store=store, fetcher=fetcher)

    assert fetcher.calls == []
    assert result["lastFetched"] == "2024-04-01T00:00:00.000Z"
    assert result["threeDays"] == []
    # Nothing new is persisted
    assert store.read("example.com") == previous


def test_failed_window_is_empty_and_error_recorded():
    fetcher = RecordingFetcher({(7, None): FetchError("Quota exceeded")})
    result = fetch_domain_sc_data(DOMAIN, DOMAIN_CREDS, None, store=InMemorySCDataStore(), fetcher=fetcher)

    assert result["threeDays"] == [_item("shoes", 3)]
    assert result["sevenDays"] == []
    assert result["thirtyDays"] == [_item("shoes", 30)]
    assert result["lastFetchError"] == "Quota exceeded"


def test_last_fetch_error_wins():
    fetcher = RecordingFetcher({
        (3, None): FetchError("first failure"),
        (30, None): FetchError("last failure"),
    })
    result = fetch_domain_sc_data(DOMAIN, DOMAIN_CREDS, None, store=InMemorySCDataStore(), fetcher=fetcher)
    assert result["lastFetchError"] == "last failure"
    assert result["sevenDays"] == [_item("shoes", 7)]


def test_all_windows_failing_keeps_previous_last_fetched():
    store = InMemorySCDataStore()
    previous = empty_sc_snapshot()
    previous["lastFetched"] = "2024-04-01T00:00:00.000Z"
    previous["thirtyDays"] = [_item("old", 30)]
    store.write("example.com", previous)
    error = FetchError("Unauthorized")
    fetcher = RecordingFetcher({(3, None): error, (7, None): error, (30, None): error, (30, "stat"): error})

    result = fetch_domain_sc_data(DOMAIN, DOMAIN_CREDS, None, store=store, fetcher=fetcher)

    assert result["lastFetched"] == "2024-04-01T00:00:00.000Z"
    assert result["thirtyDays"] == []
    assert result["stats"] == []
    assert result["lastFetchError"] == "Unauthorized"


def test_empty_window_does_not_stamp_last_fetched():
    fetcher = RecordingFetcher({(3, None): [], (7, None): [], (30, None): []})
    result = fetch_domain_sc_data(DOMAIN, DOMAIN_CREDS, None, store=InMemorySCDataStore(), fetcher=fetcher)
    assert result["lastFetched"] == ""
    assert result["lastFetchError"] == ""


def test_write_failure_returns_none():
    result = fetch_domain_sc_data(DOMAIN, DOMAIN_CREDS, None, store=FailingWriteStore(), fetcher=RecordingFetcher())
    assert result is None


def test_concurrent_window_fetches_keep_attribution(monkeypatch):
    monkeypatch.setattr(settings, "SC_FETCH_WINDOWS_CONCURRENTLY", True)
    fetcher = RecordingFetcher({(7, None): FetchError("seven failed")})

    result = fetch_domain_sc_data(DOMAIN, DOMAIN_CREDS, None, store=InMemorySCDataStore(), fetcher=fetcher)

    assert result["threeDays"] == [_item("shoes", 3)]
    assert result["sevenDays"] == []
    assert result["thirtyDays"] == [_item("shoes", 30)]
    assert result["lastFetchError"] == "seven failed"


def test_sync_writes_file_with_default_store(isolated_settings):
    fetch_domain_sc_data(DOMAIN, DOMAIN_CREDS, None, fetcher=RecordingFetcher())
    saved = json.loads((isolated_settings / "SC_example.com.json").read_text(encoding="utf-8"))
    assert saved["sevenDays"] == [_item("shoes", 7)]


def test_check_integration_valid():
    domain = DomainRecord("example.com", json.dumps({"client_email": "a@b.c", "private_key": "key"}))
    fetcher = RecordingFetcher()

    assert check_search_console_integration(domain, fetcher=fetcher) == {"isValid": True, "error": ""}
    days, mode, creds = fetcher.calls[0]
    assert (days, mode) == (3, None)
    assert creds == SCCredentials("a@b.c", "key")


def test_check_integration_invalid():
    domain = DomainRecord("example.com", json.dumps({"client_email": "a@b.c", "private_key": "key"}))
    fetcher = RecordingFetcher({(3, None): FetchError("invalid_grant. Invalid JWT Signature.")})
    result = check_search_console_integration(domain, fetcher=fetcher)
    assert result == {"isValid": False, "error": "invalid_grant. Invalid JWT Signature."}


def test_check_integration_malformed_settings():
    result = check_search_console_integration(DomainRecord("example.com", "{nope"), fetcher=RecordingFetcher())
    assert result["isValid"] is False
    assert result["error"].startswith("Invalid Search Console settings")


def test_load_serves_fresh_cache_without_fetching():
    store = InMemorySCDataStore()
    cached = empty_sc_snapshot()
    cached["thirtyDays"] = [_item("shoes", 30)]
    cached["lastFetched"] = utc_now_json()
    store.write("example.com", cached)
    fetcher = RecordingFetcher()

    data, error = load_domain_sc_data(DOMAIN, store=store, fetcher=fetcher,
                                      credential_lookup=lambda domain: GLOBAL_CREDS)

    assert (data, error) == (cached, None)
    assert fetcher.calls == []


def test_load_syncs_stale_cache():
    store = InMemorySCDataStore()
    cached = empty_sc_snapshot()
    cached["thirtyDays"] = [_item("old", 30)]
    cached["lastFetched"] = "2020-01-01T00:00:00.000Z"
    store.write("example.com", cached)
    fetcher = RecordingFetcher()

    data, error = load_domain_sc_data(DOMAIN, store=store, fetcher=fetcher,
                                      credential_lookup=lambda domain: GLOBAL_CREDS)

    assert error is None
    assert data["thirtyDays"] == [_item("shoes", 30)]
    assert len(fetcher.calls) == 4


def test_load_without_credentials():
    data, error = load_domain_sc_data(DOMAIN, store=InMemorySCDataStore(), fetcher=RecordingFetcher(),
                                      credential_lookup=lambda domain: SCCredentials())
    assert (data, error) == (None, NOT_INTEGRATED_ERROR)


def test_load_reports_fetch_failure():
    fetcher = RecordingFetcher({(30, None): FetchError("Backend Error")})
    data, error = load_domain_sc_data(DOMAIN, store=InMemorySCDataStore(), fetcher=fetcher,
                                      credential_lookup=lambda domain: GLOBAL_CREDS)
    assert (data, error) == (None, FETCH_STATS_ERROR)


def test_sync_survives_non_object_cache(isolated_settings):
    (isolated_settings / "SC_example.com.json").write_text('"oops"', encoding="utf-8")

    result = fetch_domain_sc_data(DOMAIN, DOMAIN_CREDS, None, fetcher=RecordingFetcher())

    assert result["thirtyDays"] == [_item("shoes", 30)]
    saved = json.loads((isolated_settings / "SC_example.com.json").read_text(encoding="utf-8"))
    assert saved["threeDays"] == [_item("shoes", 3)]


def test_load_survives_non_object_cache(isolated_settings):
    (isolated_settings / "SC_example.com.json").write_text("[1]", encoding="utf-8")

    data, error = load_domain_sc_data(DOMAIN, fetcher=RecordingFetcher(),
                                      credential_lookup=lambda domain: GLOBAL_CREDS)

    assert error is None
    assert data["thirtyDays"] == [_item("shoes", 30)]
