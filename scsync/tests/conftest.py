"""
Shared fixtures: isolated data dir, blank environment credentials, fake API services.
"""
import pytest

from scsync.settings import settings

TEST_SECRET = "test-secret-for-sc-credentials"


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point every test at its own data dir with no ambient credentials."""
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    monkeypatch.setattr(settings, "DATA_DIR", str(data_dir))
    monkeypatch.setattr(settings, "SECRET", TEST_SECRET)
    monkeypatch.setattr(settings, "SEARCH_CONSOLE_CLIENT_EMAIL", "")
    monkeypatch.setattr(settings, "SEARCH_CONSOLE_PRIVATE_KEY", "")
    monkeypatch.setattr(settings, "CRON_TIMEZONE", "America/New_York")
    monkeypatch.setattr(settings, "SC_FETCH_WINDOWS_CONCURRENTLY", False)
    return data_dir


class FakeSearchConsoleService:
    """Stands in for SearchConsoleClient; records every query."""

    def __init__(self, response=None, error=None):
        self.response = response if response is not None else {}
        self.error = error
        self.calls = []

    def query(self, site_url, request_body):
        self.calls.append((site_url, request_body))
        if self.error:
            raise self.error
        return self.response


@pytest.fixture
def fake_service():
    return FakeSearchConsoleService
