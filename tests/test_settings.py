"""
Tests for configuration loading.
"""

import pytest

from personal_finance.config import (
    AppSettings,
    AuthSettings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)
from personal_finance.orchestrator import create_store
from personal_finance.services.storage import InMemoryDocumentStore


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:

    def test_app_defaults(self, monkeypatch):
        for name in ("MAX_LIMIT_PER_PAGE", "FUTURE_DATE_TOLERANCE_DAYS", "SUMMARY_SIZE"):
            monkeypatch.delenv(name, raising=False)
        app = AppSettings()
        assert app.max_limit_per_page == 100
        assert app.future_date_tolerance_days == 7
        assert app.summary_size == 4
        assert app.latest_transactions_count == 3

    def test_app_from_environment(self, monkeypatch):
        monkeypatch.setenv("MAX_LIMIT_PER_PAGE", "25")
        assert AppSettings().max_limit_per_page == 25

    def test_storage_backend(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "google_sheets")
        assert StorageSettings().backend == "google_sheets"

        monkeypatch.setenv("STORAGE_BACKEND", "postgres")
        with pytest.raises(ValueError):
            StorageSettings()

    def test_auth_algorithms_list(self, monkeypatch):
        monkeypatch.setenv("AUTH_JWT_SECRET", "s")
        monkeypatch.setenv("AUTH_JWT_ALGORITHMS", "HS256, RS256,")
        assert AuthSettings().algorithms_list == ["HS256", "RS256"]

    def test_default_store_is_in_memory(self, monkeypatch):
        monkeypatch.delenv("STORAGE_BACKEND", raising=False)
        assert isinstance(create_store(), InMemoryDocumentStore)

    def test_validate_all_settings_reports_missing_auth(self, monkeypatch):
        monkeypatch.delenv("AUTH_JWT_SECRET", raising=False)
        monkeypatch.delenv("STORAGE_BACKEND", raising=False)

        results = validate_all_settings()

        assert results["app"] is True
        assert results["storage"] is True
        assert results["auth"] is False
        assert "auth_error" in results
        assert "google_sheets" not in results
