"""
Tests for the Streamlit pages, run headless with AppTest.

Records are written to a temporary data directory before the script
runs; Gemini is never reached.
"""

from pathlib import Path

import pytest
import requests
import streamlit as st
from streamlit.testing.v1 import AppTest

from conftest import make_record
from resiboko.config import get_settings
from resiboko.services.storage import JsonFileStorage, RecordStore


APP_PATH = str(Path(__file__).resolve().parents[1] / "app" / "main.py")
SYNC_URL = "https://script.google.com/macros/s/abc/exec"


class FakeHttpResponse:
    status_code = 200

    def raise_for_status(self):
        pass


@pytest.fixture
def data_dir(monkeypatch, tmp_path):
    monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("SYNC_BACKEND", raising=False)
    monkeypatch.delenv("SYNC_APPS_SCRIPT_URL", raising=False)
    get_settings.cache_clear()
    st.cache_resource.clear()
    yield tmp_path
    get_settings.cache_clear()
    st.cache_resource.clear()


def save_records(data_dir, records):
    RecordStore(JsonFileStorage(data_dir / "storage.json")).persist(records)


def open_history() -> AppTest:
    at = AppTest.from_file(APP_PATH, default_timeout=30)
    at.run()
    at.sidebar.radio[0].set_value("📊 History").run()
    assert not at.exception
    return at


class TestHistoryPage:
    """Tests for the All view record list."""

    def test_missing_purpose_badge(self, data_dir):
        """Test only the record without a purpose gets the badge."""
        save_records(data_dir, [
            make_record("Shell Gas", record_id=2),
            make_record("Starbucks", "320", purpose=None, record_id=1),
        ])

        at = open_history()

        badges = [m.value for m in at.markdown if "Missing Purpose" in m.value]
        assert len(badges) == 1
        assert "📄 Site tripping" in [c.value for c in at.caption]

    def test_empty_history(self, data_dir):
        """Test an empty list shows the hint instead of records."""
        at = open_history()
        assert any("No receipts for this period" in i.value for i in at.info)
        assert not [m for m in at.markdown if "Missing Purpose" in m.value]


class TestSyncSection:
    """Tests for the sync status shown on the History page."""

    def test_success_shown_once(self, data_dir, monkeypatch):
        """Test the synced message appears once and the status returns to idle."""
        monkeypatch.setenv("SYNC_APPS_SCRIPT_URL", SYNC_URL)
        posts = []

        def fake_post(url, **kwargs):
            posts.append(url)
            return FakeHttpResponse()

        monkeypatch.setattr(requests, "post", fake_post)
        save_records(data_dir, [make_record(record_id=1)])

        at = open_history()
        at.button(key="sync_now").click().run()

        assert posts == [SYNC_URL]
        assert [s.value for s in at.success] == ["✅ Synced"]
        assert at.session_state["sync_status"] == "idle"

        at.run()
        assert not at.success
        assert at.button(key="sync_now").disabled is False

    def test_not_configured(self, data_dir):
        """Test the sync button is hidden without a sync URL."""
        at = open_history()
        assert any("Sync is not configured" in c.value for c in at.caption)
