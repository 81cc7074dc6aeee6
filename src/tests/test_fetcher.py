from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from dsa_tui.config import DEFAULT_SHEET_ID, Config
from dsa_tui.errors import FetchError
from dsa_tui.sheet.fetcher import SheetFetcher, candidate_urls, extract_sheet_id

SHEET_TEXT = "name,platform,link,topic,status,pinned\nA,B,C,D,Pending,FALSE"


def make_response(status: int, text: str = "") -> MagicMock:
    resp = MagicMock()
    resp.ok = 200 <= status < 300
    resp.status_code = status
    resp.reason = "OK" if resp.ok else "Internal Server Error"
    resp.text = text
    return resp


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def fetcher(session):
    return SheetFetcher(Config(sheet_url="https://docs.google.com/spreadsheets/d/abc-123_X/edit#gid=0"), session=session)


def test_extract_sheet_id():
    assert extract_sheet_id("https://docs.google.com/spreadsheets/d/abc-123_X/edit") == "abc-123_X"
    assert extract_sheet_id("https://example.com/not-a-sheet") == DEFAULT_SHEET_ID
    assert extract_sheet_id(None) == DEFAULT_SHEET_ID


def test_candidate_urls_order():
    urls = candidate_urls("abc")
    assert urls == [
        "https://docs.google.com/spreadsheets/d/abc/export?format=csv",
        "https://docs.google.com/spreadsheets/d/abc/gviz/tq?tqx=out:csv",
        "https://docs.google.com/spreadsheets/d/abc/export?format=csv&gid=0",
    ]


def test_fetch_falls_back_to_third_candidate(fetcher, session):
    session.get.side_effect = [
        make_response(500),
        make_response(500),
        make_response(200, SHEET_TEXT),
    ]
    assert fetcher.fetch() == SHEET_TEXT
    called = [c.args[0] for c in session.get.call_args_list]
    assert called == candidate_urls("abc-123_X")


def test_fetch_stops_at_first_success(fetcher, session):
    session.get.return_value = make_response(200, SHEET_TEXT)
    fetcher.fetch()
    assert session.get.call_count == 1


def test_fetch_network_errors_then_success(fetcher, session):
    session.get.side_effect = [
        requests.ConnectionError("boom"),
        make_response(200, SHEET_TEXT),
    ]
    assert fetcher.fetch() == SHEET_TEXT


def test_fetch_all_candidates_fail(fetcher, session):
    session.get.side_effect = [
        make_response(404),
        requests.Timeout("slow"),
        make_response(500),
    ]
    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch()
    assert excinfo.value.status == 500
    assert "500" in str(excinfo.value)


def test_fetch_skips_empty_body(fetcher, session):
    session.get.side_effect = [make_response(200, "  \n"), make_response(200, SHEET_TEXT)]
    assert fetcher.fetch() == SHEET_TEXT
    assert session.get.call_count == 2


def test_fetch_only_empty_bodies(fetcher, session):
    session.get.return_value = make_response(200, "")
    with pytest.raises(FetchError, match="Empty response body"):
        fetcher.fetch()
    assert session.get.call_count == 3


def test_load_questions_success(fetcher, session):
    session.get.return_value = make_response(200, SHEET_TEXT)
    result = fetcher.load_questions()
    assert [q.name for q in result["questions"]] == ["A"]


def test_load_questions_reports_fetch_error(fetcher, session):
    session.get.return_value = make_response(500)
    result = fetcher.load_questions()
    assert result["error"] == "Failed to fetch data"
    assert "HTTP 500" in result["details"]


def test_load_questions_reports_empty_sheet(fetcher, session):
    session.get.return_value = make_response(200, "name,platform,link\n,,\n")
    result = fetcher.load_questions()
    assert result["error"] == "No data found"


def test_reconfigure_changes_sheet(fetcher):
    fetcher.reconfigure(Config(sheet_url="https://docs.google.com/spreadsheets/d/other/edit"))
    assert fetcher.sheet_id == "other"
