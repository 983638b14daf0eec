from __future__ import annotations

"""
Integration tests for the Remote Extraction Orchestrator.

The HTTP clients are mocked at the orchestrator boundary. Verifies request
payloads, reply shaping into units and tables, the document recovery rule
and error propagation through the coroutines.
"""

import asyncio
import threading
from pathlib import Path
from unittest.mock import MagicMock, call, patch

import pytest

from ragutil.core.remote.orchestrator import (
    extract_units_via_api,
    fetch_document_text,
    fetch_table_from_file,
    fetch_table_from_url,
    recovery_url,
    units_from_response,
)
from ragutil.domain.constants import BROWSER_USER_AGENT, RECOVERY_RULES
from ragutil.domain.errors import NetworkError, NoTableFoundError, NotFoundError

ORCH = "ragutil.core.remote.orchestrator"
ECFR_URL = "https://www.ecfr.gov/on/2024-01-01/title-12/part-1"


@pytest.fixture
def source_doc(tmp_path: Path) -> Path:
    path = tmp_path / "source.html"
    path.write_text("<p>Rule text</p>", encoding="utf-8")
    return path

# -----------------------------------------------------------------------------
# UNITS ENDPOINT
# -----------------------------------------------------------------------------

def test_units_request_and_reply(source_doc: Path) -> None:
    """TC-01: The document is posted as html and items become units."""
    reply = [
        {"code": " 1.1 ", "items_text": " First "},
        {"code": "1.2", "items_text": "Second", "notes_text": "ignored"},
    ]
    with patch(f"{ORCH}.post_json", return_value=reply) as mock_post:
        units = asyncio.run(
            extract_units_via_api("https://api.test/u", str(source_doc), "items", {"X-Key": "k"})
        )

    mock_post.assert_called_once_with("https://api.test/u", {"html": "<p>Rule text</p>"}, {"X-Key": "k"})
    assert [(u.id, u.body) for u in units] == [("1.1", "First"), ("1.2", "Second")]


def test_units_notes_selection(source_doc: Path) -> None:
    """TC-02: 'notes' reads the notes text from a wrapped reply."""
    reply = {"notes": [{"code": "A", "notes_text": "n1", "items_text": "i1"}]}
    with patch(f"{ORCH}.post_json", return_value=reply):
        units = asyncio.run(extract_units_via_api("https://api.test/u", str(source_doc), "notes"))

    assert [(u.id, u.body) for u in units] == [("A", "n1")]


def test_units_missing_source_does_not_call_network(tmp_path: Path) -> None:
    """TC-03: Unreadable sources fail before any request."""
    with patch(f"{ORCH}.post_json") as mock_post:
        with pytest.raises(NotFoundError):
            asyncio.run(extract_units_via_api("https://api.test/u", str(tmp_path / "nope"), "items"))
    mock_post.assert_not_called()


def test_units_network_error_propagates(source_doc: Path) -> None:
    """TC-04: Endpoint failures surface unchanged."""
    with patch(f"{ORCH}.post_json", side_effect=NetworkError("API error 500 from x", 500)):
        with pytest.raises(NetworkError, match="500"):
            asyncio.run(extract_units_via_api("https://api.test/u", str(source_doc), "items"))


@pytest.mark.parametrize("reply,expected", [
    ({"code": "S", "items_text": "single"}, [("S", "single")]),
    ({"items": [{"code": "I", "items_text": "x"}], "notes": []}, [("I", "x")]),
    ([{"code": 5, "items_text": "x"}, {"code": "B", "items_text": "  "}, "junk"], []),
    ("not json object", []),
])
def test_units_reply_shapes(reply, expected) -> None:
    """TC-05: Replies are accepted as arrays, wrappers or single objects."""
    assert [(u.id, u.body) for u in units_from_response(reply, "items")] == expected


def test_concurrent_extractions(source_doc: Path) -> None:
    """TC-06: Several extractions can be awaited together."""
    async def run_both():
        return await asyncio.gather(
            extract_units_via_api("https://api.test/u", str(source_doc), "items"),
            extract_units_via_api("https://api.test/u", str(source_doc), "items"),
        )

    with patch(f"{ORCH}.post_json", return_value=[{"code": "C", "items_text": "t"}]) as mock_post:
        first, second = asyncio.run(run_both())

    assert first == second
    assert mock_post.call_count == 2

# -----------------------------------------------------------------------------
# TABLE ENDPOINT
# -----------------------------------------------------------------------------

def test_table_from_file(source_doc: Path) -> None:
    """TC-07: Local documents are posted as data with the browser agent."""
    reply = {"result": [{"b": 2, "a": None}]}
    with patch(f"{ORCH}.post_json", return_value=reply) as mock_post:
        table = asyncio.run(fetch_table_from_file("https://api.test/t", str(source_doc)))

    mock_post.assert_called_once_with(
        "https://api.test/t", {"data": "<p>Rule text</p>"}, None, BROWSER_USER_AGENT
    )
    assert table.columns == ["a", "b"]
    assert table.rows == [{"a": "", "b": "2"}]


def test_table_without_objects(source_doc: Path) -> None:
    """TC-08: Replies with no object array raise NoTableFoundError."""
    with patch(f"{ORCH}.post_json", return_value={"status": "empty"}):
        with pytest.raises(NoTableFoundError):
            asyncio.run(fetch_table_from_file("https://api.test/t", str(source_doc)))


def test_table_from_url_filters_body() -> None:
    """TC-09: The fetched body is ASCII-filtered before being posted."""
    with patch(f"{ORCH}.get_document", return_value=(200, b"<td>caf\xc3\xa9</td>")), \
            patch(f"{ORCH}.post_json", return_value=[{"k": "v"}]) as mock_post:
        table = asyncio.run(fetch_table_from_url("https://api.test/t", "https://doc.test/a"))

    assert mock_post.call_args.args[1] == {"data": "<td>caf</td>"}
    assert table.rows == [{"k": "v"}]


def test_table_from_url_non_success_status() -> None:
    """TC-10: A failed document GET stops before the endpoint is called."""
    with patch(f"{ORCH}.get_document", return_value=(404, b"")), \
            patch(f"{ORCH}.post_json") as mock_post:
        with pytest.raises(NetworkError) as exc_info:
            asyncio.run(fetch_table_from_url("https://api.test/t", "https://doc.test/a"))

    assert exc_info.value.status_code == 404
    mock_post.assert_not_called()

# -----------------------------------------------------------------------------
# DOCUMENT RECOVERY
# -----------------------------------------------------------------------------

def test_recovery_url_rules() -> None:
    """TC-11: The rule applies only to matching hosts missing the marker."""
    rule = RECOVERY_RULES[0]
    assert recovery_url(ECFR_URL, "<div id=app></div>", rule) == \
        "https://www.ecfr.gov/current/2024-01-01/title-12/part-1"
    assert recovery_url(ECFR_URL, "<p class='flush-paragraph-2'>", rule) is None
    assert recovery_url("https://example.test/on/x", "", rule) is None
    assert recovery_url("https://www.ecfr.gov/current/x", "", rule) is None


def test_recovery_replaces_shell_body() -> None:
    """TC-12: A shell page is replaced by the recovered document."""
    alt_url = ECFR_URL.replace("/on/", "/current/")
    mock_get = MagicMock(side_effect=[
        (200, b"<div id=app></div>"),
        (200, b"<p class='flush-paragraph-2'>text</p>"),
    ])
    with patch(f"{ORCH}.get_document", mock_get):
        body = fetch_document_text(ECFR_URL)

    assert body == "<p class='flush-paragraph-2'>text</p>"
    assert mock_get.call_args_list == [call(ECFR_URL), call(alt_url)]


@pytest.mark.parametrize("alternate", [(500, b"flush-paragraph-2"), (200, b"still a shell")])
def test_recovery_keeps_original_when_alternate_unusable(alternate) -> None:
    """TC-13: Failed or marker-less alternates leave the original body."""
    mock_get = MagicMock(side_effect=[(200, b"shell"), alternate])
    with patch(f"{ORCH}.get_document", mock_get):
        assert fetch_document_text(ECFR_URL) == "shell"
    assert mock_get.call_count == 2


def test_recovery_transport_error_propagates() -> None:
    """TC-14: A transport failure on the alternate attempt is raised."""
    mock_get = MagicMock(side_effect=[(200, b"shell"), NetworkError("GET x failed: timeout")])
    with patch(f"{ORCH}.get_document", mock_get):
        with pytest.raises(NetworkError, match="timeout"):
            fetch_document_text(ECFR_URL)


def test_no_recovery_for_other_hosts() -> None:
    """TC-15: Unrelated hosts are fetched exactly once."""
    mock_get = MagicMock(return_value=(200, b"plain"))
    with patch(f"{ORCH}.get_document", mock_get):
        assert fetch_document_text("https://doc.test/on/a") == "plain"
    mock_get.assert_called_once()

# -----------------------------------------------------------------------------
# SOURCE READING
# -----------------------------------------------------------------------------

def test_source_documents_read_off_the_event_loop() -> None:
    """TC-16: Local documents are read in a worker thread."""
    readers = []

    def fake_read(path: str) -> str:
        readers.append(threading.current_thread())
        return "<p>Rule text</p>"

    with patch(f"{ORCH}.read_text_lossy", side_effect=fake_read), \
            patch(f"{ORCH}.post_json", side_effect=[[{"code": "A", "items_text": "x"}], [{"a": 1}]]):
        asyncio.run(extract_units_via_api("https://api.test/u", "doc.html", "items"))
        asyncio.run(fetch_table_from_file("https://api.test/t", "doc.html"))

    assert len(readers) == 2
    assert all(t is not threading.main_thread() for t in readers)
