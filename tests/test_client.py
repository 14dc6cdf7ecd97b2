"""Tests for text sources and the file sink."""
import asyncio
from pathlib import Path

import httpx
import pytest
import requests

from bookshelf.async_client import AsyncTextSource
from bookshelf.client import TextSource, is_url
from bookshelf.errors import SourceUnavailable
from bookshelf.storage import FileSink

URL = "https://example.com/lib.csv"


class FakeResponse:
    def __init__(self, status_code, text="", reason="OK"):
        self.status_code = status_code
        self.text = text
        self.reason = reason


def fake_get(responses, calls):
    """Return a session.get replacement that replays responses in order."""
    def get(url, timeout=None):
        calls.append(url)
        result = responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result
    return get


def test_is_url():
    """Test URL detection."""
    assert is_url("https://example.com/lib.csv")
    assert is_url("HTTP://example.com")
    assert not is_url("lib.csv")


def test_read_local_file(tmp_path):
    """Test reading a document from disk."""
    path = tmp_path / "lib.csv"
    path.write_text("id,title\n", encoding="utf-8")

    with TextSource() as source:
        assert source.read(str(path)) == "id,title\n"


def test_read_local_missing(tmp_path):
    """Test that a missing file is reported as unavailable."""
    with TextSource() as source:
        with pytest.raises(SourceUnavailable) as exc:
            source.read(str(tmp_path / "missing.csv"))

    assert exc.value.reason == "not found"


def test_read_http_success(monkeypatch):
    """Test fetching a remote document."""
    calls = []
    source = TextSource()
    monkeypatch.setattr(source.session, "get", fake_get([FakeResponse(200, "a,b")], calls))

    assert source.read(URL) == "a,b"
    assert calls == [URL]


def test_read_http_retries_server_errors(monkeypatch):
    """Test that 5xx and timeouts are retried with backoff."""
    calls = []
    source = TextSource(max_retries=3)
    responses = [
        FakeResponse(503, reason="Service Unavailable"),
        requests.exceptions.Timeout(),
        FakeResponse(200, "ok"),
    ]
    monkeypatch.setattr(source.session, "get", fake_get(responses, calls))
    monkeypatch.setattr(source, "_backoff", lambda attempt: None)

    assert source.read(URL) == "ok"
    assert len(calls) == 3


def test_read_http_client_error_not_retried(monkeypatch):
    """Test that a 404 fails immediately."""
    calls = []
    source = TextSource(max_retries=3)
    monkeypatch.setattr(source.session, "get", fake_get([FakeResponse(404, reason="Not Found")], calls))

    with pytest.raises(SourceUnavailable) as exc:
        source.read(URL)

    assert exc.value.status_code == 404
    assert len(calls) == 1


def test_read_http_retries_exhausted(monkeypatch):
    """Test the error after every attempt failed."""
    calls = []
    source = TextSource(max_retries=2)
    responses = [requests.exceptions.ConnectionError("down"), FakeResponse(500, reason="Boom")]
    monkeypatch.setattr(source.session, "get", fake_get(responses, calls))
    monkeypatch.setattr(source, "_backoff", lambda attempt: None)

    with pytest.raises(SourceUnavailable) as exc:
        source.read(URL)

    assert exc.value.status_code == 500
    assert len(calls) == 2


def test_async_read_success():
    """Test fetching a remote document asynchronously."""
    def handler(request):
        return httpx.Response(200, text=f"doc {request.url.path}")

    async def run():
        async with AsyncTextSource(transport=httpx.MockTransport(handler)) as source:
            return await source.read("https://example.com/a.csv")

    assert asyncio.run(run()) == "doc /a.csv"


def test_async_read_error_status():
    """Test that a non-200 status raises SourceUnavailable."""
    async def run():
        transport = httpx.MockTransport(lambda request: httpx.Response(500))
        async with AsyncTextSource(transport=transport) as source:
            await source.read(URL)

    with pytest.raises(SourceUnavailable) as exc:
        asyncio.run(run())

    assert exc.value.status_code == 500


def test_async_read_local(tmp_path):
    """Test async reads of local files."""
    path = tmp_path / "lib.csv"
    path.write_text("x", encoding="utf-8")

    async def run():
        async with AsyncTextSource() as source:
            return await source.read(str(path))

    assert asyncio.run(run()) == "x"


def test_file_sink_writes(tmp_path):
    """Test that the sink writes into its directory and replaces old content."""
    sink = FileSink(str(tmp_path / "out"))

    sink("first", "lib.csv")
    path = sink.write("second", "../elsewhere/lib.csv")

    assert path == tmp_path / "out" / "lib.csv"
    assert path.read_text(encoding="utf-8") == "second"
    assert not (tmp_path / "out" / "lib.csv.tmp").exists()


def test_file_sink_failed_write_leaves_no_temp_file(tmp_path, monkeypatch):
    """Test that a failed write removes its temporary file and re-raises."""
    sink = FileSink(str(tmp_path))

    def fail_replace(self, target):
        raise OSError("disk full")

    monkeypatch.setattr(Path, "replace", fail_replace)

    with pytest.raises(OSError):
        sink.write("data", "lib.csv")

    assert not (tmp_path / "lib.csv.tmp").exists()
    assert not (tmp_path / "lib.csv").exists()
