"""Unit tests for clients.analysis_gateway and clients.sse."""

from __future__ import annotations

from contextlib import asynccontextmanager
import json

import httpx
import pytest

from clients import AnalysisGateway, classify_upstream_error, extract_report, iter_sse_events
from config.settings import AnalysisServiceSettings, Settings
from core import AuditMode, VideoMetadata
from utils.exceptions import AnalysisError, InsufficientPointsError, RateLimitError


REPORT = {"videoTitle": "Climate claims", "summary": {"title": "Mostly accurate"}, "claims": []}


def _sse(event: str, data) -> list:
    return [f"event: {event}", f"data: {json.dumps(data, ensure_ascii=False)}", ""]


def _complete(report=None, new_balance=37, cost=5) -> list:
    text = "```json\n" + json.dumps(report or REPORT) + "\n```"
    return _sse("complete", {"text": text, "points": {"newBalance": new_balance, "costInPoints": cost}})


class _FakeStreamResponse:
    def __init__(self, lines=(), status_code: int = 200, payload=None):
        self._lines = list(lines)
        self.status_code = status_code
        self._payload = payload

    async def aread(self):
        return b""

    def json(self):
        if self._payload is None:
            raise ValueError("empty body")
        return self._payload

    async def aiter_lines(self):
        for line in self._lines:
            yield line


def _client_factory(response, calls):
    class _FakeAsyncClient:
        def __init__(self, *args, **kwargs):
            self.kwargs = kwargs

        async def __aenter__(self):
            return self

        async def __aexit__(self, exc_type, exc, tb):
            return False

        @asynccontextmanager
        async def stream(self, method, url, json=None, headers=None):
            calls.append({"method": method, "url": url, "json": json, "headers": headers})
            if isinstance(response, Exception):
                raise response
            yield response

        async def post(self, url, json=None, headers=None):
            calls.append({"method": "POST", "url": url, "json": json, "headers": headers})
            if isinstance(response, Exception):
                raise response
            return response

    return _FakeAsyncClient


def _gateway(token_provider=None) -> AnalysisGateway:
    settings = Settings(analysis=AnalysisServiceSettings(base_url="http://analysis.test/"))
    return AnalysisGateway(settings, token_provider=token_provider)


def _metadata() -> VideoMetadata:
    return VideoMetadata(
        video_id="abc123",
        title="Climate claims",
        author="Fact Channel",
        duration_seconds=125,
        duration_formatted="2:05",
    )


@pytest.mark.asyncio
async def test_video_analysis_relays_progress_and_returns_report(monkeypatch):
    lines = _sse("progress", {"status": "Transcribing"}) + _sse("progress", {"status": "Checking claims"}) + _complete()
    calls = []
    monkeypatch.setattr(
        "clients.analysis_gateway.httpx.AsyncClient",
        _client_factory(_FakeStreamResponse(lines), calls),
    )

    seen = []
    outcome = await _gateway().run_video_analysis(
        "https://youtu.be/abc123", _metadata(), AuditMode.STANDARD, seen.append
    )

    assert seen == ["Transcribing", "Checking claims"]
    assert outcome.report == REPORT
    assert outcome.new_balance == 37
    assert outcome.points_cost == 5

    call = calls[0]
    assert call["url"] == "http://analysis.test/api/gemini/generate-stream"
    assert call["json"]["mode"] == "standard"
    assert call["json"]["metadata"]["video_id"] == "abc123"
    assert "includeTranscription" not in call["json"]
    assert "Authorization" not in call["headers"]


@pytest.mark.asyncio
async def test_deep_mode_sends_transcription_flag_and_bearer_token(monkeypatch):
    calls = []
    monkeypatch.setattr(
        "clients.analysis_gateway.httpx.AsyncClient",
        _client_factory(_FakeStreamResponse(_complete()), calls),
    )

    async def token():
        return "id-token-1"

    await _gateway(token).run_video_analysis(
        "https://youtu.be/abc123", None, AuditMode.DEEP, None, include_transcription=False
    )

    assert calls[0]["json"]["includeTranscription"] is False
    assert "metadata" not in calls[0]["json"]
    assert calls[0]["headers"]["Authorization"] == "Bearer id-token-1"


@pytest.mark.asyncio
async def test_error_event_with_insufficient_points_code(monkeypatch):
    lines = _sse("progress", {"status": "Starting"}) + _sse(
        "error", {"error": "Not enough points", "code": "INSUFFICIENT_POINTS", "currentBalance": 3}
    )
    monkeypatch.setattr(
        "clients.analysis_gateway.httpx.AsyncClient",
        _client_factory(_FakeStreamResponse(lines), []),
    )

    with pytest.raises(InsufficientPointsError) as exc_info:
        await _gateway().run_video_analysis("https://youtu.be/abc123", None, AuditMode.STANDARD)
    assert exc_info.value.balance == 3


@pytest.mark.asyncio
async def test_http_429_maps_to_rate_limit(monkeypatch):
    response = _FakeStreamResponse(status_code=429, payload={"error": "Too many requests"})
    monkeypatch.setattr("clients.analysis_gateway.httpx.AsyncClient", _client_factory(response, []))

    with pytest.raises(RateLimitError):
        await _gateway().run_video_analysis("https://youtu.be/abc123", None, AuditMode.STANDARD)


@pytest.mark.asyncio
async def test_stream_without_complete_event_fails(monkeypatch):
    lines = _sse("progress", {"status": "Starting"})
    monkeypatch.setattr(
        "clients.analysis_gateway.httpx.AsyncClient",
        _client_factory(_FakeStreamResponse(lines), []),
    )

    with pytest.raises(AnalysisError):
        await _gateway().run_video_analysis("https://youtu.be/abc123", None, AuditMode.STANDARD)


@pytest.mark.asyncio
async def test_transport_failure_is_wrapped_with_cause(monkeypatch):
    failure = httpx.ConnectError("refused")
    monkeypatch.setattr("clients.analysis_gateway.httpx.AsyncClient", _client_factory(failure, []))

    with pytest.raises(AnalysisError) as exc_info:
        await _gateway().run_video_analysis("https://youtu.be/abc123", None, AuditMode.STANDARD)
    assert exc_info.value.cause is failure


@pytest.mark.asyncio
async def test_link_scrape_and_synthesis(monkeypatch):
    calls = []
    scrape = _FakeStreamResponse(status_code=200, payload={"title": "Budget 2025", "content": "Article body"})
    monkeypatch.setattr("clients.analysis_gateway.httpx.AsyncClient", _client_factory(scrape, calls))

    scraped = await _gateway().run_link_analysis("https://news.example/budget")
    assert scraped.title == "Budget 2025"
    assert scraped.content == "Article body"
    assert calls[0]["url"] == "http://analysis.test/api/link/scrape"
    assert calls[0]["json"] == {"url": "https://news.example/budget"}

    calls.clear()
    monkeypatch.setattr(
        "clients.analysis_gateway.httpx.AsyncClient",
        _client_factory(_FakeStreamResponse(_complete(new_balance=None)), calls),
    )
    outcome = await _gateway().run_link_synthesis("https://news.example/budget", scraped.content, scraped.title)
    assert outcome.new_balance is None
    assert calls[0]["json"]["serviceType"] == "linkArticle"
    assert calls[0]["json"]["title"] == "Budget 2025"


@pytest.mark.asyncio
async def test_link_scrape_refused_for_points(monkeypatch):
    response = _FakeStreamResponse(status_code=402, payload={"error": "No points", "code": "INSUFFICIENT_POINTS"})
    monkeypatch.setattr("clients.analysis_gateway.httpx.AsyncClient", _client_factory(response, []))

    with pytest.raises(InsufficientPointsError):
        await _gateway().run_link_analysis("https://news.example/budget")


def test_classify_upstream_error() -> None:
    assert isinstance(classify_upstream_error({"code": "insufficient_points"}), InsufficientPointsError)
    assert isinstance(classify_upstream_error({"code": "RATE_LIMIT"}), RateLimitError)
    assert isinstance(classify_upstream_error({}, 429), RateLimitError)

    generic = classify_upstream_error({"code": "AI_TIMEOUT"}, 504)
    assert isinstance(generic, AnalysisError)
    assert generic.code == "AI_TIMEOUT"
    assert generic.message == "HTTP 504"
    assert classify_upstream_error({}).message == "Analysis failed"


def test_extract_report_finds_embedded_object() -> None:
    assert extract_report('Here you go: {"a": {"b": 1}} thanks') == {"a": {"b": 1}}
    with pytest.raises(AnalysisError) as exc_info:
        extract_report("no json here")
    assert exc_info.value.code == "AI_INVALID_FORMAT"
    with pytest.raises(AnalysisError):
        extract_report("{not json}")


async def _lines(items):
    for item in items:
        yield item


@pytest.mark.asyncio
async def test_sse_decoding_groups_lines_and_skips_comments():
    raw = [
        ": keep-alive",
        "event: progress",
        'data: {"status": "one"}',
        "",
        "data: first line",
        "data: second line",
        "",
        "event: complete",
        'data: {"text": "{}"}',
    ]
    events = [event async for event in iter_sse_events(_lines(raw))]

    assert [event.event for event in events] == ["progress", "message", "complete"]
    assert events[0].data == {"status": "one"}
    assert events[1].data == {"text": "first line\nsecond line"}
    assert events[2].data == {"text": "{}"}
