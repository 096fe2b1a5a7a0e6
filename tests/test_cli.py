"""Unit tests for the CLI wiring in main.py."""

from __future__ import annotations

import argparse
from contextlib import asynccontextmanager
import json

import pytest

from config.settings import AnalysisServiceSettings, Settings
from main import _build_orchestrator, _build_session


ARTICLE_URL = "https://news.example/budget-2025"
REPORT = {"summary": {"title": "Mostly accurate"}, "claims": []}


def _settings(api_token=None) -> Settings:
    return Settings(analysis=AnalysisServiceSettings(base_url="http://analysis.test", api_token=api_token))


def _args(**overrides) -> argparse.Namespace:
    values = {"user_id": "user_1", "balance": 50, "token": None}
    values.update(overrides)
    return argparse.Namespace(**values)


class _FakeResponse:
    def __init__(self, payload=None, lines=()):
        self.status_code = 200
        self._payload = payload
        self._lines = list(lines)

    def json(self):
        return self._payload

    async def aread(self):
        return b""

    async def aiter_lines(self):
        for line in self._lines:
            yield line


def _client_factory(calls):
    text = "```json\n" + json.dumps(REPORT) + "\n```"
    complete = ["event: complete", "data: " + json.dumps({"text": text, "points": {"newBalance": 38}}), ""]

    class _FakeAsyncClient:
        def __init__(self, *args, **kwargs):
            pass

        async def __aenter__(self):
            return self

        async def __aexit__(self, exc_type, exc, tb):
            return False

        async def post(self, url, json=None, headers=None):
            calls.append({"url": url, "headers": headers})
            return _FakeResponse(payload={"title": "Budget 2025", "content": "Article body"})

        @asynccontextmanager
        async def stream(self, method, url, json=None, headers=None):
            calls.append({"url": url, "headers": headers})
            yield _FakeResponse(lines=complete)

    return _FakeAsyncClient


@pytest.mark.asyncio
async def test_link_audit_sends_configured_bearer_token(monkeypatch):
    calls = []
    monkeypatch.setattr("clients.analysis_gateway.httpx.AsyncClient", _client_factory(calls))

    orchestrator = _build_orchestrator(_args(), _settings(api_token="env-token"))
    result = await orchestrator.submit_link(ARTICLE_URL)

    assert result.ok
    assert result.new_balance == 38
    assert [call["url"] for call in calls] == [
        "http://analysis.test/api/link/scrape",
        "http://analysis.test/api/gemini/generate-stream",
    ]
    assert all(call["headers"]["Authorization"] == "Bearer env-token" for call in calls)


@pytest.mark.asyncio
async def test_token_flag_overrides_settings_token(monkeypatch):
    calls = []
    monkeypatch.setattr("clients.analysis_gateway.httpx.AsyncClient", _client_factory(calls))

    orchestrator = _build_orchestrator(_args(token="cli-token"), _settings(api_token="env-token"))
    await orchestrator.submit_link(ARTICLE_URL)

    assert calls[0]["headers"]["Authorization"] == "Bearer cli-token"


@pytest.mark.asyncio
async def test_session_without_token_sends_no_authorization(monkeypatch):
    calls = []
    monkeypatch.setattr("clients.analysis_gateway.httpx.AsyncClient", _client_factory(calls))

    session = _build_session(argparse.Namespace(user_id="user_1", balance=50), _settings())
    assert await session.id_token() is None

    orchestrator = _build_orchestrator(_args(), _settings())
    await orchestrator.submit_link(ARTICLE_URL)

    assert all("Authorization" not in call["headers"] for call in calls)
