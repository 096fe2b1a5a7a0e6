"""Unit tests for orchestrator.debounce, orchestrator.progress and orchestrator.session."""

from __future__ import annotations

import asyncio

import pytest

from orchestrator import Debouncer, InMemorySession, ProgressChannel, Ticker


@pytest.mark.asyncio
async def test_debouncer_runs_only_latest_action():
    debouncer = Debouncer(0.02)
    fired = []

    async def action(label, token):
        fired.append((label, debouncer.is_current(token)))

    for label in ("a", "ab", "abc"):
        debouncer.schedule(lambda token, label=label: action(label, token))
    assert debouncer.has_pending

    await debouncer.wait_idle()

    assert fired == [("abc", True)]
    assert not debouncer.has_pending


@pytest.mark.asyncio
async def test_invalidate_retires_token_of_running_action():
    debouncer = Debouncer(0)
    started = asyncio.Event()
    release = asyncio.Event()
    results = []

    async def action(token):
        started.set()
        await release.wait()
        results.append(debouncer.is_current(token))

    debouncer.schedule(action)
    await started.wait()
    debouncer.invalidate()
    release.set()
    await debouncer.wait_idle()

    assert results == [False]


@pytest.mark.asyncio
async def test_ticker_stops_cleanly():
    ticks = []
    ticker = Ticker(0.01, lambda: ticks.append(1))
    ticker.start()
    assert ticker.running
    await asyncio.sleep(0.05)
    await ticker.stop()

    count = len(ticks)
    assert count > 0
    assert not ticker.running
    await asyncio.sleep(0.03)
    assert len(ticks) == count


@pytest.mark.asyncio
async def test_progress_channel_is_last_value_wins():
    channel = ProgressChannel()
    received = []

    async def consume():
        async for status in channel.subscribe():
            received.append(status)

    task = asyncio.create_task(consume())
    await asyncio.sleep(0.01)

    channel.publish("one")
    await asyncio.sleep(0.01)
    channel.publish("two")
    channel.publish("three")
    await asyncio.sleep(0.01)
    channel.close()
    await asyncio.wait_for(task, timeout=1)

    assert received == ["one", "three"]
    assert channel.latest == "three"
    channel.clear()
    assert channel.latest is None


@pytest.mark.asyncio
async def test_session_balance_contract():
    async def loader(user_id):
        return 77

    async def token(user_id):
        return f"token-{user_id}"

    session = InMemorySession(" user_1 ", 10, balance_loader=loader, token_loader=token)
    assert session.user_id == "user_1"
    assert session.is_authenticated

    session.set_balance(3)
    assert session.balance == 3
    assert await session.refresh_balance() == 77
    assert await session.id_token() == "token-user_1"

    session.sign_out()
    assert not session.is_authenticated
    assert await session.id_token() is None
