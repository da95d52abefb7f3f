from __future__ import annotations

import asyncio

import pytest

from guardwell.state.timers import ExpiringFlags


@pytest.mark.asyncio
async def test_flag_expires_and_calls_back() -> None:
    expired: list[str] = []
    flags = ExpiringFlags("marked_safe", 0.01, on_expire=expired.append)

    flags.set("DEV-001")
    assert flags.is_set("DEV-001")

    await asyncio.sleep(0.05)

    assert not flags.is_set("DEV-001")
    assert expired == ["DEV-001"]


@pytest.mark.asyncio
async def test_cancel_does_not_call_back() -> None:
    expired: list[str] = []
    flags = ExpiringFlags("nudge_sent", 0.01, on_expire=expired.append)

    flags.set("DEV-001")
    assert flags.cancel("DEV-001") is True
    assert flags.cancel("DEV-001") is False

    await asyncio.sleep(0.05)
    assert expired == []


@pytest.mark.asyncio
async def test_reset_restarts_lifetime() -> None:
    expired: list[str] = []
    flags = ExpiringFlags("nudge_sent", 0.05, on_expire=expired.append)

    flags.set("DEV-001")
    await asyncio.sleep(0.03)
    flags.set("DEV-001")
    await asyncio.sleep(0.03)

    assert flags.is_set("DEV-001")
    assert expired == []

    await asyncio.sleep(0.05)
    assert expired == ["DEV-001"]


@pytest.mark.asyncio
async def test_tasks_are_named_per_key() -> None:
    flags = ExpiringFlags("marked_safe", 10)
    flags.set("DEV-001")

    names = {task.get_name() for task in asyncio.all_tasks()}
    assert "marked_safe:DEV-001" in names
    await flags.aclose()


@pytest.mark.asyncio
async def test_aclose_cancels_everything() -> None:
    expired: list[str] = []
    flags = ExpiringFlags("marked_safe", 10, on_expire=expired.append)
    flags.set("DEV-001")
    flags.set("DEV-002")

    await flags.aclose()

    assert flags.active() == frozenset()
    assert expired == []


@pytest.mark.asyncio
async def test_failing_callback_is_contained() -> None:
    def _boom(_key: str) -> None:
        raise RuntimeError("subscriber bug")

    flags = ExpiringFlags("marked_safe", 0.01, on_expire=_boom)
    flags.set("DEV-001")
    await asyncio.sleep(0.05)
    assert not flags.is_set("DEV-001")
