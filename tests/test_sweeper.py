# tests/test_sweeper.py
"""Tests for the background nonce sweeper."""

import asyncio
from unittest.mock import MagicMock

import pytest

from wallet_auth.core.errors import NonceStoreError
from wallet_auth.services.sweeper import NonceSweeper


@pytest.mark.asyncio
async def test_sweep_once_purges_expired(nonce_store, clock) -> None:
    nonce_store.issue("stale")
    clock.advance(301)

    sweeper = NonceSweeper(nonce_store, interval_seconds=60)
    assert await sweeper.sweep_once() == 1


@pytest.mark.asyncio
async def test_disabled_sweeper_does_not_start(nonce_store) -> None:
    sweeper = NonceSweeper(nonce_store, interval_seconds=0)
    await sweeper.start()
    assert sweeper.running is False
    await sweeper.stop()


@pytest.mark.asyncio
async def test_sweeper_loop_survives_store_errors() -> None:
    calls = []

    def _purge() -> int:
        calls.append(1)
        if len(calls) == 1:
            raise NonceStoreError("down")
        return 0

    store = MagicMock()
    store.purge_expired.side_effect = _purge

    sweeper = NonceSweeper(store, interval_seconds=0.1)
    await sweeper.start()
    assert sweeper.running is True
    await asyncio.sleep(0.35)
    await sweeper.stop()

    assert sweeper.running is False
    assert store.purge_expired.call_count >= 2
