import asyncio
import contextlib
import logging
from datetime import datetime, timedelta, timezone

import pytest

from jwks_server.config import settings
from jwks_server.exceptions import StorageError
from jwks_server.keys import service
from jwks_server.keys.service import ensure_signing_keys, keep_signing_keys_fresh, mint_key

from conftest import HOUR, T0


async def _stop(task: asyncio.Task) -> None:
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task


async def _wait_for_valid_key(store) -> None:
    while await store.pick_valid(datetime.now(timezone.utc)) is None:
        await asyncio.sleep(0.01)


@pytest.mark.asyncio
async def test_mint_key_inserts_record(store):
    record = await mint_key(store, HOUR, now=T0)

    assert await store.get(record.kid) == record
    assert record.expires_at == T0 + HOUR


@pytest.mark.asyncio
async def test_ensure_seeds_valid_and_expired(store):
    minted = await ensure_signing_keys(store, now=T0, seed_expired=True)

    assert len(minted) == 2
    assert len(await store.list_valid(T0)) == 1
    assert len(await store.list_expired(T0)) == 1
    expired = await store.pick_expired(T0)
    assert expired.expires_at == T0 - timedelta(seconds=settings.expired_key_age_seconds)


@pytest.mark.asyncio
async def test_ensure_is_idempotent(store):
    await ensure_signing_keys(store, now=T0, seed_expired=True)

    assert await ensure_signing_keys(store, now=T0, seed_expired=True) == []


@pytest.mark.asyncio
async def test_ensure_without_expired_seed(store):
    minted = await ensure_signing_keys(store, now=T0, seed_expired=False)

    assert len(minted) == 1
    assert await store.pick_expired(T0) is None


@pytest.mark.asyncio
async def test_ensure_refreshes_key_close_to_expiry(store, make_record):
    await store.insert(make_record(T0 - HOUR, T0 + timedelta(minutes=1), kid="old"))

    minted = await ensure_signing_keys(store, now=T0, seed_expired=False)

    assert len(minted) == 1
    assert (await store.pick_valid(T0)).kid == minted[0].kid
    # The old key stays published until it actually expires
    assert {r.kid for r in await store.list_valid(T0)} == {"old", minted[0].kid}


@pytest.mark.asyncio
async def test_refresher_mints_key_on_tick(store):
    task = asyncio.create_task(keep_signing_keys_fresh(store, 0.01))
    try:
        await asyncio.wait_for(_wait_for_valid_key(store), timeout=10)
    finally:
        await _stop(task)

    assert len(await store.list_valid(datetime.now(timezone.utc))) >= 1


@pytest.mark.asyncio
async def test_refresher_logs_storage_error_and_keeps_running(store, monkeypatch, caplog):
    ticked = asyncio.Event()
    calls = 0

    async def flaky_ensure(store):
        nonlocal calls
        calls += 1
        if calls == 1:
            raise StorageError("banco indisponível")
        ticked.set()
        return []

    monkeypatch.setattr(service, "ensure_signing_keys", flaky_ensure)

    with caplog.at_level(logging.ERROR, logger="jwks_server.keys.service"):
        task = asyncio.create_task(keep_signing_keys_fresh(store, 0.01))
        try:
            await asyncio.wait_for(ticked.wait(), timeout=5)
        finally:
            await _stop(task)

    assert calls >= 2
    assert "Falha ao renovar chaves de assinatura: StorageError" in caplog.text


@pytest.mark.asyncio
async def test_refresh_interval_below_margin_never_leaves_a_gap(store, monkeypatch):
    # Simulated ticks over three key lifetimes with the default interval and margin
    monkeypatch.setattr(settings, "seed_expired_key", False)
    interval = timedelta(seconds=settings.key_refresh_interval_seconds)
    now = T0

    await ensure_signing_keys(store, now=now)
    while now < T0 + 3 * timedelta(seconds=settings.key_validity_seconds):
        for step in range(1, 5):
            assert await store.pick_valid(now + interval * step / 4) is not None
        now += interval
        await ensure_signing_keys(store, now=now)
