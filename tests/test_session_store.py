import asyncio
from concurrent.futures import ThreadPoolExecutor

import pytest

from models.label_models import LabelAnalysis
from services.session_store import SessionNotFoundError, SessionStore
from utils.session_sweeper import SessionSweeper


def test_create_then_get_returns_stored_payload(store):
    analysis = LabelAnalysis(product_name="Choco Bar", ingredients=["sugar", "cocoa"])
    session_id = store.create(analysis)

    assert store.get(session_id) == analysis
    assert store.exists(session_id)


def test_get_returns_a_copy_so_stored_analysis_stays_immutable(store):
    analysis = LabelAnalysis(product_name="Choco Bar", ingredients=["sugar"])
    session_id = store.create(analysis)

    analysis.ingredients.append("palm oil")
    loaded = store.get(session_id)
    loaded.ingredients.append("salt")

    assert store.get(session_id).ingredients == ["sugar"]


def test_unknown_id_is_not_found(store):
    with pytest.raises(SessionNotFoundError):
        store.get("never-issued")
    with pytest.raises(KeyError):
        store.get("")
    assert not store.exists("never-issued")


def test_ids_are_unique(store):
    ids = {store.create({"n": i}) for i in range(200)}
    assert len(ids) == 200


def test_fixed_ttl_boundary(store, clock):
    session_id = store.create({"productName": "Choco Bar"})

    clock.advance(900 - 0.01)
    assert store.get(session_id) == {"productName": "Choco Bar"}

    clock.advance(0.02)
    with pytest.raises(SessionNotFoundError):
        store.get(session_id)
    assert not store.exists(session_id)


def test_reads_do_not_extend_fixed_ttl(store, clock):
    session_id = store.create({"productName": "Choco Bar"})
    for _ in range(8):
        clock.advance(100)
        store.get(session_id)

    clock.advance(101)
    assert not store.exists(session_id)


def test_sliding_mode_renews_on_read(clock):
    store = SessionStore(ttl_seconds=60, clock=clock, sliding=True)
    session_id = store.create({"productName": "Choco Bar"})

    for _ in range(5):
        clock.advance(50)
        store.get(session_id)

    assert store.exists(session_id)
    clock.advance(61)
    assert not store.exists(session_id)


def test_purge_expired_removes_only_stale_records(store, clock):
    old = store.create({"n": 1})
    clock.advance(600)
    fresh = store.create({"n": 2})
    clock.advance(400)

    assert store.purge_expired() == 1
    assert len(store) == 1
    assert store.exists(fresh)
    assert not store.exists(old)


def test_ttl_must_be_positive():
    with pytest.raises(ValueError):
        SessionStore(ttl_seconds=0)


def test_sweeper_sweep_delegates_to_store(store, clock):
    store.create({"n": 1})
    clock.advance(1000)

    assert SessionSweeper(store, interval_seconds=60).sweep() == 1
    assert len(store) == 0


@pytest.mark.asyncio
async def test_periodic_cleanup_runs_until_cancelled(store, clock):
    store.create({"n": 1})
    clock.advance(1000)
    sweeper = SessionSweeper(store, interval_seconds=0.01)

    task = asyncio.create_task(sweeper.run_periodic_cleanup())
    await asyncio.sleep(0.05)
    task.cancel()
    await asyncio.gather(task, return_exceptions=True)

    assert len(store._sessions) == 0


def test_concurrent_create_get_and_purge(store, clock):
    stale = [store.create({"n": -i}) for i in range(50)]
    clock.advance(901)

    def create_and_read(n):
        session_id = store.create({"n": n})
        store.purge_expired()
        return session_id, n, store.get(session_id)

    with ThreadPoolExecutor(max_workers=16) as pool:
        sweeps = [pool.submit(store.purge_expired) for _ in range(20)]
        results = list(pool.map(create_and_read, range(200)))
        for future in sweeps:
            future.result()

    assert all(payload == {"n": n} for _, n, payload in results)
    assert len({session_id for session_id, _, _ in results}) == 200
    assert len(store) == 200
    assert len(store._sessions) == 200
    assert not any(store.exists(session_id) for session_id in stale)
