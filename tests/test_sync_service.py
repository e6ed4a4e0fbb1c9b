import threading

import pytest

from app.services.sync_service import SyncService
from app.utils.exceptions import BuildError, PersistenceError, SyncInProgressError

from .conftest import make_contact


def test_successful_cycle_publishes_snapshot(sync_service, source, cache_store):
    source.contacts = [make_contact(1, tag="1023", trainings=["Laser"], level=5), make_contact(2, tag="")]

    result = sync_service.run_cycle()

    assert result.status == "SUCCESS"
    assert result.contacts_seen == 2
    assert result.members_upserted == 1
    assert result.contacts_skipped == 1
    assert result.cache_version == 1
    assert dict(cache_store.require().door) == {1023: 5}
    assert sync_service.get_status().last_success_at is not None


def test_fetch_failure_leaves_published_cache_untouched(sync_service, source, cache_store, db):
    source.contacts = [make_contact(1, tag="1023", trainings=["Laser"])]
    sync_service.run_cycle()
    before = cache_store.require()
    rows_before = db.fetch_all("SELECT * FROM members")

    source.contacts = [make_contact(1, tag="2000", trainings=[])]
    source.fail("connection timed out")
    result = sync_service.run_cycle()

    assert result.status == "FAILED"
    assert "connection timed out" in result.error_message
    after = cache_store.require()
    assert after is before
    assert after.door_payload == before.door_payload
    assert after.machine_payload == before.machine_payload
    assert db.fetch_all("SELECT * FROM members") == rows_before


def test_next_cycle_retries_after_failure(sync_service, source, cache_store):
    source.contacts = [make_contact(1, tag="10")]
    source.fail()
    assert sync_service.run_cycle().status == "FAILED"
    assert cache_store.current() is None

    source.fail_with = None
    assert sync_service.run_cycle().status == "SUCCESS"
    assert source.calls == 2
    assert 10 in cache_store.require().door


def test_persistence_failure_fails_cycle(sync_service, source, cache_store, monkeypatch):
    source.contacts = [make_contact(1, tag="10")]

    def broken(contacts):
        raise PersistenceError("database is locked")

    monkeypatch.setattr(sync_service.reconciler, "reconcile", broken)
    result = sync_service.run_cycle()

    assert result.status == "FAILED"
    assert cache_store.current() is None


def test_build_failure_fails_cycle(sync_service, source, cache_store, monkeypatch):
    source.contacts = [make_contact(1, tag="10")]

    def broken():
        raise BuildError("inconsistent read")

    monkeypatch.setattr(sync_service.builder, "build", broken)
    result = sync_service.run_cycle()

    assert result.status == "FAILED"
    assert "inconsistent read" in result.error_message
    assert cache_store.current() is None


def test_missing_account_id_fails_without_fetch(source, reconciler, builder, cache_store):
    service = SyncService(source, reconciler, builder, cache_store, account_id=None)
    service.account_id = None

    assert service.run_cycle().status == "FAILED"
    assert source.calls == 0


def test_extraction_errors_reported_not_fatal(sync_service, source, cache_store):
    source.contacts = [make_contact(1, tag="-5"), make_contact(2, tag="20")]

    result = sync_service.run_cycle()

    assert result.status == "SUCCESS"
    assert [f.contact_id for f in result.extraction_errors] == [1]
    assert set(cache_store.require().door) == {20}


def test_overlapping_cycle_is_skipped(sync_service, source):
    entered = threading.Event()
    release = threading.Event()

    class SlowSource:
        def get_contacts(self, account_id):
            entered.set()
            release.wait(5)
            return [make_contact(1, tag="10")]

    sync_service.source = SlowSource()
    worker = threading.Thread(target=sync_service.run_cycle)
    worker.start()
    assert entered.wait(5)

    assert sync_service.is_running()
    assert sync_service.run_cycle().status == "SKIPPED"
    with pytest.raises(SyncInProgressError):
        sync_service.trigger()

    release.set()
    worker.join(5)
    assert sync_service.get_status().status == "SUCCESS"
    assert not sync_service.is_running()


def test_oversized_tag_does_not_abort_cycle(sync_service, source, cache_store):
    source.contacts = [make_contact(1, tag="1023", trainings=["Laser"])]
    assert sync_service.run_cycle().status == "SUCCESS"

    source.contacts = [
        make_contact(1, tag="1023", trainings=["Laser", "Lathe"]),
        make_contact(2, tag="9" * 5000),
    ]
    result = sync_service.run_cycle()

    assert result.status == "SUCCESS"
    assert [f.contact_id for f in result.extraction_errors] == [2]
    assert sync_service.get_status().status == "SUCCESS"
    assert cache_store.require().machine[1023] == frozenset({"Laser", "Lathe"})


def test_unexpected_error_fails_cycle_without_raising(sync_service, source, cache_store, monkeypatch):
    source.contacts = [make_contact(1, tag="1023")]
    sync_service.run_cycle()
    before = cache_store.require()

    def broken_reconcile(contacts):
        raise RuntimeError("boom")

    monkeypatch.setattr(sync_service.reconciler, "reconcile", broken_reconcile)
    result = sync_service.run_cycle()

    assert result.status == "FAILED"
    assert "boom" in result.error_message
    assert cache_store.require() is before
    assert not sync_service.is_running()
