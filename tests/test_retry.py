from __future__ import annotations

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import DisconnectionError, IntegrityError, OperationalError

from hs_classifier.config.exceptions import ErrorKind, StoreOperationFailed
from hs_classifier.db.retry import with_retry
from hs_classifier.db.store import ClassificationStore, error_kind


class Flaky:
    """Fails with the given errors in order, then returns "ok"."""

    def __init__(self, *errors: Exception):
        self.errors = list(errors)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return "ok"


def network(message: str = "Failed to fetch") -> StoreOperationFailed:
    return StoreOperationFailed("fetch classifications", message, ErrorKind.NETWORK)


def test_two_network_failures_then_success():
    sleeps = []
    op = Flaky(network(), network())

    assert with_retry(op, delay=0.01, sleep=sleeps.append) == "ok"
    assert op.calls == 3
    assert sleeps == pytest.approx([0.01, 0.015])


def test_gives_up_after_two_retries():
    sleeps = []
    op = Flaky(network(), network(), network("third"))

    with pytest.raises(StoreOperationFailed, match="third"):
        with_retry(op, delay=1.0, sleep=sleeps.append)
    assert op.calls == 3
    assert sleeps == pytest.approx([1.0, 1.5])


@pytest.mark.parametrize("kind", [ErrorKind.DATABASE, ErrorKind.NOT_FOUND, ErrorKind.CONFIG])
def test_non_network_failure_is_not_retried(kind):
    sleeps = []
    op = Flaky(StoreOperationFailed("save classification", "duplicate key", kind))

    with pytest.raises(StoreOperationFailed):
        with_retry(op, sleep=sleeps.append)
    assert op.calls == 1
    assert sleeps == []


def test_other_exceptions_pass_through():
    op = Flaky(RuntimeError("bug"))

    with pytest.raises(RuntimeError):
        with_retry(op, sleep=lambda _: None)
    assert op.calls == 1


class _PgError(Exception):
    def __init__(self, sqlstate):
        super().__init__("pg error")
        self.sqlstate = sqlstate


@pytest.mark.parametrize(
    "exc, kind",
    [
        (DisconnectionError("gone"), ErrorKind.NETWORK),
        (OperationalError("SELECT 1", {}, Exception("could not connect")), ErrorKind.NETWORK),
        (OperationalError("SELECT 1", {}, _PgError("08006")), ErrorKind.NETWORK),
        (OperationalError("SELECT 1", {}, _PgError("57014")), ErrorKind.DATABASE),
        (IntegrityError("INSERT", {}, _PgError("23514")), ErrorKind.DATABASE),
    ],
)
def test_error_kind(exc, kind):
    assert error_kind(exc) is kind


def test_invalidated_connection_is_network():
    exc = IntegrityError("INSERT", {}, Exception("x"), connection_invalidated=True)

    assert error_kind(exc) is ErrorKind.NETWORK


def test_store_retries_unreachable_database(store_settings, sleeps, tmp_path):
    unreachable = create_engine(f"sqlite:///{tmp_path / 'missing' / 'history.db'}")
    store = ClassificationStore(store_settings, engine=unreachable, sleep=sleeps.append)

    with pytest.raises(StoreOperationFailed) as excinfo:
        store.list()

    assert excinfo.value.kind is ErrorKind.NETWORK
    assert str(excinfo.value).startswith("Failed to fetch classifications:")
    assert sleeps == pytest.approx([0.01, 0.015])


def test_store_recovers_after_transient_failures(store, sleeps, monkeypatch, insert_factory):
    store.create(insert_factory())
    real_execute = store._execute
    pending = [network(), network()]

    def flaky(operation, fn):
        if pending:
            raise pending.pop()
        return real_execute(operation, fn)

    monkeypatch.setattr(store, "_execute", flaky)

    page = store.list()

    assert page.count == 1
    assert len(sleeps) == 2


def test_single_record_fetch_is_not_retried(store, sleeps, monkeypatch):
    def failing(operation, fn):
        raise StoreOperationFailed(operation, "Failed to fetch", ErrorKind.NETWORK)

    monkeypatch.setattr(store, "_execute", failing)

    with pytest.raises(StoreOperationFailed):
        store.get("00000000-0000-4000-8000-000000000000")
    assert sleeps == []
