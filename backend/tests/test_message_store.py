from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from conftest import T0
from vanishchat.core import crypto
from vanishchat.core.errors import StorageError
from vanishchat.core.message_logic import remaining_seconds
from vanishchat.services.message_store import MessageStore


def _insert(store, username="alice", text="hi", now=T0, ttl=60):
    key = crypto.new_key()
    return store.insert(username, crypto.encrypt(text, key), key, now, ttl)


def test_insert_and_list_all(store):
    first = _insert(store, "alice", "one")
    second = _insert(store, "bob", "two", ttl=5)
    assert first != second

    rows = {row.id: row for row in store.list_all()}
    assert set(rows) == {first, second}

    row = rows[second]
    assert row.username == "bob"
    assert row.lifetime == 5
    assert row.created_at == T0
    assert crypto.decrypt(row.ciphertext, row.encryption_key) == "two"


def test_each_message_has_its_own_key(store):
    _insert(store)
    _insert(store)
    keys = [row.encryption_key for row in store.list_all()]
    assert len(set(keys)) == 2


def test_stored_times_come_back_timezone_aware(store):
    _insert(store, ttl=10)
    (row,) = store.list_all()
    assert row.created_at.tzinfo is not None
    assert remaining_seconds(row.created_at, row.lifetime, T0 + timedelta(seconds=10)) == 0


def test_delete_is_idempotent(store):
    message_id = _insert(store)
    assert store.delete_by_id(message_id) is True
    assert store.delete_by_id(message_id) is False
    assert store.delete_by_id("never-existed") is False
    assert store.list_all() == []


def test_lifetime_must_be_positive(store):
    with pytest.raises(ValueError):
        _insert(store, ttl=0)


class _BrokenSession:
    def add(self, obj):
        pass

    def execute(self, *args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    def commit(self):
        raise OperationalError("COMMIT", {}, Exception("disk full"))

    def rollback(self):
        pass

    def close(self):
        pass


def test_write_failures_become_storage_errors():
    store = MessageStore(session_factory=_BrokenSession)
    with pytest.raises(StorageError):
        _insert(store)
    with pytest.raises(StorageError):
        store.delete_by_id("abc")
    with pytest.raises(StorageError):
        store.list_all()
