import mongomock
import pytest
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

import database
import main
from schemas import Task, User


@pytest.fixture(autouse=True)
def _reset_globals():
    yield
    database.close()


def test_connect_publishes_db_and_indexes(monkeypatch):
    monkeypatch.setattr(database, "MongoClient", mongomock.MongoClient)
    db = database.connect("mongodb://example.invalid", "kanban_test")

    assert database.db is db
    assert database.get_db() is db
    assert db.name == "kanban_test"
    database.create_document(db, "user", User(username="alice"))
    with pytest.raises(DuplicateKeyError):
        database.create_document(db, "user", User(username="alice"))


class _UnreachableClient:
    def __init__(self, *_args, **_kwargs):
        self.closed = False
        self.admin = self

    def command(self, _name):
        raise ServerSelectionTimeoutError("connection refused")

    def close(self):
        self.closed = True


def test_connect_failure_leaves_db_unset(monkeypatch):
    monkeypatch.setattr(database, "MongoClient", _UnreachableClient)
    with pytest.raises(ServerSelectionTimeoutError):
        database.connect()
    assert database.db is None


def test_startup_exits_when_database_unreachable(monkeypatch):
    monkeypatch.setattr(database, "MongoClient", _UnreachableClient)
    with pytest.raises(SystemExit) as excinfo:
        main._connect_or_exit()
    assert excinfo.value.code == 1


def test_create_document_adds_timestamps():
    db = mongomock.MongoClient().db
    task_id = database.create_document(db, "task", Task(text="write tests", owners=["u1"]))
    doc = database.find_one(db, "task", {"text": "write tests"})
    assert str(doc["_id"]) == task_id
    assert doc["status"] == "todo"
    assert doc["owners"] == ["u1"]
    assert doc["created_at"] == doc["updated_at"]
