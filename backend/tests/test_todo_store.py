import json
from ayurdiet.schemas.todo import TodoRecord
from ayurdiet.services.todo_store import FileStorage, MemoryStorage, TodoStore


class BrokenStorage:
    def read(self, key):
        raise OSError("disk gone")

    def write(self, key, value):
        raise OSError("disk gone")

    def delete(self, key):
        raise OSError("disk gone")


def todo(todo_id, **fields):
    return TodoRecord(id=todo_id, title=fields.pop("title", todo_id), **fields)


def test_missing_blob_loads_empty():
    assert TodoStore(MemoryStorage()).load() == []


def test_corrupt_blob_loads_empty():
    storage = MemoryStorage()
    storage.write("dietitian_todos", "{not json")
    assert TodoStore(storage).load() == []

    storage.write("dietitian_todos", json.dumps({"id": "x"}))
    assert TodoStore(storage).load() == []


def test_malformed_entries_are_skipped():
    storage = MemoryStorage()
    storage.write("dietitian_todos", json.dumps([{"id": "ok", "title": "Fine"}, {"title": "no id"}]))
    assert [t.id for t in TodoStore(storage).load()] == ["ok"]


def test_storage_errors_never_raise():
    store = TodoStore(BrokenStorage())
    assert store.load() == []
    store.save([todo("a")])
    store.clear()
    assert store.add(todo("a")) is True


def test_add_is_noop_for_existing_id():
    store = TodoStore(MemoryStorage())
    assert store.add(todo("a", title="First")) is True
    assert store.add(todo("a", title="Second")) is False
    assert [t.title for t in store.load()] == ["First"]


def test_update_merges_fields_and_keeps_id():
    store = TodoStore(MemoryStorage())
    store.add(todo("a", priority="low"))

    updated = store.update("a", {"is_completed": True, "id": "hijack"})

    assert updated.id == "a"
    assert updated.is_completed is True
    assert updated.priority == "low"
    assert store.get("a").is_completed is True
    assert store.update("missing", {"is_completed": True}) is None


def test_remove():
    store = TodoStore(MemoryStorage())
    store.add(todo("a"))
    store.add(todo("b"))
    assert store.remove("a") is True
    assert store.remove("a") is False
    assert [t.id for t in store.load()] == ["b"]


def test_top_orders_by_priority_then_newest():
    store = TodoStore(MemoryStorage())
    store.save([
        todo("low", priority="low", created_at="2026-01-05T00:00:00+00:00"),
        todo("high-old", priority="high", created_at="2026-01-01T00:00:00+00:00"),
        todo("high-new", priority="high", created_at="2026-01-03T00:00:00+00:00"),
        todo("done", priority="high", is_completed=True),
        todo("medium", priority="medium", created_at="2026-01-04T00:00:00+00:00"),
    ])

    assert [t.id for t in store.top(3)] == ["high-new", "high-old", "medium"]
    assert [t.id for t in store.active()] == ["low", "high-old", "high-new", "medium"]



def test_top_reads_utc_z_timestamps():
    store = TodoStore(MemoryStorage())
    store.save([
        todo("offset", priority="high", created_at="2026-01-02T00:00:00+00:00"),
        todo("zulu-new", priority="high", created_at="2026-01-03T00:00:00Z"),
        todo("zulu-old", priority="high", created_at="2026-01-01T00:00:00Z"),
    ])

    assert [t.id for t in store.top(3)] == ["zulu-new", "offset", "zulu-old"]


def test_keys_are_isolated():
    storage = MemoryStorage()
    TodoStore(storage, "dietitian_todos:d1").add(todo("a"))
    assert TodoStore(storage, "dietitian_todos:d2").load() == []


def test_file_storage_round_trip(tmp_path):
    storage = FileStorage(tmp_path / "todos")
    store = TodoStore(storage, "dietitian_todos:d1")
    store.add(todo("a", priority="high"))

    assert TodoStore(FileStorage(tmp_path / "todos"), "dietitian_todos:d1").get("a").priority == "high"
    assert list((tmp_path / "todos").glob("*.json"))

    store.clear()
    assert store.load() == []
    store.clear()


def test_file_storage_sanitizes_keys(tmp_path):
    storage = FileStorage(tmp_path)
    storage.write("../../escape", "[]")
    assert storage.read("../../escape") == "[]"
    assert all(p.parent == tmp_path for p in tmp_path.iterdir())
