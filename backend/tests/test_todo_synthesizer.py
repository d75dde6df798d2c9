from ayurdiet.schemas.todo import TodoRecord
from ayurdiet.services.todo_store import MemoryStorage, TodoStore
from ayurdiet.services.todo_synthesizer import (
    COMPLETE_PROFILE, DEFAULT_TODOS, ActivePatient, synthesize, sync, todo_id,
)

DEFAULT_IDS = {d["id"] for d in DEFAULT_TODOS}


def profile_todos(todos, patient_id):
    return [t for t in todos if t.id == todo_id(COMPLETE_PROFILE, patient_id)]


def test_defaults_are_created_once():
    first = synthesize([], [])
    assert {t.id for t in first} == DEFAULT_IDS
    assert all(t.is_system_generated for t in first)

    second = synthesize([], first)
    assert second == first


def test_completed_default_is_not_recreated():
    first = synthesize([], [])
    done = [t.model_copy(update={"is_completed": True}) for t in first]

    again = synthesize([], done)

    assert len(again) == len(DEFAULT_IDS)
    assert all(t.is_completed for t in again)


def test_incomplete_profile_gets_one_open_todo():
    todos = synthesize([ActivePatient("p1", None, "Arjun")], [])

    records = profile_todos(todos, "p1")
    assert len(records) == 1
    record = records[0]
    assert record.is_completed is False
    assert record.is_system_generated is True
    assert record.priority == "high"
    assert record.patient_id == "p1"
    assert record.patient_name == "Arjun"
    assert "Arjun" in record.title


def test_synthesize_is_idempotent(complete_profile):
    patients = [
        ActivePatient("p1", {"age": 30}, "Arjun"),
        ActivePatient("p2", complete_profile, "Priya"),
        ("p3", None, None),
    ]
    first = synthesize(patients, [])
    second = synthesize(patients, first)

    assert second == first
    assert len(profile_todos(second, "p1")) == 1
    assert len(profile_todos(second, "p3")) == 1
    assert profile_todos(second, "p2") == []


def test_todo_auto_completes_when_profile_becomes_complete(complete_profile):
    incomplete = dict(complete_profile, age=None)
    todos = synthesize([ActivePatient("p1", incomplete, "Arjun")], [])

    todos = synthesize([ActivePatient("p1", complete_profile, "Arjun")], todos)

    records = profile_todos(todos, "p1")
    assert len(records) == 1
    assert records[0].is_completed is True


def test_completed_todo_reopens_instead_of_duplicating(complete_profile):
    todos = synthesize([ActivePatient("p1", None, "Arjun")], [])
    todos = synthesize([ActivePatient("p1", complete_profile, "Arjun")], todos)

    todos = synthesize([ActivePatient("p1", dict(complete_profile, gender=None), "Arjun")], todos)

    records = profile_todos(todos, "p1")
    assert len(records) == 1
    assert records[0].is_completed is False


def test_open_todo_of_inactive_patient_is_pruned(complete_profile):
    todos = synthesize([ActivePatient("p1", None), ActivePatient("p2", None)], [])
    todos = synthesize([ActivePatient("p2", complete_profile)], todos)

    todos = synthesize([], todos)

    assert profile_todos(todos, "p1") == []
    kept = profile_todos(todos, "p2")
    assert len(kept) == 1 and kept[0].is_completed is True


def test_user_todos_are_untouched():
    mine = TodoRecord(id="abc", title="Call lab", description="Ask for reports", patient_id="p1")
    lookalike = TodoRecord(id=todo_id(COMPLETE_PROFILE, "p9"), title="Mine", patient_id="p9")

    todos = synthesize([], [mine, lookalike])

    assert mine in todos
    assert lookalike in todos


def test_duplicate_existing_ids_collapse():
    record = TodoRecord(
        id=todo_id(COMPLETE_PROFILE, "p1"), title="Complete profile", is_system_generated=True, patient_id="p1",
    )
    todos = synthesize([ActivePatient("p1", None)], [record, record])
    assert len(profile_todos(todos, "p1")) == 1


class CountingStorage(MemoryStorage):
    def __init__(self):
        super().__init__()
        self.writes = 0

    def write(self, key, value):
        self.writes += 1
        super().write(key, value)


def test_sync_writes_only_on_change():
    storage = CountingStorage()
    store = TodoStore(storage, "dietitian_todos:d1")
    patients = [ActivePatient("p1", None, "Arjun")]

    first = sync(store, patients)
    assert storage.writes == 1
    assert store.load() == first

    second = sync(store, patients)
    assert storage.writes == 1
    assert second == first


def test_sync_preserves_user_records():
    store = TodoStore(MemoryStorage())
    store.add(TodoRecord(id="mine", title="Plan workshop", priority="low"))

    sync(store, [ActivePatient("p1", None)])

    ids = {t.id for t in store.load()}
    assert "mine" in ids
    assert todo_id(COMPLETE_PROFILE, "p1") in ids
    assert DEFAULT_IDS <= ids
