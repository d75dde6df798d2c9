"""
System-generated todos for a dietitian.

Records are keyed by stable ids so the merge below can run any number of
times: defaults use a constant id, per-patient reminders use
`<kind>-<patient_id>`. User-created records pass through untouched.
"""

import logging
from typing import Any, Iterable, NamedTuple, Optional
from ayurdiet.schemas.todo import TodoRecord
from ayurdiet.services.completeness import is_profile_complete

logger = logging.getLogger(__name__)

COMPLETE_PROFILE = "complete-profile"

DEFAULT_TODOS = (
    {
        "id": "system-review-feedback",
        "title": "Review patient feedback",
        "description": "Go through unread personal and diet chart feedback from your patients.",
        "priority": "medium",
    },
    {
        "id": "system-publish-diet-plans",
        "title": "Publish generated diet plans",
        "description": "Check newly generated diet charts and publish the ones ready for patients.",
        "priority": "medium",
    },
    {
        "id": "system-weekly-checkin",
        "title": "Weekly patient check-in",
        "description": "Follow up with active patients on adherence, digestion and sleep.",
        "priority": "low",
    },
)


class ActivePatient(NamedTuple):
    patient_id: str
    profile: Optional[Any]
    name: Optional[str] = None


def todo_id(kind: str, patient_id: str) -> str:
    return f"{kind}-{patient_id}"


def _complete_profile_todo(patient: ActivePatient) -> TodoRecord:
    name = patient.name or patient.patient_id
    return TodoRecord(
        id=todo_id(COMPLETE_PROFILE, patient.patient_id),
        title=f"Complete profile for {name}",
        description=f"Fill in the Ayurvedic intake for {name} so a diet plan can be generated.",
        priority="high",
        is_system_generated=True,
        patient_id=patient.patient_id,
        patient_name=patient.name,
    )


def _is_profile_todo(todo: TodoRecord) -> bool:
    return (
        todo.is_system_generated
        and todo.patient_id is not None
        and todo.id == todo_id(COMPLETE_PROFILE, todo.patient_id)
    )


def synthesize(active_patients: Iterable, existing_todos: Iterable[TodoRecord]) -> list[TodoRecord]:
    """
    Merge system reminders into `existing_todos` and return the new list.

    - default reminders are added once and never duplicated
    - an incomplete profile gets exactly one open complete-profile record
      (a completed one is reopened)
    - a completed profile closes its open record, which is kept as history
    - open complete-profile records of patients no longer active are dropped
    """
    todos: list[TodoRecord] = []
    index: dict[str, int] = {}
    for todo in existing_todos:
        if todo.id in index:
            continue
        index[todo.id] = len(todos)
        todos.append(todo)

    for default in DEFAULT_TODOS:
        if default["id"] not in index:
            index[default["id"]] = len(todos)
            todos.append(TodoRecord(is_system_generated=True, **default))

    active_ids = set()
    for entry in active_patients:
        patient = ActivePatient(*entry)
        active_ids.add(patient.patient_id)
        key = todo_id(COMPLETE_PROFILE, patient.patient_id)
        position = index.get(key)

        if not is_profile_complete(patient.profile):
            if position is None:
                index[key] = len(todos)
                todos.append(_complete_profile_todo(patient))
            elif todos[position].is_completed:
                todos[position] = todos[position].model_copy(update={"is_completed": False})
        elif position is not None and not todos[position].is_completed:
            todos[position] = todos[position].model_copy(update={"is_completed": True})

    return [
        t for t in todos
        if not (_is_profile_todo(t) and not t.is_completed and t.patient_id not in active_ids)
    ]


def sync(store, active_patients: Iterable) -> list[TodoRecord]:
    """Run `synthesize` against a TodoStore, writing only when something changed."""
    existing = store.load()
    merged = synthesize(active_patients, existing)
    if merged != existing:
        store.save(merged)
        logger.debug("Todo list %s updated (%d -> %d records)", store.key, len(existing), len(merged))
    return merged
