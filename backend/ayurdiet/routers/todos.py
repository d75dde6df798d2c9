from uuid import uuid4
from fastapi import APIRouter, Depends, HTTPException, Query
from ayurdiet.auth import UserPrincipal, require_role
from ayurdiet.dependencies import get_account_store, get_profile_store, get_todo_store
from ayurdiet.schemas.todo import TodoCreate, TodoListResponse, TodoRecord, TodoUpdate
from ayurdiet.services.dashboard_service import dashboard_service
from ayurdiet.services.stores import AccountStore, ProfileStore
from ayurdiet.services.todo_store import TodoStore

router = APIRouter()


def _list_response(todos: list[TodoRecord]) -> TodoListResponse:
    completed = sum(1 for t in todos if t.is_completed)
    return TodoListResponse(todos=todos, active=len(todos) - completed, completed=completed)


@router.get("", response_model=TodoListResponse)
async def list_todos(store: TodoStore = Depends(get_todo_store)):
    return _list_response(store.load())


@router.post("", response_model=TodoRecord, status_code=201)
async def create_todo(body: TodoCreate, store: TodoStore = Depends(get_todo_store)):
    record = TodoRecord(id=str(uuid4()), is_system_generated=False, **body.model_dump())
    store.add(record)
    return record


@router.get("/top", response_model=list[TodoRecord])
async def top_todos(
    limit: int = Query(3, ge=1, le=50),
    store: TodoStore = Depends(get_todo_store),
):
    return store.top(limit)


@router.post("/sync", response_model=TodoListResponse)
async def sync_todos(
    accounts: AccountStore = Depends(get_account_store),
    profiles: ProfileStore = Depends(get_profile_store),
    store: TodoStore = Depends(get_todo_store),
    current_user: UserPrincipal = Depends(require_role("dietitian")),
):
    """Re-derive system reminders from the current roster and profiles."""
    todos = await dashboard_service.refresh_todos(accounts, profiles, current_user.user_id, store)
    return _list_response(todos)


@router.patch("/{todo_id}", response_model=TodoRecord)
async def update_todo(todo_id: str, body: TodoUpdate, store: TodoStore = Depends(get_todo_store)):
    updated = store.update(todo_id, body.model_dump(exclude_none=True))
    if updated is None:
        raise HTTPException(status_code=404, detail="Todo not found")
    return updated


@router.delete("/{todo_id}", status_code=204)
async def delete_todo(todo_id: str, store: TodoStore = Depends(get_todo_store)):
    if not store.remove(todo_id):
        raise HTTPException(status_code=404, detail="Todo not found")
