from functools import lru_cache
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
from ayurdiet.auth import UserPrincipal, require_role
from ayurdiet.config import get_settings
from ayurdiet.database import get_db
from ayurdiet.services.assignment_service import AssignmentCoordinator
from ayurdiet.services.diet_plan_service import DietPlanClient
from ayurdiet.services.stores import AccountStore, ProfileStore
from ayurdiet.services.todo_store import FileStorage, StoragePort, TodoStore


def get_account_store(db: AsyncSession = Depends(get_db)) -> AccountStore:
    return AccountStore(db)


def get_profile_store(db: AsyncSession = Depends(get_db)) -> ProfileStore:
    return ProfileStore(db)


def get_coordinator(
    accounts: AccountStore = Depends(get_account_store),
    profiles: ProfileStore = Depends(get_profile_store),
) -> AssignmentCoordinator:
    return AssignmentCoordinator(accounts, profiles)


@lru_cache()
def get_todo_storage() -> StoragePort:
    return FileStorage(get_settings().todo_storage_dir)


def todo_store_for(storage: StoragePort, dietitian_id: str) -> TodoStore:
    return TodoStore(storage, f"{get_settings().todo_storage_key}:{dietitian_id}")


def get_todo_store(
    storage: StoragePort = Depends(get_todo_storage),
    current_user: UserPrincipal = Depends(require_role("dietitian")),
) -> TodoStore:
    return todo_store_for(storage, current_user.user_id)


def get_diet_plan_client() -> DietPlanClient:
    return DietPlanClient()
