"""
Account and profile stores over an AsyncSession.

Every write runs inside its own SAVEPOINT, so a failed write rolls back only
itself and leaves the session usable for the next independent write. Errors
surface as StoreError; the request-level transaction is committed by get_db.
"""

from typing import Any, Iterable, Optional
from sqlalchemy import select, update, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from ayurdiet.exceptions import StoreError
from ayurdiet.models.user import User
from ayurdiet.models.patient_profile import PatientProfile


class ArrayUnion:
    """Add values to a list field, skipping ones already present."""

    def __init__(self, *values):
        self.values = values

    def apply(self, current: Optional[Iterable]) -> list:
        merged = list(current or [])
        for value in self.values:
            if value not in merged:
                merged.append(value)
        return merged


class ArrayRemove:
    """Remove every occurrence of the given values from a list field."""

    def __init__(self, *values):
        self.values = values

    def apply(self, current: Optional[Iterable]) -> list:
        return [v for v in (current or []) if v not in self.values]


def resolve_field_update(current: Any, value: Any) -> Any:
    if isinstance(value, (ArrayUnion, ArrayRemove)):
        return value.apply(current)
    return value


class AccountStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, user_id: str) -> Optional[User]:
        try:
            return await self.db.get(User, user_id)
        except SQLAlchemyError as e:
            raise StoreError("get", f"users/{user_id}", e) from e

    async def get_by_email(self, email: str) -> Optional[User]:
        try:
            return await self.db.scalar(select(User).where(User.email == email.lower().strip()))
        except SQLAlchemyError as e:
            raise StoreError("get", f"users?email={email}", e) from e

    async def list_by_role(self, role: str) -> list[User]:
        try:
            result = await self.db.execute(select(User).where(User.role == role).order_by(User.name))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StoreError("query", f"users?role={role}", e) from e

    async def get_many(self, user_ids: Iterable[str]) -> list[User]:
        ids = list(user_ids)
        if not ids:
            return []
        try:
            result = await self.db.execute(select(User).where(User.id.in_(ids)))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StoreError("query", "users?id=in", e) from e

    async def create(self, user_id: str, fields: dict) -> User:
        try:
            async with self.db.begin_nested():
                user = User(id=user_id, **fields)
                self.db.add(user)
            await self.db.refresh(user)
            return user
        except SQLAlchemyError as e:
            raise StoreError("create", f"users/{user_id}", e) from e

    async def update(self, user_id: str, fields: dict) -> bool:
        """Apply a partial update. List fields accept ArrayUnion/ArrayRemove. False if absent."""
        try:
            async with self.db.begin_nested():
                user = await self.db.get(User, user_id)
                if user is None:
                    return False
                for key, value in fields.items():
                    setattr(user, key, resolve_field_update(getattr(user, key), value))
            return True
        except SQLAlchemyError as e:
            raise StoreError("update", f"users/{user_id}", e) from e

    async def claim_patient(self, patient_id: str, dietitian_id: str) -> bool:
        """
        Link the patient to `dietitian_id` iff it is currently unassigned (or
        already held by the same dietitian). Single conditional UPDATE, so two
        dietitians racing for one patient cannot both win.
        """
        stmt = (
            update(User)
            .where(
                User.id == patient_id,
                User.role == "patient",
                or_(User.linked_dietitian_id.is_(None), User.linked_dietitian_id == dietitian_id),
            )
            .values(linked_dietitian_id=dietitian_id, is_assigned_to_dietitian=True)
            .execution_options(synchronize_session="evaluate")
        )
        try:
            async with self.db.begin_nested():
                result = await self.db.execute(stmt)
            return result.rowcount == 1
        except SQLAlchemyError as e:
            raise StoreError("claim", f"users/{patient_id}", e) from e


class ProfileStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, patient_id: str) -> Optional[PatientProfile]:
        try:
            return await self.db.get(PatientProfile, patient_id)
        except SQLAlchemyError as e:
            raise StoreError("get", f"patients/{patient_id}", e) from e

    async def get_many(self, patient_ids: Iterable[str]) -> dict[str, PatientProfile]:
        ids = list(patient_ids)
        if not ids:
            return {}
        try:
            result = await self.db.execute(select(PatientProfile).where(PatientProfile.patient_id.in_(ids)))
            return {p.patient_id: p for p in result.scalars().all()}
        except SQLAlchemyError as e:
            raise StoreError("query", "patients?id=in", e) from e

    async def create(self, patient_id: str, initial_fields: dict) -> bool:
        """Insert the profile if absent. True when a row was created."""
        try:
            async with self.db.begin_nested():
                if await self.db.get(PatientProfile, patient_id) is not None:
                    return False
                profile = PatientProfile(patient_id=patient_id, **initial_fields)
                self.db.add(profile)
            await self.db.refresh(profile)
            return True
        except IntegrityError:
            # Lost an insert race; the row exists now.
            return False
        except SQLAlchemyError as e:
            raise StoreError("create", f"patients/{patient_id}", e) from e

    async def update(self, patient_id: str, fields: dict) -> Optional[PatientProfile]:
        try:
            async with self.db.begin_nested():
                profile = await self.db.get(PatientProfile, patient_id)
                if profile is None:
                    return None
                for key, value in fields.items():
                    setattr(profile, key, resolve_field_update(getattr(profile, key), value))
            await self.db.refresh(profile)
            return profile
        except SQLAlchemyError as e:
            raise StoreError("update", f"patients/{patient_id}", e) from e
