import asyncio
import os
import tempfile

_tmp = tempfile.mkdtemp(prefix="ayurdiet-test-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_tmp}/test.db"
os.environ["TODO_STORAGE_DIR"] = os.path.join(_tmp, "todos")
os.environ["SEED_DEMO_USERS"] = "false"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["IDENTITY_PROVIDER_SECRET"] = "test-provider-secret"

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from ayurdiet.exceptions import StoreError
from ayurdiet.services.stores import resolve_field_update
from ayurdiet.services.todo_store import MemoryStorage


def injected(op: str, key: str) -> StoreError:
    return StoreError(op, key, RuntimeError("injected failure"))


class FakeAccountStore:
    """Dict-backed account store. Add "op" or "op:key" to `fail` to make a call raise StoreError."""

    def __init__(self, records=()):
        self.records = {r["id"]: dict(r) for r in records}
        self.fail = set()
        self.writes = []

    def _maybe_fail(self, op, key):
        if op in self.fail or f"{op}:{key}" in self.fail:
            raise injected(op, key)

    async def get(self, user_id):
        self._maybe_fail("get", user_id)
        return self.records.get(user_id)

    async def get_many(self, user_ids):
        return [self.records[i] for i in user_ids if i in self.records]

    async def list_by_role(self, role):
        return [r for r in self.records.values() if r.get("role") == role]

    async def update(self, user_id, fields):
        self._maybe_fail("update", user_id)
        record = self.records.get(user_id)
        if record is None:
            return False
        for key, value in fields.items():
            record[key] = resolve_field_update(record.get(key), value)
        self.writes.append(("update", user_id))
        return True

    async def claim_patient(self, patient_id, dietitian_id):
        self._maybe_fail("claim", patient_id)
        record = self.records.get(patient_id)
        if record is None or record.get("role") != "patient":
            return False
        if record.get("linked_dietitian_id") not in (None, dietitian_id):
            return False
        record.update(linked_dietitian_id=dietitian_id, is_assigned_to_dietitian=True)
        self.writes.append(("claim", patient_id))
        return True


class FakeProfileStore:
    def __init__(self):
        self.records = {}
        self.fail = set()
        self.writes = []

    def _maybe_fail(self, op, key):
        if op in self.fail or f"{op}:{key}" in self.fail:
            raise injected(op, key)

    async def get(self, patient_id):
        self._maybe_fail("get", patient_id)
        return self.records.get(patient_id)

    async def get_many(self, patient_ids):
        return {i: self.records[i] for i in patient_ids if i in self.records}

    async def create(self, patient_id, initial_fields):
        self._maybe_fail("create", patient_id)
        if patient_id in self.records:
            return False
        self.records[patient_id] = {"patient_id": patient_id, **initial_fields}
        self.writes.append(("create", patient_id))
        return True

    async def update(self, patient_id, fields):
        self._maybe_fail("update", patient_id)
        record = self.records.get(patient_id)
        if record is None:
            return None
        for key, value in fields.items():
            record[key] = resolve_field_update(record.get(key), value)
        self.writes.append(("update", patient_id))
        return record


@pytest.fixture
def accounts():
    return FakeAccountStore([
        {"id": "dietitian-1", "name": "Dr. Rao", "role": "dietitian", "linked_patient_ids": []},
        {"id": "dietitian-2", "name": "Dr. Iyer", "role": "dietitian", "linked_patient_ids": []},
        {"id": "patient-1", "name": "Arjun", "role": "patient",
         "linked_dietitian_id": None, "is_assigned_to_dietitian": False},
        {"id": "patient-2", "name": "Priya", "role": "patient",
         "linked_dietitian_id": None, "is_assigned_to_dietitian": False},
    ])


@pytest.fixture
def profiles():
    return FakeProfileStore()


@pytest.fixture
def complete_profile():
    return {
        "age": 34,
        "gender": "female",
        "weight_kg": 61.5,
        "height_cm": 164.0,
        "activity_level": "moderate",
        "food_preference": "veg",
        "cuisine_preference": "Indian",
        "body_frame": {"option": "a", "description": "Thin, light frame"},
        "skin_type": {"option": "b", "description": "Warm, oily"},
        "hair_type": {"option": "c", "description": "Thick, wavy"},
        "agni_strength": "Sama",
        "current_season": "winter",
        "diseases": [],
    }


@pytest.fixture
def todo_storage():
    return MemoryStorage()


@pytest.fixture
def fresh_db():
    """Empty schema on the test database."""
    from ayurdiet.database import Base, engine
    from ayurdiet.main import app  # noqa: F401  registers every table

    async def reset_db():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)
        await engine.dispose()

    asyncio.run(reset_db())


@pytest.fixture
def client(fresh_db, todo_storage):
    from ayurdiet.dependencies import get_todo_storage
    from ayurdiet.main import app

    app.dependency_overrides[get_todo_storage] = lambda: todo_storage
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def provider_token(uid: str, email: str = None, secret: str = "test-provider-secret", **claims) -> str:
    """ID token as the identity provider would issue it."""
    payload = {"sub": uid, "email": email or f"{uid}@example.com", **claims}
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture
def id_token():
    return provider_token


@pytest.fixture
def signup(client):
    """Create an account and return auth headers for it."""
    def _signup(uid: str, role: str = "patient", first_name: str = None) -> dict:
        response = client.post(
            "/api/auth/signup",
            json={
                "id_token": provider_token(uid),
                "first_name": first_name or uid.replace("-", " ").title(),
                "role": role,
            },
        )
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}
    return _signup


@pytest.fixture
def admin_headers(client):
    """Admins can't sign themselves up; create one directly in the store."""
    from ayurdiet.auth import create_token
    from ayurdiet.database import async_session, engine
    from ayurdiet.models.user import User

    async def create_admin():
        async with async_session() as session:
            user = User(id="admin-1", email="admin-1@example.com", name="Admin", role="admin")
            session.add(user)
            await session.commit()
            token = create_token(user)
        await engine.dispose()
        return token

    return {"Authorization": f"Bearer {asyncio.run(create_admin())}"}
