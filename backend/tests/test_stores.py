"""Account and profile stores against the SQLite test database."""

import asyncio
import pytest
from ayurdiet.database import async_session, engine
from ayurdiet.services.assignment_service import initial_profile_fields
from ayurdiet.services.stores import AccountStore, ArrayUnion, ProfileStore


def run(coro):
    async def _run():
        try:
            return await coro
        finally:
            await engine.dispose()
    return asyncio.run(_run())


async def seed_accounts():
    async with async_session() as session:
        accounts = AccountStore(session)
        for uid in ("dietitian-1", "dietitian-2"):
            await accounts.create(uid, {"email": f"{uid}@example.com", "name": uid, "role": "dietitian",
                                        "linked_patient_ids": []})
        await accounts.create("patient-1", {"email": "patient-1@example.com", "name": "Arjun", "role": "patient",
                                            "linked_dietitian_id": None, "is_assigned_to_dietitian": False})
        await session.commit()


@pytest.fixture
def seeded(fresh_db):
    run(seed_accounts())


def test_claim_free_patient(seeded):
    async def scenario():
        async with async_session() as session:
            assert await AccountStore(session).claim_patient("patient-1", "dietitian-1") is True
            await session.commit()
        async with async_session() as session:
            patient = await AccountStore(session).get("patient-1")
            return patient.linked_dietitian_id, patient.is_assigned_to_dietitian

    assert run(scenario()) == ("dietitian-1", True)


def test_claim_lost_to_other_dietitian_leaves_link(seeded):
    async def scenario():
        async with async_session() as session:
            assert await AccountStore(session).claim_patient("patient-1", "dietitian-2") is True
            await session.commit()

        async with async_session() as session:
            claimed = await AccountStore(session).claim_patient("patient-1", "dietitian-1")
            await session.commit()

        async with async_session() as session:
            patient = await AccountStore(session).get("patient-1")
            return claimed, patient.linked_dietitian_id, patient.is_assigned_to_dietitian

    assert run(scenario()) == (False, "dietitian-2", True)


def test_reclaim_by_same_dietitian(seeded):
    async def scenario():
        async with async_session() as session:
            accounts = AccountStore(session)
            first = await accounts.claim_patient("patient-1", "dietitian-1")
            second = await accounts.claim_patient("patient-1", "dietitian-1")
            await session.commit()
            return first, second

    assert run(scenario()) == (True, True)


def test_claim_rejects_non_patient(seeded):
    async def scenario():
        async with async_session() as session:
            return await AccountStore(session).claim_patient("dietitian-2", "dietitian-1")

    assert run(scenario()) is False


def test_array_union_skips_duplicates(seeded):
    async def scenario():
        async with async_session() as session:
            accounts = AccountStore(session)
            await accounts.update("dietitian-1", {"linked_patient_ids": ArrayUnion("patient-1")})
            await accounts.update("dietitian-1", {"linked_patient_ids": ArrayUnion("patient-1", "patient-2")})
            missing = await accounts.update("nobody", {"name": "x"})
            await session.commit()
        async with async_session() as session:
            dietitian = await AccountStore(session).get("dietitian-1")
            return missing, dietitian.linked_patient_ids

    assert run(scenario()) == (False, ["patient-1", "patient-2"])


def test_profile_create_is_insert_if_absent(seeded):
    async def scenario():
        async with async_session() as session:
            profiles = ProfileStore(session)
            first = await profiles.create("patient-1", initial_profile_fields("dietitian-1", "Arjun"))
            second = await profiles.create("patient-1", initial_profile_fields("dietitian-2", "Arjun"))
            await session.commit()
        async with async_session() as session:
            profile = await ProfileStore(session).get("patient-1")
            return first, second, profile.assigned_dietitian_id

    assert run(scenario()) == (True, False, "dietitian-1")
