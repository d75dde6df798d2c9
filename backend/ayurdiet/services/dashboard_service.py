from ayurdiet.services.completeness import is_profile_complete
from ayurdiet.services.stores import AccountStore, ProfileStore
from ayurdiet.services.todo_store import TodoStore
from ayurdiet.services.todo_synthesizer import ActivePatient, sync


class DashboardService:
    async def roster(self, accounts: AccountStore, profiles: ProfileStore, dietitian_id: str) -> list[tuple]:
        """(patient, profile-or-None) for every id in the dietitian's roster, roster order."""
        dietitian = await accounts.get(dietitian_id)
        ids = list((dietitian.linked_patient_ids if dietitian else None) or [])
        patients = {p.id: p for p in await accounts.get_many(ids)}
        profile_map = await profiles.get_many(ids)
        return [(patients[pid], profile_map.get(pid)) for pid in ids if pid in patients]

    async def active_patients(self, accounts: AccountStore, profiles: ProfileStore, dietitian_id: str) -> list[ActivePatient]:
        return [
            ActivePatient(patient.id, profile, patient.name)
            for patient, profile in await self.roster(accounts, profiles, dietitian_id)
            if profile is None or profile.active_status == "active"
        ]

    async def refresh_todos(self, accounts: AccountStore, profiles: ProfileStore, dietitian_id: str, store: TodoStore):
        active = await self.active_patients(accounts, profiles, dietitian_id)
        return sync(store, active)

    async def summary(self, accounts: AccountStore, profiles: ProfileStore, dietitian_id: str, store: TodoStore) -> dict:
        roster = await self.roster(accounts, profiles, dietitian_id)
        all_patients = await accounts.list_by_role("patient")
        active = [(p, prof) for p, prof in roster if prof is None or prof.active_status == "active"]
        complete = sum(1 for _, prof in active if is_profile_complete(prof))

        todos = sync(store, [ActivePatient(p.id, prof, p.name) for p, prof in active])
        open_todos = [t for t in todos if not t.is_completed]

        return {
            "patients": {
                "total": len(all_patients),
                "roster": len(roster),
                "active": len(active),
                "inactive": len(roster) - len(active),
                "profiles_complete": complete,
                "profiles_incomplete": len(active) - complete,
            },
            "todos": {
                "active": len(open_todos),
                "completed": len(todos) - len(open_todos),
                "top": [t.model_dump() for t in store.top(3)],
            },
        }


dashboard_service = DashboardService()
