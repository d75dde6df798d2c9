from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from ayurdiet.auth import UserPrincipal, require_role
from ayurdiet.dependencies import get_account_store, get_coordinator, get_profile_store, get_todo_store
from ayurdiet.schemas.user import PatientListItem, PatientListResponse
from ayurdiet.services.assignment_service import AssignmentCoordinator, AssignmentStatus
from ayurdiet.services.completeness import is_profile_complete, missing_profile_fields
from ayurdiet.services.dashboard_service import dashboard_service
from ayurdiet.services.stores import AccountStore, ProfileStore
from ayurdiet.services.todo_store import TodoStore

router = APIRouter()

STATUS_CODES = {
    AssignmentStatus.ASSIGNED: 201,
    AssignmentStatus.ALREADY_ASSIGNED: 200,
    AssignmentStatus.UNASSIGNED: 200,
    AssignmentStatus.ASSIGNED_ELSEWHERE: 409,
    AssignmentStatus.NOT_FOUND: 404,
    AssignmentStatus.STORE_FAILURE: 502,
}


def _matches(search: str, patient, profile) -> bool:
    needle = search.lower()
    haystack = [patient.name, patient.email]
    if profile is not None:
        haystack += [profile.dosha, profile.agni_strength]
    return any(needle in (value or "").lower() for value in haystack)


@router.get("/patients", response_model=PatientListResponse)
async def list_patients(
    search: str = Query("", description="Search by name, email, dosha or agni"),
    accounts: AccountStore = Depends(get_account_store),
    profiles: ProfileStore = Depends(get_profile_store),
    current_user: UserPrincipal = Depends(require_role("dietitian")),
):
    """All patients, flagged with whether they are on this dietitian's roster."""
    patients = await accounts.list_by_role("patient")
    profile_map = await profiles.get_many(p.id for p in patients)
    roster = set(current_user.linked_patient_ids)

    items = []
    for patient in patients:
        profile = profile_map.get(patient.id)
        if search.strip() and not _matches(search.strip(), patient, profile):
            continue
        holder = patient.linked_dietitian_id
        items.append(
            PatientListItem(
                id=patient.id,
                name=patient.name,
                email=patient.email,
                is_added=patient.id in roster,
                is_assigned_elsewhere=bool(holder) and holder != current_user.user_id,
                dosha=profile.dosha if profile else None,
                agni_strength=profile.agni_strength if profile else None,
                age=profile.age if profile else None,
                active_status=profile.active_status if profile else None,
                profile_complete=is_profile_complete(profile),
            )
        )
    return PatientListResponse(patients=items, total=len(items))


@router.get("/roster")
async def get_roster(
    accounts: AccountStore = Depends(get_account_store),
    profiles: ProfileStore = Depends(get_profile_store),
    current_user: UserPrincipal = Depends(require_role("dietitian")),
):
    roster = await dashboard_service.roster(accounts, profiles, current_user.user_id)
    return {
        "patients": [
            {
                "id": patient.id,
                "name": patient.name,
                "email": patient.email,
                "active_status": profile.active_status if profile else None,
                "has_profile": profile is not None,
                "profile_complete": is_profile_complete(profile),
                "missing_fields": missing_profile_fields(profile),
            }
            for patient, profile in roster
        ],
        "total": len(roster),
    }


@router.post("/patients/{patient_id}/assign")
async def assign_patient(
    patient_id: str,
    coordinator: AssignmentCoordinator = Depends(get_coordinator),
    accounts: AccountStore = Depends(get_account_store),
    profiles: ProfileStore = Depends(get_profile_store),
    todo_store: TodoStore = Depends(get_todo_store),
    current_user: UserPrincipal = Depends(require_role("dietitian")),
):
    result = await coordinator.assign(current_user.user_id, patient_id)
    if result.status is AssignmentStatus.ASSIGNED:
        await dashboard_service.refresh_todos(accounts, profiles, current_user.user_id, todo_store)
    return JSONResponse(status_code=STATUS_CODES[result.status], content=result.to_dict())


@router.delete("/patients/{patient_id}/assign")
async def unassign_patient(
    patient_id: str,
    coordinator: AssignmentCoordinator = Depends(get_coordinator),
    accounts: AccountStore = Depends(get_account_store),
    profiles: ProfileStore = Depends(get_profile_store),
    todo_store: TodoStore = Depends(get_todo_store),
    current_user: UserPrincipal = Depends(require_role("dietitian")),
):
    result = await coordinator.unassign(current_user.user_id, patient_id)
    if result.ok:
        await dashboard_service.refresh_todos(accounts, profiles, current_user.user_id, todo_store)
    return JSONResponse(status_code=STATUS_CODES[result.status], content=result.to_dict())


@router.get("/dashboard")
async def get_dashboard(
    accounts: AccountStore = Depends(get_account_store),
    profiles: ProfileStore = Depends(get_profile_store),
    todo_store: TodoStore = Depends(get_todo_store),
    current_user: UserPrincipal = Depends(require_role("dietitian")),
):
    return await dashboard_service.summary(accounts, profiles, current_user.user_id, todo_store)
