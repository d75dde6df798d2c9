import logging
from fastapi import APIRouter, Depends, HTTPException
from ayurdiet.auth import UserPrincipal, get_current_user, require_role
from ayurdiet.dependencies import (
    get_account_store, get_coordinator, get_profile_store, get_todo_storage, todo_store_for,
)
from ayurdiet.exceptions import StoreError
from ayurdiet.schemas.profile import CompletenessResponse, ProfileResponse, ProfileUpdate, StatusUpdate
from ayurdiet.services.assignment_service import AssignmentCoordinator
from ayurdiet.services.completeness import is_profile_complete, missing_profile_fields
from ayurdiet.services.dashboard_service import dashboard_service
from ayurdiet.services.stores import AccountStore, ProfileStore
from ayurdiet.services.todo_store import StoragePort

logger = logging.getLogger(__name__)

router = APIRouter()


def _check_access(current_user: UserPrincipal, patient_id: str):
    if not current_user.has_access_to_patient(patient_id):
        raise HTTPException(status_code=403, detail="Access denied: patient is not on your roster")


async def _load_profile(patient_id: str, accounts: AccountStore, profiles: ProfileStore,
                        coordinator: AssignmentCoordinator):
    """Read the profile, creating it first for a linked patient whose profile write never landed."""
    profile = await profiles.get(patient_id)
    if profile is not None:
        return profile
    patient = await accounts.get(patient_id)
    if patient is None or patient.role != "patient":
        raise HTTPException(status_code=404, detail="Patient not found")
    if await coordinator.ensure_profile(patient):
        profile = await profiles.get(patient_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not created yet: patient has no dietitian")
    return profile


async def _refresh_dietitian_todos(profile, accounts: AccountStore, profiles: ProfileStore, storage: StoragePort):
    dietitian_id = profile.assigned_dietitian_id
    if not dietitian_id:
        return
    try:
        await dashboard_service.refresh_todos(accounts, profiles, dietitian_id, todo_store_for(storage, dietitian_id))
    except StoreError as e:
        logger.error("Todo refresh for dietitian %s failed: %s", dietitian_id, e)


@router.get("/{patient_id}/profile", response_model=ProfileResponse)
async def get_profile(
    patient_id: str,
    accounts: AccountStore = Depends(get_account_store),
    profiles: ProfileStore = Depends(get_profile_store),
    coordinator: AssignmentCoordinator = Depends(get_coordinator),
    current_user: UserPrincipal = Depends(get_current_user),
):
    _check_access(current_user, patient_id)
    profile = await _load_profile(patient_id, accounts, profiles, coordinator)
    return ProfileResponse.model_validate(profile)


@router.put("/{patient_id}/profile", response_model=ProfileResponse)
async def update_profile(
    patient_id: str,
    body: ProfileUpdate,
    accounts: AccountStore = Depends(get_account_store),
    profiles: ProfileStore = Depends(get_profile_store),
    coordinator: AssignmentCoordinator = Depends(get_coordinator),
    storage: StoragePort = Depends(get_todo_storage),
    current_user: UserPrincipal = Depends(get_current_user),
):
    """Partial update of the Ayurvedic intake. Only fields present in the body are written."""
    _check_access(current_user, patient_id)
    await _load_profile(patient_id, accounts, profiles, coordinator)

    fields = body.model_dump(exclude_unset=True)
    if not fields:
        raise HTTPException(status_code=400, detail="No fields to update")

    try:
        profile = await profiles.update(patient_id, fields)
    except StoreError as e:
        logger.error("Profile update failed for %s: %s", patient_id, e)
        raise HTTPException(status_code=502, detail="Failed to update patient profile")
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")

    if "name" in fields and fields["name"]:
        try:
            await accounts.update(patient_id, {"name": fields["name"]})
        except StoreError as e:
            logger.error("Account name update failed for %s: %s", patient_id, e)
            raise HTTPException(status_code=502, detail="Failed to update patient name")

    await _refresh_dietitian_todos(profile, accounts, profiles, storage)
    return ProfileResponse.model_validate(profile)


@router.patch("/{patient_id}/status", response_model=ProfileResponse)
async def update_status(
    patient_id: str,
    body: StatusUpdate,
    accounts: AccountStore = Depends(get_account_store),
    profiles: ProfileStore = Depends(get_profile_store),
    coordinator: AssignmentCoordinator = Depends(get_coordinator),
    storage: StoragePort = Depends(get_todo_storage),
    current_user: UserPrincipal = Depends(require_role("dietitian", "admin")),
):
    _check_access(current_user, patient_id)
    await _load_profile(patient_id, accounts, profiles, coordinator)
    try:
        profile = await profiles.update(patient_id, {"active_status": body.active_status})
    except StoreError as e:
        logger.error("Status toggle failed for %s: %s", patient_id, e)
        raise HTTPException(status_code=502, detail="Failed to update patient status")

    await _refresh_dietitian_todos(profile, accounts, profiles, storage)
    return ProfileResponse.model_validate(profile)


@router.get("/{patient_id}/completeness", response_model=CompletenessResponse)
async def get_completeness(
    patient_id: str,
    profiles: ProfileStore = Depends(get_profile_store),
    current_user: UserPrincipal = Depends(get_current_user),
):
    _check_access(current_user, patient_id)
    profile = await profiles.get(patient_id)
    return CompletenessResponse(
        patient_id=patient_id,
        is_complete=is_profile_complete(profile),
        missing_fields=missing_profile_fields(profile),
    )
