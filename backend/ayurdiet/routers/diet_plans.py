import logging
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from ayurdiet.auth import UserPrincipal, get_current_user, require_role
from ayurdiet.database import get_db
from ayurdiet.dependencies import get_diet_plan_client, get_profile_store
from ayurdiet.models.diet_plan import DietPlan
from ayurdiet.schemas.diet_plan import DietPlanResponse, GenerateResponse
from ayurdiet.services.completeness import is_profile_complete, missing_profile_fields
from ayurdiet.services.diet_plan_service import DietPlanClient, get_latest_plan, publish_plan, record_generated_plan
from ayurdiet.services.stores import ProfileStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/{patient_id}/generate", response_model=GenerateResponse)
async def generate_diet_plan(
    patient_id: str,
    db: AsyncSession = Depends(get_db),
    profiles: ProfileStore = Depends(get_profile_store),
    client: DietPlanClient = Depends(get_diet_plan_client),
    current_user: UserPrincipal = Depends(require_role("dietitian", "admin")),
):
    """Ask the external generator for a plan. Only allowed once the intake is complete."""
    if not current_user.has_access_to_patient(patient_id):
        raise HTTPException(status_code=403, detail="Access denied: patient is not on your roster")

    profile = await profiles.get(patient_id)
    if not is_profile_complete(profile):
        return JSONResponse(
            status_code=400,
            content={
                "detail": "Patient profile is incomplete",
                "missing_fields": missing_profile_fields(profile),
            },
        )

    result = await client.generate(patient_id)
    if not result["success"]:
        return JSONResponse(status_code=502, content=GenerateResponse(**result).model_dump())

    saved = await record_generated_plan(db, patient_id, profile.name, result["details"])
    if saved is not None:
        logger.info("Stored generated diet plan %s for patient %s", saved.id, patient_id)
    return GenerateResponse(**result)


@router.get("/{patient_id}/latest", response_model=DietPlanResponse)
async def latest_diet_plan(
    patient_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(get_current_user),
):
    """Most recent plan. Patients only ever see published ones."""
    if not current_user.has_access_to_patient(patient_id):
        raise HTTPException(status_code=403, detail="Access denied")
    plan = await get_latest_plan(db, patient_id, published_only=current_user.is_patient)
    if plan is None:
        raise HTTPException(status_code=404, detail="No diet plan available yet")
    return DietPlanResponse.model_validate(plan)


@router.post("/{plan_id}/publish", response_model=DietPlanResponse)
async def publish_diet_plan(
    plan_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_role("dietitian", "admin")),
):
    plan = await db.get(DietPlan, plan_id)
    if plan is None:
        raise HTTPException(status_code=404, detail="Diet plan not found")
    if not current_user.has_access_to_patient(plan.patient_id):
        raise HTTPException(status_code=403, detail="Access denied: patient is not on your roster")
    plan = await publish_plan(db, plan_id)
    logger.info("Diet plan %s published for patient %s", plan_id, plan.patient_id)
    return DietPlanResponse.model_validate(plan)
