import logging
import time
from datetime import datetime, timezone
from typing import Optional
import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from ayurdiet.config import get_settings
from ayurdiet.exceptions import DietPlanServiceError
from ayurdiet.models.diet_plan import DietPlan

logger = logging.getLogger(__name__)


class DietPlanClient:
    """Client for the external diet-plan generation service. Fire once, no retry."""

    def __init__(self, url: Optional[str] = None, timeout: Optional[float] = None, transport=None):
        settings = get_settings()
        self.url = url or settings.diet_plan_service_url
        self.timeout = timeout if timeout is not None else settings.diet_plan_timeout
        self.transport = transport

    async def _post(self, patient_id: str) -> dict:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(self.url, json={"patient_id": patient_id})
            response.raise_for_status()
            try:
                data = response.json()
            except ValueError as e:
                raise DietPlanServiceError("response is not JSON") from e
            if not isinstance(data, dict):
                raise DietPlanServiceError("unexpected response shape", {"body": data})
            return data

    async def generate(self, patient_id: str) -> dict:
        start = time.time()
        try:
            data = await self._post(patient_id)
        except (httpx.HTTPError, DietPlanServiceError) as e:
            elapsed = int((time.time() - start) * 1000)
            logger.error("Diet plan request for %s failed after %dms: %s", patient_id, elapsed, e)
            return {
                "patient_id": patient_id,
                "success": False,
                "status": "error",
                "error": str(e),
                "details": getattr(e, "details", {}),
            }

        status = data.get("status")
        success = status == "success"
        if not success:
            logger.warning("Diet plan service returned status=%r for %s", status, patient_id)
        return {
            "patient_id": patient_id,
            "success": success,
            "status": status,
            "error": None if success else (data.get("message") or data.get("error") or "generation failed"),
            "details": data,
        }


async def get_latest_plan(db: AsyncSession, patient_id: str, published_only: bool = False) -> Optional[DietPlan]:
    query = select(DietPlan).where(DietPlan.patient_id == patient_id)
    if published_only:
        query = query.where(DietPlan.is_published.is_(True))
    query = query.order_by(DietPlan.created_at.desc(), DietPlan.id.desc()).limit(1)
    return await db.scalar(query)


async def publish_plan(db: AsyncSession, plan_id: int) -> Optional[DietPlan]:
    plan = await db.get(DietPlan, plan_id)
    if plan is None:
        return None
    if not plan.is_published:
        plan.is_published = True
        plan.published_at = datetime.now(timezone.utc)
        await db.flush()
        await db.refresh(plan)
    return plan


async def record_generated_plan(db: AsyncSession, patient_id: str, patient_name: Optional[str], data: dict) -> Optional[DietPlan]:
    """Store the plan returned inline by the generator. Unpublished until a dietitian publishes it."""
    plan = data.get("plan") or data.get("diet_plan")
    if not isinstance(plan, dict):
        return None
    chart = data.get("chart")
    record = DietPlan(
        patient_id=patient_id,
        patient_name=patient_name,
        plan=plan,
        chart=chart if isinstance(chart, dict) else None,
        is_published=False,
    )
    db.add(record)
    await db.flush()
    await db.refresh(record)
    return record
