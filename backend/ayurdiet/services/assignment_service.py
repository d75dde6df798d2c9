"""
Dietitian <-> patient assignment.

Linking is three independent writes with no surrounding transaction:

    1. union the patient id into the dietitian's roster
    2. claim the patient (back-reference + flag), conditional on it being free
    3. create the patient's clinical profile if it does not exist yet

A store failure in step 1 or 2 is logged and reported, and step 3 is still
attempted. Nothing is rolled back when step 3 fails: the patient may be
linked without a profile for a while, and `ensure_profile` fills the gap on
the next profile read. The one exception is losing the claim race in step 2,
where the roster entry from step 1 is taken back out again.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional
from ayurdiet.exceptions import StoreError
from ayurdiet.services.assignment_policy import AssignmentDecision, assignment_decision
from ayurdiet.services.completeness import read_field
from ayurdiet.services.stores import ArrayRemove, ArrayUnion

logger = logging.getLogger(__name__)

CLINICAL_FIELDS = (
    "age",
    "gender",
    "weight_kg",
    "height_cm",
    "activity_level",
    "food_preference",
    "cuisine_preference",
    "sub_cuisine_preference",
    "body_frame",
    "skin_type",
    "hair_type",
    "agni_strength",
    "current_season",
    "dosha",
)


class AssignmentStatus(str, Enum):
    ASSIGNED = "assigned"
    ALREADY_ASSIGNED = "already_assigned"
    ASSIGNED_ELSEWHERE = "assigned_elsewhere"
    UNASSIGNED = "unassigned"
    NOT_FOUND = "not_found"
    STORE_FAILURE = "store_failure"


@dataclass
class AssignmentResult:
    status: AssignmentStatus
    dietitian_id: str
    patient_id: str
    profile_created: bool = False
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status in (
            AssignmentStatus.ASSIGNED,
            AssignmentStatus.ALREADY_ASSIGNED,
            AssignmentStatus.UNASSIGNED,
        )

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "ok": self.ok,
            "dietitian_id": self.dietitian_id,
            "patient_id": self.patient_id,
            "profile_created": self.profile_created,
            "errors": self.errors,
        }


def initial_profile_fields(dietitian_id: str, name: Optional[str] = None) -> dict:
    fields = {key: None for key in CLINICAL_FIELDS}
    fields.update(
        name=name,
        diseases=[],
        assigned_dietitian_id=dietitian_id,
        active_status="active",
    )
    return fields


class AssignmentCoordinator:
    def __init__(self, accounts, profiles):
        self.accounts = accounts
        self.profiles = profiles

    async def _load_pair(self, dietitian_id: str, patient_id: str):
        dietitian = await self.accounts.get(dietitian_id)
        patient = await self.accounts.get(patient_id)
        if dietitian is None or read_field(dietitian, "role") != "dietitian":
            dietitian = None
        if patient is None or read_field(patient, "role") != "patient":
            patient = None
        return dietitian, patient

    async def assign(self, dietitian_id: str, patient_id: str) -> AssignmentResult:
        def result(status, **kwargs):
            return AssignmentResult(status, dietitian_id, patient_id, **kwargs)

        try:
            dietitian, patient = await self._load_pair(dietitian_id, patient_id)
        except StoreError as e:
            logger.error("Assignment %s -> %s aborted, could not read accounts: %s", dietitian_id, patient_id, e)
            return result(AssignmentStatus.STORE_FAILURE, errors=[str(e)])

        if dietitian is None or patient is None:
            return result(AssignmentStatus.NOT_FOUND)

        decision = assignment_decision(patient, dietitian_id)
        if decision is AssignmentDecision.ALREADY_ASSIGNED:
            return result(AssignmentStatus.ALREADY_ASSIGNED)
        if decision is AssignmentDecision.ASSIGNED_ELSEWHERE:
            logger.info("Patient %s already held by another dietitian; %s blocked", patient_id, dietitian_id)
            return result(AssignmentStatus.ASSIGNED_ELSEWHERE)

        errors: list[str] = []

        try:
            await self.accounts.update(dietitian_id, {"linked_patient_ids": ArrayUnion(patient_id)})
        except StoreError as e:
            logger.error("Roster update failed for dietitian %s: %s", dietitian_id, e)
            errors.append(str(e))

        try:
            claimed = await self.accounts.claim_patient(patient_id, dietitian_id)
        except StoreError as e:
            logger.error("Back-reference update failed for patient %s: %s", patient_id, e)
            errors.append(str(e))
            claimed = None

        if claimed is False:
            await self._release_roster_entry(dietitian_id, patient_id)
            return result(AssignmentStatus.ASSIGNED_ELSEWHERE, errors=errors)

        profile_created = False
        try:
            profile_created = await self._ensure_profile(patient_id, dietitian_id, read_field(patient, "name"))
        except StoreError as e:
            logger.error("Profile creation failed for patient %s: %s", patient_id, e)
            errors.append(str(e))

        if errors:
            return result(AssignmentStatus.STORE_FAILURE, profile_created=profile_created, errors=errors)
        logger.info("Patient %s assigned to dietitian %s", patient_id, dietitian_id)
        return result(AssignmentStatus.ASSIGNED, profile_created=profile_created)

    async def unassign(self, dietitian_id: str, patient_id: str) -> AssignmentResult:
        def result(status, **kwargs):
            return AssignmentResult(status, dietitian_id, patient_id, **kwargs)

        try:
            dietitian, patient = await self._load_pair(dietitian_id, patient_id)
        except StoreError as e:
            logger.error("Unassign %s -> %s aborted: %s", dietitian_id, patient_id, e)
            return result(AssignmentStatus.STORE_FAILURE, errors=[str(e)])

        if dietitian is None or patient is None:
            return result(AssignmentStatus.NOT_FOUND)
        if read_field(patient, "linked_dietitian_id") != dietitian_id:
            return result(AssignmentStatus.NOT_FOUND)

        errors: list[str] = []
        writes = (
            (self.accounts.update, dietitian_id, {"linked_patient_ids": ArrayRemove(patient_id)}),
            (self.accounts.update, patient_id, {"linked_dietitian_id": None, "is_assigned_to_dietitian": False}),
            (self.profiles.update, patient_id, {"active_status": "not_active"}),
        )
        for write, key, fields in writes:
            try:
                await write(key, fields)
            except StoreError as e:
                logger.error("Unassign write failed for %s: %s", key, e)
                errors.append(str(e))

        if errors:
            return result(AssignmentStatus.STORE_FAILURE, errors=errors)
        logger.info("Patient %s released by dietitian %s", patient_id, dietitian_id)
        return result(AssignmentStatus.UNASSIGNED)

    async def ensure_profile(self, patient: Any) -> bool:
        """Create the profile of a linked patient whose profile write never landed."""
        dietitian_id = read_field(patient, "linked_dietitian_id")
        if not dietitian_id:
            return False
        patient_id = read_field(patient, "id")
        created = await self.profiles.create(
            patient_id, initial_profile_fields(dietitian_id, read_field(patient, "name"))
        )
        if created:
            logger.warning("Created missing profile for linked patient %s", patient_id)
        return created

    async def _ensure_profile(self, patient_id: str, dietitian_id: str, name: Optional[str]) -> bool:
        created = await self.profiles.create(patient_id, initial_profile_fields(dietitian_id, name))
        if not created:
            # Profile survives unassignment; point it at the new dietitian.
            await self.profiles.update(
                patient_id, {"assigned_dietitian_id": dietitian_id, "active_status": "active"}
            )
        return created

    async def _release_roster_entry(self, dietitian_id: str, patient_id: str) -> None:
        logger.warning("Lost claim race for patient %s; removing from roster of %s", patient_id, dietitian_id)
        try:
            await self.accounts.update(dietitian_id, {"linked_patient_ids": ArrayRemove(patient_id)})
        except StoreError as e:
            logger.error("Could not remove %s from roster of %s: %s", patient_id, dietitian_id, e)
