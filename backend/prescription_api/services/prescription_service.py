"""
Prescription API — Prescription Service (Business Logic Orchestrator)
======================================================================

What:  Implements the prescription operations on top of DataService:
         - list_prescription_ids(): IDs of a patient's prescriptions
         - get_prescription():      one raw prescription record
         - get_prescription_details(): prescription + left eye + right eye
         - add_prescription():      forward a new prescription to the database
         - update_medical_details(): append to a patient's additional details
How:   Validates required identifiers, calls DataService, and translates its
       outcomes into the messages each operation promises.
Who:   Called by route handlers.

Error mapping:
    Missing identifier      → ValidationError (400), no database call made
    Expected row missing    → NotFoundError (404) with an operation message
    Database error          → DataServiceError (500)
    Anything else propagates to the catch-all handler (500 "Server error").

Stateless: receives the request's AsyncSession on every call.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from prescription_api.exceptions import DataServiceError, NotFoundError, ValidationError
from prescription_api.schemas.prescription import (
    AddPrescriptionRequest,
    AddPrescriptionResponse,
    MedicalDetailsUpdateRequest,
    MessageResponse,
    PrescriptionDetailsResponse,
    PrescriptionIdsResponse,
)
from prescription_api.services.data_service import (
    ADDITIONAL_DETAILS_TABLE,
    LEFT_EYE_TABLE,
    PRESCRIPTION_TABLE,
    RIGHT_EYE_TABLE,
    data_service,
)

logger = logging.getLogger(__name__)

MEDICAL_DETAIL_FIELDS = ("medical_history", "current_medication", "allergies")


def append_detail(existing: Optional[str], incoming: Optional[str]) -> Optional[str]:
    """
    Cumulative text rule for additional details.

    A non-empty existing value gets ", " plus the incoming value appended;
    otherwise the incoming value is used as-is. Never replaces existing text.

    >>> append_detail("Diabetes", "Hypertension")
    'Diabetes, Hypertension'
    >>> append_detail(None, "Hypertension")
    'Hypertension'
    >>> append_detail("Diabetes", "")
    'Diabetes, '
    """
    if existing:
        return f"{existing}, {incoming if incoming is not None else ''}"
    return incoming


def _require(value: Any, message: str, field: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(message=message, field=field)
    return str(value).strip()


class PrescriptionService:
    """Business logic layer for prescription and medical-detail operations."""

    async def list_prescription_ids(
        self, db: AsyncSession, patient_id: Optional[str]
    ) -> PrescriptionIdsResponse:
        """
        IDs of every prescription of a patient, as strings.

        Raises:
            ValidationError: patient_id missing or blank
            NotFoundError: the patient has no prescriptions
            DataServiceError: the procedure call failed
        """
        patient_id = _require(patient_id, "Patient ID is required", "patient_id")

        ids = await data_service.list_prescription_ids(db, patient_id)
        if not ids:
            raise NotFoundError(
                message="No prescriptions found for this patient",
                resource="prescription",
                context={"patient_id": patient_id},
            )

        return PrescriptionIdsResponse(prescription_ids=[str(i) for i in ids])

    async def get_prescription(self, db: AsyncSession, prescription_id: Optional[str]) -> Dict[str, Any]:
        """
        A single raw prescription record.

        Raises:
            ValidationError: id missing or blank
            NotFoundError: no prescription with this id
            DataServiceError: the read failed
        """
        prescription_id = _require(prescription_id, "Prescription ID is required", "id")

        try:
            return await data_service.read_one(db, PRESCRIPTION_TABLE, "id", prescription_id)
        except NotFoundError as e:
            raise NotFoundError(
                message="Prescription not found",
                resource="prescription",
                resource_id=prescription_id,
            ) from e

    async def get_prescription_details(
        self, db: AsyncSession, prescription_id: Optional[str]
    ) -> PrescriptionDetailsResponse:
        """
        Prescription plus both eye-detail records, read strictly in sequence.

        Each step needs the previous one: the eye IDs are only known once the
        prescription is read. Any failure of a step (missing row or database
        error) ends the operation with that step's 404; no partial result is
        ever returned.
        """
        prescription_id = _require(prescription_id, "Prescription ID is required", "id")

        prescription = await self._read_or_not_found(
            db, PRESCRIPTION_TABLE, prescription_id, "Prescription not found"
        )
        left_eye = await self._read_or_not_found(
            db, LEFT_EYE_TABLE, prescription.get("left_eye_id"), "Left eye details not found"
        )
        right_eye = await self._read_or_not_found(
            db, RIGHT_EYE_TABLE, prescription.get("right_eye_id"), "Right eye details not found"
        )

        return PrescriptionDetailsResponse(
            prescription=prescription,
            leftEye=left_eye,
            rightEye=right_eye,
        )

    async def add_prescription(
        self, db: AsyncSession, request: AddPrescriptionRequest
    ) -> AddPrescriptionResponse:
        """
        Creates a prescription through the add_prescription procedure.

        Returns:
            The success message and whatever identifier the procedure returned.

        Raises:
            DataServiceError: the procedure call failed
        """
        prescription_id = await data_service.add_prescription(db, request.to_procedure_arguments())
        logger.info("Prescription added: id=%s", prescription_id)

        return AddPrescriptionResponse(
            message="Prescription added successfully",
            prescription_id=prescription_id,
        )

    async def update_medical_details(
        self, db: AsyncSession, request: MedicalDetailsUpdateRequest
    ) -> MessageResponse:
        """
        Appends new text to a patient's medical history, medication and allergies.

        Workflow:
            1. Lock and read the patient's additional_details row
            2. Compute each new value with append_detail()
            3. Write the three values back, keyed by patient_id

        The row lock is held until the request transaction commits, so two
        concurrent appends for the same patient both land.

        Raises:
            ValidationError: patient_id missing or blank
            NotFoundError: the patient has no additional_details row
            DataServiceError: "Failed to fetch existing details" or
                              "Failed to update medical details"
        """
        patient_id = _require(request.patient_id, "Patient ID is required", "patient_id")

        try:
            existing = await data_service.read_one(
                db, ADDITIONAL_DETAILS_TABLE, "patient_id", patient_id, for_update=True
            )
        except NotFoundError as e:
            raise NotFoundError(
                message="Additional details not found for this patient",
                resource="additional_details",
                resource_id=patient_id,
            ) from e
        except DataServiceError as e:
            raise DataServiceError(
                message="Failed to fetch existing details",
                operation=e.operation,
                context={**e.context, "cause": e.message},
            ) from e

        updated = {
            field: append_detail(existing.get(field), getattr(request, field))
            for field in MEDICAL_DETAIL_FIELDS
        }

        try:
            await data_service.update_one(
                db, ADDITIONAL_DETAILS_TABLE, "patient_id", patient_id, updated
            )
        except DataServiceError as e:
            raise DataServiceError(
                message="Failed to update medical details",
                operation=e.operation,
                context={**e.context, "cause": e.message},
            ) from e

        logger.info("Medical details updated for patient %s", patient_id)
        return MessageResponse(message="Medical details updated successfully")

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _read_or_not_found(
        self, db: AsyncSession, table_name: str, record_id: Any, message: str
    ) -> Dict[str, Any]:
        if record_id is None:
            raise NotFoundError(message=message, resource=table_name)
        try:
            return await data_service.read_one(db, table_name, "id", record_id)
        except (NotFoundError, DataServiceError) as e:
            logger.warning("%s (id=%s): %s", message, record_id, e.message)
            raise NotFoundError(
                message=message,
                resource=table_name,
                resource_id=str(record_id),
            ) from e


# ── Singleton Instance ────────────────────────────────────────────────────
prescription_service = PrescriptionService()
