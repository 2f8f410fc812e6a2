"""
Prescription API — Patient Route Handlers
==========================================

What:  PUT /patients/medical-details, appending to a patient's medical
       history, current medication and allergies.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from prescription_api.database import get_db_session
from prescription_api.schemas.prescription import (
    ErrorResponse,
    MedicalDetailsUpdateRequest,
    MessageResponse,
)
from prescription_api.services.prescription_service import prescription_service

router = APIRouter(prefix="/patients", tags=["Patients"])


@router.put(
    "/medical-details",
    response_model=MessageResponse,
    responses={
        400: {"description": "Patient ID missing", "model": ErrorResponse},
        404: {"description": "Patient has no additional details", "model": ErrorResponse},
        500: {"description": "Fetch or update failed", "model": ErrorResponse},
    },
    summary="Append to a patient's medical details",
    description=(
        "Each non-empty stored value gets ', ' plus the new text appended; "
        "empty values are set to the new text. Existing text is never replaced."
    ),
)
async def update_medical_details(
    request: MedicalDetailsUpdateRequest,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await prescription_service.update_medical_details(db=db, request=request)
