"""
Prescription API — Prescription Route Handlers
===============================================

What:  HTTP surface for reading and creating prescriptions.
How:   Extracts path/body input, delegates to PrescriptionService, returns
       the response model. Errors propagate to the global exception handlers.

Route Inventory:
    GET  /prescriptions/patient/{patient_id}   IDs of a patient's prescriptions
    GET  /prescriptions/prescription/{id}      raw prescription record
    GET  /prescription/{id}                    prescription + both eye records
    POST /prescriptions/add                    create via add_prescription
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from prescription_api.database import get_db_session
from prescription_api.schemas.prescription import (
    AddPrescriptionRequest,
    AddPrescriptionResponse,
    ErrorResponse,
    PrescriptionDetailsResponse,
    PrescriptionIdsResponse,
)
from prescription_api.services.prescription_service import prescription_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Prescriptions"])


@router.get(
    "/prescriptions/patient/{patient_id}",
    response_model=PrescriptionIdsResponse,
    responses={
        400: {"description": "Patient ID missing", "model": ErrorResponse},
        404: {"description": "Patient has no prescriptions", "model": ErrorResponse},
        500: {"description": "Database error", "model": ErrorResponse},
    },
    summary="List prescription IDs of a patient",
)
async def get_prescription_ids(
    patient_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> PrescriptionIdsResponse:
    """
    IDs come back as strings in the order the database returns them.
    """
    return await prescription_service.list_prescription_ids(db=db, patient_id=patient_id)


@router.get(
    "/prescriptions/prescription/{id}",
    response_model=Dict[str, Any],
    responses={
        404: {"description": "Prescription not found", "model": ErrorResponse},
        500: {"description": "Database error", "model": ErrorResponse},
    },
    summary="Get a prescription by ID",
)
async def get_prescription_by_id(
    id: str,
    db: AsyncSession = Depends(get_db_session),
) -> Dict[str, Any]:
    return await prescription_service.get_prescription(db=db, prescription_id=id)


@router.get(
    "/prescription/{id}",
    response_model=PrescriptionDetailsResponse,
    responses={
        404: {
            "description": "Prescription, left eye or right eye details not found",
            "model": ErrorResponse,
        },
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Get a prescription with both eye-detail records",
)
async def get_prescription_details(
    id: str,
    db: AsyncSession = Depends(get_db_session),
) -> PrescriptionDetailsResponse:
    """
    Reads the prescription, then its left eye, then its right eye.
    The first step that fails decides the 404 message.
    """
    return await prescription_service.get_prescription_details(db=db, prescription_id=id)


@router.post(
    "/prescriptions/add",
    response_model=AddPrescriptionResponse,
    responses={
        500: {"description": "add_prescription failed", "model": ErrorResponse},
    },
    summary="Add a prescription",
    description=(
        "Forwards every field to the add_prescription procedure without "
        "interpreting it. bifocalOptions and p_colour take the stored string "
        "or a list of selected options."
    ),
)
async def add_prescription(
    request: AddPrescriptionRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AddPrescriptionResponse:
    logger.info("Received add prescription request: patient=%s doctor=%s", request.p_id, request.d_id)
    return await prescription_service.add_prescription(db=db, request=request)
