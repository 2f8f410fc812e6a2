"""
Prescription API — Pydantic Request/Response Schemas
=====================================================

What:  Pydantic models defining the API contract of the prescription endpoints.
How:   FastAPI validates request bodies against these models, serializes
       responses through them, and generates the OpenAPI docs from them.

Records owned by the database (prescription, left_eye, right_eye) are
returned as plain dicts, so every column the table has reaches the client
without this service knowing the schema.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


def normalize_options(value: Union[str, List[Any], None]) -> Optional[str]:
    """
    Turns a set of selected options into the string add_prescription stores.

    A string is forwarded unchanged. A list is joined with commas after
    dropping blanks and repeats (first occurrence wins).

    >>> normalize_options(["Kryptok", " Progressive ", "Kryptok", ""])
    'Kryptok,Progressive'
    >>> normalize_options("Kryptok, Progressive")
    'Kryptok, Progressive'
    """
    if value is None or isinstance(value, str):
        return value
    selected = [str(option).strip() for option in value if option is not None]
    return ",".join(dict.fromkeys(option for option in selected if option))


class AddPrescriptionRequest(BaseModel):
    """
    What:  Body of POST /prescriptions/add.
    How:   Flat field set mirroring the add_prescription procedure. Values are
           not interpreted; omitted fields are sent as NULL.

    bifocalOptions / p_colour accept either the stored string or a list of
    selected options (see normalize_options).
    """

    p_id: Any = Field(default=None, description="Patient ID")
    d_id: Any = Field(default=None, description="Doctor ID")

    # ── Left eye ──────────────────────────────────────────────────────────
    l_without_dv: Any = None
    l_without_nv: Any = None
    l_with_dv: Any = None
    l_with_nv: Any = None
    l_sphere_dv: Any = None
    l_cyl_dv: Any = None
    l_axis_dv: Any = None
    l_vision_dv: Any = None
    l_sphere_nv: Any = None
    l_cyl_nv: Any = None
    l_axis_nv: Any = None
    l_vision_nv: Any = None

    # ── Right eye ─────────────────────────────────────────────────────────
    r_without_dv: Any = None
    r_without_nv: Any = None
    r_with_dv: Any = None
    r_with_nv: Any = None
    r_sphere_dv: Any = None
    r_cyl_dv: Any = None
    r_axis_dv: Any = None
    r_vision_dv: Any = None
    r_sphere_nv: Any = None
    r_cyl_nv: Any = None
    r_axis_nv: Any = None
    r_vision_nv: Any = None

    # ── Prescription ──────────────────────────────────────────────────────
    p_ipd: Any = Field(default=None, description="Interpupillary distance")
    p_remarks: Any = Field(default=None, description="Free-text remarks")
    bifocalOptions: Optional[Union[str, List[Any]]] = Field(
        default=None,
        description="Selected bifocal options: stored string or list of option names",
    )
    p_colour: Optional[Union[str, List[Any]]] = Field(
        default=None,
        description="Selected colour options: stored string or list of option names",
    )

    model_config = ConfigDict(extra="ignore")

    @field_validator("bifocalOptions", "p_colour")
    @classmethod
    def join_option_lists(cls, v):
        return normalize_options(v)

    def to_procedure_arguments(self) -> Dict[str, Any]:
        """Maps the body onto add_prescription's named arguments."""
        arguments = self.model_dump(exclude={"bifocalOptions"})
        arguments["p_bifocal"] = self.bifocalOptions
        return arguments


class MedicalDetailsUpdateRequest(BaseModel):
    """
    What:  Body of PUT /patients/medical-details.

    patient_id is optional at the schema level so that a missing ID yields
    the API's own 400 validation error rather than FastAPI's 422.
    """

    patient_id: Optional[Union[str, int]] = Field(default=None, description="Patient ID")
    medical_history: Optional[str] = Field(default=None, description="Text to append to medical history")
    current_medication: Optional[str] = Field(default=None, description="Text to append to current medication")
    allergies: Optional[str] = Field(default=None, description="Text to append to allergies")

    @field_validator("patient_id")
    @classmethod
    def patient_id_as_text(cls, v):
        return None if v is None else str(v)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class PrescriptionIdsResponse(BaseModel):
    """
    What:  Prescription IDs of a patient, as strings.

    IDs are bigints in the database; strings keep values above 2^53 intact
    for JavaScript clients.
    """
    prescription_ids: List[str] = Field(description="Prescription IDs in database order")


class PrescriptionDetailsResponse(BaseModel):
    """
    What:  A prescription together with both eye-detail records.
    When:  GET /prescription/{id}; only returned when all three reads succeed.
    """
    prescription: Dict[str, Any] = Field(description="Raw prescription record")
    leftEye: Dict[str, Any] = Field(description="Raw left_eye record")
    rightEye: Dict[str, Any] = Field(description="Raw right_eye record")


class AddPrescriptionResponse(BaseModel):
    message: str = Field(default="Prescription added successfully")
    prescription_id: Any = Field(description="Identifier returned by add_prescription")


class MessageResponse(BaseModel):
    message: str = Field(description="Human-readable confirmation")


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    What:  Error format shared by every endpoint.

    Fields:
        error: Machine-readable error code (validation_error, not_found,
               data_service_error, server_error)
        message: Human-readable description
        details: Optional extra context
        request_id: Correlation ID for tracing this error in server logs

    Example:
        {
            "error": "not_found",
            "message": "Prescription not found",
            "details": null,
            "request_id": "1a2b3c4d"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
