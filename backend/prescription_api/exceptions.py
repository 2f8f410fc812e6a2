"""
Prescription API — Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions for the error scenarios of the API.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with the HTTP status below.
Who:   Raised by PrescriptionService and DataService; caught by global handlers.

Exception Hierarchy:
    PrescriptionAPIError (base)
    ├── ValidationError    → 400 Bad Request (required input missing)
    ├── NotFoundError      → 404 Not Found (expected record absent)
    └── DataServiceError   → 500 Internal Server Error (database reported an error)

    Anything else raised while handling a request is rendered as a
    500 "Server error" by the catch-all handler.
"""

from typing import Any, Dict, Optional


class PrescriptionAPIError(Exception):
    """
    Base exception for all Prescription API errors.

    Attributes:
        message:  User-facing error description (returned in the API response)
        context:  Additional debug info (logged, not returned)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(PrescriptionAPIError):
    """
    Raised when a required input is missing or blank.

    HTTP:    400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "Patient ID is required",
            "details": {"field": "patient_id"}
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(PrescriptionAPIError):
    """
    Raised when an expected record does not exist.

    When:    Patient without prescriptions, unknown prescription ID, dangling
             eye-detail reference, patient without an additional_details row.
    HTTP:    404 Not Found

    DataService raises this with a generic message; PrescriptionService
    re-raises it with the operation-specific message the client sees.
    """

    def __init__(
        self,
        message: Optional[str] = None,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"The requested {resource} was not found"
            if resource_id:
                message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource = resource
        self.resource_id = resource_id


class DataServiceError(PrescriptionAPIError):
    """
    Raised when the database itself reports an error.

    What:    A stored-procedure call, table read, or update failed.
    When:    Connection lost, unknown procedure, type mismatch in arguments,
             constraint violation, more than one row for a single-row read.
    HTTP:    500 Internal Server Error

    The message is the database's error text (or an operation-specific
    message such as "Failed to update medical details"); the original
    exception type is kept in context for server-side logs.
    """

    def __init__(
        self,
        message: str = "The data service reported an error",
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if operation:
            ctx["operation"] = operation
        super().__init__(message=message, context=ctx)
        self.operation = operation
