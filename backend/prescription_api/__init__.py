"""
Prescription API — Application Package Initializer
===================================================

What: Marks the `prescription_api` directory as a Python package.
Who:  Used by uvicorn (`prescription_api.main:app`) and pytest.

Architecture Note:
    The service is a thin HTTP layer in front of a hosted PostgreSQL database:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← path/body extraction, response models
    ├─────────────────────────────────────┤
    │   PrescriptionService (Orchestration)│  ← validation, sequencing, error mapping
    ├─────────────────────────────────────┤
    │     DataService (Data Collaborator) │  ← stored procedures + single-row access
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Business rules for creating prescriptions live in the database's stored
    procedures; this package only forwards input and shapes output.
"""

__version__ = "1.0.0"
