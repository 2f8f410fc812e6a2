# Routes package init
"""
Prescription API — API Routes Package
======================================

Route Inventory:
    - prescriptions.py: GET  /prescriptions/patient/{patient_id}
                        GET  /prescriptions/prescription/{id}
                        GET  /prescription/{id}
                        POST /prescriptions/add
    - patients.py:      PUT  /patients/medical-details
    - health.py:        GET  /health

Routes are thin: they extract input, call PrescriptionService, and return
its response model. Error responses come from the handlers in main.py.
"""
