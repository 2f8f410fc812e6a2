"""
Prescription API — HTTP Endpoint Tests
=======================================

What:  End-to-end tests of routes, service and exception handlers.
How:   HTTPX AsyncClient over ASGITransport; DataService patched with
       AsyncMocks, database session replaced by a mock.

What we test:
    ✅ Status code and body shape of every endpoint
    ✅ Error normalization: {"error", "message", "details", "request_id"}
    ✅ X-Request-ID propagation
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from prescription_api.exceptions import DataServiceError, NotFoundError


DATA_SERVICE = "prescription_api.services.prescription_service.data_service"


class TestListPrescriptionIdsEndpoint:

    @pytest.mark.asyncio
    async def test_returns_ids_as_strings(self, test_client):
        with patch(DATA_SERVICE) as mock_data:
            mock_data.list_prescription_ids = AsyncMock(return_value=[2**53 + 1, 17])

            response = await test_client.get("/prescriptions/patient/41")

        assert response.status_code == 200
        assert response.json() == {"prescription_ids": ["9007199254740993", "17"]}

    @pytest.mark.asyncio
    async def test_blank_patient_id_is_400_without_call(self, test_client):
        with patch(DATA_SERVICE) as mock_data:
            mock_data.list_prescription_ids = AsyncMock()

            response = await test_client.get("/prescriptions/patient/%20")

            mock_data.list_prescription_ids.assert_not_awaited()

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["message"] == "Patient ID is required"
        assert body["details"] == {"field": "patient_id"}

    @pytest.mark.asyncio
    async def test_no_prescriptions_is_404(self, test_client):
        with patch(DATA_SERVICE) as mock_data:
            mock_data.list_prescription_ids = AsyncMock(return_value=[])

            response = await test_client.get("/prescriptions/patient/41")

        assert response.status_code == 404
        assert response.json()["message"] == "No prescriptions found for this patient"

    @pytest.mark.asyncio
    async def test_data_service_error_is_500_with_message(self, test_client):
        with patch(DATA_SERVICE) as mock_data:
            mock_data.list_prescription_ids = AsyncMock(
                side_effect=DataServiceError(message="Connection refused")
            )

            response = await test_client.get("/prescriptions/patient/41")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "data_service_error"
        assert body["message"] == "Connection refused"


class TestGetPrescriptionEndpoint:

    @pytest.mark.asyncio
    async def test_returns_raw_record(self, test_client):
        record = {"id": 7, "p_id": 41, "left_eye_id": 501, "right_eye_id": 502, "p_remarks": None}
        with patch(DATA_SERVICE) as mock_data:
            mock_data.read_one = AsyncMock(return_value=record)

            response = await test_client.get("/prescriptions/prescription/7")

        assert response.status_code == 200
        assert response.json() == record

    @pytest.mark.asyncio
    async def test_unknown_id_is_404(self, test_client):
        with patch(DATA_SERVICE) as mock_data:
            mock_data.read_one = AsyncMock(side_effect=NotFoundError(resource="prescription"))

            response = await test_client.get("/prescriptions/prescription/999")

        assert response.status_code == 404
        assert response.json()["message"] == "Prescription not found"

    @pytest.mark.asyncio
    async def test_unexpected_error_is_server_error(self, test_client):
        with patch(DATA_SERVICE) as mock_data:
            mock_data.read_one = AsyncMock(side_effect=RuntimeError("event loop is closed"))

            response = await test_client.get("/prescriptions/prescription/7")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "server_error"
        assert body["message"] == "Server error"
        assert body["details"] == {"reason": "event loop is closed"}


class TestPrescriptionDetailsEndpoint:

    @pytest.mark.asyncio
    async def test_combines_all_three_records(
        self, test_client, sample_prescription, sample_left_eye, sample_right_eye
    ):
        with patch(DATA_SERVICE) as mock_data:
            mock_data.read_one = AsyncMock(
                side_effect=[sample_prescription, sample_left_eye, sample_right_eye]
            )

            response = await test_client.get("/prescription/9007199254740993")

        assert response.status_code == 200
        body = response.json()
        assert set(body) == {"prescription", "leftEye", "rightEye"}
        assert body["leftEye"] == sample_left_eye
        assert body["rightEye"] == sample_right_eye

    @pytest.mark.asyncio
    async def test_unknown_prescription_is_404(self, test_client):
        with patch(DATA_SERVICE) as mock_data:
            mock_data.read_one = AsyncMock(side_effect=NotFoundError(resource="prescription"))

            response = await test_client.get("/prescription/999")

        assert response.status_code == 404
        assert response.json()["message"] == "Prescription not found"

    @pytest.mark.asyncio
    async def test_left_eye_failure_is_left_eye_404(self, test_client, sample_prescription):
        with patch(DATA_SERVICE) as mock_data:
            mock_data.read_one = AsyncMock(
                side_effect=[sample_prescription, DataServiceError(message="boom")]
            )

            response = await test_client.get("/prescription/7")

            assert mock_data.read_one.await_count == 2

        assert response.status_code == 404
        assert response.json()["message"] == "Left eye details not found"


class TestAddPrescriptionEndpoint:

    @pytest.mark.asyncio
    async def test_complete_body_returns_new_id(self, test_client, add_prescription_body):
        with patch(DATA_SERVICE) as mock_data:
            mock_data.add_prescription = AsyncMock(return_value=1234)

            response = await test_client.post("/prescriptions/add", json=add_prescription_body)

        assert response.status_code == 200
        assert response.json() == {
            "message": "Prescription added successfully",
            "prescription_id": 1234,
        }

    @pytest.mark.asyncio
    async def test_option_lists_are_joined(self, test_client, add_prescription_body):
        add_prescription_body["bifocalOptions"] = ["Kryptok", "Progressive", "Kryptok"]
        add_prescription_body["p_colour"] = ["Photochromic", " "]
        with patch(DATA_SERVICE) as mock_data:
            mock_data.add_prescription = AsyncMock(return_value=1)

            response = await test_client.post("/prescriptions/add", json=add_prescription_body)

            arguments = mock_data.add_prescription.await_args.args[1]

        assert response.status_code == 200
        assert arguments["p_bifocal"] == "Kryptok,Progressive"
        assert arguments["p_colour"] == "Photochromic"

    @pytest.mark.asyncio
    async def test_procedure_error_is_500(self, test_client, add_prescription_body):
        with patch(DATA_SERVICE) as mock_data:
            mock_data.add_prescription = AsyncMock(
                side_effect=DataServiceError(message='invalid input syntax for type numeric: "abc"')
            )

            response = await test_client.post("/prescriptions/add", json=add_prescription_body)

        assert response.status_code == 500
        assert response.json()["message"] == 'invalid input syntax for type numeric: "abc"'


class TestMedicalDetailsEndpoint:

    @pytest.mark.asyncio
    async def test_appends_and_confirms(self, test_client):
        with patch(DATA_SERVICE) as mock_data:
            mock_data.read_one = AsyncMock(
                return_value={"medical_history": "A", "current_medication": None, "allergies": None}
            )
            mock_data.update_one = AsyncMock(return_value=1)

            response = await test_client.put(
                "/patients/medical-details",
                json={"patient_id": 41, "medical_history": "B", "current_medication": "C", "allergies": "D"},
            )

            fields = mock_data.update_one.await_args.args[4]

        assert response.status_code == 200
        assert response.json() == {"message": "Medical details updated successfully"}
        assert fields == {"medical_history": "A, B", "current_medication": "C", "allergies": "D"}

    @pytest.mark.asyncio
    async def test_missing_patient_id_is_400(self, test_client):
        with patch(DATA_SERVICE) as mock_data:
            mock_data.read_one = AsyncMock()

            response = await test_client.put("/patients/medical-details", json={"allergies": "D"})

            mock_data.read_one.assert_not_awaited()

        assert response.status_code == 400
        assert response.json()["message"] == "Patient ID is required"

    @pytest.mark.asyncio
    async def test_fetch_failure_is_500(self, test_client):
        with patch(DATA_SERVICE) as mock_data:
            mock_data.read_one = AsyncMock(side_effect=DataServiceError(message="boom"))

            response = await test_client.put("/patients/medical-details", json={"patient_id": "41"})

        assert response.status_code == 500
        assert response.json()["message"] == "Failed to fetch existing details"


class TestCrossCutting:

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, test_client):
        with patch(DATA_SERVICE) as mock_data:
            mock_data.list_prescription_ids = AsyncMock(return_value=[])

            response = await test_client.get(
                "/prescriptions/patient/41", headers={"X-Request-ID": "trace-123"}
            )

        assert response.headers["X-Request-ID"] == "trace-123"
        assert response.json()["request_id"] == "trace-123"

    @pytest.mark.asyncio
    async def test_health_reports_disconnected_database(self, test_client):
        with patch("prescription_api.routes.health.engine") as mock_engine:
            mock_engine.connect.side_effect = OSError("Connection refused")

            response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "unhealthy"
        assert body["database"] == "disconnected"

    @pytest.mark.asyncio
    async def test_health_reports_connected_database(self, test_client):
        conn = AsyncMock()
        connection_ctx = MagicMock()
        connection_ctx.__aenter__ = AsyncMock(return_value=conn)
        connection_ctx.__aexit__ = AsyncMock(return_value=False)
        with patch("prescription_api.routes.health.engine") as mock_engine:
            mock_engine.connect.return_value = connection_ctx

            response = await test_client.get("/health")

        assert response.json()["status"] == "healthy"
        conn.execute.assert_awaited_once()
