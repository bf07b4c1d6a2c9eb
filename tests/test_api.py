from datetime import timedelta

from consultation_scheduler.api import deps
from consultation_scheduler.core.config import settings
from consultation_scheduler.core.security import create_access_token

PROVIDER = "SP2PROVIDER"
PATIENT = "SP3PATIENT"
OTHER = "SP4NONPROVIDER"

slot_data = {
    "start_time": 1672531200,
    "end_time": 1672534800
}

def add_slot(client, auth_headers, provider=PROVIDER):
    response = client.post("/api/v1/slots", json=slot_data, headers=auth_headers(provider))
    assert response.status_code == 201
    return response.json()["slot_id"]

def book(client, auth_headers, slot_id, patient=PATIENT, notes="Initial consultation"):
    return client.post(
        "/api/v1/consultations",
        json={"provider": PROVIDER, "slot_id": slot_id, "notes": notes},
        headers=auth_headers(patient)
    )

class TestService:

    def test_health(self, client):
        """Test health check endpoint."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert "X-Process-Time" in response.headers

    def test_unknown_route(self, client):
        """Test unknown routes use the not found body."""
        response = client.get("/api/v1/nowhere")
        assert response.status_code == 404
        assert response.json()["error"] == "Not Found"

class TestAuthentication:

    def test_missing_token(self, client):
        """Test mutating routes require a bearer token."""
        response = client.post("/api/v1/slots", json=slot_data)
        assert response.status_code == 401

    def test_invalid_token(self, client):
        """Test a garbage token is rejected."""
        headers = {"Authorization": "Bearer invalid_token"}
        response = client.post("/api/v1/slots", json=slot_data, headers=headers)
        assert response.status_code == 401

    def test_expired_token(self, client):
        """Test an expired token is rejected."""
        token = create_access_token(PROVIDER, expires_delta=timedelta(minutes=-5))
        headers = {"Authorization": f"Bearer {token}"}
        response = client.post("/api/v1/slots", json=slot_data, headers=headers)
        assert response.status_code == 401

class TestSlots:

    def test_add_slot(self, client, auth_headers):
        """Test a provider adds a slot and reads it back."""
        response = client.post("/api/v1/slots", json=slot_data, headers=auth_headers(PROVIDER))
        assert response.status_code == 201
        assert response.json() == {"slot_id": 0, "provider": PROVIDER}

        response = client.get(f"/api/v1/slots/{PROVIDER}/0")
        assert response.status_code == 200
        data = response.json()
        assert data["start_time"] == slot_data["start_time"]
        assert data["end_time"] == slot_data["end_time"]
        assert data["is_booked"] is False

    def test_invalid_range(self, client, auth_headers):
        """Test reversed ranges map to 400 InvalidRange."""
        response = client.post(
            "/api/v1/slots",
            json={"start_time": 1672534800, "end_time": 1672531200},
            headers=auth_headers(PROVIDER)
        )
        assert response.status_code == 400
        assert response.json()["error"] == "InvalidRange"

    def test_missing_slot(self, client):
        """Test an unknown slot maps to 404 NotFound."""
        response = client.get(f"/api/v1/slots/{PROVIDER}/99")
        assert response.status_code == 404
        assert response.json()["error"] == "NotFound"

class TestConsultations:

    def test_book_consultation(self, client, auth_headers):
        """Test a patient books a slot."""
        slot_id = add_slot(client, auth_headers)

        response = book(client, auth_headers, slot_id)
        assert response.status_code == 201
        consultation_id = response.json()["consultation_id"]

        response = client.get(f"/api/v1/consultations/{consultation_id}")
        assert response.status_code == 200
        data = response.json()
        assert data["provider"] == PROVIDER
        assert data["patient"] == PATIENT
        assert data["timestamp"] == 1672531200
        assert data["duration"] == 3600
        assert data["status"] == "scheduled"

        assert client.get(f"/api/v1/slots/{PROVIDER}/{slot_id}").json()["is_booked"] is True

    def test_double_booking(self, client, auth_headers):
        """Test a second booking maps to 409 AlreadyBooked."""
        slot_id = add_slot(client, auth_headers)
        book(client, auth_headers, slot_id)

        response = book(client, auth_headers, slot_id, patient="SP5PATIENT2")
        assert response.status_code == 409
        assert response.json()["error"] == "AlreadyBooked"

    def test_book_missing_slot(self, client, auth_headers):
        """Test booking an unknown slot maps to 404."""
        response = book(client, auth_headers, 5)
        assert response.status_code == 404
        assert response.json()["error"] == "NotFound"

    def test_notes_too_long(self, client, auth_headers):
        """Test notes over the limit fail validation."""
        slot_id = add_slot(client, auth_headers)

        response = book(client, auth_headers, slot_id, notes="x" * 501)
        assert response.status_code == 422
        assert client.get(f"/api/v1/slots/{PROVIDER}/{slot_id}").json()["is_booked"] is False

    def test_complete_by_provider(self, client, auth_headers):
        """Test the provider completes a consultation."""
        consultation_id = book(client, auth_headers, add_slot(client, auth_headers)).json()["consultation_id"]

        response = client.post(
            f"/api/v1/consultations/{consultation_id}/complete",
            headers=auth_headers(PROVIDER)
        )
        assert response.status_code == 200
        assert response.json()["status"] == "completed"

    def test_complete_by_other(self, client, auth_headers):
        """Test completion by a non-provider maps to 403."""
        consultation_id = book(client, auth_headers, add_slot(client, auth_headers)).json()["consultation_id"]

        response = client.post(
            f"/api/v1/consultations/{consultation_id}/complete",
            headers=auth_headers(OTHER)
        )
        assert response.status_code == 403
        assert response.json()["error"] == "Forbidden"

        status = client.get(f"/api/v1/consultations/{consultation_id}").json()["status"]
        assert status == "scheduled"

    def test_cancel_by_patient(self, client, auth_headers):
        """Test the patient cancels and the slot stays booked."""
        slot_id = add_slot(client, auth_headers)
        consultation_id = book(client, auth_headers, slot_id).json()["consultation_id"]

        response = client.post(
            f"/api/v1/consultations/{consultation_id}/cancel",
            headers=auth_headers(PATIENT)
        )
        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"
        assert client.get(f"/api/v1/slots/{PROVIDER}/{slot_id}").json()["is_booked"] is True

    def test_cancel_by_other(self, client, auth_headers):
        """Test cancellation by a third party maps to 403."""
        consultation_id = book(client, auth_headers, add_slot(client, auth_headers)).json()["consultation_id"]

        response = client.post(
            f"/api/v1/consultations/{consultation_id}/cancel",
            headers=auth_headers(OTHER)
        )
        assert response.status_code == 403

    def test_missing_consultation(self, client, auth_headers):
        """Test unknown consultations map to 404."""
        assert client.get("/api/v1/consultations/123").status_code == 404

        response = client.post("/api/v1/consultations/123/cancel", headers=auth_headers(PATIENT))
        assert response.status_code == 404
        assert response.json()["error"] == "NotFound"

class TestAdmin:

    def test_get_admin(self, client):
        """Test the configured admin identity is reported."""
        response = client.get("/api/v1/admin")
        assert response.status_code == 200
        assert response.json() == {"admin": "admin"}

    def test_transfer_admin(self, client, auth_headers):
        """Test the admin transfers the role and loses it."""
        response = client.post(
            "/api/v1/admin/transfer",
            json={"new_admin": "SPNEWADMIN"},
            headers=auth_headers("admin")
        )
        assert response.status_code == 200
        assert response.json() == {"admin": "SPNEWADMIN"}

        response = client.post(
            "/api/v1/admin/transfer",
            json={"new_admin": "admin"},
            headers=auth_headers("admin")
        )
        assert response.status_code == 403

    def test_transfer_by_non_admin(self, client, auth_headers):
        """Test a non-admin cannot transfer."""
        response = client.post(
            "/api/v1/admin/transfer",
            json={"new_admin": OTHER},
            headers=auth_headers(OTHER)
        )
        assert response.status_code == 403
        assert client.get("/api/v1/admin").json() == {"admin": "admin"}

    def test_transfer_to_blank_identity(self, client, auth_headers):
        """Test a blank new admin fails validation."""
        response = client.post(
            "/api/v1/admin/transfer",
            json={"new_admin": "   "},
            headers=auth_headers("admin")
        )
        assert response.status_code == 422

class TestEngineSettings:
    """Engine switches read from settings when the engine is built."""

    def test_strict_transitions(self, client, auth_headers, monkeypatch):
        """Test strict mode turns a second status change into 409 InvalidTransition."""
        monkeypatch.setattr(settings, "STRICT_STATUS_TRANSITIONS", True)
        deps.init_engine()
        consultation_id = book(client, auth_headers, add_slot(client, auth_headers)).json()["consultation_id"]

        response = client.post(
            f"/api/v1/consultations/{consultation_id}/complete",
            headers=auth_headers(PROVIDER)
        )
        assert response.status_code == 200

        response = client.post(
            f"/api/v1/consultations/{consultation_id}/cancel",
            headers=auth_headers(PATIENT)
        )
        assert response.status_code == 409
        assert response.json()["error"] == "InvalidTransition"

        status = client.get(f"/api/v1/consultations/{consultation_id}").json()["status"]
        assert status == "completed"

    def test_permissive_transitions_by_default(self, client, auth_headers):
        """Test a completed consultation can still be cancelled by default."""
        consultation_id = book(client, auth_headers, add_slot(client, auth_headers)).json()["consultation_id"]
        client.post(f"/api/v1/consultations/{consultation_id}/complete", headers=auth_headers(PROVIDER))

        response = client.post(
            f"/api/v1/consultations/{consultation_id}/cancel",
            headers=auth_headers(PATIENT)
        )
        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"

    def test_shared_id_counter(self, client, auth_headers, monkeypatch):
        """Test slots and consultations draw from one counter."""
        monkeypatch.setattr(settings, "SHARED_ID_COUNTER", True)
        deps.init_engine()

        slot_id = add_slot(client, auth_headers)
        assert slot_id == 0

        response = book(client, auth_headers, slot_id)
        assert response.status_code == 201
        assert response.json()["consultation_id"] == 1

        data = client.get("/api/v1/consultations/1").json()
        assert data["slot_id"] == 0

    def test_max_notes_length(self, client, auth_headers, monkeypatch):
        """Test the notes limit follows MAX_NOTES_LENGTH."""
        monkeypatch.setattr(settings, "MAX_NOTES_LENGTH", 10)
        deps.init_engine()

        response = book(client, auth_headers, add_slot(client, auth_headers), notes="x" * 11)
        assert response.status_code == 422

        response = book(client, auth_headers, add_slot(client, auth_headers), notes="x" * 10)
        assert response.status_code == 201
