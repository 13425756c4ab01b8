import pytest

from medicare.models.appointment import Appointment

APPOINTMENTS = "/api/v1/appointments"

def book(client, account, doctor_id, **fields):
    payload = {
        "doctor_id": doctor_id,
        "date": "2025-06-01",
        "time": "10:00",
        "reason": "checkup",
    }
    payload.update(fields)
    return client.post(APPOINTMENTS, json=payload, headers=account.headers)

class TestCreateAppointment:

    def test_patient_books_for_self(self, client, patient, doctor):
        """Patient id defaults to the caller."""
        response = book(client, patient, doctor.id)
        assert response.status_code == 201

        data = response.json()["data"]
        assert data["status"] == "upcoming"
        assert data["patient_id"] == patient.id
        assert data["patient"]["email"] == "patient@example.com"
        assert data["doctor"]["id"] == doctor.id
        assert "password_hash" not in data["patient"]
        assert "password_hash" not in data["doctor"]

    def test_status_cannot_be_set_on_create(self, client, patient, doctor):
        response = book(client, patient, doctor.id, status="completed")
        assert response.status_code == 201
        assert response.json()["data"]["status"] == "upcoming"

    def test_doctor_must_be_a_doctor(self, client, db_session, patient, other_patient):
        """A patient id in the doctor field is rejected and nothing is written."""
        response = book(client, patient, other_patient.id)
        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "Invalid doctor selected"}
        assert db_session.query(Appointment).count() == 0

    def test_unknown_doctor(self, client, patient):
        response = book(client, patient, 9999)
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid doctor selected"

    def test_patient_must_be_a_patient(self, client, admin, doctor, other_doctor):
        response = book(client, admin, doctor.id, patient_id=other_doctor.id)
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid patient selected"

    def test_admin_books_on_behalf_of_patient(self, client, admin, patient, doctor):
        response = book(client, admin, doctor.id, patient_id=patient.id)
        assert response.status_code == 201
        assert response.json()["data"]["patient_id"] == patient.id

    def test_admin_must_name_patient(self, client, admin, doctor):
        response = book(client, admin, doctor.id)
        assert response.status_code == 400
        assert response.json()["message"] == "Patient is required"

    @pytest.mark.parametrize("missing", ["date", "time", "reason", "doctor_id"])
    def test_required_fields(self, client, patient, doctor, missing):
        payload = {"doctor_id": doctor.id, "date": "2025-06-01", "time": "10:00", "reason": "checkup"}
        del payload[missing]
        response = client.post(APPOINTMENTS, json=payload, headers=patient.headers)
        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_blank_reason_rejected(self, client, patient, doctor):
        response = book(client, patient, doctor.id, reason="   ")
        assert response.status_code == 400

class TestListAppointments:

    def test_doctor_sees_only_own(self, client, admin, patient, other_patient, doctor, other_doctor):
        mine = [
            book(client, patient, doctor.id).json()["data"]["id"],
            book(client, other_patient, doctor.id, time="11:00").json()["data"]["id"],
        ]
        for hour in ("09:00", "12:00", "13:00"):
            book(client, patient, other_doctor.id, time=hour)

        response = client.get(APPOINTMENTS, headers=doctor.headers)
        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 2
        assert sorted(a["id"] for a in body["data"]) == sorted(mine)
        assert all(a["doctor_id"] == doctor.id for a in body["data"])

    def test_patient_sees_only_own(self, client, patient, other_patient, doctor):
        book(client, patient, doctor.id)
        book(client, other_patient, doctor.id)

        body = client.get(APPOINTMENTS, headers=patient.headers).json()
        assert body["count"] == 1
        assert body["data"][0]["patient_id"] == patient.id

    def test_admin_sees_all(self, client, admin, patient, other_patient, doctor):
        book(client, patient, doctor.id)
        book(client, other_patient, doctor.id)

        body = client.get(APPOINTMENTS, headers=admin.headers).json()
        assert body["count"] == 2

    def test_empty_list(self, client, patient):
        body = client.get(APPOINTMENTS, headers=patient.headers).json()
        assert body == {"success": True, "data": [], "count": 0}

class TestReadAppointment:

    def test_participants_can_read(self, client, admin, patient, doctor):
        appointment_id = book(client, patient, doctor.id).json()["data"]["id"]
        for account in (patient, doctor, admin):
            response = client.get(f"{APPOINTMENTS}/{appointment_id}", headers=account.headers)
            assert response.status_code == 200

    def test_third_party_forbidden(self, client, patient, other_patient, doctor):
        appointment_id = book(client, patient, doctor.id).json()["data"]["id"]
        response = client.get(f"{APPOINTMENTS}/{appointment_id}", headers=other_patient.headers)
        assert response.status_code == 403
        assert response.json()["message"] == "Not authorized to access this appointment"

    def test_not_found_before_forbidden(self, client, other_patient):
        response = client.get(f"{APPOINTMENTS}/9999", headers=other_patient.headers)
        assert response.status_code == 404
        assert response.json()["message"] == "No appointment found with id 9999"

class TestUpdateAppointment:

    def test_patient_cancels(self, client, patient, doctor):
        appointment_id = book(client, patient, doctor.id).json()["data"]["id"]
        response = client.put(
            f"{APPOINTMENTS}/{appointment_id}", json={"status": "cancelled"}, headers=patient.headers
        )
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "cancelled"

    def test_patient_cannot_complete(self, client, patient, doctor):
        appointment_id = book(client, patient, doctor.id).json()["data"]["id"]
        response = client.put(
            f"{APPOINTMENTS}/{appointment_id}",
            json={"status": "completed", "notes": "all good"},
            headers=patient.headers
        )
        assert response.status_code == 403
        assert response.json()["message"] == "Patients can only cancel appointments"

        appointment = client.get(f"{APPOINTMENTS}/{appointment_id}", headers=patient.headers).json()["data"]
        assert appointment["status"] == "upcoming"
        assert appointment["notes"] is None

    def test_patient_cannot_edit_other_fields(self, client, patient, doctor):
        appointment_id = book(client, patient, doctor.id).json()["data"]["id"]
        response = client.put(
            f"{APPOINTMENTS}/{appointment_id}", json={"notes": "please call"}, headers=patient.headers
        )
        assert response.status_code == 403

    def test_third_party_patient_cannot_cancel(self, client, patient, other_patient, doctor):
        appointment_id = book(client, patient, doctor.id).json()["data"]["id"]
        response = client.put(
            f"{APPOINTMENTS}/{appointment_id}", json={"status": "cancelled"}, headers=other_patient.headers
        )
        assert response.status_code == 403
        assert response.json()["message"] == "Not authorized to update this appointment"

    def test_doctor_updates_any_field(self, client, patient, doctor):
        appointment_id = book(client, patient, doctor.id).json()["data"]["id"]
        response = client.put(
            f"{APPOINTMENTS}/{appointment_id}",
            json={"date": "2025-06-02", "time": "14:30", "notes": "moved"},
            headers=doctor.headers
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["date"] == "2025-06-02"
        assert data["time"] == "14:30"
        assert data["notes"] == "moved"

    def test_reassign_to_non_doctor_rejected(self, client, admin, patient, doctor):
        appointment_id = book(client, patient, doctor.id).json()["data"]["id"]
        response = client.put(
            f"{APPOINTMENTS}/{appointment_id}", json={"doctor_id": patient.id}, headers=admin.headers
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid doctor selected"

    def test_null_status_rejected(self, client, patient, doctor):
        appointment_id = book(client, patient, doctor.id).json()["data"]["id"]
        response = client.put(
            f"{APPOINTMENTS}/{appointment_id}", json={"status": None}, headers=doctor.headers
        )
        assert response.status_code == 400

    def test_admin_reopens_cancelled(self, client, admin, patient, doctor):
        appointment_id = book(client, patient, doctor.id).json()["data"]["id"]
        client.put(f"{APPOINTMENTS}/{appointment_id}", json={"status": "cancelled"}, headers=patient.headers)

        response = client.put(
            f"{APPOINTMENTS}/{appointment_id}", json={"status": "upcoming"}, headers=admin.headers
        )
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "upcoming"

    def test_update_missing(self, client, admin):
        response = client.put(f"{APPOINTMENTS}/9999", json={"notes": "x"}, headers=admin.headers)
        assert response.status_code == 404

class TestDeleteAppointment:

    def test_only_admin_deletes(self, client, admin, patient, doctor):
        appointment_id = book(client, patient, doctor.id).json()["data"]["id"]

        for account in (patient, doctor):
            response = client.delete(f"{APPOINTMENTS}/{appointment_id}", headers=account.headers)
            assert response.status_code == 403

        response = client.delete(f"{APPOINTMENTS}/{appointment_id}", headers=admin.headers)
        assert response.status_code == 200
        assert response.json() == {"success": True, "data": {}}

        response = client.get(f"{APPOINTMENTS}/{appointment_id}", headers=admin.headers)
        assert response.status_code == 404

    def test_linked_medical_record_survives(self, client, db_session, admin, patient, doctor):
        """Deleting an appointment clears the link on its medical records."""
        appointment_id = book(client, patient, doctor.id).json()["data"]["id"]
        record_id = client.post(
            "/api/v1/medical-records",
            json={"patient_id": patient.id, "appointment_id": appointment_id, "diagnosis": "Flu"},
            headers=doctor.headers
        ).json()["data"]["id"]

        response = client.delete(f"{APPOINTMENTS}/{appointment_id}", headers=admin.headers)
        assert response.status_code == 200
        assert db_session.query(Appointment).count() == 0

        response = client.get(f"/api/v1/medical-records/{record_id}", headers=doctor.headers)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["appointment_id"] is None
        assert data["appointment"] is None
        assert data["diagnosis"] == "Flu"

class TestAppointmentLifecycle:

    def test_book_complete_then_patient_cancel_forbidden(self, client, patient, doctor):
        """Booked, completed by the doctor, then the patient can no longer cancel."""
        response = book(client, patient, doctor.id, date="2025-06-01", time="10:00", reason="checkup")
        assert response.status_code == 201
        assert response.json()["success"] is True
        appointment = response.json()["data"]
        assert appointment["status"] == "upcoming"

        response = client.put(
            f"{APPOINTMENTS}/{appointment['id']}", json={"status": "completed"}, headers=doctor.headers
        )
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "completed"

        response = client.put(
            f"{APPOINTMENTS}/{appointment['id']}", json={"status": "cancelled"}, headers=patient.headers
        )
        assert response.status_code == 403
        assert response.json()["message"] == "Only upcoming appointments can be cancelled"

        response = client.get(f"{APPOINTMENTS}/{appointment['id']}", headers=patient.headers)
        assert response.json()["data"]["status"] == "completed"
