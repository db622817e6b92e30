"""
HTTP tests for the clinic API.

Each test gets an application around a freshly seeded repository:
admin/admin123, the doctor carmen/carmen123 and the patient ana/ana123.
"""

import io
from datetime import datetime, timezone

import pytest
from PIL import Image

from app.config import settings


API = settings.API_V1_PREFIX


def register_payload(username, role="patient", profile=None):
    return {
        "user": {
            "username": username,
            "password": f"{username}-secret",
            "email": f"{username}@clinicadelica.com",
            "full_name": f"{username.title()} Test",
            "role": role,
        },
        "profile": profile or {},
    }


@pytest.fixture
def admin(login):
    return login("admin", "admin123")


@pytest.fixture
def doctor(login):
    return login("carmen", "carmen123")


@pytest.fixture
def patient(login):
    return login("ana", "ana123")


@pytest.fixture
def ana_record(client, patient):
    return client.get(f"{API}/patients/me", headers=patient).json()


@pytest.fixture
def doctor_record(client, admin):
    return client.get(f"{API}/staff", params={"position": "doctor"}, headers=admin).json()[0]


@pytest.fixture
def course(client, patient, ana_record):
    return client.get(f"{API}/patient-treatments/{ana_record['id']}", headers=patient).json()[0]


# ============== Health ==============

def test_health_and_readiness(client):
    health = client.get("/health")
    ready = client.get("/ready")

    assert health.status_code == 200
    assert health.json()["status"] == "healthy"
    assert ready.json()["status"] == "ready"


def test_root(client):
    assert client.get("/").json()["service"] == settings.APP_NAME


# ============== Authentication ==============

def test_login_returns_token_and_public_user(client):
    response = client.post(f"{API}/auth/login", json={"username": "ana", "password": "ana123"})

    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["user"]["username"] == "ana"
    assert data["user"]["role"] == "patient"
    assert "password" not in data["user"]


@pytest.mark.parametrize("username, password", [("ana", "wrong"), ("nobody", "ana123")])
def test_login_rejects_bad_credentials(client, username, password):
    response = client.post(f"{API}/auth/login", json={"username": username, "password": password})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid username or password"


def test_current_user(client, doctor):
    response = client.get(f"{API}/auth/user", headers=doctor)

    assert response.status_code == 200
    assert response.json()["full_name"] == "Dra. Carmen Rodríguez"


def test_missing_or_invalid_token_is_unauthorized(client):
    assert client.get(f"{API}/auth/user").status_code == 401
    assert client.get(f"{API}/auth/user", headers={"Authorization": "Bearer not-a-token"}).status_code == 401


def test_logout_invalidates_the_token(client, patient):
    assert client.post(f"{API}/auth/logout", headers=patient).status_code == 200

    response = client.get(f"{API}/auth/user", headers=patient)

    assert response.status_code == 401
    assert response.json()["detail"] == "Session expired"


def test_sessions_are_independent(client, login):
    first = login("ana", "ana123")
    second = login("ana", "ana123")

    client.post(f"{API}/auth/logout", headers=first)

    assert client.get(f"{API}/auth/user", headers=second).status_code == 200


def test_register_patient_logs_in_and_creates_profile(client):
    payload = register_payload("luis", profile={"allergies": ["Látex"]})

    response = client.post(f"{API}/auth/register", json=payload)

    assert response.status_code == 201
    headers = {"Authorization": f"Bearer {response.json()['access_token']}"}
    me = client.get(f"{API}/patients/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["allergies"] == ["Látex"]


def test_register_staff(client, admin):
    payload = register_payload("pablo", role="staff", profile={"position": "assistant"})

    response = client.post(f"{API}/auth/register", json=payload, headers=admin)

    assert response.status_code == 201
    assistants = client.get(f"{API}/staff", params={"position": "assistant"}, headers=admin).json()
    assert [s["user_id"] for s in assistants] == [response.json()["user"]["id"]]


@pytest.mark.parametrize("role", ["staff", "admin"])
def test_only_admins_register_staff_accounts(client, doctor, patient, role):
    payload = register_payload("intruder", role=role, profile={"position": "doctor"})

    anonymous = client.post(f"{API}/auth/register", json=payload)
    as_staff = client.post(f"{API}/auth/register", json=payload, headers=doctor)
    as_patient = client.post(f"{API}/auth/register", json=payload, headers=patient)

    assert [r.status_code for r in (anonymous, as_staff, as_patient)] == [403, 403, 403]
    assert anonymous.json()["detail"] == "Only administrators can register staff accounts"
    assert client.post(f"{API}/auth/login", json={"username": "intruder", "password": "intruder-secret"}).status_code == 401


def test_register_duplicate_username_conflicts(client, admin):
    response = client.post(
        f"{API}/auth/register",
        json=register_payload("admin", role="staff", profile={"position": "doctor"}),
        headers=admin,
    )

    assert response.status_code == 409
    assert response.json()["detail"] == "Username already exists"


def test_register_with_invalid_profile_creates_nothing(client, admin):
    response = client.post(f"{API}/auth/register", json=register_payload("pablo", role="staff"), headers=admin)

    assert response.status_code == 400
    # The username is still free
    retry = client.post(
        f"{API}/auth/register",
        json=register_payload("pablo", role="staff", profile={"position": "doctor"}),
        headers=admin,
    )
    assert retry.status_code == 201


# ============== Patients ==============

def test_patient_list_requires_staff(client, patient, doctor):
    assert client.get(f"{API}/patients", headers=patient).status_code == 403

    response = client.get(f"{API}/patients", headers=doctor)
    assert response.status_code == 200
    assert len(response.json()) == 1


def test_patient_list_filters_by_insurance(client, doctor):
    assert len(client.get(f"{API}/patients", params={"insurance": "Sanitas"}, headers=doctor).json()) == 1
    assert client.get(f"{API}/patients", params={"insurance": "Adeslas"}, headers=doctor).json() == []


def test_patient_can_read_only_own_record(client, patient, admin, ana_record):
    other = client.post(f"{API}/auth/register", json=register_payload("luis")).json()
    luis_headers = {"Authorization": f"Bearer {other['access_token']}"}
    luis_record = client.get(f"{API}/patients/me", headers=luis_headers).json()

    assert client.get(f"{API}/patients/{ana_record['id']}", headers=patient).status_code == 200

    denied = client.get(f"{API}/patients/{luis_record['id']}", headers=patient)
    assert denied.status_code == 403
    assert denied.json()["detail"] == "Unauthorized access to patient data"

    assert client.get(f"{API}/patients/{luis_record['id']}", headers=admin).status_code == 200


def test_unknown_patient_is_not_found(client, admin):
    assert client.get(f"{API}/patients/99999", headers=admin).status_code == 404


def test_staff_updates_patient_profile(client, doctor, ana_record):
    response = client.patch(
        f"{API}/patients/{ana_record['id']}",
        json={"insurance": "Adeslas"},
        headers=doctor,
    )

    assert response.status_code == 200
    assert response.json()["insurance"] == "Adeslas"
    assert response.json()["allergies"] == ana_record["allergies"]
    assert response.json()["created_at"] == ana_record["created_at"]


def test_staff_endpoints_are_admin_only(client, doctor, admin, doctor_record):
    assert client.get(f"{API}/staff", headers=doctor).status_code == 403

    response = client.patch(f"{API}/staff/{doctor_record['id']}", json={"specialty": "Ortodoncia"}, headers=admin)
    assert response.status_code == 200
    assert response.json()["specialty"] == "Ortodoncia"


# ============== Treatments ==============

def test_treatment_catalog(client, patient, admin):
    assert len(client.get(f"{API}/treatments", headers=patient).json()) == 3
    assert client.post(f"{API}/treatments", json={"name": "Implante", "default_duration": 90}, headers=patient).status_code == 403

    created = client.post(f"{API}/treatments", json={"name": "Implante", "default_duration": 90}, headers=admin)
    assert created.status_code == 201
    assert client.get(f"{API}/treatments/{created.json()['id']}", headers=patient).json()["name"] == "Implante"


def test_patient_sees_own_course_and_steps(client, patient, course):
    assert course["status"] == "in_progress"
    assert course["progress"] == 60

    steps = client.get(f"{API}/patient-treatments/{course['id']}/steps", headers=patient).json()
    assert [s["name"] for s in steps] == ["Primera sesión", "Segunda sesión", "Tercera sesión"]


def test_treatment_course_lifecycle(client, doctor, ana_record, doctor_record):
    created = client.post(
        f"{API}/patient-treatments",
        json={
            "patient_id": ana_record["id"],
            "treatment_id": 1,
            "staff_id": doctor_record["id"],
            "start_date": "2026-06-01T09:00:00Z",
        },
        headers=doctor,
    ).json()
    course_id = created["id"]
    assert created["status"] == "pending"

    skipped = client.patch(f"{API}/patient-treatments/{course_id}/status", json={"status": "completed"}, headers=doctor)
    assert skipped.status_code == 400

    started = client.patch(f"{API}/patient-treatments/{course_id}/status", json={"status": "in_progress"}, headers=doctor)
    assert started.status_code == 200

    progress = client.patch(f"{API}/patient-treatments/{course_id}/progress", json={"progress": 50}, headers=doctor)
    assert progress.json()["progress"] == 50
    assert progress.json()["status"] == "in_progress"

    too_much = client.patch(f"{API}/patient-treatments/{course_id}/progress", json={"progress": 101}, headers=doctor)
    assert too_much.status_code == 422


def test_completing_a_step_records_the_time(client, doctor, patient, course):
    steps = client.get(f"{API}/patient-treatments/{course['id']}/steps", headers=patient).json()
    pending = next(s for s in steps if s["status"] == "pending")
    before = datetime.now(timezone.utc)

    response = client.patch(f"{API}/treatment-steps/{pending['id']}", json={"status": "completed"}, headers=doctor)

    assert response.status_code == 200
    assert datetime.fromisoformat(response.json()["date"].replace("Z", "+00:00")) >= before

    reopened = client.patch(f"{API}/treatment-steps/{pending['id']}", json={"status": "pending"}, headers=doctor)
    assert reopened.status_code == 400


# ============== Appointments ==============

def test_patient_only_sees_own_appointments(client, patient, doctor, ana_record, doctor_record):
    other = client.post(f"{API}/auth/register", json=register_payload("luis")).json()
    luis_headers = {"Authorization": f"Bearer {other['access_token']}"}
    luis_record = client.get(f"{API}/patients/me", headers=luis_headers).json()
    client.post(
        f"{API}/appointments",
        json={"patient_id": luis_record["id"], "staff_id": doctor_record["id"], "date": "2026-06-02T10:00:00Z", "duration": 30},
        headers=doctor,
    )

    response = client.get(f"{API}/appointments", params={"patient_id": luis_record["id"]}, headers=patient)

    assert response.status_code == 200
    assert {a["patient_id"] for a in response.json()} == {ana_record["id"]}
    assert len(client.get(f"{API}/appointments", headers=doctor).json()) == 2


def test_appointment_filters(client, doctor, ana_record, doctor_record):
    for date, status in [("2026-06-02T09:00:00Z", "scheduled"), ("2026-06-02T17:30:00Z", "scheduled"), ("2026-06-03T09:00:00Z", "scheduled")]:
        client.post(
            f"{API}/appointments",
            json={"patient_id": ana_record["id"], "staff_id": doctor_record["id"], "date": date, "duration": 45, "status": status},
            headers=doctor,
        )

    same_day = client.get(f"{API}/appointments", params={"date": "2026-06-02"}, headers=doctor).json()
    confirmed = client.get(f"{API}/appointments", params={"status": "confirmed"}, headers=doctor).json()

    assert len(same_day) == 2
    assert all(a["date"].startswith("2026-06-02") for a in same_day)
    assert [a["notes"] for a in confirmed] == ["Tercera sesión de blanqueamiento dental"]


def test_appointment_status_changes(client, doctor, patient, ana_record, doctor_record):
    appointment = client.post(
        f"{API}/appointments",
        json={"patient_id": ana_record["id"], "staff_id": doctor_record["id"], "date": "2026-06-02T09:00:00Z", "duration": 30},
        headers=doctor,
    ).json()
    url = f"{API}/appointments/{appointment['id']}/status"

    assert client.patch(url, json={"status": "confirmed"}, headers=patient).status_code == 403
    assert client.patch(url, json={"status": "completed"}, headers=doctor).status_code == 400
    assert client.patch(url, json={"status": "cancelled"}, headers=doctor).json()["status"] == "cancelled"
    assert client.patch(url, json={"status": "confirmed"}, headers=doctor).status_code == 400
    assert client.patch(f"{API}/appointments/99999/status", json={"status": "confirmed"}, headers=doctor).status_code == 404


# ============== Images ==============

def upload(client, headers, course_id, content, content_type="image/png", filename="smile.png"):
    return client.post(
        f"{API}/images",
        data={"patient_treatment_id": str(course_id), "title": "Después", "type": "after"},
        files={"image": (filename, content, content_type)},
        headers=headers,
    )


def stored_image(path):
    with Image.open(path) as image:
        return image.format, image.size


def test_upload_list_serve_and_delete_image(client, doctor, patient, course, png_bytes, upload_dir):
    response = upload(client, doctor, course["id"], png_bytes)

    assert response.status_code == 201
    image = response.json()
    assert image["type"] == "after"
    assert image["filename"].startswith("image-") and image["filename"].endswith(".png")
    stored = upload_dir / image["filename"]
    assert stored_image(stored) == ("PNG", (8, 8))

    listed = client.get(f"{API}/images/treatment/{course['id']}", headers=patient).json()
    assert [i["id"] for i in listed][-1] == image["id"]
    assert len(listed) == 3

    served = client.get(f"{API}/uploads/{image['filename']}", headers=patient)
    assert served.status_code == 200
    assert served.headers["content-type"] == "image/png"
    assert served.content == stored.read_bytes()

    deleted = client.delete(f"{API}/images/{image['id']}", headers=doctor)
    assert deleted.json() == {"message": "Image deleted"}
    assert not stored.exists()
    assert client.delete(f"{API}/images/{image['id']}", headers=doctor).status_code == 404
    assert len(client.get(f"{API}/images/treatment/{course['id']}", headers=patient).json()) == 2


def test_upload_is_named_by_its_real_format(client, doctor, patient, course, png_bytes, upload_dir):
    payload = png_bytes + b"<script>alert(document.cookie)</script>"

    response = upload(client, doctor, course["id"], payload, filename="smile.html")

    assert response.status_code == 201
    filename = response.json()["filename"]
    assert filename.endswith(".png")
    assert b"<script>" not in (upload_dir / filename).read_bytes()

    served = client.get(f"{API}/uploads/{filename}", headers=patient)
    assert served.headers["content-type"] == "image/png"


def test_upload_rejects_formats_outside_the_whitelist(client, doctor, course, upload_dir):
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8)).save(buffer, format="GIF")

    declared_gif = upload(client, doctor, course["id"], buffer.getvalue(), content_type="image/gif", filename="a.gif")
    disguised_gif = upload(client, doctor, course["id"], buffer.getvalue(), filename="a.png")

    assert declared_gif.status_code == 400
    assert disguised_gif.status_code == 400
    assert list(upload_dir.iterdir()) == []


def test_only_image_files_are_served(client, patient, upload_dir):
    (upload_dir / "page.html").write_text("<script>alert(1)</script>")

    assert client.get(f"{API}/uploads/page.html", headers=patient).status_code == 404


def test_upload_rejects_non_images(client, doctor, course, upload_dir):
    wrong_type = upload(client, doctor, course["id"], b"plain text", content_type="text/plain", filename="notes.txt")
    fake_image = upload(client, doctor, course["id"], b"definitely not a png")

    assert wrong_type.status_code == 400
    assert fake_image.status_code == 400
    assert list(upload_dir.iterdir()) == []


def test_patients_cannot_upload(client, patient, course, png_bytes):
    assert upload(client, patient, course["id"], png_bytes).status_code == 403


def test_patient_cannot_list_other_patients_images(client, course):
    other = client.post(f"{API}/auth/register", json=register_payload("luis")).json()
    luis_headers = {"Authorization": f"Bearer {other['access_token']}"}

    assert client.get(f"{API}/images/treatment/{course['id']}", headers=luis_headers).status_code == 403


def test_missing_upload_is_not_found(client, patient):
    assert client.get(f"{API}/uploads/missing.png", headers=patient).status_code == 404
