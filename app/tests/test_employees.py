"""
Tests for employee management endpoints
"""
import pytest
from fastapi import status

from app.models.attendance import AttendanceRecord
from app.models.location import DELETED_LOCATION_NAME


@pytest.fixture
def admin_headers(client, company_admin):
    response = client.post("/api/v1/auth/login", json={"username": "acme-admin", "password": "adminpass123"})
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def test_create_employee_issues_device_code(client, db, admin_headers, office, day_shift):
    response = client.post(
        "/api/v1/employees",
        json={
            "username": "binh.tran",
            "name": "Tran Thi Binh",
            "password": "binhpass1",
            "shift_id": day_shift.id,
            "location_id": office.id,
        },
        headers=admin_headers,
    )
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert len(data["device_code"]) == 5
    assert data["device_code"] == data["device_code"].upper()
    assert data["location_name"] == "Head Office"
    assert data["has_face"] is False

    # the new device code logs in straight away
    login = client.post("/api/v1/auth/login", json={"device_code": data["device_code"]})
    assert login.status_code == status.HTTP_200_OK


def test_duplicate_username_rejected(client, db, admin_headers, employee):
    response = client.post(
        "/api/v1/employees",
        json={"username": "an.nguyen", "name": "Someone Else"},
        headers=admin_headers,
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_unknown_assignment_rejected(client, db, admin_headers):
    response = client.post(
        "/api/v1/employees",
        json={"username": "x", "name": "X", "location_id": 777},
        headers=admin_headers,
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_deleted_location_shows_deleted_state(client, db, admin_headers, employee, office):
    employee.location_id = office.id
    db.commit()

    response = client.delete(f"/api/v1/locations/{office.id}", headers=admin_headers)
    assert response.status_code == status.HTTP_204_NO_CONTENT

    response = client.get(f"/api/v1/employees/{employee.id}", headers=admin_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["location_id"] == office.id
    assert response.json()["location_name"] == DELETED_LOCATION_NAME


def test_update_clears_assignment(client, db, admin_headers, employee, day_shift):
    employee.shift_id = day_shift.id
    db.commit()

    response = client.patch(
        f"/api/v1/employees/{employee.id}",
        json={"shift_id": None, "name": "Nguyen Van An B"},
        headers=admin_headers,
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["shift_id"] is None
    assert response.json()["name"] == "Nguyen Van An B"


def test_delete_employee_keeps_records(client, db, admin_headers, employee, office):
    db.add(AttendanceRecord(
        company_id=employee.company_id,
        employee_id=employee.id,
        employee_name=employee.name,
        username=employee.username,
        timestamp=1772413200000,
        status="CHECK_IN",
        location_id=office.id,
    ))
    db.commit()

    response = client.delete(f"/api/v1/employees/{employee.id}", headers=admin_headers)
    assert response.status_code == status.HTTP_204_NO_CONTENT

    response = client.get("/api/v1/attendance/records", headers=admin_headers)
    items = response.json()["items"]
    assert len(items) == 1
    assert items[0]["employee_name"] == "Nguyen Van An"


def test_enroll_face_descriptor(client, db, admin_headers, employee):
    response = client.post(
        f"/api/v1/employees/{employee.id}/face",
        json={"face_descriptor": [0.05] * 128},
        headers=admin_headers,
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["has_face"] is True


def test_enroll_face_wrong_length(client, db, admin_headers, employee):
    response = client.post(
        f"/api/v1/employees/{employee.id}/face",
        json={"face_descriptor": [0.05] * 10},
        headers=admin_headers,
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_enroll_face_from_image_without_model(client, db, admin_headers, employee):
    response = client.post(
        f"/api/v1/employees/{employee.id}/face",
        json={"image": "data:image/jpeg;base64,AAAA"},
        headers=admin_headers,
    )
    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert response.json()["code"] == "FACE_MODEL_UNAVAILABLE"


def test_regenerate_device_code(client, db, admin_headers, employee):
    response = client.post(f"/api/v1/employees/{employee.id}/device-code", headers=admin_headers)
    assert response.status_code == status.HTTP_200_OK
    assert client.post("/api/v1/auth/login", json={"device_code": "AB12C"}).status_code == status.HTTP_401_UNAUTHORIZED
    new_code = response.json()["device_code"]
    assert client.post("/api/v1/auth/login", json={"device_code": new_code}).status_code == status.HTTP_200_OK


def test_employee_cannot_manage_employees(client, db, employee):
    token = client.post("/api/v1/auth/login", json={"device_code": "AB12C"}).json()["access_token"]
    response = client.get("/api/v1/employees", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_short_password_rejected(client, db, admin_headers):
    response = client.post(
        "/api/v1/employees",
        json={"username": "cuong", "name": "Le Van Cuong", "password": "abc"},
        headers=admin_headers,
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_blank_password_means_device_code_only(client, db, admin_headers):
    response = client.post(
        "/api/v1/employees",
        json={"username": "cuong", "name": "Le Van Cuong", "password": "   "},
        headers=admin_headers,
    )
    assert response.status_code == status.HTTP_201_CREATED

    login = client.post("/api/v1/auth/login", json={"username": "cuong", "password": "   "})
    assert login.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_422_UNPROCESSABLE_ENTITY)


def test_reset_password_validates_and_strips(client, db, admin_headers, employee):
    response = client.post(
        f"/api/v1/employees/{employee.id}/reset-password",
        json={"new_password": "12"},
        headers=admin_headers,
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    response = client.post(
        f"/api/v1/employees/{employee.id}/reset-password",
        json={"new_password": "  freshpass1  "},
        headers=admin_headers,
    )
    assert response.status_code == status.HTTP_200_OK
    login = client.post("/api/v1/auth/login", json={"username": "an.nguyen", "password": "freshpass1"})
    assert login.status_code == status.HTTP_200_OK


def test_delete_employee_drops_scan_lock(client, db, admin_headers, employee):
    from app.services import attendance_service

    attendance_service._lock_for(employee.id)
    assert employee.id in attendance_service._employee_locks

    employee_id = employee.id
    response = client.delete(f"/api/v1/employees/{employee_id}", headers=admin_headers)
    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert employee_id not in attendance_service._employee_locks
