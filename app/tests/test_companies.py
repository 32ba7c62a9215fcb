"""
Tests for company provisioning (super admin)
"""
from fastapi import status


def get_auth_token(client, **credentials):
    """Helper to get auth token"""
    response = client.post("/api/v1/auth/login", json=credentials)
    return response.json()["access_token"]


def test_super_admin_creates_company_with_admin(client, db, super_admin):
    token = get_auth_token(client, username="root", password="rootpass123")
    response = client.post(
        "/api/v1/companies",
        json={"name": "Pho 24", "admin_username": "pho-admin", "admin_password": "phopass123"},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == status.HTTP_201_CREATED
    company_id = response.json()["id"]

    login = client.post("/api/v1/auth/login", json={"username": "pho-admin", "password": "phopass123"})
    assert login.status_code == status.HTTP_200_OK
    assert login.json()["kind"] == "COMPANY_ADMIN"

    me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {login.json()['access_token']}"})
    assert me.json()["company_id"] == company_id


def test_duplicate_admin_username(client, db, super_admin, company_admin):
    token = get_auth_token(client, username="root", password="rootpass123")
    response = client.post(
        "/api/v1/companies",
        json={"name": "Copycat", "admin_username": "acme-admin", "admin_password": "whatever1"},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_company_admin_cannot_provision(client, db, company_admin):
    token = get_auth_token(client, username="acme-admin", password="adminpass123")
    response = client.get("/api/v1/companies", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == status.HTTP_403_FORBIDDEN
