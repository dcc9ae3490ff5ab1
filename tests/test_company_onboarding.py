import pytest

from billmaster.utils.slug import normalize_slug


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Acme Corp.", "acme-corp"),
        ("  São  Paulo   Foods ", "sao-paulo-foods"),
        ("--already--slugged--", "already-slugged"),
        ("", ""),
    ],
)
def test_normalize_slug(raw, expected):
    assert normalize_slug(raw) == expected


def test_super_admin_creates_company_with_first_admin(client, seeded, auth):
    response = client.post(
        "/api/companies",
        json={
            "name": "Initech Ltd.",
            "email": "hello@initech.example.com",
            "adminEmail": "owner@initech.example.com",
            "adminName": "Initech Owner",
            "adminPassword": "owner-pass",
        },
        headers=auth("super_admin"),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["slug"] == "initech-ltd"
    assert body["adminUser"]["companyId"] == body["id"]
    assert body["adminUser"]["roleId"] == seeded.roles["Company Admin"]
    assert "passwordHash" not in body["adminUser"]

    login = client.post(
        "/api/auth/login",
        json={"email": "owner@initech.example.com", "password": "owner-pass"},
    )
    assert login.status_code == 200
    assert login.json()["user"]["company"]["slug"] == "initech-ltd"


def test_company_slug_must_be_unique(client, seeded, auth):
    response = client.post(
        "/api/companies",
        json={"name": "Acme Supplies"},
        headers=auth("super_admin"),
    )

    assert response.status_code == 409


def test_company_admin_email_must_be_unique(client, seeded, auth):
    response = client.post(
        "/api/companies",
        json={"name": "Fresh Co", "adminEmail": "admin.a@example.com", "adminPassword": "another-pass"},
        headers=auth("super_admin"),
    )

    assert response.status_code == 409


def test_admin_email_without_password_is_rejected(client, seeded, auth):
    response = client.post(
        "/api/companies",
        json={"name": "Half Co", "adminEmail": "half@example.com"},
        headers=auth("super_admin"),
    )

    assert response.status_code == 400


def test_company_admin_cannot_create_companies(client, seeded, auth):
    response = client.post("/api/companies", json={"name": "Rogue"}, headers=auth("admin_a"))

    assert response.status_code == 403


def test_update_company_with_version(client, seeded, auth):
    current = client.get(f"/api/companies/{seeded.company_b_id}", headers=auth("super_admin")).json()

    updated = client.put(
        f"/api/companies/{seeded.company_b_id}",
        json={"website": "https://globex.example.com", "version": current["version"]},
        headers=auth("super_admin"),
    )
    stale = client.put(
        f"/api/companies/{seeded.company_b_id}",
        json={"phone": "555-0000", "version": current["version"]},
        headers=auth("super_admin"),
    )

    assert updated.status_code == 200
    assert updated.json()["website"] == "https://globex.example.com"
    assert stale.status_code == 409


def test_company_name_cannot_be_nulled(client, seeded, auth):
    response = client.put(
        f"/api/companies/{seeded.company_b_id}",
        json={"name": None},
        headers=auth("super_admin"),
    )

    assert response.status_code == 400


def test_delete_company_with_dependents_conflicts(client, seeded, auth):
    response = client.delete(f"/api/companies/{seeded.company_a_id}", headers=auth("super_admin"))

    assert response.status_code == 409


def test_delete_empty_company(client, seeded, auth):
    created = client.post("/api/companies", json={"name": "Short Lived"}, headers=auth("super_admin")).json()

    response = client.delete(f"/api/companies/{created['id']}", headers=auth("super_admin"))
    lookup = client.get(f"/api/companies/{created['id']}", headers=auth("super_admin"))

    assert response.status_code == 204
    assert lookup.status_code == 404
