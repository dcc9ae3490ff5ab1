import pytest


def _new_user(seeded, **overrides):
    payload = {
        "roleId": seeded.roles["User"],
        "name": "New Hire",
        "email": "new.hire@example.com",
        "password": "hire-pass",
    }
    payload.update(overrides)
    return payload


def test_company_admin_creates_user_in_own_company(client, seeded, auth):
    response = client.post("/api/users", json=_new_user(seeded), headers=auth("admin_a"))

    assert response.status_code == 201
    body = response.json()
    assert body["companyId"] == seeded.company_a_id
    assert body["isActive"] is True
    assert "password" not in body
    assert "passwordHash" not in body


def test_user_list_never_exposes_password_hash(client, seeded, auth):
    response = client.get("/api/users", headers=auth("admin_a"))

    assert response.status_code == 200
    assert all("passwordHash" not in row for row in response.json())
    assert {row["companyId"] for row in response.json()} == {seeded.company_a_id}


def test_duplicate_email_conflicts(client, seeded, auth):
    response = client.post(
        "/api/users",
        json=_new_user(seeded, email="user.a@example.com"),
        headers=auth("admin_a"),
    )

    assert response.status_code == 409
    assert response.json()["detail"] == "Email already in use"


def test_short_password_is_rejected(client, seeded, auth):
    response = client.post("/api/users", json=_new_user(seeded, password="123"), headers=auth("admin_a"))

    assert response.status_code == 400


def test_company_admin_cannot_grant_super_admin(client, seeded, auth):
    response = client.post(
        "/api/users",
        json=_new_user(seeded, roleId=seeded.roles["Super Admin"]),
        headers=auth("admin_a"),
    )

    assert response.status_code == 403


def test_company_admin_cannot_promote_existing_user_to_super_admin(client, seeded, auth):
    response = client.put(
        f"/api/users/{seeded.user_ids['user_a']}",
        json={"roleId": seeded.roles["Super Admin"]},
        headers=auth("admin_a"),
    )

    assert response.status_code == 403


def test_manager_can_read_but_not_create_users(client, seeded, auth):
    listing = client.get("/api/users", headers=auth("manager_a"))
    create = client.post("/api/users", json=_new_user(seeded), headers=auth("manager_a"))

    assert listing.status_code == 200
    assert create.status_code == 403


def test_users_cannot_delete_themselves(client, seeded, auth):
    response = client.delete(f"/api/users/{seeded.user_ids['admin_a']}", headers=auth("admin_a"))

    assert response.status_code == 400


def test_users_cannot_deactivate_themselves(client, seeded, auth):
    response = client.put(
        f"/api/users/{seeded.user_ids['admin_a']}",
        json={"isActive": False},
        headers=auth("admin_a"),
    )

    assert response.status_code == 400


def test_cannot_move_user_to_foreign_company(client, seeded, auth):
    response = client.put(
        f"/api/users/{seeded.user_ids['user_a']}",
        json={"companyId": seeded.company_b_id},
        headers=auth("admin_a"),
    )

    assert response.status_code == 403


def test_password_change_takes_effect_on_login(client, seeded, auth):
    response = client.put(
        f"/api/users/{seeded.user_ids['user_a']}",
        json={"password": "rotated-pass"},
        headers=auth("admin_a"),
    )

    old_login = client.post("/api/auth/login", json={"email": "user.a@example.com", "password": "s3cret-pass"})
    new_login = client.post("/api/auth/login", json={"email": "user.a@example.com", "password": "rotated-pass"})

    assert response.status_code == 200
    assert old_login.status_code == 401
    assert new_login.status_code == 200


def test_deactivated_user_cannot_log_in(client, seeded, auth):
    deactivate = client.put(
        f"/api/users/{seeded.user_ids['user_a']}",
        json={"isActive": False},
        headers=auth("admin_a"),
    )

    response = client.post("/api/auth/login", json={"email": "user.a@example.com", "password": "s3cret-pass"})

    assert deactivate.status_code == 200
    assert response.status_code == 401
    assert response.json()["detail"] == "Account is inactive"


def test_admin_deletes_user(client, seeded, auth):
    response = client.delete(f"/api/users/{seeded.user_ids['user_a']}", headers=auth("admin_a"))
    lookup = client.get(f"/api/users/{seeded.user_ids['user_a']}", headers=auth("admin_a"))

    assert response.status_code == 204
    assert lookup.status_code == 404


def _super_admin_in_company_a(client, seeded, auth):
    response = client.post(
        "/api/users",
        json=_new_user(
            seeded,
            roleId=seeded.roles["Super Admin"],
            companyId=seeded.company_a_id,
            email="sa.a@example.com",
            password="root-pass-a",
        ),
        headers=auth("super_admin"),
    )
    assert response.status_code == 201
    return response.json()


def test_company_admin_cannot_reset_super_admin_password(client, seeded, auth):
    target = _super_admin_in_company_a(client, seeded, auth)

    response = client.put(
        f"/api/users/{target['id']}",
        json={"password": "hijacked123"},
        headers=auth("admin_a"),
    )
    hijacked = client.post("/api/auth/login", json={"email": "sa.a@example.com", "password": "hijacked123"})
    original = client.post("/api/auth/login", json={"email": "sa.a@example.com", "password": "root-pass-a"})

    assert response.status_code == 403
    assert hijacked.status_code == 401
    assert original.status_code == 200


@pytest.mark.parametrize("changes", [{"email": "mine@example.com"}, {"isActive": False}, {"name": "Renamed"}])
def test_company_admin_cannot_edit_super_admin_account(client, seeded, auth, changes):
    target = _super_admin_in_company_a(client, seeded, auth)

    response = client.put(f"/api/users/{target['id']}", json=changes, headers=auth("admin_a"))

    assert response.status_code == 403


def test_company_admin_cannot_delete_super_admin(client, seeded, auth):
    target = _super_admin_in_company_a(client, seeded, auth)

    response = client.delete(f"/api/users/{target['id']}", headers=auth("admin_a"))
    lookup = client.get(f"/api/users/{target['id']}", headers=auth("super_admin"))

    assert response.status_code == 403
    assert lookup.status_code == 200


def test_super_admin_can_manage_other_super_admins(client, seeded, auth):
    target = _super_admin_in_company_a(client, seeded, auth)

    updated = client.put(f"/api/users/{target['id']}", json={"name": "Renamed"}, headers=auth("super_admin"))
    deleted = client.delete(f"/api/users/{target['id']}", headers=auth("super_admin"))

    assert updated.status_code == 200
    assert deleted.status_code == 204
