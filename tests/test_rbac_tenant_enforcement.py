import pytest

from tests.fixtures_data import CUSTOMER_PAYLOAD, PRODUCT_WIDGET


def test_missing_token_returns_401(client, seeded):
    response = client.get("/api/products")

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"
    assert response.json() == {"detail": "Invalid token"}


def test_garbage_token_returns_401(client, seeded):
    response = client.get("/api/products", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401


def test_company_admin_lists_only_own_products(client, seeded, auth):
    response = client.get("/api/products", headers=auth("admin_a"))

    assert response.status_code == 200
    ids = {row["id"] for row in response.json()}
    assert ids == {seeded.widget_a_id, seeded.service_a_id}
    assert all(row["companyId"] == seeded.company_a_id for row in response.json())


def test_list_with_foreign_company_filter_is_denied(client, seeded, auth):
    response = client.get(
        "/api/customers",
        params={"companyId": seeded.company_b_id},
        headers=auth("admin_a"),
    )

    assert response.status_code == 403
    assert response.json()["detail"] == "Access denied to company data"


@pytest.mark.parametrize(
    "method, path_template, body",
    [
        ("GET", "/api/products/{widget_b_id}", None),
        ("PUT", "/api/products/{widget_b_id}", {"name": "Hijacked"}),
        ("DELETE", "/api/products/{widget_b_id}", None),
        ("GET", "/api/customers/{customer_b_id}", None),
        ("PUT", "/api/customers/{customer_b_id}", {"name": "Hijacked"}),
        ("DELETE", "/api/customers/{customer_b_id}", None),
    ],
)
def test_cross_tenant_access_is_denied_for_every_verb(client, seeded, auth, method, path_template, body):
    path = path_template.format(widget_b_id=seeded.widget_b_id, customer_b_id=seeded.customer_b_id)

    response = client.request(method, path, json=body, headers=auth("admin_a"))

    assert response.status_code == 403
    assert response.json()["detail"] == "Access denied to company data"


def test_cross_tenant_create_is_denied(client, seeded, auth):
    payload = dict(PRODUCT_WIDGET, companyId=seeded.company_b_id)

    response = client.post("/api/products", json=payload, headers=auth("admin_a"))

    assert response.status_code == 403


def test_super_admin_bypasses_company_scope(client, seeded, auth):
    get_response = client.get(f"/api/products/{seeded.widget_b_id}", headers=auth("super_admin"))
    put_response = client.put(
        f"/api/customers/{seeded.customer_b_id}",
        json={"phone": "555-0000"},
        headers=auth("super_admin"),
    )
    list_response = client.get("/api/products", headers=auth("super_admin"))

    assert get_response.status_code == 200
    assert put_response.status_code == 200
    assert put_response.json()["phone"] == "555-0000"
    assert {row["companyId"] for row in list_response.json()} == {seeded.company_a_id, seeded.company_b_id}


def test_super_admin_creates_in_requested_company(client, seeded, auth):
    payload = dict(CUSTOMER_PAYLOAD, companyId=seeded.company_b_id)

    response = client.post("/api/customers", json=payload, headers=auth("super_admin"))

    assert response.status_code == 201
    assert response.json()["companyId"] == seeded.company_b_id


def test_non_super_admin_create_is_stamped_with_own_company(client, seeded, auth):
    response = client.post("/api/customers", json=CUSTOMER_PAYLOAD, headers=auth("manager_a"))

    assert response.status_code == 201
    assert response.json()["companyId"] == seeded.company_a_id


def test_user_role_has_no_user_module_access(client, seeded, auth):
    response = client.get("/api/users", headers=auth("user_a"))

    assert response.status_code == 403
    assert response.json()["detail"] == "Insufficient permissions"


def test_manager_cannot_delete_products(client, seeded, auth):
    response = client.delete(f"/api/products/{seeded.widget_a_id}", headers=auth("manager_a"))

    assert response.status_code == 403
    assert response.json()["detail"] == "Insufficient permissions"


def test_user_role_can_read_but_not_write_products(client, seeded, auth):
    read_response = client.get("/api/products", headers=auth("user_a"))
    write_response = client.post("/api/products", json=PRODUCT_WIDGET, headers=auth("user_a"))

    assert read_response.status_code == 200
    assert write_response.status_code == 403


def test_unknown_id_returns_404(client, seeded, auth):
    response = client.get("/api/products/does-not-exist", headers=auth("admin_a"))

    assert response.status_code == 404
    assert response.json()["detail"] == "Product not found"


def test_company_admin_sees_only_own_company(client, seeded, auth):
    list_response = client.get("/api/companies", headers=auth("admin_a"))
    foreign_response = client.get(f"/api/companies/{seeded.company_b_id}", headers=auth("admin_a"))
    create_response = client.post("/api/companies", json={"name": "Sneaky"}, headers=auth("admin_a"))

    assert [row["id"] for row in list_response.json()] == [seeded.company_a_id]
    assert foreign_response.status_code == 403
    assert create_response.status_code == 403


def test_roles_catalog_for_any_authenticated_user(client, seeded, auth):
    response = client.get("/api/roles", headers=auth("user_a"))

    assert response.status_code == 200
    names = {row["name"] for row in response.json()}
    assert names == {"Super Admin", "Company Admin", "Manager", "User"}
    user_role = next(row for row in response.json() if row["name"] == "User")
    assert {perm["module"] for perm in user_role["permissions"]} == {"products", "customers", "invoices"}
