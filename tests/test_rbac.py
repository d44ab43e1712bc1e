import uuid

import pytest

from dependencies.rbac import normalize_path, translate_method_to_action, has_permission


@pytest.mark.parametrize(
    "path,resource",
    [
        ("/orders", "orders"),
        ("/orders/123/accept", "orders"),
        ("/admin/dashboard", "admin"),
        ("/tailors", "tailors"),
        ("/tailors/abc/reviews", "tailors/reviews"),
        ("/chat/conversations/abc/messages", "chat"),
        ("measurements", "measurements"),
    ],
)
def test_normalize_path(path, resource):
    assert normalize_path(path) == resource


def test_translate_method_to_action():
    assert translate_method_to_action("get") == "read"
    assert translate_method_to_action("POST") == "write"
    assert translate_method_to_action("PATCH") == "write"
    assert translate_method_to_action("DELETE") == "delete"
    assert translate_method_to_action("OPTIONS") == "read"


@pytest.mark.parametrize(
    "role,resource,permission,allowed",
    [
        ("customer", "orders", "write", True),
        ("customer", "tracking", "write", False),
        ("customer", "measurements", "delete", True),
        ("customer", "admin", "read", False),
        ("tailor", "tracking", "write", True),
        ("tailor", "payments", "write", False),
        ("tailor", "tailors/reviews", "write", False),
        ("tailor", "measurements", "read", False),
        ("admin", "admin", "write", True),
        ("admin", "chat", "write", False),
        ("admin", "disputes", "write", True),
        ("guest", "orders", "read", False),
    ],
)
def test_has_permission(role, resource, permission, allowed):
    assert has_permission(role, resource, permission) is allowed


def test_nested_resource_falls_back_to_parent():
    assert has_permission("customer", "orders/items", "read")
    assert not has_permission("customer", "admin/users", "read")


async def test_role_gates_on_routes(client, customer, tailor, admin):
    response = await client.get("/admin/dashboard", headers=customer.headers)
    assert response.status_code == 403

    response = await client.get("/measurements", headers=tailor.headers)
    assert response.status_code == 403

    response = await client.get("/admin/dashboard", headers=admin.headers)
    assert response.status_code == 200


async def test_measurement_routes_detect_resource_and_action(client, tailor, admin):
    response = await client.post("/measurements", json={"bust_cm": 90}, headers=tailor.headers)
    assert response.status_code == 403
    assert response.json()["detail"].endswith("write permission for measurements")

    response = await client.delete(f"/measurements/{uuid.uuid4()}", headers=admin.headers)
    assert response.status_code == 403
    assert response.json()["detail"].endswith("delete permission for measurements")
