import uuid
from types import SimpleNamespace

import pytest
from fastapi import HTTPException

from conftest import make_token
from routers.auth.helpers import auth_helpers, AuthIdentity
from routers.auth.session import AuthSession
from routers.profiles.helpers import profile_helpers


def provider_user(user_id=None, email="new.user@example.com"):
    return SimpleNamespace(id=str(user_id or uuid.uuid4()), email=email)


def provider_session(access_token="access-token", refresh_token="refresh-token"):
    return SimpleNamespace(access_token=access_token, refresh_token=refresh_token)


def test_verify_token_returns_identity():
    user_id = uuid.uuid4()
    identity = auth_helpers.verify_token(make_token(user_id, "asha@example.com"))
    assert identity.id == str(user_id)
    assert identity.email == "asha@example.com"
    assert identity.payload["aud"] == "authenticated"


@pytest.mark.parametrize(
    "token,detail",
    [
        (make_token(uuid.uuid4(), expires_in=-60), "Token expired"),
        (make_token(uuid.uuid4(), secret="some-other-secret-0123456789abcdef"), "Invalid token"),
        ("not.a.jwt", "Invalid token"),
        (make_token("", email="x@example.com"), "Invalid token: missing user ID"),
    ],
)
def test_verify_token_rejections(token, detail):
    with pytest.raises(HTTPException) as excinfo:
        auth_helpers.verify_token(token)
    assert excinfo.value.status_code == 401
    assert excinfo.value.detail == detail


async def test_session_initialize_loads_role_profile(db, tailor):
    session = await AuthSession().initialize(db, AuthIdentity(id=tailor.user_id, email=tailor.email))
    assert session.is_authenticated
    assert session.role == "tailor"
    assert session.profile_id == tailor.profile_id
    assert session.require_role("tailor").id == tailor.profile.id


async def test_session_without_profile(db):
    session = await AuthSession().initialize(db, AuthIdentity(id=str(uuid.uuid4())))
    assert session.is_authenticated
    assert session.role is None
    assert session.profile is None
    with pytest.raises(HTTPException) as excinfo:
        session.require_role("customer")
    assert excinfo.value.status_code == 403


async def test_require_role_refuses_other_roles(db, customer):
    session = await AuthSession().initialize(db, AuthIdentity(id=customer.user_id))
    with pytest.raises(HTTPException) as excinfo:
        session.require_role("tailor", "admin")
    assert excinfo.value.status_code == 403


async def test_get_session_endpoint(client, customer):
    response = await client.get("/auth/session", headers=customer.headers)
    assert response.status_code == 200
    body = response.json()
    assert body["user_id"] == customer.user_id
    assert body["role"] == "customer"
    assert body["profile"]["full_name"] == "Asha Rao"
    assert body["profile"]["id"] == customer.profile_id


async def test_session_endpoint_for_user_without_profile(client):
    token = make_token(uuid.uuid4(), "pending@example.com")
    response = await client.get("/auth/session", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    body = response.json()
    assert body["role"] is None
    assert body["profile"] is None
    assert body["email"] == "pending@example.com"


async def test_missing_or_bad_token(client):
    response = await client.get("/auth/session")
    assert response.status_code in (401, 403)

    response = await client.get("/auth/session", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401


async def test_register_creates_profile(client, session_factory, supabase_client):
    user = provider_user(email="ravi@example.com")
    supabase_client.auth.sign_up.return_value = SimpleNamespace(user=user, session=provider_session())

    response = await client.post(
        "/auth/register",
        json={"email": "ravi@example.com", "password": "secret123", "role": "tailor", "full_name": "Ravi Kumar"},
    )
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["access_token"] == "access-token"
    assert body["session"]["role"] == "tailor"
    assert body["session"]["profile"]["business_name"] == "Ravi Kumar"
    assert body["session"]["profile"]["is_verified"] is False

    sign_up_request = supabase_client.auth.sign_up.call_args.args[0]
    assert sign_up_request["options"]["data"]["role"] == "tailor"

    async with session_factory() as session:
        user_profile = await profile_helpers.get_user_profile(session, user.id)
        assert user_profile.role == "tailor"


async def test_register_without_provider_session(client, supabase_client):
    supabase_client.auth.sign_up.return_value = SimpleNamespace(user=provider_user(), session=None)

    response = await client.post(
        "/auth/register",
        json={"email": "new.user@example.com", "password": "secret123", "role": "customer", "full_name": "New User"},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["access_token"] == ""
    assert "verify your account" in body["message"]
    assert body["session"]["role"] == "customer"


async def test_register_rejected_by_provider(client, supabase_client):
    supabase_client.auth.sign_up.return_value = SimpleNamespace(user=None, session=None)

    response = await client.post(
        "/auth/register",
        json={"email": "new.user@example.com", "password": "secret123", "role": "customer", "full_name": "New User"},
    )
    assert response.status_code == 400


async def test_register_validation(client):
    response = await client.post(
        "/auth/register",
        json={"email": "not-an-email", "password": "123", "role": "wizard", "full_name": ""},
    )
    assert response.status_code == 422


async def test_login(client, customer, supabase_client):
    supabase_client.auth.sign_in_with_password.return_value = SimpleNamespace(
        user=provider_user(customer.user_id, customer.email),
        session=provider_session()
    )

    response = await client.post("/auth/login", json={"email": customer.email, "password": "secret123"})
    assert response.status_code == 200
    body = response.json()
    assert body["refresh_token"] == "refresh-token"
    assert body["session"]["role"] == "customer"
    assert body["session"]["profile"]["id"] == customer.profile_id


async def test_login_with_bad_credentials(client, supabase_client):
    supabase_client.auth.sign_in_with_password.side_effect = Exception("Invalid login credentials")

    response = await client.post("/auth/login", json={"email": "asha@example.com", "password": "wrong"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid email or password"


async def test_refresh(client, supabase_client):
    supabase_client.auth.refresh_session.return_value = SimpleNamespace(
        session=provider_session("new-access", "new-refresh")
    )
    response = await client.post("/auth/refresh", json={"refresh_token": "old-refresh"})
    assert response.status_code == 200
    assert response.json()["access_token"] == "new-access"

    supabase_client.auth.refresh_session.return_value = SimpleNamespace(session=None)
    response = await client.post("/auth/refresh", json={"refresh_token": "expired"})
    assert response.status_code == 401


async def test_logout(client, customer, supabase_client):
    response = await client.post("/auth/logout", headers=customer.headers)
    assert response.status_code == 200
    assert supabase_client.auth.sign_out.called


async def test_profile_role_cannot_change(db, customer):
    with pytest.raises(HTTPException) as excinfo:
        await profile_helpers.create_profile(db, customer.user_id, customer.email, "tailor", "Asha Rao")
    assert excinfo.value.status_code == 409

    same = await profile_helpers.create_profile(db, customer.user_id, customer.email, "customer", "Asha Rao")
    assert same.id == customer.profile.id
