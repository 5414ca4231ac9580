import pytest
from sqlalchemy import update

from core.security import create_refresh_token, decode_token
from db_models.user import User


@pytest.mark.anyio
@pytest.mark.parametrize(
    "email, password, role",
    [
        ("admin@example.com", "adminpass", "ADMIN"),
        ("manager@example.com", "managerpass", "MANAGER"),
        ("operator@example.com", "operatorpass", "OPERATOR"),
    ],
)
async def test_form_login_issues_role_claims(async_client, email, password, role):
    """OAuth2 form login; the access token carries role and home branch"""
    resp = await async_client.post(
        "/api/v1/auth/login",
        data={"username": email, "password": password},
        headers={"Content-Type": "application/x-www-form-urlencoded"}
    )
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["token_type"] == "bearer"
    assert data["expires_in"] == 24 * 60 * 60

    claims = decode_token(data["access_token"], expected_type="access")
    assert claims["role"] == role
    assert "branch_id" in claims
    assert decode_token(data["refresh_token"], expected_type="refresh") is not None


@pytest.mark.anyio
async def test_json_login_records_last_login(async_client, operator_headers, seed):
    resp = await async_client.get("/api/v1/auth/me", headers=operator_headers)
    assert resp.json()["last_login_at"] is None

    resp = await async_client.post(
        "/api/v1/auth/login/json",
        json={"email": "operator@example.com", "password": "operatorpass"}
    )
    assert resp.status_code == 200, resp.text
    claims = decode_token(resp.json()["access_token"])
    assert claims["branch_id"] == seed.branch_id

    resp = await async_client.get("/api/v1/auth/me", headers=operator_headers)
    assert resp.json()["last_login_at"] is not None


@pytest.mark.anyio
async def test_login_invalid_credentials(async_client):
    """Test login with wrong password"""
    resp = await async_client.post(
        "/api/v1/auth/login",
        data={"username": "admin@example.com", "password": "wrongpassword"},
        headers={"Content-Type": "application/x-www-form-urlencoded"}
    )
    assert resp.status_code == 401
    assert "Incorrect email or password" in resp.json()["detail"]

    resp = await async_client.post(
        "/api/v1/auth/login/json",
        json={"email": "nobody@example.com", "password": "password"}
    )
    assert resp.status_code == 401


@pytest.mark.anyio
async def test_disabled_user_is_locked_out(async_client, session_factory, seed, operator_headers):
    async with session_factory() as session:
        await session.execute(update(User).where(User.id == seed.operator.id).values(is_active=False))
        await session.commit()

    resp = await async_client.post(
        "/api/v1/auth/login/json",
        json={"email": "operator@example.com", "password": "operatorpass"}
    )
    assert resp.status_code == 401

    # Tokens issued before the account was disabled stop working too
    resp = await async_client.get("/api/v1/auth/me", headers=operator_headers)
    assert resp.status_code == 401


@pytest.mark.anyio
async def test_refresh_token(async_client, seed):
    """Refresh re-reads the user and issues a new pair"""
    resp = await async_client.post(
        "/api/v1/auth/refresh",
        json={"refresh_token": create_refresh_token(seed.manager.id)}
    )
    assert resp.status_code == 200, resp.text
    claims = decode_token(resp.json()["access_token"], expected_type="access")
    assert claims["sub"] == str(seed.manager.id)
    assert claims["role"] == "MANAGER"


@pytest.mark.anyio
async def test_refresh_token_invalid(async_client, admin_headers):
    """Garbage and access tokens are both rejected by refresh"""
    resp = await async_client.post(
        "/api/v1/auth/refresh",
        json={"refresh_token": "invalid.token.here"}
    )
    assert resp.status_code == 401

    access_token = admin_headers["Authorization"].split(" ", 1)[1]
    resp = await async_client.post(
        "/api/v1/auth/refresh",
        json={"refresh_token": access_token}
    )
    assert resp.status_code == 401


@pytest.mark.anyio
async def test_refresh_token_cannot_authenticate_requests(async_client, seed):
    """A refresh token is not accepted where an access token is expected"""
    token = create_refresh_token(seed.admin.id)
    resp = await async_client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


@pytest.mark.anyio
async def test_get_current_user(async_client, operator_headers, seed):
    resp = await async_client.get("/api/v1/auth/me", headers=operator_headers)
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["email"] == "operator@example.com"
    assert data["role"] == "OPERATOR"
    assert data["branch_id"] == seed.branch_id
    assert data["is_active"] is True


@pytest.mark.anyio
async def test_get_current_user_unauthorized(async_client):
    """Test getting current user without authentication"""
    resp = await async_client.get("/api/v1/auth/me")
    assert resp.status_code == 401
