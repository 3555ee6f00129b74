from datetime import timedelta

from jose import jwt as jose_jwt

from salon_booking import config
from salon_booking.models import ROLE_SUPER_ADMIN, AdminUser, PasswordResetToken, utcnow

from .conftest import ADMIN_PASSWORD


def login(client, email="rhi@hairbyrhi.com", password=ADMIN_PASSWORD, **extra):
    return client.post("/api/auth/login", json={"email": email, "password": password, **extra})


def load_user(database, user_id) -> AdminUser:
    with database.session() as db:
        user = db.get(AdminUser, user_id)
        db.expunge(user)
        return user


def test_login_success_returns_token_and_user(client, make_admin):
    make_admin()

    response = login(client, email="RHI@hairbyrhi.com")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Login successful"
    assert body["data"]["expiresIn"] == "24h"
    assert body["data"]["user"]["email"] == "rhi@hairbyrhi.com"
    assert body["data"]["user"]["firstName"] == "Rhi"
    assert body["data"]["token"]


def test_login_remember_me_issues_long_token(client, make_admin):
    make_admin()

    response = login(client, rememberMe=True)

    assert response.status_code == 200
    assert response.json()["data"]["expiresIn"] == "30d"
    claims = jose_jwt.get_unverified_claims(response.json()["data"]["token"])
    assert claims["exp"] - claims["iat"] == int(timedelta(days=30).total_seconds())
    assert claims["iss"] == "hairbyrhi-api"
    assert claims["aud"] == "hairbyrhi-admin"


def test_login_unknown_email_is_indistinguishable(client, make_admin):
    make_admin()

    unknown = login(client, email="nobody@hairbyrhi.com")
    wrong_password = login(client, password="not-the-password")

    assert unknown.status_code == wrong_password.status_code == 401
    assert unknown.json()["code"] == wrong_password.json()["code"] == "INVALID_CREDENTIALS"
    assert unknown.json()["message"] == wrong_password.json()["message"]


def test_fifth_failure_locks_account(client, database, make_admin):
    user_id = make_admin()

    for _ in range(4):
        response = login(client, password="wrong-password")
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"

    response = login(client, password="wrong-password")
    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_CREDENTIALS"
    assert response.json()["message"] == "Too many failed attempts. Account locked for 30 minutes."

    user = load_user(database, user_id)
    assert user.failed_login_attempts == 5
    assert user.locked_until > utcnow() + timedelta(minutes=29)


def test_locked_account_rejects_correct_password(client, make_admin):
    make_admin()
    for _ in range(5):
        login(client, password="wrong-password")

    response = login(client)

    assert response.status_code == 423
    body = response.json()
    assert body["code"] == "ACCOUNT_LOCKED"
    assert body["message"] == "Account is locked. Try again in 30 minutes."


def test_successful_login_resets_counter(client, database, make_admin):
    user_id = make_admin()
    login(client, password="wrong-password")
    login(client, password="wrong-password")

    assert login(client).status_code == 200

    user = load_user(database, user_id)
    assert user.failed_login_attempts == 0
    assert user.locked_until is None
    assert user.last_login_at is not None


def test_expired_lock_is_cleared_on_next_attempt(client, database, make_admin):
    user_id = make_admin(failed_login_attempts=5, locked_until=utcnow() - timedelta(minutes=1))

    response = login(client, password="wrong-password")

    # Counter starts again from zero, so this is an ordinary failure
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid email or password"
    user = load_user(database, user_id)
    assert user.failed_login_attempts == 1
    assert user.locked_until is None

    assert login(client).status_code == 200


def test_verify_returns_user_and_expiry(client, make_admin, token_for):
    user_id = make_admin()
    token = token_for(user_id)

    response = client.get("/api/auth/verify", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["user"]["id"] == user_id
    assert data["tokenExp"] == jose_jwt.get_unverified_claims(token)["exp"]


def test_verify_without_token(client):
    response = client.get("/api/auth/verify")

    assert response.status_code == 401
    assert response.json()["code"] == "TOKEN_REQUIRED"


def test_verify_with_garbage_token(client):
    response = client.get("/api/auth/verify", headers={"Authorization": "Bearer not.a.token"})

    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_TOKEN"


def test_verify_with_expired_token(client, make_admin, token_for):
    token = token_for(make_admin(), expires_delta=timedelta(seconds=-10))

    response = client.get("/api/auth/verify", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["code"] == "TOKEN_EXPIRED"


def test_verify_rejects_token_for_another_audience(client, make_admin):
    user_id = make_admin()
    token = jose_jwt.encode(
        {"id": user_id, "iss": config.JWT_ISSUER, "aud": "someone-else"},
        config.JWT_SECRET,
        algorithm=config.JWT_ALGORITHM,
    )

    response = client.get("/api/auth/verify", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_TOKEN"


def test_deactivated_user_loses_access(client, database, make_admin, token_for):
    user_id = make_admin()
    token = token_for(user_id)
    with database.session() as db:
        db.get(AdminUser, user_id).is_active = False
        db.commit()

    response = client.get("/api/auth/verify", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["code"] == "USER_NOT_FOUND"


def test_admin_users_requires_super_admin(client, make_admin, token_for):
    admin_token = token_for(make_admin())
    super_token = token_for(make_admin(email="owner@hairbyrhi.com", role=ROLE_SUPER_ADMIN))

    denied = client.get("/api/admin/users", headers={"Authorization": f"Bearer {admin_token}"})
    allowed = client.get("/api/admin/users", headers={"Authorization": f"Bearer {super_token}"})

    assert denied.status_code == 403
    assert denied.json()["code"] == "INSUFFICIENT_PERMISSIONS"
    assert allowed.status_code == 200
    users = allowed.json()["data"]
    assert {u["email"] for u in users} == {"rhi@hairbyrhi.com", "owner@hairbyrhi.com"}
    assert all("password_hash" not in u for u in users)


def test_profile(client, admin_headers):
    response = client.get("/api/auth/profile", headers=admin_headers)

    assert response.status_code == 200
    user = response.json()["data"]["user"]
    assert user["email"] == "rhi@hairbyrhi.com"
    assert user["passwordChangedAt"] is not None


def test_logout_always_succeeds(client, admin_headers):
    assert client.post("/api/auth/logout").json()["success"] is True
    assert client.post("/api/auth/logout", headers=admin_headers).status_code == 200


def test_change_password(client, admin_headers):
    wrong = client.post(
        "/api/auth/change-password",
        headers=admin_headers,
        json={
            "currentPassword": "not-it",
            "newPassword": "new-password-1",
            "confirmPassword": "new-password-1",
        },
    )
    assert wrong.status_code == 400
    assert wrong.json()["code"] == "INVALID_CURRENT_PASSWORD"

    mismatch = client.post(
        "/api/auth/change-password",
        headers=admin_headers,
        json={
            "currentPassword": ADMIN_PASSWORD,
            "newPassword": "new-password-1",
            "confirmPassword": "new-password-2",
        },
    )
    assert mismatch.status_code == 400
    assert mismatch.json()["code"] == "VALIDATION_ERROR"

    ok = client.post(
        "/api/auth/change-password",
        headers=admin_headers,
        json={
            "currentPassword": ADMIN_PASSWORD,
            "newPassword": "new-password-1",
            "confirmPassword": "new-password-1",
        },
    )
    assert ok.status_code == 200
    assert login(client, password="new-password-1").status_code == 200
    assert login(client).status_code == 401


def test_forgot_password_does_not_reveal_accounts(client, database, make_admin):
    make_admin()

    known = client.post("/api/auth/forgot-password", json={"email": "rhi@hairbyrhi.com"})
    unknown = client.post("/api/auth/forgot-password", json={"email": "ghost@hairbyrhi.com"})

    assert known.status_code == unknown.status_code == 200
    assert known.json()["message"] == unknown.json()["message"]
    with database.session() as db:
        assert db.query(PasswordResetToken).count() == 1


def test_reset_password_consumes_token(client, make_admin, monkeypatch):
    user_id = make_admin(failed_login_attempts=5, locked_until=utcnow() + timedelta(minutes=20))
    monkeypatch.setattr(
        "salon_booking.domain.auth.service.generate_secure_token", lambda: "known-reset-token"
    )
    client.post("/api/auth/forgot-password", json={"email": "rhi@hairbyrhi.com"})

    response = client.post(
        "/api/auth/reset-password",
        json={"token": "known-reset-token", "newPassword": "fresh-password"},
    )
    assert response.status_code == 200

    # Lock is lifted by the reset
    assert login(client, password="fresh-password").json()["data"]["user"]["id"] == user_id

    again = client.post(
        "/api/auth/reset-password",
        json={"token": "known-reset-token", "newPassword": "another-password"},
    )
    assert again.status_code == 400
    assert again.json()["code"] == "INVALID_RESET_TOKEN"
