"""Auth API endpoint tests."""

from datetime import UTC, datetime, timedelta

import pytest
from jose import jwt

from src.config import get_settings
from src.models.user import User
from src.services.auth import check_password
from src.services.tokens import TokenService

PASSWORD = "testpass123"


@pytest.fixture
def token_service():
    """Token service configured like the app's."""
    return TokenService.from_settings(get_settings())


def get_user(db, email="test@example.com"):
    db.expire_all()
    return db.query(User).filter(User.email == email).first()


def test_health_check(client):
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


# Signup


def test_signup(client, email_outbox):
    """Signup returns tokens and the sanitized user, and sends a verification email."""
    response = client.post(
        "/api/auth/signup",
        json={"name": "New User", "email": "NewUser@Example.com", "password": PASSWORD},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["message"].startswith("User created successfully")
    assert data["token"]
    assert data["refreshToken"]

    user = data["user"]
    assert user["email"] == "newuser@example.com"
    assert user["emailVerified"] is False
    assert user["isActive"] is True
    assert user["subscription"]["plan"] == "free"
    assert user["usage"]["postsGeneratedToday"] == 0
    assert user["onboardingCompleted"] is False
    for secret in (
        "passwordHash",
        "emailVerificationToken",
        "passwordResetToken",
        "password",
    ):
        assert secret not in user

    assert [(kind, to) for kind, to, _ in email_outbox.sent] == [
        ("verification", "newuser@example.com")
    ]


def test_signup_stores_hashed_verification_token(client, db, email_outbox, signup_user):
    """Only a digest of the emailed verification token is stored."""
    signup_user()
    raw_token = email_outbox.tokens("verification")[0]
    user = get_user(db)
    assert user.email_verification_token
    assert user.email_verification_token != raw_token
    assert user.password_hash != PASSWORD


def test_signup_duplicate_email_ignores_case(client, auth_headers):
    """Emails are unique regardless of case."""
    response = client.post(
        "/api/auth/signup",
        json={"name": "Duplicate", "email": "TEST@example.com", "password": PASSWORD},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "User already exists with this email"


def test_signup_short_password(client):
    """Short passwords fail validation with a field-level message."""
    response = client.post(
        "/api/auth/signup",
        json={"name": "New User", "email": "new@example.com", "password": "short"},
    )
    assert response.status_code == 400
    data = response.json()
    assert data["detail"] == "Validation failed"
    assert {"field": "password", "message": "Password must be at least 8 characters"} in data[
        "errors"
    ]


def test_signup_short_password_scenario(client):
    response = client.post(
        "/api/auth/signup", json={"name": "Al", "email": "a@b.com", "password": "short"}
    )
    assert response.status_code == 400
    assert [error["field"] for error in response.json()["errors"]] == ["password"]


def test_signup_password_is_hashed(client, db, signup_user):
    """The stored hash never equals the plaintext and still verifies it."""
    signup_user()
    user = get_user(db)
    assert user.password_hash != PASSWORD
    assert check_password(user, PASSWORD) is True


def test_signup_invalid_email_and_name(client):
    """Malformed email and one-letter names are rejected."""
    response = client.post(
        "/api/auth/signup",
        json={"name": "A", "email": "not-an-email", "password": PASSWORD},
    )
    assert response.status_code == 400
    fields = {error["field"] for error in response.json()["errors"]}
    assert fields == {"name", "email"}


def test_signup_succeeds_when_email_fails(client, email_outbox):
    """Verification email failure does not fail signup."""
    email_outbox.fail = True
    response = client.post(
        "/api/auth/signup",
        json={"name": "New User", "email": "new@example.com", "password": PASSWORD},
    )
    assert response.status_code == 201
    assert email_outbox.sent == []


# Login


def test_login(client, db, auth_headers):
    """Test user login."""
    response = client.post(
        "/api/auth/login", json={"email": auth_headers.email, "password": PASSWORD}
    )
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Login successful"
    assert data["user"]["id"] == auth_headers.user_id
    assert data["user"]["lastLoginAt"] is not None
    assert get_user(db).last_login_at is not None


def test_login_email_is_case_insensitive(client, auth_headers):
    response = client.post(
        "/api/auth/login", json={"email": "Test@Example.COM", "password": PASSWORD}
    )
    assert response.status_code == 200


def test_login_failures_are_indistinguishable(client, auth_headers):
    """Wrong password and unknown email return the same 401."""
    wrong_password = client.post(
        "/api/auth/login", json={"email": auth_headers.email, "password": "wrongpass"}
    )
    unknown_email = client.post(
        "/api/auth/login", json={"email": "nobody@example.com", "password": PASSWORD}
    )
    assert wrong_password.status_code == 401
    assert unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {"detail": "Invalid credentials"}
    assert wrong_password.headers["www-authenticate"] == "Bearer"


def test_login_oauth_only_user_has_no_password(client, db):
    """A user without a password hash can never log in with a password."""
    db.add(User(name="OAuth", email="oauth@example.com", google_id="g-1"))
    db.commit()
    response = client.post(
        "/api/auth/login", json={"email": "oauth@example.com", "password": PASSWORD}
    )
    assert response.status_code == 401


def test_login_tokens_are_unique(client, auth_headers):
    """Two logins in quick succession still get different tokens."""
    body = {"email": auth_headers.email, "password": PASSWORD}
    first = client.post("/api/auth/login", json=body).json()
    second = client.post("/api/auth/login", json=body).json()
    assert first["token"] != second["token"]
    assert first["refreshToken"] != second["refreshToken"]


# Current user


def test_get_current_user(client, auth_headers):
    """Test getting current user info."""
    response = client.get("/api/auth/me", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["user"]["email"] == auth_headers.email


def test_get_current_user_requires_token(client):
    response = client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.json()["detail"] == "Not authenticated"


def test_get_current_user_rejects_bad_tokens(client, auth_headers):
    """Garbage, refresh tokens and foreign signatures are not access tokens."""
    forged = jwt.encode(
        {"sub": str(auth_headers.user_id), "type": "access"}, "other-secret", algorithm="HS256"
    )
    for token in ("not-a-jwt", auth_headers.refresh_token, forged):
        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or expired token"


def test_get_current_user_expired_token(client, auth_headers, token_service):
    token_service.access_token_ttl = timedelta(seconds=-1)
    expired = token_service.issue_access_token(auth_headers.user_id)
    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {expired}"})
    assert response.status_code == 401


def test_get_current_user_vanished(client, db, auth_headers):
    """A valid token for a removed user is a 404."""
    db.query(User).delete()
    db.commit()
    response = client.get("/api/auth/me", headers=auth_headers)
    assert response.status_code == 404
    assert response.json()["detail"] == "User not found"


# Refresh and logout


def test_refresh(client, auth_headers):
    response = client.post("/api/auth/refresh", json={"refreshToken": auth_headers.refresh_token})
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Token refreshed successfully"
    assert data["refreshToken"] != auth_headers.refresh_token

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['token']}"})
    assert me.status_code == 200


def test_refresh_failures_share_one_message(client, auth_headers, token_service):
    """Tampered, expired, missing and access tokens all get the same 401."""
    header, payload, _ = auth_headers.refresh_token.split(".")
    tampered = f"{header}.{payload}.{'x' * 43}"
    token_service.refresh_token_ttl = timedelta(seconds=-1)
    expired = token_service.issue_refresh_token(auth_headers.user_id)
    access_token = auth_headers["Authorization"].removeprefix("Bearer ")

    for body in (
        {"refreshToken": tampered},
        {"refreshToken": expired},
        {"refreshToken": access_token},
        {},
    ):
        response = client.post("/api/auth/refresh", json=body)
        assert response.status_code == 401
        assert response.json() == {"detail": "Invalid or expired refresh token"}


def test_refresh_without_body(client):
    response = client.post("/api/auth/refresh")
    assert response.status_code == 401
    assert response.json() == {"detail": "Invalid or expired refresh token"}


@pytest.mark.parametrize("body", [{"refreshToken": 123}, {"refreshToken": ["a"]}, "token", [1]])
def test_refresh_malformed_body(client, body):
    response = client.post("/api/auth/refresh", json=body)
    assert response.status_code == 401
    assert response.json() == {"detail": "Invalid or expired refresh token"}


def test_refresh_rejects_deleted_account(client, auth_headers):
    response = client.request(
        "DELETE", "/api/auth/delete-account", headers=auth_headers, json={"password": PASSWORD}
    )
    assert response.status_code == 200

    response = client.post("/api/auth/refresh", json={"refreshToken": auth_headers.refresh_token})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid or expired refresh token"


def test_logout(client, auth_headers):
    response = client.post("/api/auth/logout", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == {"message": "Logout successful"}


def test_logout_requires_token(client):
    response = client.post("/api/auth/logout")
    assert response.status_code == 401


# Email verification


def test_verify_email(client, db, email_outbox, auth_headers):
    token = email_outbox.tokens("verification")[0]
    response = client.get(f"/api/auth/verify-email/{token}")
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Email verified successfully"
    assert data["user"]["emailVerified"] is True

    user = get_user(db)
    assert user.email_verification_token is None
    assert user.email_verification_expires is None

    # Single use
    response = client.get(f"/api/auth/verify-email/{token}")
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid or expired verification token"


def test_verify_email_expired_token(client, db, email_outbox, auth_headers):
    token = email_outbox.tokens("verification")[0]
    user = get_user(db)
    user.email_verification_expires = datetime.now(UTC) - timedelta(minutes=1)
    db.commit()

    response = client.get(f"/api/auth/verify-email/{token}")
    assert response.status_code == 400
    assert get_user(db).email_verified is False


def test_verify_email_unknown_token(client):
    response = client.get(f"/api/auth/verify-email/{'0' * 64}")
    assert response.status_code == 400


def test_resend_verification(client, email_outbox, auth_headers):
    first_token = email_outbox.tokens("verification")[0]
    response = client.post("/api/auth/resend-verification", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["message"] == "Verification email sent successfully"

    tokens = email_outbox.tokens("verification")
    assert len(tokens) == 2
    # The earlier token was replaced
    assert client.get(f"/api/auth/verify-email/{first_token}").status_code == 400
    assert client.get(f"/api/auth/verify-email/{tokens[1]}").status_code == 200


def test_resend_verification_already_verified(client, email_outbox, auth_headers):
    client.get(f"/api/auth/verify-email/{email_outbox.tokens('verification')[0]}")
    response = client.post("/api/auth/resend-verification", headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Email is already verified"


def test_resend_verification_email_failure(client, email_outbox, auth_headers):
    email_outbox.fail = True
    response = client.post("/api/auth/resend-verification", headers=auth_headers)
    assert response.status_code == 500
    assert response.json()["detail"] == "Error sending verification email"


# Password reset


def test_forgot_password_does_not_reveal_accounts(client, email_outbox, auth_headers):
    """Registered and unknown emails get identical responses."""
    known = client.post("/api/auth/forgot-password", json={"email": auth_headers.email})
    unknown = client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"})
    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()
    assert len(email_outbox.tokens("password_reset")) == 1


def test_forgot_password_email_failure_withdraws_token(client, db, email_outbox, auth_headers):
    email_outbox.fail = True
    response = client.post("/api/auth/forgot-password", json={"email": auth_headers.email})
    assert response.status_code == 500
    assert response.json()["detail"] == "Error sending password reset email"
    user = get_user(db)
    assert user.password_reset_token is None
    assert user.password_reset_expires is None


def test_reset_password(client, db, email_outbox, auth_headers):
    client.post("/api/auth/forgot-password", json={"email": auth_headers.email})
    token = email_outbox.tokens("password_reset")[0]

    response = client.post(f"/api/auth/reset-password/{token}", json={"password": "newpass456"})
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Password reset successful"
    assert data["token"]
    assert data["refreshToken"]

    user = get_user(db)
    assert user.password_reset_token is None
    assert user.password_changed_at is not None

    old = client.post("/api/auth/login", json={"email": auth_headers.email, "password": PASSWORD})
    new = client.post(
        "/api/auth/login", json={"email": auth_headers.email, "password": "newpass456"}
    )
    assert old.status_code == 401
    assert new.status_code == 200

    # Single use
    response = client.post(f"/api/auth/reset-password/{token}", json={"password": "another789"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid or expired reset token"


def test_reset_password_expired_token(client, db, email_outbox, auth_headers):
    client.post("/api/auth/forgot-password", json={"email": auth_headers.email})
    token = email_outbox.tokens("password_reset")[0]
    user = get_user(db)
    user.password_reset_expires = datetime.now(UTC) - timedelta(minutes=1)
    db.commit()

    response = client.post(f"/api/auth/reset-password/{token}", json={"password": "newpass456"})
    assert response.status_code == 400


def test_reset_password_short_password(client, email_outbox, auth_headers):
    client.post("/api/auth/forgot-password", json={"email": auth_headers.email})
    token = email_outbox.tokens("password_reset")[0]
    response = client.post(f"/api/auth/reset-password/{token}", json={"password": "short"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Validation failed"


# Change password


def test_change_password(client, db, auth_headers):
    response = client.post(
        "/api/auth/change-password",
        headers=auth_headers,
        json={"currentPassword": PASSWORD, "newPassword": "newpass456"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Password changed successfully"
    assert data["token"]
    assert get_user(db).password_changed_at is not None

    response = client.post(
        "/api/auth/login", json={"email": auth_headers.email, "password": "newpass456"}
    )
    assert response.status_code == 200


def test_change_password_wrong_current(client, auth_headers):
    response = client.post(
        "/api/auth/change-password",
        headers=auth_headers,
        json={"currentPassword": "wrongpass", "newPassword": "newpass456"},
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "Current password is incorrect"


def test_change_password_short_new_password(client, auth_headers):
    response = client.post(
        "/api/auth/change-password",
        headers=auth_headers,
        json={"currentPassword": PASSWORD, "newPassword": "short"},
    )
    assert response.status_code == 400
    assert response.json()["errors"][0]["message"] == "New password must be at least 8 characters"


# Profile


def test_update_profile_name_and_avatar(client, email_outbox, auth_headers):
    response = client.put(
        "/api/auth/update-profile",
        headers=auth_headers,
        json={"name": "Renamed User", "avatar": "https://example.com/me.png"},
    )
    assert response.status_code == 200
    user = response.json()["user"]
    assert user["name"] == "Renamed User"
    assert user["avatar"] == "https://example.com/me.png"
    assert user["email"] == auth_headers.email
    # Only the signup verification email
    assert len(email_outbox.sent) == 1


def test_update_profile_email_requires_reverification(client, email_outbox, auth_headers):
    client.get(f"/api/auth/verify-email/{email_outbox.tokens('verification')[0]}")

    response = client.put(
        "/api/auth/update-profile",
        headers=auth_headers,
        json={"email": "Changed@Example.com"},
    )
    assert response.status_code == 200
    user = response.json()["user"]
    assert user["email"] == "changed@example.com"
    assert user["emailVerified"] is False
    assert email_outbox.sent[-1][:2] == ("verification", "changed@example.com")


def test_update_profile_email_taken(client, signup_user, auth_headers):
    signup_user(email="other@example.com", name="Other User")
    response = client.put(
        "/api/auth/update-profile",
        headers=auth_headers,
        json={"email": "OTHER@example.com"},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Email is already in use"


# Account deletion


def test_delete_account(client, db, auth_headers):
    response = client.request(
        "DELETE", "/api/auth/delete-account", headers=auth_headers, json={"password": PASSWORD}
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Account deleted successfully"

    user = get_user(db)
    assert user is not None
    assert user.is_active is False
    assert user.deleted_at is not None

    response = client.post(
        "/api/auth/login", json={"email": auth_headers.email, "password": PASSWORD}
    )
    assert response.status_code == 401


def test_access_token_outlives_account_deletion(client, auth_headers):
    """Access tokens are not re-checked against the active flag until they expire."""
    client.request(
        "DELETE", "/api/auth/delete-account", headers=auth_headers, json={"password": PASSWORD}
    )
    response = client.get("/api/auth/me", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["user"]["isActive"] is False


def test_delete_account_wrong_or_missing_password(client, auth_headers):
    wrong = client.request(
        "DELETE", "/api/auth/delete-account", headers=auth_headers, json={"password": "nope"}
    )
    missing = client.delete("/api/auth/delete-account", headers=auth_headers)
    assert wrong.status_code == missing.status_code == 401
    assert wrong.json()["detail"] == "Incorrect password"


def test_delete_account_oauth_user_without_password(client, db, token_service):
    """Accounts without a password are deleted without confirmation."""
    user = User(name="OAuth", email="oauth@example.com", google_id="g-1")
    db.add(user)
    db.commit()
    token = token_service.issue_access_token(user.id)

    response = client.delete(
        "/api/auth/delete-account", headers={"Authorization": f"Bearer {token}"}
    )
    assert response.status_code == 200
    assert get_user(db, "oauth@example.com").is_active is False
