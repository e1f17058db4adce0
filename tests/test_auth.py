import pyotp

from lawhelp.core.security import create_access_token
from datetime import timedelta

PASSWORD = "Password123"
CODE = "123456"


def register(client, email="amina@example.cm", password=PASSWORD, **extra):
    return client.post(
        "/api/auth/register",
        json={"name": "Amina Tchoua", "email": email, "password": password, **extra},
    )


def test_register_returns_user_id_and_stores_code(client, storage):
    response = register(client, phone="+237699000111", location="Yaoundé")

    assert response.status_code == 201
    body = response.json()
    assert body["success"] == 1
    assert body["metadata"]["statusCode"] == 201
    user_id = body["data"]["user_id"]

    user = storage.get_user(user_id)
    assert user.first_name == "Amina"
    assert user.last_name == "Tchoua"
    assert user.email_verified is False
    assert user.password_hash != PASSWORD
    assert [c.type for c in storage.verification_codes.values()] == ["email_verification"]


def test_register_duplicate_email_is_rejected(client):
    assert register(client).status_code == 201

    response = register(client, email="AMINA@example.cm")

    assert response.status_code == 400
    body = response.json()
    assert body["success"] == 0
    assert body["data"]["message"] == "User already exists with this email"


def test_register_rejects_weak_password(client):
    response = register(client, password="short")

    assert response.status_code == 400
    assert "at least 8 characters" in response.json()["data"]["message"]


def test_register_rejects_invalid_email(client):
    response = register(client, email="not-an-email")

    assert response.status_code == 400
    assert response.json()["metadata"]["errors"]


def test_login_requires_verified_email(client):
    register(client)

    response = client.post("/api/auth/login", json={"email": "amina@example.cm", "password": PASSWORD})

    assert response.status_code == 401
    assert "verify your email" in response.json()["data"]["message"]


def test_verify_email_with_wrong_code(client):
    user_id = register(client).json()["data"]["user_id"]

    response = client.post("/api/auth/verify-email", json={"user_id": user_id, "code": "000000"})

    assert response.status_code == 400


def test_verify_email_creates_welcome_notification(client, storage):
    user_id = register(client).json()["data"]["user_id"]

    response = client.post("/api/auth/verify-email", json={"user_id": user_id, "code": CODE})

    assert response.status_code == 200
    assert storage.get_user(user_id).email_verified is True
    assert [n.title for n in storage.get_user_notifications(user_id)] == ["Welcome to LawHelp"]
    # Codes are single use
    again = client.post("/api/auth/verify-email", json={"user_id": user_id, "code": CODE})
    assert again.status_code == 400


def test_login_token_authorizes_profile(client):
    user_id = register(client).json()["data"]["user_id"]
    client.post("/api/auth/verify-email", json={"user_id": user_id, "code": CODE})

    login = client.post("/api/auth/login", json={"email": "amina@example.cm", "password": PASSWORD})
    assert login.status_code == 200
    data = login.json()["data"]
    assert data["token_type"] == "bearer"
    assert data["user"]["id"] == user_id
    assert "password_hash" not in data["user"]

    profile = client.get("/api/user/profile", headers={"Authorization": f"Bearer {data['token']}"})
    assert profile.status_code == 200
    assert profile.json()["data"]["email"] == "amina@example.cm"


def test_login_with_wrong_password(client, make_user):
    make_user()

    response = client.post("/api/auth/login", json={"email": "amina@example.cm", "password": "Wrong12345"})

    assert response.status_code == 401


def test_missing_token_is_401_and_bad_token_is_403(client):
    assert client.get("/api/user/profile").status_code == 401
    assert client.get("/api/user/profile").json()["data"]["message"] == "Access token required"

    response = client.get("/api/user/profile", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 403
    assert response.json()["data"]["message"] == "Invalid or expired token"


def test_expired_token_is_rejected(client, make_user):
    user_id, _ = make_user()
    token = create_access_token({"sub": str(user_id)}, expires_delta=timedelta(seconds=-5))

    response = client.get("/api/user/profile", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 403


def test_token_for_unknown_user_is_rejected(client):
    token = create_access_token({"sub": "999"})

    response = client.get("/api/user/profile", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 403


def test_resend_verification(client):
    register(client)

    assert client.post("/api/auth/resend-verification", json={"email": "amina@example.cm"}).status_code == 200
    assert client.post("/api/auth/resend-verification", json={"email": "nobody@example.cm"}).status_code == 404


def test_resend_verification_for_verified_user(client, make_user):
    make_user()

    response = client.post("/api/auth/resend-verification", json={"email": "amina@example.cm"})

    assert response.status_code == 400


def test_email_two_factor_login_flow(client, storage, make_user):
    user_id, headers = make_user()

    assert client.post("/api/auth/2fa/setup/email", headers=headers).status_code == 200
    enable = client.post("/api/auth/2fa/verify-setup", headers=headers, json={"code": CODE, "method": "email"})
    assert enable.status_code == 200
    assert storage.get_user(user_id).two_factor_method == "email"

    challenge = client.post("/api/auth/login", json={"email": "amina@example.cm", "password": PASSWORD})
    assert challenge.status_code == 200
    data = challenge.json()["data"]
    assert data == {
        "requires_two_factor": True,
        "user_id": user_id,
        "method": "email",
        "message": "Please enter the verification code sent to your email",
    }

    bad = client.post("/api/auth/verify-2fa", json={"user_id": user_id, "code": "654321", "method": "email"})
    assert bad.status_code == 400

    good = client.post("/api/auth/verify-2fa", json={"user_id": user_id, "code": CODE, "method": "email"})
    assert good.status_code == 200
    assert good.json()["data"]["token"]


def test_verify_two_factor_unknown_user(client):
    response = client.post("/api/auth/verify-2fa", json={"user_id": 42, "code": CODE})

    assert response.status_code == 404


def test_totp_setup_enable_and_login(client, storage, make_user):
    user_id, headers = make_user()

    setup = client.post("/api/auth/2fa/setup/totp", headers=headers)
    assert setup.status_code == 200
    data = setup.json()["data"]
    assert data["qr_code_url"].startswith("data:image/png;base64,")
    assert len(data["backup_codes"]) == 10
    assert storage.get_user(user_id).two_factor_enabled is False

    wrong = client.post("/api/auth/2fa/verify-setup", headers=headers, json={"code": "000000", "method": "totp"})
    assert wrong.status_code == 400

    code = pyotp.TOTP(data["secret"]).now()
    enable = client.post("/api/auth/2fa/verify-setup", headers=headers, json={"code": code, "method": "totp"})
    assert enable.status_code == 200
    assert storage.get_user(user_id).two_factor_enabled is True

    challenge = client.post("/api/auth/login", json={"email": "amina@example.cm", "password": PASSWORD})
    assert challenge.json()["data"]["method"] == "totp"

    login = client.post(
        "/api/auth/verify-2fa",
        json={"user_id": user_id, "code": pyotp.TOTP(data["secret"]).now(), "method": "totp"},
    )
    assert login.status_code == 200


def test_backup_code_is_consumed(client, storage, make_user):
    user_id, headers = make_user()
    data = client.post("/api/auth/2fa/setup/totp", headers=headers).json()["data"]
    client.post(
        "/api/auth/2fa/verify-setup",
        headers=headers,
        json={"code": pyotp.TOTP(data["secret"]).now(), "method": "totp"},
    )
    backup = data["backup_codes"][0]

    first = client.post("/api/auth/verify-2fa", json={"user_id": user_id, "code": backup, "method": "totp"})
    second = client.post("/api/auth/verify-2fa", json={"user_id": user_id, "code": backup, "method": "totp"})

    assert first.status_code == 200
    assert second.status_code == 400
    assert len(storage.get_user(user_id).backup_codes) == 9


def test_verify_setup_totp_without_secret(client, make_user):
    _, headers = make_user()

    response = client.post("/api/auth/2fa/verify-setup", headers=headers, json={"code": CODE, "method": "totp"})

    assert response.status_code == 400
    assert response.json()["data"]["message"] == "TOTP has not been set up"


def test_disable_two_factor(client, storage, make_user):
    user_id, headers = make_user()
    client.post("/api/auth/2fa/setup/email", headers=headers)
    client.post("/api/auth/2fa/verify-setup", headers=headers, json={"code": CODE, "method": "email"})

    wrong = client.post("/api/auth/2fa/disable", headers=headers, json={"password": "Nope12345"})
    assert wrong.status_code == 401

    ok = client.post("/api/auth/2fa/disable", headers=headers, json={"password": PASSWORD})
    assert ok.status_code == 200
    user = storage.get_user(user_id)
    assert user.two_factor_enabled is False
    assert user.two_factor_method is None


def test_update_profile(client, storage, make_user):
    user_id, headers = make_user()

    response = client.patch(
        "/api/user/profile",
        headers=headers,
        json={"name": "Amina Bello Tchoua", "location": "Garoua"},
    )

    assert response.status_code == 200
    assert response.json()["data"]["location"] == "Garoua"
    user = storage.get_user(user_id)
    assert user.first_name == "Amina"
    assert user.last_name == "Bello Tchoua"
