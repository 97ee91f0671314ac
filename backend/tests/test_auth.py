from app.core.security import create_access_token, decode_token, get_password_hash, verify_password


def test_register_login_me(client):
    register_payload = {
        "name": "Coordinator User",
        "email": "Coordinator@Example.com",
        "password": "password123",
        "role": "coordinator",
        "branch": "cse",
    }

    register_response = client.post("/api/auth/register", json=register_payload)
    assert register_response.status_code == 201
    data = register_response.json()
    assert data["email"] == "coordinator@example.com"
    assert data["role"] == "coordinator"
    assert data["branch"] == "CSE"
    assert "hashed_password" not in data

    login_response = client.post(
        "/api/auth/login",
        json={"email": "coordinator@example.com", "password": "password123", "role": "coordinator"},
    )
    assert login_response.status_code == 200
    login_data = login_response.json()
    assert login_data["token_type"] == "bearer"
    assert login_data["user"]["id"] == data["id"]

    token = login_data["access_token"]
    assert decode_token(token)["role"] == "coordinator"

    me_response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me_response.status_code == 200
    assert me_response.json()["email"] == "coordinator@example.com"


def test_duplicate_registration_is_rejected(client):
    payload = {"name": "Teacher", "email": "teacher@example.com", "password": "password123", "role": "teacher"}

    assert client.post("/api/auth/register", json=payload).status_code == 201
    duplicate = client.post("/api/auth/register", json=payload)

    assert duplicate.status_code == 409
    assert duplicate.json()["detail"] == "Email already registered"


def test_login_rejects_wrong_password_and_role(client):
    payload = {"name": "Teacher", "email": "teacher@example.com", "password": "password123", "role": "teacher"}
    client.post("/api/auth/register", json=payload)

    wrong_password = client.post(
        "/api/auth/login",
        json={"email": "teacher@example.com", "password": "not-the-password"},
    )
    wrong_role = client.post(
        "/api/auth/login",
        json={"email": "teacher@example.com", "password": "password123", "role": "coordinator"},
    )

    assert wrong_password.status_code == 401
    assert wrong_role.status_code == 403


def test_unknown_role_is_rejected(client):
    response = client.post(
        "/api/auth/register",
        json={"name": "Admin", "email": "admin@example.com", "password": "password123", "role": "admin"},
    )
    assert response.status_code == 422


def test_invalid_token_is_unauthorized(client):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_token_for_deleted_user_is_unauthorized(client):
    token = create_access_token("missing-user-id")
    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_password_hashing_round_trip():
    hashed = get_password_hash("password123")
    assert hashed != "password123"
    assert verify_password("password123", hashed)
    assert not verify_password("password124", hashed)
    assert not verify_password("password123", "not-a-bcrypt-hash")
