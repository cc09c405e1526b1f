"""Registration, login and the admin guard."""
from conftest import TEST_PASSWORD


def test_register_defaults_to_patient(client):
    resp = client.post("/auth/register", json={"email": "new@clinic.com", "password": "hunter22"})

    assert resp.status_code == 201
    body = resp.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["role"] == "PATIENT"
    assert body["user"]["email"] == "new@clinic.com"


def test_register_as_doctor(client):
    resp = client.post("/auth/register",
                       json={"email": "dr@clinic.com", "password": "hunter22", "role": "DOCTOR", "name": "Dr. Who"})
    assert resp.json()["user"]["role"] == "DOCTOR"


def test_register_cannot_self_grant_admin(client):
    resp = client.post("/auth/register",
                       json={"email": "sneaky@clinic.com", "password": "hunter22", "role": "ADMIN"})
    assert resp.status_code == 403


def test_register_listed_admin_email_is_promoted(client):
    resp = client.post("/auth/register", json={"email": "boss@medportal.com", "password": "hunter22"})
    assert resp.json()["user"]["role"] == "ADMIN"


def test_register_duplicate_email(client, doctor_user):
    resp = client.post("/auth/register", json={"email": doctor_user.email, "password": "hunter22"})
    assert resp.status_code == 409


def test_register_short_password(client):
    resp = client.post("/auth/register", json={"email": "a@clinic.com", "password": "123"})
    assert resp.status_code == 422


def test_login_and_me(client, doctor_user):
    resp = client.post("/auth/login", json={"email": doctor_user.email, "password": TEST_PASSWORD})
    assert resp.status_code == 200
    token = resp.json()["access_token"]

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["id"] == doctor_user.id
    assert me.json()["role"] == "DOCTOR"


def test_login_wrong_password_is_generic_401(client, doctor_user):
    wrong = client.post("/auth/login", json={"email": doctor_user.email, "password": "nope-nope"})
    unknown = client.post("/auth/login", json={"email": "ghost@clinic.com", "password": "nope-nope"})

    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json()["detail"] == unknown.json()["detail"] == "Invalid email or password"


def test_me_requires_token(client):
    assert client.get("/auth/me").status_code == 401
    assert client.get("/auth/me", headers={"Authorization": "Bearer junk"}).status_code == 401


def test_admin_guard(client, admin_headers, doctor_headers):
    assert client.get("/users").status_code == 401
    assert client.get("/users", headers=doctor_headers).status_code == 403
    assert client.get("/users", headers=admin_headers).status_code == 200


def test_admin_can_change_roles(client, admin_headers, doctor_user):
    resp = client.patch(f"/users/{doctor_user.id}", json={"role": "ADMIN"}, headers=admin_headers)

    assert resp.status_code == 200
    assert resp.json()["role"] == "ADMIN"


def test_admin_cannot_delete_self(client, admin_user, admin_headers):
    resp = client.delete(f"/users/{admin_user.id}", headers=admin_headers)
    assert resp.status_code == 400


def test_admin_deletes_user(client, admin_headers, doctor_user):
    resp = client.delete(f"/users/{doctor_user.id}", headers=admin_headers)

    assert resp.json() == {"message": "User deleted successfully"}
    assert client.get(f"/users/{doctor_user.id}", headers=admin_headers).status_code == 404
