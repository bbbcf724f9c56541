# tests/test_api.py
# =======================
# 🌐 API HTTP: payloads de error, endpoints públicos y panel de administración
# =======================

import pytest

from app import auth
from app.routers import public


def _rsvp_payload(code="AB12CD34", **overrides):
    data = {
        "code": code,
        "name": "Ana Gómez",
        "email": "ana@example.com",
        "phone": "",
        "allergies": "Frutos secos",
        "guests_count": "2",
        "attendance": "si",
    }
    data.update(overrides)
    return data


# =======================
# 🎟️ POST /api/codes/validate
# =======================
def test_validate_ok(client, make_code):
    make_code(code="AB12CD34", max_guests=2, assigned_to="Familia Pérez")
    r = client.post("/api/codes/validate", json={"code": "ab12cd34"})
    assert r.status_code == 200
    body = r.json()
    assert body["code"] == "AB12CD34"
    assert body["remaining_guests"] == 2
    assert body["assigned_to"] == "Familia Pérez"


@pytest.mark.parametrize(
    "payload, status, error",
    [
        ({"code": "  "}, 400, "EmptyInput"),
        ({}, 400, "EmptyInput"),
        ({"code": "NOPE0000"}, 404, "NotFound"),
        ({"code": "OFF00001"}, 403, "Inactive"),
        ({"code": "FULL0001", "mode": "rsvp"}, 409, "Exhausted"),
    ],
)
def test_validate_errors(client, make_code, payload, status, error):
    make_code(code="OFF00001", is_active=False)
    make_code(code="FULL0001", max_guests=1, used_guests=1)
    r = client.post("/api/codes/validate", json=payload)
    assert r.status_code == status
    assert r.json()["error"] == error
    assert r.json()["detail"]


def test_validate_is_rate_limited(client, make_code, monkeypatch):
    make_code(code="AB12CD34")
    monkeypatch.setattr(public, "VALIDATE_MAX", 2)
    headers = {"x-forwarded-for": "203.0.113.7"}
    assert client.post("/api/codes/validate", json={"code": "AB12CD34"}, headers=headers).status_code == 200
    assert client.post("/api/codes/validate", json={"code": "X"}, headers=headers).status_code == 404
    r = client.post("/api/codes/validate", json={"code": "AB12CD34"}, headers=headers)
    assert r.status_code == 429
    assert r.json()["error"] == "RateLimited"
    # Otra IP tiene su propio cubo.
    other = client.post("/api/codes/validate", json={"code": "AB12CD34"}, headers={"x-forwarded-for": "198.51.100.1"})
    assert other.status_code == 200


# =======================
# 📝 POST /api/rsvps + GET /api/rsvps/exists
# =======================
def test_submit_and_exists(client, make_code):
    make_code(code="AB12CD34", max_guests=2)
    assert client.get("/api/rsvps/exists", params={"code": "AB12CD34"}).json() == {"exists": False}

    r = client.post("/api/rsvps", json=_rsvp_payload(code="ab12cd34"))
    assert r.status_code == 201
    body = r.json()
    assert body["code"] == "AB12CD34"
    assert body["attendance"] == "Will attend"
    assert body["guests_count"] == 2
    assert body["allergies"] == "Frutos secos"

    assert client.get("/api/rsvps/exists", params={"code": "ab12cd34"}).json() == {"exists": True}

    again = client.post("/api/rsvps", json=_rsvp_payload(guests_count="1"))
    assert again.status_code == 409
    assert again.json()["error"] == "DuplicateSubmission"


def test_exists_without_code(client):
    r = client.get("/api/rsvps/exists")
    assert r.status_code == 200
    assert r.json() == {"exists": False}


def test_submit_without_code(client):
    r = client.post("/api/rsvps", json=_rsvp_payload(code=None))
    assert r.status_code == 400
    assert r.json()["error"] == "NoActiveCode"


def test_submit_field_errors_come_first(client):
    r = client.post("/api/rsvps", json=_rsvp_payload(code="NOPE0000", email="no-es-email"))
    assert r.status_code == 422
    assert r.json() == {"error": "InvalidInput", "detail": "Por favor, introduce un email válido."}


def test_submit_over_capacity(client, make_code):
    make_code(code="AB12CD34", max_guests=3, used_guests=2)
    r = client.post("/api/rsvps", json=_rsvp_payload(guests_count="2"))
    assert r.status_code == 409
    assert r.json()["error"] == "CapacityExceeded"
    assert r.json()["detail"].endswith("Máximo permitido: 1")


def test_submit_with_inactive_code(client, make_code):
    make_code(code="OFF00001", is_active=False)
    r = client.post("/api/rsvps", json=_rsvp_payload(code="OFF00001"))
    assert r.status_code == 403
    assert r.json()["error"] == "Inactive"


# =======================
# 🧩 GET /api/meta/options
# =======================
def test_meta_options(client):
    r = client.get("/api/meta/options")
    assert r.status_code == 200
    assert r.json() == {"attendance": ["si", "no"]}


# =======================
# 🔐 Autenticación del panel
# =======================
def test_admin_requires_credentials(client):
    assert client.get("/api/admin/codes").status_code == 401
    assert client.get("/api/admin/codes", headers={"x-admin-key": "mala"}).status_code == 401
    assert client.get("/api/admin/stats", headers={"Authorization": "Bearer basura"}).status_code == 401


def test_admin_login_me_logout(client):
    bad = client.post("/api/admin/login", json={"email": "admin@example.com", "password": "nope"})
    assert bad.status_code == 401
    assert bad.json()["detail"] == "Email o contraseña incorrectos."

    r = client.post("/api/admin/login", json={"email": "ADMIN@example.com", "password": "s3cret-pass"})
    assert r.status_code == 200
    token = r.json()["access_token"]
    headers = {"Authorization": f"Bearer {token}"}

    me = client.get("/api/admin/me", headers=headers)
    assert me.status_code == 200
    assert me.json() == {"email": "admin@example.com", "method": "token"}

    assert client.post("/api/admin/logout", headers=headers).status_code == 204
    assert client.get("/api/admin/me", headers=headers).status_code == 401


def test_api_key_identity(client, admin_headers):
    me = client.get("/api/admin/me", headers=admin_headers)
    assert me.status_code == 200
    assert me.json()["method"] == "api_key"


def test_non_admin_token_is_rejected(client):
    token = auth._encode({"sub": "guest@example.com", "type": "guest"})
    r = client.get("/api/admin/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401


# =======================
# 👑 CRUD de códigos y RSVPs vía API
# =======================
def test_admin_code_lifecycle(client, admin_headers):
    r = client.post("/api/admin/codes", json={"assigned_to": "Familia Ruiz", "max_guests": 3}, headers=admin_headers)
    assert r.status_code == 201
    created = r.json()
    assert len(created["code"]) == 8
    assert created["remaining_guests"] == 3
    code_id = created["id"]

    dup = client.post("/api/admin/codes", json={"code": created["code"].lower()}, headers=admin_headers)
    assert dup.status_code == 409
    assert dup.json()["error"] == "CodeAlreadyExists"

    patched = client.patch(f"/api/admin/codes/{code_id}", json={"max_guests": 5}, headers=admin_headers)
    assert patched.status_code == 200
    assert patched.json()["max_guests"] == 5
    assert patched.json()["assigned_to"] == "Familia Ruiz"

    empty = client.patch(f"/api/admin/codes/{code_id}", json={}, headers=admin_headers)
    assert empty.status_code == 422
    assert empty.json()["error"] == "InvalidInput"

    toggled = client.post(f"/api/admin/codes/{code_id}/toggle", json={"is_active": False}, headers=admin_headers)
    assert toggled.json()["is_active"] is False

    listed = client.get("/api/admin/codes", headers=admin_headers).json()
    assert [c["id"] for c in listed] == [code_id]

    assert client.delete(f"/api/admin/codes/{code_id}", headers=admin_headers).status_code == 204
    missing = client.delete(f"/api/admin/codes/{code_id}", headers=admin_headers)
    assert missing.status_code == 404
    assert missing.json()["error"] == "NotFound"


def test_create_code_rejects_zero_capacity(client, admin_headers):
    r = client.post("/api/admin/codes", json={"max_guests": 0}, headers=admin_headers)
    assert r.status_code == 422


def test_admin_rsvps_stats_and_reconcile(client, admin_headers, make_code):
    code = make_code(code="AB12CD34", max_guests=4)
    client.post("/api/rsvps", json=_rsvp_payload(guests_count="3"))

    rsvps = client.get("/api/admin/rsvps", headers=admin_headers).json()
    assert len(rsvps) == 1
    assert rsvps[0]["code_id"] == code.id

    stats = client.get("/api/admin/stats", headers=admin_headers).json()
    assert stats["codes"]["used_guests"] == 3
    assert stats["rsvps"]["total_confirmed_guests"] == 3
    assert stats["guests_per_code"] == {"AB12CD34": 3}

    reconciled = client.post(f"/api/admin/codes/{code.id}/reconcile", headers=admin_headers)
    assert reconciled.json()["used_guests"] == 3

    assert client.delete(f"/api/admin/rsvps/{rsvps[0]['id']}", headers=admin_headers).status_code == 204
    after = client.get("/api/admin/stats", headers=admin_headers).json()
    assert after["codes"]["used_guests"] == 0
    assert after["rsvps"]["total"] == 0
