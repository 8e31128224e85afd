"""Tests for utils/decorators.py and the app-level error envelope.

Guarded routes are mounted on the test app so each guard can be exercised alone:
- jwt_optional() attaches an identity when it can and never rejects
- roles_required() without a prior jwt_required() answers 401, wrong role 403
- an unexpected exception becomes a detail-free 500
"""
import pytest
from flask import jsonify

from models import Role
from tests.helpers import bearer
from utils.decorators import current_identity, jwt_optional, jwt_required, require_driver, roles_required


@pytest.fixture
def guarded_client(app):
    @app.get("/_guarded/optional")
    @jwt_optional()
    def optional_view():
        identity = current_identity()
        return jsonify({"anonymous": identity is None, "role": identity.role.value if identity else None})

    @app.get("/_guarded/guard-only")
    @roles_required([Role.ADMIN])
    def guard_only_view():
        return jsonify({"ok": True})

    @app.get("/_guarded/drivers")
    @jwt_required()
    @require_driver
    def drivers_view():
        return jsonify({"ok": True})

    @app.get("/_guarded/boom")
    def boom_view():
        raise RuntimeError("database password is hunter2")

    return app.test_client()


def test_optional_auth_anonymous_and_bad_token(guarded_client):
    anonymous = guarded_client.get("/_guarded/optional").get_json()
    bad = guarded_client.get("/_guarded/optional", headers=bearer("garbage"))

    assert anonymous == {"anonymous": True, "role": None}
    assert bad.status_code == 200
    assert bad.get_json()["anonymous"] is True


def test_optional_auth_attaches_identity(guarded_client, register_http):
    staff = register_http("staff@x.com", role="staff")

    resp = guarded_client.get("/_guarded/optional", headers=bearer(staff["token"]))

    assert resp.get_json() == {"anonymous": False, "role": "staff"}


def test_role_guard_without_identity_is_unauthorized(guarded_client, register_http):
    admin = register_http("admin@x.com", role="admin")

    # Guard alone never authenticates, even when a token is sent
    assert guarded_client.get("/_guarded/guard-only").status_code == 401
    assert guarded_client.get("/_guarded/guard-only", headers=bearer(admin["token"])).status_code == 401


@pytest.mark.parametrize(
    "role, status",
    [("customer", 403), ("driver", 200), ("staff", 200), ("admin", 200)],
)
def test_driver_guard_by_role(guarded_client, register_http, role, status):
    person = register_http(f"{role}@x.com", role=role)

    resp = guarded_client.get("/_guarded/drivers", headers=bearer(person["token"]))

    assert resp.status_code == status


def test_unexpected_error_is_generic_500(guarded_client):
    resp = guarded_client.get("/_guarded/boom")

    assert resp.status_code == 500
    body = resp.get_json()
    assert body["error"] == "INTERNAL_ERROR"
    assert "hunter2" not in resp.get_data(as_text=True)
    assert "details" not in body


def test_health(client):
    resp = client.get("/api/health")

    assert resp.status_code == 200
    assert resp.get_json()["status"] == "OK"


def test_unknown_route_uses_envelope(client):
    resp = client.get("/api/nope")

    assert resp.status_code == 404
    assert resp.get_json() == {"error": "NOT_FOUND", "message": "Resource not found", "status": 404}
