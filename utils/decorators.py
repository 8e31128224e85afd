from __future__ import annotations

from functools import wraps
import logging
from typing import Iterable

from flask import current_app, g, request

from models.account import Role
from services.errors import AuthError, Forbidden, Unauthorized

logger = logging.getLogger(__name__)


def current_auth_service():
    """The AuthService wired into this app by create_app()."""
    return current_app.extensions["auth_service"]


def bearer_token() -> str | None:
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        return None
    token = auth.split(" ", 1)[1].strip()
    return token or None


def current_identity():
    return getattr(g, "identity", None)


def jwt_required():
    """Reject with 401 unless a valid access token is presented; attach g.identity."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            token = bearer_token()
            if token is None:
                raise Unauthorized("No token provided")
            g.identity = current_auth_service().verify_token(token)
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def jwt_optional():
    """Attach g.identity when a valid token is presented; otherwise continue anonymously."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            g.identity = None
            token = bearer_token()
            if token is not None:
                try:
                    g.identity = current_auth_service().verify_token(token)
                except AuthError as exc:
                    logger.info("Optional auth ignored a bad token: %s", exc.message)
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def roles_required(allowed: Iterable[Role]):
    """
    Allow access if the attached identity's role is in `allowed`.
    Compose after jwt_required(): a missing identity is a 401, a wrong role a 403.
    """
    allowed = frozenset(Role(r) for r in allowed)

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            identity = current_identity()
            if identity is None:
                raise Unauthorized("Unauthorized")
            if identity.role not in allowed:
                raise Forbidden()
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def owner_or_staff_required(param: str = "user_id"):
    """Allow the account named by the `param` path argument, or any staff/admin."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            identity = current_identity()
            if identity is None:
                raise Unauthorized("Unauthorized")
            is_owner = identity.account_id == kwargs.get(param)
            if not is_owner and not identity.is_staff:
                raise Forbidden()
            return fn(*args, **kwargs)

        return wrapper

    return decorator


require_admin = roles_required([Role.ADMIN])
require_driver = roles_required([Role.DRIVER, Role.STAFF, Role.ADMIN])
