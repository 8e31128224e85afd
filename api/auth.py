"""
Authentication blueprint:
- POST /auth/register
- POST /auth/login
- POST /auth/refresh
- GET  /auth/me
- POST /auth/logout
- POST /auth/change-password
- GET  /auth/users (admin only)

The implementation:
- Uses argon2 for password hashing (via utils.security)
- Issues short-lived access tokens and longer-lived refresh tokens (JWTs signed with HS256)
- Stores refresh tokens in the DB ledger so they can be rotated and revoked
- Request bodies are validated with marshmallow before reaching AuthService
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify

from models.schemas.account import (
    AccountOutSchema,
    AccountQuerySchema,
    ChangePasswordSchema,
    LoginSchema,
    LogoutSchema,
    RefreshTokenSchema,
    RegisterSchema,
)
from utils.decorators import current_auth_service, current_identity, jwt_required, require_admin

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
login_schema = LoginSchema()
refresh_schema = RefreshTokenSchema()
logout_schema = LogoutSchema()
change_password_schema = ChangePasswordSchema()
account_query_schema = AccountQuerySchema()
account_out_schema = AccountOutSchema()
account_list_out_schema = AccountOutSchema(many=True)


def _auth_body(result):
    return {
        "user": account_out_schema.dump(result.account),
        "token": result.access_token,
        "refreshToken": result.refresh_token,
    }


@bp.post("/register")
def register():
    """
    Register a new account.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [email, password, fullName]
          properties:
            email: { type: string }
            password: { type: string }
            fullName: { type: string }
            phone: { type: string }
            role: { type: string, enum: [customer, driver, staff, admin] }
    responses:
      201:
        description: Created (returns user and token pair)
      409:
        description: Email already registered
      422:
        description: Validation error
    """
    payload = request.get_json(silent=True) or {}
    data = register_schema.load(payload)

    result = current_auth_service().register(
        email=data["email"],
        password=data["password"],
        full_name=data["full_name"],
        phone=data.get("phone"),
        role=data.get("role"),
    )
    return jsonify(_auth_body(result)), 201


@bp.post("/login")
def login():
    """
    Login: return the account with an access token and a refresh token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Invalid credentials
    """
    payload = request.get_json(silent=True) or {}
    data = login_schema.load(payload)

    result = current_auth_service().login(data["email"], data["password"])
    return jsonify(_auth_body(result)), 200


@bp.post("/refresh")
def refresh():
    """
    Exchange a refresh token for a new token pair (rotation)
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refreshToken: { type: string }
    responses:
      200:
        description: OK (returns new token pair)
      401:
        description: Invalid refresh token
    """
    payload = request.get_json(silent=True) or {}
    data = refresh_schema.load(payload)

    pair = current_auth_service().refresh(data["refresh_token"])
    return jsonify({"token": pair.access_token, "refreshToken": pair.refresh_token}), 200


@bp.get("/me")
@jwt_required()
def me():
    """
    Get the current account.
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    account = current_auth_service().get_account(current_identity().account_id)
    return jsonify({"user": account_out_schema.dump(account)}), 200


@bp.post("/logout")
@jwt_required()
def logout():
    """
    Logout: deactivates the given refresh token
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refreshToken: { type: string }
    responses:
      200:
        description: Logged out (also when the token was already inactive)
      401:
        description: Unauthorized
    """
    payload = request.get_json(silent=True) or {}
    data = logout_schema.load(payload)

    current_auth_service().logout(data.get("refresh_token"), account_id=current_identity().account_id)
    return jsonify({"message": "Logged out successfully"}), 200


@bp.post("/change-password")
@jwt_required()
def change_password():
    """
    Change password; every other session has to log in again.
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             currentPassword: { type: string }
             newPassword: { type: string }
    responses:
      200:
        description: Password changed
      400:
        description: Current password is incorrect
      401:
        description: Unauthorized
    """
    payload = request.get_json(silent=True) or {}
    data = change_password_schema.load(payload)

    current_auth_service().change_password(
        current_identity().account_id, data["current_password"], data["new_password"]
    )
    return jsonify({"message": "Password changed successfully"}), 200


@bp.get("/users")
@jwt_required()
@require_admin
def list_users():
    """
    List accounts - admin
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    parameters:
      - { in: query, name: page, type: integer }
      - { in: query, name: limit, type: integer }
      - { in: query, name: role, type: string }
      - { in: query, name: isActive, type: boolean }
      - { in: query, name: search, type: string }
      - { in: query, name: sortOrder, type: string, enum: [asc, desc] }
    responses:
      200: { description: OK }
      401: { description: Unauthorized }
      403: { description: Forbidden }
    """
    query = account_query_schema.load(request.args.to_dict())
    page, limit = query["page"], query["limit"]
    rows, total = current_auth_service().list_accounts(
        page=page,
        limit=limit,
        role=query["role"],
        is_active=query["is_active"],
        search=query["search"],
        descending=query["sort_order"] == "desc",
    )
    return jsonify(
        {
            "users": account_list_out_schema.dump(rows),
            "meta": {"page": page, "limit": limit, "total": total},
        }
    ), 200
