from __future__ import annotations

from flask import Blueprint, request, jsonify

from models.schemas.account import AccountOutSchema, AccountUpdateSchema
from utils.decorators import (
    current_auth_service,
    jwt_required,
    owner_or_staff_required,
    require_admin,
)

bp = Blueprint("accounts", __name__)

account_out_schema = AccountOutSchema()
account_update_schema = AccountUpdateSchema()


@bp.get("/<user_id>")
@jwt_required()
@owner_or_staff_required("user_id")
def get_account(user_id: str):
    """
    Get one account - owner, staff or admin
    ---
    tags:
      - Accounts
    security:
      - Bearer: []
    parameters:
      - in: path
        name: user_id
        type: string
        required: true
    responses:
      200: { description: OK }
      401: { description: Unauthorized }
      403: { description: Forbidden }
      404: { description: Not found }
    """
    account = current_auth_service().get_account(user_id)
    return jsonify({"user": account_out_schema.dump(account)}), 200


@bp.patch("/<user_id>")
@jwt_required()
@require_admin
def update_account(user_id: str):
    """
    Update profile, role or active flag - admin.
    Deactivating an account also ends all of its sessions.
    ---
    tags:
      - Accounts
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: path
        name: user_id
        type: string
        required: true
      - in: body
        name: body
        schema:
          type: object
          properties:
            fullName: { type: string }
            phone: { type: string }
            role: { type: string, enum: [customer, driver, staff, admin] }
            isActive: { type: boolean }
    responses:
      200: { description: OK }
      401: { description: Unauthorized }
      403: { description: Forbidden }
      404: { description: Not found }
      422: { description: Validation error }
    """
    payload = request.get_json(silent=True) or {}
    data = account_update_schema.load(payload)

    account = current_auth_service().update_account(user_id, **data)
    return jsonify({"user": account_out_schema.dump(account)}), 200
