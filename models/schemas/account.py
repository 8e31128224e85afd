from marshmallow import EXCLUDE, Schema, fields, pre_load, validate, validates, ValidationError

from models.account import Role

PHONE_RE = r"^\+?[1-9]\d{1,14}$"


def _norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v


class RegisterSchema(Schema):
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True)
    full_name = fields.String(required=True, data_key="fullName", validate=validate.Length(min=1, max=100))
    phone = fields.String(load_default=None, validate=validate.Regexp(PHONE_RE, error="Invalid phone number."))
    role = fields.Enum(Role, by_value=True, load_default=Role.CUSTOMER)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data)
            data["email"] = _norm_email(data["email"])
        return data

    @validates("password")
    def validate_password(self, value, **kwargs):
        if len(value) < 8:
            raise ValidationError("Password must be at least 8 characters long.")


class LoginSchema(Schema):
    email = fields.String(required=True)
    password = fields.String(required=True, load_only=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data)
            data["email"] = _norm_email(data["email"])
        return data


class RefreshTokenSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    refresh_token = fields.String(required=True, data_key="refreshToken", validate=validate.Length(min=1))


class LogoutSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    refresh_token = fields.String(load_default=None, data_key="refreshToken")


class ChangePasswordSchema(Schema):
    current_password = fields.String(required=True, load_only=True, data_key="currentPassword")
    new_password = fields.String(required=True, load_only=True, data_key="newPassword")

    @validates("new_password")
    def validate_new_password(self, value, **kwargs):
        if len(value) < 8:
            raise ValidationError("Password must be at least 8 characters long.")


class AccountUpdateSchema(Schema):
    full_name = fields.String(data_key="fullName", validate=validate.Length(min=1, max=100))
    phone = fields.String(allow_none=True, validate=validate.Regexp(PHONE_RE, error="Invalid phone number."))
    role = fields.Enum(Role, by_value=True)
    is_active = fields.Boolean(data_key="isActive")


class AccountQuerySchema(Schema):
    class Meta:
        unknown = EXCLUDE

    page = fields.Integer(load_default=1, validate=validate.Range(min=1))
    limit = fields.Integer(load_default=20, validate=validate.Range(min=1, max=100))
    sort_order = fields.String(load_default="desc", data_key="sortOrder", validate=validate.OneOf(["asc", "desc"]))
    role = fields.Enum(Role, by_value=True, load_default=None)
    is_active = fields.Boolean(load_default=None, data_key="isActive")
    search = fields.String(load_default=None, validate=validate.Length(min=2))


class AccountOutSchema(Schema):
    id = fields.String(allow_none=False)
    email = fields.String()
    full_name = fields.String(data_key="fullName")
    phone = fields.String(allow_none=True)
    role = fields.Enum(Role, by_value=True)
    is_active = fields.Boolean(data_key="isActive")
    is_email_verified = fields.Boolean(data_key="isEmailVerified")
    last_login_at = fields.DateTime(allow_none=True, data_key="lastLoginAt")
    created_at = fields.DateTime(data_key="createdAt")
    updated_at = fields.DateTime(data_key="updatedAt")
