from marshmallow import EXCLUDE, Schema, fields, pre_load, validate, validates, ValidationError

from models.schemas.common import normalize_email, validate_phone
from models.user import UserRole

ROLE_CHOICES = [role.value for role in UserRole]


def _normalize(data):
    if isinstance(data, dict) and "email" in data:
        data = {**data, "email": normalize_email(data["email"])}
    return data


class UserCreateSchema(Schema):
    name = fields.String(allow_none=True)
    email = fields.Email(allow_none=True, error_messages={"invalid": "Please provide a valid email address"})
    phone = fields.String(allow_none=True, validate=validate_phone)
    password = fields.String(required=True, load_only=True)
    role = fields.String(
        required=True,
        validate=validate.OneOf(ROLE_CHOICES, error="Invalid role provided"),
    )

    @pre_load
    def normalize(self, data, **kwargs):
        return _normalize(data)

    @validates("password")
    def validate_password(self, value, **kwargs):
        if len(value) < 8:
            raise ValidationError("Password must be at least 8 characters long")


class UserUpdateSchema(Schema):
    name = fields.String(allow_none=True)
    email = fields.Email(error_messages={"invalid": "Please provide a valid email address"})
    phone = fields.String(validate=validate_phone)
    is_active = fields.Boolean(data_key="isActive")
    is_verified = fields.Boolean(data_key="isVerified")

    @pre_load
    def normalize(self, data, **kwargs):
        return _normalize(data)


class UserQuerySchema(Schema):
    class Meta:
        unknown = EXCLUDE

    page = fields.Integer(load_default=1, validate=validate.Range(min=1))
    limit = fields.Integer(load_default=10, validate=validate.Range(min=1, max=100))
    role = fields.String(validate=validate.OneOf(ROLE_CHOICES, error="Invalid role provided"))
    search = fields.String()


class UserOutSchema(Schema):
    """Sanitized user projection; there is no password field to leak."""
    id = fields.String()
    name = fields.String(allow_none=True)
    email = fields.String(allow_none=True)
    phone = fields.String(allow_none=True)
    role = fields.Method("get_role")
    is_active = fields.Boolean(data_key="isActive")
    is_verified = fields.Boolean(data_key="isVerified")
    created_at = fields.DateTime(data_key="createdAt")
    updated_at = fields.DateTime(data_key="updatedAt")

    def get_role(self, obj):
        role = getattr(obj, "role", None)
        return role.value if isinstance(role, UserRole) else role


class IdentitySchema(Schema):
    """What the request guards attach to flask.g.current_user."""
    id = fields.String()
    name = fields.String(allow_none=True)
    email = fields.String(allow_none=True)
    phone = fields.String(allow_none=True)
    role = fields.Method("get_role")
    is_active = fields.Boolean(data_key="isActive")
    is_verified = fields.Boolean(data_key="isVerified")

    def get_role(self, obj):
        role = getattr(obj, "role", None)
        return role.value if isinstance(role, UserRole) else role
