from marshmallow import EXCLUDE, Schema, fields, pre_load, validate

from models.schemas.common import normalize_email


class LoginSchema(Schema):
    """
    Shape only; which identifier was sent and whether it is well-formed is
    decided by AuthService so that error stays a 400 InvalidCredentialsFormat.
    """
    class Meta:
        unknown = EXCLUDE

    email = fields.String(allow_none=True)
    phone = fields.String(allow_none=True)
    password = fields.String(
        required=True,
        validate=validate.Length(min=1, error="Password is required"),
        error_messages={"required": "Password is required"},
    )

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and data.get("email"):
            data = {**data, "email": normalize_email(data["email"])}
        return data


class RefreshTokenSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    refresh_token = fields.String(
        required=True,
        data_key="refreshToken",
        validate=validate.Length(min=1, error="Refresh token is required"),
        error_messages={"required": "Refresh token is required"},
    )
