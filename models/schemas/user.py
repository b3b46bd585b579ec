from marshmallow import Schema, fields, validate, validates, ValidationError

MIN_PASSWORD_LENGTH = 6


class UserCreateSchema(Schema):
    # stored exactly as given: usernames are case-sensitive
    username = fields.String(required=True, validate=validate.Length(min=1, max=50))
    password = fields.String(required=True, load_only=True)

    @validates("username")
    def validate_username(self, value, **kwargs):
        if not value.strip():
            raise ValidationError("Username cannot be blank.")

    @validates("password")
    def validate_password(self, value, **kwargs):
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.")


class UserLoginSchema(Schema):
    # no length rules here: a bad guess gets the same 401 as any other
    username = fields.String(required=True)
    password = fields.String(required=True, load_only=True)


class RefreshTokenSchema(Schema):
    refresh_token = fields.String(required=True)


class LogoutSchema(Schema):
    refresh_token = fields.String(load_default=None, allow_none=True)


class UserOutSchema(Schema):
    id = fields.Integer()
    username = fields.String()
    created_at = fields.DateTime()
