from marshmallow import Schema, fields, pre_load, validate, validates, ValidationError

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 255
# RFC 5321 path limit; also bounds the size of minted tokens
MAX_EMAIL_LENGTH = 254


def _norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v


def _check_encodable(value):
    # Lone surrogates survive JSON decoding but cannot be hashed or stored
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        raise ValidationError("Must be valid UTF-8 text.")


def _check_password(value):
    _check_encodable(value)
    if len(value) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.")
    if len(value) > MAX_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_LENGTH} characters long.")


class _EmailNormalizingSchema(Schema):
    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data)
            data["email"] = _norm_email(data["email"])
        return data


class UserCreateSchema(_EmailNormalizingSchema):
    """Signup and POST /users body."""
    email = fields.Email(required=True, validate=validate.Length(max=MAX_EMAIL_LENGTH))
    password = fields.String(required=True, load_only=True)

    @validates("password")
    def validate_password(self, value, **kwargs):
        _check_password(value)


class UserLoginSchema(_EmailNormalizingSchema):
    email = fields.String(required=True, validate=validate.Length(max=MAX_EMAIL_LENGTH))
    password = fields.String(required=True, load_only=True)

    @validates("email")
    def validate_email(self, value, **kwargs):
        _check_encodable(value)

    @validates("password")
    def validate_password(self, value, **kwargs):
        _check_encodable(value)


class UserUpdateSchema(_EmailNormalizingSchema):
    email = fields.Email(validate=validate.Length(max=MAX_EMAIL_LENGTH))
    password = fields.String(load_only=True)

    @validates("password")
    def validate_password(self, value, **kwargs):
        _check_password(value)


class RefreshRequestSchema(Schema):
    refresh_token = fields.String(required=True, validate=validate.Length(min=1))


class UserOutSchema(Schema):
    id = fields.String()
    email = fields.String()
    created_at = fields.DateTime()
    updated_at = fields.DateTime()


class UserSummarySchema(Schema):
    id = fields.String()
    email = fields.String()


class TokenPairSchema(Schema):
    access_token = fields.String()
    refresh_token = fields.String()
    token_type = fields.String()
    expires_in = fields.Integer()
    user = fields.Nested(UserSummarySchema, allow_none=True)


class SessionOutSchema(Schema):
    """A stored refresh token, minus the token string."""
    id = fields.String()
    created_at = fields.DateTime()
    expires_at = fields.DateTime()
