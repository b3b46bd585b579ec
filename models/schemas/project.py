from marshmallow import Schema, fields, validate, ValidationError

from models.project import PROJECT_STATUSES

HEX_COLOR = validate.Regexp(r"^#[0-9A-Fa-f]{6}$", error="color must look like #RRGGBB.")


def validate_name(value: str) -> None:
    if not value.strip() or len(value) > 100:
        raise ValidationError("name must be 1-100 characters.")


class ProjectCreateSchema(Schema):
    name = fields.String(required=True, validate=validate_name)
    description = fields.String(allow_none=True)
    color = fields.String(allow_none=True, validate=HEX_COLOR)


class ProjectUpdateSchema(Schema):
    # All optional, but validate if present
    name = fields.String(validate=validate_name)
    description = fields.String(allow_none=True)
    status = fields.String(validate=validate.OneOf(PROJECT_STATUSES))
    color = fields.String(allow_none=True, validate=HEX_COLOR)


class ProjectOutSchema(Schema):
    id = fields.Integer()
    user_id = fields.Integer()
    name = fields.String()
    description = fields.String(allow_none=True)
    status = fields.String()
    color = fields.String(allow_none=True)
    created_at = fields.DateTime()
    updated_at = fields.DateTime()
