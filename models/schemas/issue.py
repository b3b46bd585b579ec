from datetime import timezone

from marshmallow import Schema, fields, validate, post_load

from models.issue import ISSUE_STATUSES

TITLE = validate.Length(min=1, max=255)
PRIORITY = validate.Range(min=0, max=4)


class DueDateMixin:
    """Stored datetimes are naive UTC; shift offset-aware input before it reaches the model."""

    @post_load
    def normalize_due_date(self, data, **kwargs):
        due = data.get("due_date")
        if due is not None and due.tzinfo is not None:
            data["due_date"] = due.astimezone(timezone.utc).replace(tzinfo=None)
        return data


class IssueCreateSchema(DueDateMixin, Schema):
    project_id = fields.Integer(required=True)
    title = fields.String(required=True, validate=TITLE)
    description = fields.String(allow_none=True, validate=validate.Length(min=5))
    priority = fields.Integer(load_default=0, validate=PRIORITY)
    due_date = fields.DateTime(allow_none=True)


class IssueUpdateSchema(DueDateMixin, Schema):
    title = fields.String(validate=TITLE)
    description = fields.String(allow_none=True)
    status = fields.String(validate=validate.OneOf(ISSUE_STATUSES))
    priority = fields.Integer(validate=PRIORITY)
    due_date = fields.DateTime(allow_none=True)


class IssueOutSchema(Schema):
    id = fields.Integer()
    project_id = fields.Integer()
    user_id = fields.Integer()
    title = fields.String()
    description = fields.String(allow_none=True)
    status = fields.String()
    priority = fields.Integer()
    due_date = fields.DateTime(allow_none=True)
    created_at = fields.DateTime()
    updated_at = fields.DateTime()
