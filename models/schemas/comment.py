from marshmallow import Schema, fields, validates, ValidationError


class CommentCreateSchema(Schema):
    content = fields.String(required=True)

    @validates("content")
    def validate_content(self, value, **kwargs):
        if not value.strip():
            raise ValidationError("Comment cannot be empty.")


class CommentOutSchema(Schema):
    id = fields.Integer()
    issue_id = fields.Integer()
    user_id = fields.Integer()
    username = fields.String()
    content = fields.String()
    created_at = fields.DateTime()
