from __future__ import annotations

from flask import Blueprint, request, jsonify, g

from models import storage
from models.comment import Comment
from models.issue import Issue
from models.schemas.comment import CommentCreateSchema, CommentOutSchema
from utils.authorization import get_or_404, owned
from utils.decorators import jwt_required
from .pagination import paginate

bp = Blueprint("comments", __name__)

create_schema = CommentCreateSchema()
out_schema = CommentOutSchema()
out_list_schema = CommentOutSchema(many=True)


@bp.get("/issues/<int:issue_id>/comments")
@jwt_required()
def list_comments(issue_id: int):
    """
    List comments on an issue, oldest first
    ---
    tags: [Comments]
    security:
      - Bearer: []
    parameters:
      - in: path
        name: issue_id
        type: integer
        required: true
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    issue = get_or_404(Issue, issue_id)
    query = owned(storage.get_session(), Comment, g.current_user.id).filter(Comment.issue_id == issue.id)
    rows, meta = paginate(query, (Comment.created_at.asc(), Comment.id.asc()))
    return jsonify({"data": out_list_schema.dump(rows), "meta": meta})


@bp.post("/issues/<int:issue_id>/comments")
@jwt_required()
def create_comment(issue_id: int):
    """
    Comment on an issue
    ---
    tags: [Comments]
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: path
        name: issue_id
        type: integer
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            content: { type: string }
    responses:
      201: { description: Created }
      404: { description: Not found }
      422: { description: Validation error }
    """
    issue = get_or_404(Issue, issue_id)
    data = create_schema.load(request.get_json(silent=True) or {})
    comment = Comment(issue_id=issue.id, user_id=g.current_user.id, content=data["content"])
    comment.save()
    return jsonify({"data": out_schema.dump(comment)}), 201


@bp.delete("/comments/<int:comment_id>")
@jwt_required()
def delete_comment(comment_id: int):
    """
    Delete a comment
    ---
    tags: [Comments]
    security:
      - Bearer: []
    parameters:
      - in: path
        name: comment_id
        type: integer
        required: true
    responses:
      204: { description: Deleted }
      404: { description: Not found }
    """
    comment = get_or_404(Comment, comment_id)
    comment.delete()
    storage.save()
    return ("", 204)
