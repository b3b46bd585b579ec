from __future__ import annotations

from flask import Blueprint, request, jsonify, g, abort
from sqlalchemy import func, or_

from models import storage
from models.issue import Issue, ISSUE_STATUSES
from models.project import Project
from models.schemas.issue import IssueCreateSchema, IssueUpdateSchema, IssueOutSchema
from utils.authorization import find_authorized, get_or_404, owned
from utils.decorators import jwt_required
from utils.exceptions import NotAuthorized
from .pagination import contains_pattern, paginate, parse_sort

bp = Blueprint("issues", __name__)

create_schema = IssueCreateSchema()
update_schema = IssueUpdateSchema()
out_schema = IssueOutSchema()
out_list_schema = IssueOutSchema(many=True)

SORT_COLUMNS = {
    "created_at": Issue.created_at,
    "priority": Issue.priority,
    "due_date": Issue.due_date,
    "title": Issue.title,
}


@bp.get("/issues")
@jwt_required()
def list_issues():
    """
    List issues across all of the current user's projects
    ---
    tags: [Issues]
    security:
      - Bearer: []
    parameters:
      - in: query
        name: q
        type: string
        description: case-insensitive match on title or description
      - in: query
        name: status
        type: string
        enum: [backlog, todo, in_progress, done, canceled]
      - in: query
        name: page
        type: integer
        default: 1
      - in: query
        name: limit
        type: integer
        default: 20
      - in: query
        name: sort
        type: string
        default: -created_at
    responses:
      200: { description: OK }
      400: { description: Bad filter }
    """
    query = owned(storage.get_session(), Issue, g.current_user.id)

    status = request.args.get("status")
    if status:
        if status not in ISSUE_STATUSES:
            abort(400, description=f"status must be one of {', '.join(ISSUE_STATUSES)}")
        query = query.filter(Issue.status == status)
    q = request.args.get("q")
    if q:
        qnorm = contains_pattern(q)
        query = query.filter(or_(
            func.lower(Issue.title).like(qnorm, escape="\\"),
            func.lower(Issue.description).like(qnorm, escape="\\"),
        ))

    rows, meta = paginate(query, parse_sort(SORT_COLUMNS, "-created_at"))
    return jsonify({"data": out_list_schema.dump(rows), "meta": meta})


@bp.post("/issues")
@jwt_required()
def create_issue():
    """
    Create an issue in one of the current user's projects
    ---
    tags: [Issues]
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            project_id: { type: integer }
            title: { type: string, maxLength: 255 }
            description: { type: string }
            priority: { type: integer, minimum: 0, maximum: 4 }
            due_date: { type: string, format: date-time }
    responses:
      201: { description: Created }
      404: { description: Project not found }
      422: { description: Validation error }
    """
    data = create_schema.load(request.get_json(silent=True) or {})
    project = find_authorized(storage.get_session(), Project, data["project_id"], g.current_user.id)
    if project is None:
        raise NotAuthorized()
    issue = Issue(user_id=g.current_user.id, **data)
    issue.save()
    return jsonify({"data": out_schema.dump(issue)}), 201


@bp.get("/issues/<int:issue_id>")
@jwt_required()
def get_issue(issue_id: int):
    """
    Get an issue by id
    ---
    tags: [Issues]
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
    return jsonify({"data": out_schema.dump(issue)})


@bp.patch("/issues/<int:issue_id>")
@jwt_required()
def update_issue(issue_id: int):
    """
    Update an issue (partial)
    ---
    tags: [Issues]
    security:
      - Bearer: []
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
            title: { type: string }
            description: { type: string }
            status: { type: string, enum: [backlog, todo, in_progress, done, canceled] }
            priority: { type: integer, minimum: 0, maximum: 4 }
            due_date: { type: string, format: date-time }
    responses:
      200: { description: OK }
      404: { description: Not found }
      422: { description: Validation error }
    """
    issue = get_or_404(Issue, issue_id)
    data = update_schema.load(request.get_json(silent=True) or {})
    for key, value in data.items():
        setattr(issue, key, value)
    issue.save()
    return jsonify({"data": out_schema.dump(issue)})


@bp.delete("/issues/<int:issue_id>")
@jwt_required()
def delete_issue(issue_id: int):
    """
    Delete an issue and its comments
    ---
    tags: [Issues]
    security:
      - Bearer: []
    parameters:
      - in: path
        name: issue_id
        type: integer
        required: true
    responses:
      204: { description: Deleted }
      404: { description: Not found }
    """
    issue = get_or_404(Issue, issue_id)
    issue.delete()
    storage.save()
    return ("", 204)
