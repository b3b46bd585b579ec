from __future__ import annotations

from flask import Blueprint, request, jsonify, g

from models import storage
from models.issue import Issue
from models.project import Project
from models.schemas.issue import IssueOutSchema
from models.schemas.project import (
    ProjectCreateSchema,
    ProjectUpdateSchema,
    ProjectOutSchema,
)
from utils.authorization import get_or_404, owned
from utils.decorators import jwt_required
from .pagination import paginate, parse_sort

bp = Blueprint("projects", __name__)

create_schema = ProjectCreateSchema()
update_schema = ProjectUpdateSchema()
out_schema = ProjectOutSchema()
out_list_schema = ProjectOutSchema(many=True)
issue_list_schema = IssueOutSchema(many=True)

SORT_COLUMNS = {
    "created_at": Project.created_at,
    "name": Project.name,
}


@bp.get("/projects")
@jwt_required()
def list_projects():
    """
    List the current user's projects (newest first by default)
    ---
    tags: [Projects]
    security:
      - Bearer: []
    parameters:
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
        description: "Allowed: name, created_at (prefix with - for descending)"
    responses:
      200: { description: OK }
      401: { description: Unauthorized }
    """
    query = owned(storage.get_session(), Project, g.current_user.id)
    rows, meta = paginate(query, parse_sort(SORT_COLUMNS, "-created_at"))
    return jsonify({"data": out_list_schema.dump(rows), "meta": meta})


@bp.post("/projects")
@jwt_required()
def create_project():
    """
    Create a project owned by the current user
    ---
    tags: [Projects]
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
            name: { type: string, maxLength: 100 }
            description: { type: string }
            color: { type: string, example: "#5E6AD2" }
    responses:
      201: { description: Created }
      422: { description: Validation error }
    """
    data = create_schema.load(request.get_json(silent=True) or {})
    project = Project(user_id=g.current_user.id, **data)
    project.save()
    return jsonify({"data": out_schema.dump(project)}), 201


@bp.get("/projects/<int:project_id>")
@jwt_required()
def get_project(project_id: int):
    """
    Get a project by id
    ---
    tags: [Projects]
    security:
      - Bearer: []
    parameters:
      - in: path
        name: project_id
        type: integer
        required: true
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    project = get_or_404(Project, project_id)
    return jsonify({"data": out_schema.dump(project)})


@bp.patch("/projects/<int:project_id>")
@jwt_required()
def update_project(project_id: int):
    """
    Update a project (partial)
    ---
    tags: [Projects]
    security:
      - Bearer: []
    parameters:
      - in: path
        name: project_id
        type: integer
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            name: { type: string, maxLength: 100 }
            description: { type: string }
            status: { type: string, enum: [backlog, active, completed, paused, canceled] }
            color: { type: string }
    responses:
      200: { description: OK }
      404: { description: Not found }
      422: { description: Validation error }
    """
    project = get_or_404(Project, project_id)
    data = update_schema.load(request.get_json(silent=True) or {})
    for key, value in data.items():
        setattr(project, key, value)
    project.save()
    return jsonify({"data": out_schema.dump(project)})


@bp.delete("/projects/<int:project_id>")
@jwt_required()
def delete_project(project_id: int):
    """
    Delete a project together with its issues and comments
    ---
    tags: [Projects]
    security:
      - Bearer: []
    parameters:
      - in: path
        name: project_id
        type: integer
        required: true
    responses:
      204: { description: Deleted }
      404: { description: Not found }
    """
    project = get_or_404(Project, project_id)
    project.delete()
    storage.save()
    return ("", 204)


@bp.get("/projects/<int:project_id>/issues")
@jwt_required()
def list_project_issues(project_id: int):
    """
    List issues of one project
    ---
    tags: [Projects]
    security:
      - Bearer: []
    parameters:
      - in: path
        name: project_id
        type: integer
        required: true
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    project = get_or_404(Project, project_id)
    query = owned(storage.get_session(), Issue, g.current_user.id).filter(Issue.project_id == project.id)
    rows, meta = paginate(query, (Issue.priority.desc(), Issue.created_at.desc()))
    return jsonify({"data": issue_list_schema.dump(rows), "meta": meta})
