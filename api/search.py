from flask import Blueprint, request, jsonify, g
from sqlalchemy import func, or_

from models import storage
from models.issue import Issue
from models.project import Project
from utils.authorization import owned
from utils.decorators import jwt_required
from .pagination import contains_pattern

bp = Blueprint("search", __name__)

SEARCH_LIMIT = 20


def _project_hit(project: Project) -> dict:
    return {
        "type": "project",
        "id": project.id,
        "title": project.name,
        "description": project.description,
        "status": project.status,
        "color": project.color,
    }


def _issue_hit(issue: Issue) -> dict:
    return {
        "type": "issue",
        "id": issue.id,
        "title": issue.title,
        "description": issue.description,
        "status": issue.status,
        "color": None,
    }


@bp.get("/search")
@jwt_required()
def search():
    """
    Search the current user's projects and issues by name/title or description
    ---
    tags: [Search]
    security:
      - Bearer: []
    parameters:
      - in: query
        name: q
        type: string
        required: true
    responses:
      200: { description: OK }
    """
    q = (request.args.get("q") or "").strip()
    if not q:
        return jsonify({"data": []})

    session = storage.get_session()
    pattern = contains_pattern(q)
    projects = (
        owned(session, Project, g.current_user.id)
        .filter(or_(func.lower(Project.name).like(pattern, escape="\\"),
                    func.lower(Project.description).like(pattern, escape="\\")))
        .order_by(Project.created_at.desc())
        .limit(SEARCH_LIMIT)
        .all()
    )
    issues = (
        owned(session, Issue, g.current_user.id)
        .filter(or_(func.lower(Issue.title).like(pattern, escape="\\"),
                    func.lower(Issue.description).like(pattern, escape="\\")))
        .order_by(Issue.created_at.desc())
        .limit(SEARCH_LIMIT)
        .all()
    )
    return jsonify({"data": [_project_hit(p) for p in projects] + [_issue_hit(i) for i in issues]})
