"""
Ownership checks for projects, issues and comments.

Every resource is attributed to one user through its project:
Project.user_id, Issue -> Project.user_id, Comment -> Issue -> Project.user_id.
The issue's own user_id (creator) and the comment's author do not grant
access.

Routes fetch through find_authorized(), which answers "absent" for both a
missing row and someone else's row, so the two cannot be told apart.
"""
from __future__ import annotations

import enum

from flask import g

from models import storage
from models.comment import Comment
from models.issue import Issue
from models.project import Project
from utils.exceptions import NotAuthorized


class Access(enum.Enum):
    ALLOW = "allow"
    DENY = "deny"


def owner_id_of(resource) -> int | None:
    """Walk the ownership chain of a loaded resource."""
    if isinstance(resource, Project):
        return resource.owner_id
    if isinstance(resource, Issue):
        return resource.project.user_id if resource.project else None
    if isinstance(resource, Comment):
        issue = resource.issue
        if issue is None or issue.project is None:
            return None
        return issue.project.user_id
    return None


def authorize(user_id: int, resource) -> Access:
    if user_id is None or resource is None:
        return Access.DENY
    owner = owner_id_of(resource)
    if owner is not None and owner == user_id:
        return Access.ALLOW
    return Access.DENY


def owned(session, model, user_id: int):
    """
    Query over `model` restricted to rows owned by user_id.
    Listings use this, so anything they return also passes authorize().
    """
    query = session.query(model)
    if model is Project:
        return query.filter(Project.user_id == user_id)
    if model is Issue:
        return query.join(Project, Issue.project_id == Project.id).filter(Project.user_id == user_id)
    if model is Comment:
        return (
            query.join(Issue, Comment.issue_id == Issue.id)
            .join(Project, Issue.project_id == Project.id)
            .filter(Project.user_id == user_id)
        )
    raise ValueError(f"No ownership chain for {model.__name__}")


def find_authorized(session, model, resource_id, user_id: int):
    """Return the row if it exists and belongs to user_id, else None."""
    if user_id is None:
        return None
    return owned(session, model, user_id).filter(model.id == resource_id).first()


def get_or_404(model, resource_id):
    """Route helper: fetch for the current user; NotAuthorized (a 404) otherwise."""
    user = getattr(g, "current_user", None)
    resource = find_authorized(storage.get_session(), model, resource_id, getattr(user, "id", None))
    if resource is None:
        raise NotAuthorized()
    return resource
