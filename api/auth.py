"""
Authentication blueprint:
- POST   /auth/register
- POST   /auth/login
- POST   /auth/refresh
- POST   /auth/logout
- POST   /auth/logout-all
- GET    /auth/me
- DELETE /auth/me

The implementation:
- Argon2id password hashing (utils.security.CredentialHasher)
- 15 minute JWT access tokens (utils.security.AccessTokenCodec)
- Opaque, single-use refresh tokens stored as digests (utils.refresh_tokens)
- All of it orchestrated by utils.session_manager.SessionManager
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify, g, current_app

from models.schemas.user import (
    UserCreateSchema,
    UserOutSchema,
    UserLoginSchema,
    RefreshTokenSchema,
    LogoutSchema,
)
from utils.decorators import jwt_required

bp = Blueprint("auth", __name__)

user_create_schema = UserCreateSchema()
user_out_schema = UserOutSchema()
user_login_schema = UserLoginSchema()
refresh_schema = RefreshTokenSchema()
logout_schema = LogoutSchema()


def session_manager():
    return current_app.extensions["session_manager"]


@bp.post("/register")
def register():
    """
    Register a new user.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            username: { type: string, maxLength: 50 }
            password: { type: string, minLength: 6 }
    responses:
      201:
        description: Created
      409:
        description: Username already exists
      422:
        description: Validation error
    """
    data = user_create_schema.load(request.get_json(silent=True) or {})
    user = session_manager().register(data["username"], data["password"])
    return jsonify({"data": user_out_schema.dump(user)}), 201


@bp.post("/login")
def login():
    """
    Login: return access_token and refresh_token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             username: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Invalid username or password
    """
    data = user_login_schema.load(request.get_json(silent=True) or {})
    pair = session_manager().login(data["username"], data["password"])
    return jsonify(pair.to_dict()), 200


@bp.post("/refresh")
def refresh():
    """
    Exchange a refresh token for a new access/refresh pair (rotation).
    The presented refresh token stops working.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refresh_token: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Invalid or expired token
    """
    data = refresh_schema.load(request.get_json(silent=True) or {})
    pair = session_manager().refresh(data["refresh_token"])
    return jsonify(pair.to_dict()), 200


@bp.post("/logout")
def logout():
    """
    Logout: revokes the given refresh token. Always 204.
    Access tokens already issued stay valid until they expire.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refresh_token: { type: string }
    responses:
      204:
        description: ""
    """
    data = logout_schema.load(request.get_json(silent=True) or {})
    if data.get("refresh_token"):
        session_manager().logout(data["refresh_token"])
    return ("", 204)


@bp.post("/logout-all")
@jwt_required()
def logout_all():
    """
    Revoke every refresh token of the current user.
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      204:
        description: ""
      401:
        description: Unauthorized
    """
    session_manager().logout_all(g.current_user.id)
    return ("", 204)


@bp.get("/me")
@jwt_required()
def me():
    """
    Get current user info.
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    return jsonify({"data": user_out_schema.dump(g.current_user)}), 200


@bp.delete("/me")
@jwt_required()
def delete_me():
    """
    Delete the current account with all its projects, issues, comments
    and sessions.
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      204:
        description: Deleted
      401:
        description: Unauthorized
    """
    session_manager().delete_account(g.current_user.id)
    return ("", 204)
