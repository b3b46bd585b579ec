from __future__ import annotations
from functools import wraps
from flask import request, g, current_app

from utils.exceptions import InvalidOrExpiredToken


def bearer_token() -> str:
    auth = request.headers.get("Authorization", "")
    scheme, _, token = auth.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise InvalidOrExpiredToken()
    return token.strip()


def jwt_required():
    """
    Require a valid access token. Sets g.current_user.
    Any problem with the header or the token ends as the same 401.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            manager = current_app.extensions["session_manager"]
            g.current_user = manager.authenticate(bearer_token())
            return fn(*args, **kwargs)

        return wrapper

    return decorator
