from __future__ import annotations
from functools import wraps
import logging
from flask import request, g, current_app
from services.errors import InvalidToken

logger = logging.getLogger(__name__)


def auth_service():
    """The AuthService wired up by create_app()."""
    return current_app.extensions["auth_service"]


def user_service():
    return current_app.extensions["user_service"]


def bearer_token() -> str:
    """Token from an 'Authorization: Bearer <token>' header, else InvalidToken."""
    auth = request.headers.get("Authorization", "")
    parts = auth.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1].strip():
        raise InvalidToken("missing_header")
    return parts[1].strip()


def jwt_required():
    """
    Require a valid access token. On success the caller's identity is on
    g.current_user_id / g.current_user_email; on failure the request ends in 401
    before the view runs.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                claims = auth_service().tokens.validate_access_token(bearer_token())
            except InvalidToken as exc:
                logger.info("rejected %s %s: %s", request.method, request.path, exc.reason)
                raise
            g.current_user_id = claims.user_id
            g.current_user_email = claims.email
            return fn(*args, **kwargs)

        return wrapper

    return decorator
