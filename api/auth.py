"""
Authentication blueprint:
- POST /auth/signup
- POST /auth/login
- POST /auth/refresh
- POST /auth/logout
- POST /auth/logout-all
- GET  /auth/sessions
- GET  /auth/me

The implementation:
- Uses argon2 for password hashing (via utils.security)
- Issues short-lived access tokens and longer-lived refresh tokens (JWTs signed with HS256)
- Stores refresh tokens in DB (RefreshToken model) so we can revoke / rotate them
- Every credential or token failure answers 401 with one fixed message
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify, g

from models.schemas.user import (
    UserCreateSchema,
    UserLoginSchema,
    UserOutSchema,
    RefreshRequestSchema,
    TokenPairSchema,
    SessionOutSchema,
)
from services.auth_service import TokenPair
from utils.decorators import auth_service, jwt_required, user_service

bp = Blueprint("auth", __name__)

user_create_schema = UserCreateSchema()
user_login_schema = UserLoginSchema()
user_out_schema = UserOutSchema()
refresh_schema = RefreshRequestSchema()
token_pair_schema = TokenPairSchema()
session_list_schema = SessionOutSchema(many=True)


def token_response(pair: TokenPair, status: int):
    body = token_pair_schema.dump(pair)
    if pair.user is None:
        body.pop("user", None)
    return jsonify(body), status


@bp.post("/signup")
def signup():
    """
    Create an account and return its first token pair.
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
            email: { type: string }
            password: { type: string, minLength: 8 }
    responses:
      201:
        description: Created (returns tokens and user)
      400:
        description: Validation error
      409:
        description: Email already registered
    """
    data = user_create_schema.load(request.get_json(silent=True) or {})
    pair = auth_service().signup(data["email"], data["password"])
    return token_response(pair, 201)


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
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Invalid email or password
    """
    data = user_login_schema.load(request.get_json(silent=True) or {})
    pair = auth_service().login(data["email"], data["password"])
    return token_response(pair, 200)


@bp.post("/refresh")
def refresh():
    """
    Use a refresh token to obtain new access and refresh tokens (rotation).
    The presented refresh token is revoked and cannot be used again.
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
        description: OK (returns new tokens)
      401:
        description: Invalid or expired token
    """
    data = refresh_schema.load(request.get_json(silent=True) or {})
    pair = auth_service().refresh(data["refresh_token"])
    return token_response(pair, 200)


@bp.post("/logout")
@jwt_required()
def logout():
    """
    logout: revokes one of the caller's refresh tokens
    ---
    tags:
      - Auth
    security:
      - Bearer: []
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
      401:
        description: Unauthorized
    """
    data = refresh_schema.load(request.get_json(silent=True) or {})
    auth_service().logout(g.current_user_id, data["refresh_token"])
    return ("", 204)


@bp.post("/logout-all")
@jwt_required()
def logout_all():
    """
    Revoke every refresh token of the caller (log out everywhere)
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
    auth_service().logout_all(g.current_user_id)
    return ("", 204)


@bp.get("/sessions")
@jwt_required()
def sessions():
    """
    List the caller's active sessions, newest first
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
    rows = auth_service().list_sessions(g.current_user_id)
    return jsonify({"data": session_list_schema.dump(rows)}), 200


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
      404:
        description: User no longer exists
    """
    user = user_service().get(g.current_user_id)
    return jsonify({"data": user_out_schema.dump(user)}), 200
