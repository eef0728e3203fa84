from __future__ import annotations

from typing import Tuple

from flask import Blueprint, request, jsonify, abort

from models.schemas.user import UserCreateSchema, UserUpdateSchema, UserOutSchema
from utils.decorators import jwt_required, user_service

MAX_LIMIT = 100

bp = Blueprint("users", __name__)

user_create_schema = UserCreateSchema()
user_update_schema = UserUpdateSchema()
user_out_schema = UserOutSchema()
user_list_out_schema = UserOutSchema(many=True)


def parse_pagination() -> Tuple[int, int]:
    try:
        page = int(request.args.get("page", "1"))
        limit = int(request.args.get("limit", "20"))
        page = max(page, 1)
        limit = max(1, min(limit, MAX_LIMIT))
        return page, limit
    except ValueError:
        abort(400, description="page and limit must be integers")


@bp.get("/users")
@jwt_required()
def list_users():
    """
    List users (newest first)
    ---
    tags:
      - Users
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
    responses:
      200: { description: OK }
      401: { description: Unauthorized }
    """
    page, limit = parse_pagination()
    rows, total = user_service().list(page, limit)
    return jsonify(
        {
            "data": user_list_out_schema.dump(rows),
            "meta": {"page": page, "limit": limit, "total": total}
        }
    )


@bp.get("/users/<user_id>")
@jwt_required()
def get_user(user_id: str):
    """
    Get a user by id
    ---
    tags: [Users]
    security:
      - Bearer: []
    parameters:
      - in: path
        name: user_id
        type: string
        required: true
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    user = user_service().get(user_id)
    return jsonify({"data": user_out_schema.dump(user)})


@bp.post("/users")
@jwt_required()
def create_user():
    """
    Create a user (no session is opened for it)
    ---
    tags: [Users]
    security:
      - Bearer: []
    consumes: [application/json]
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            email: { type: string }
            password: { type: string, minLength: 8 }
    responses:
      201: { description: Created }
      400: { description: Validation error }
      409: { description: Email already registered }
    """
    data = user_create_schema.load(request.get_json(silent=True) or {})
    user = user_service().create(data["email"], data["password"])
    return jsonify({"data": user_out_schema.dump(user)}), 201


@bp.patch("/users/<user_id>")
@jwt_required()
def update_user(user_id: str):
    """
    Update a user's email and/or password (partial).
    Changing the password logs the user out everywhere.
    ---
    tags: [Users]
    security:
      - Bearer: []
    parameters:
      - in: path
        name: user_id
        type: string
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            email: { type: string }
            password: { type: string, minLength: 8 }
    responses:
      200: { description: OK }
      400: { description: Invalid input or nothing to update }
      404: { description: Not found }
      409: { description: Email already registered }
    """
    data = user_update_schema.load(request.get_json(silent=True) or {})
    user = user_service().update(user_id, email=data.get("email"), password=data.get("password"))
    return jsonify({"data": user_out_schema.dump(user)})


@bp.delete("/users/<user_id>")
@jwt_required()
def delete_user(user_id: str):
    """
    Soft delete a user (sets deleted_at) and revoke its sessions
    ---
    tags: [Users]
    security:
      - Bearer: []
    parameters:
      - in: path
        name: user_id
        type: string
        required: true
    responses:
      204: { description: Deleted }
      404: { description: Not found }
    """
    user_service().delete(user_id)
    return ("", 204)
