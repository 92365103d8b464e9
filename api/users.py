from __future__ import annotations

from flask import Blueprint, request

from models.schemas.user import UserCreateSchema, UserQuerySchema, UserUpdateSchema
from models.user import UserRole
from utils.decorators import get_auth_service, protect_blueprint, roles_required

from . import responses

bp = protect_blueprint(Blueprint("users", __name__))

user_create_schema = UserCreateSchema()
user_update_schema = UserUpdateSchema()
user_query_schema = UserQuerySchema()

STAFF_MANAGERS = (UserRole.ADMIN, UserRole.SUPERVISOR)


def _users():
    return get_auth_service().users


@bp.post("")
@roles_required(*STAFF_MANAGERS)
def create_user():
    """
    Create a user (admin, supervisor)
    ---
    tags:
      - Users
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
            name: { type: string }
            email: { type: string }
            phone: { type: string }
            password: { type: string, minLength: 8 }
            role: { type: string, enum: [ADMIN, SUPERVISOR, TEACHER, GUARDIAN] }
    responses:
      201: { description: Created }
      400: { description: Email/phone do not match the role }
      409: { description: User already exists }
      422: { description: Validation error }
    """
    data = user_create_schema.load(request.get_json(silent=True) or {})
    user = _users().create(data)
    return responses.created(_users().to_response(user))


@bp.get("")
@roles_required(*STAFF_MANAGERS)
def list_users():
    """
    List users (pagination, role filter, search on name/email/phone)
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - { in: query, name: page, type: integer }
      - { in: query, name: limit, type: integer }
      - { in: query, name: role, type: string }
      - { in: query, name: search, type: string }
    responses:
      200: { description: OK }
    """
    query = user_query_schema.load(request.args.to_dict())
    rows, total = _users().find_all(
        page=query["page"],
        limit=query["limit"],
        role=query.get("role"),
        search=query.get("search"),
    )
    items = [_users().to_response(u) for u in rows]
    return responses.paginated(items, total, query["page"], query["limit"])


@bp.get("/<user_id>")
@roles_required(*STAFF_MANAGERS)
def get_user(user_id: str):
    """
    Get a user by id
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - { in: path, name: user_id, type: string, required: true }
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    return responses.success(_users().to_response(_users().find_one(user_id)))


@bp.patch("/<user_id>")
@roles_required(*STAFF_MANAGERS)
def update_user(user_id: str):
    """
    Update name, email, phone or the active/verified flags
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - { in: path, name: user_id, type: string, required: true }
      - in: body
        name: body
        schema:
          type: object
          properties:
            name: { type: string }
            email: { type: string }
            phone: { type: string }
            isActive: { type: boolean }
            isVerified: { type: boolean }
    responses:
      200: { description: OK }
      404: { description: Not found }
      409: { description: Email or phone already in use }
    """
    data = user_update_schema.load(request.get_json(silent=True) or {})
    user = _users().update(user_id, data)
    return responses.success(_users().to_response(user), "User updated successfully")


@bp.delete("/<user_id>")
@roles_required(UserRole.ADMIN)
def delete_user(user_id: str):
    """
    Delete a user (admin only)
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - { in: path, name: user_id, type: string, required: true }
    responses:
      200: { description: OK }
      403: { description: Forbidden }
      404: { description: Not found }
    """
    return responses.success(_users().remove(user_id), "User deleted successfully")
