from __future__ import annotations

from flask import Blueprint, request, jsonify, g, abort

from models import storage
from models.user import User
from models.schemas.user import UserOutSchema, UserUpdateSchema
from utils.decorators import current_auth, jwt_required
from .utils.pagination import paginate, parse_pagination, parse_sort

bp = Blueprint("users", __name__)

user_update_schema = UserUpdateSchema()
user_out_schema = UserOutSchema()
user_list_out_schema = UserOutSchema(many=True)

SORT_COLUMNS = {
    "username": User.username,
    "email": User.email,
    "created_at": User.created_at,
}


@bp.get("/users")
@jwt_required()
def list_users():
    """
    List all users
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
      - in: query
        name: sort
        type: string
        default: username
    responses:
      200: { description: OK }
      401: { description: Unauthorized }
    """
    session = storage.get_session()
    page, limit = parse_pagination()
    order_by = parse_sort(SORT_COLUMNS, "username")
    rows, meta = paginate(session.query(User), order_by, page, limit)
    return jsonify({"data": user_list_out_schema.dump(rows), "meta": meta})


@bp.get("/users/<user_id>")
@jwt_required()
def get_user(user_id: str):
    """
    Get a user by id
    ---
    tags:
      - Users
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
    user = storage.get(User, user_id)
    if not user:
        abort(404, description="User not found")
    return jsonify({"data": user_out_schema.dump(user)})


@bp.put("/users")
@jwt_required()
def update_self():
    """
    Update the authenticated user's username, email and/or password
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
        schema:
          type: object
          properties:
            username: { type: string }
            email: { type: string }
            password: { type: string, minLength: 8 }
    responses:
      200: { description: OK }
      401: { description: Unauthorized }
      409: { description: Email already registered }
      422: { description: Validation error }
    """
    user = storage.get(User, g.current_user_id)
    if not user:
        abort(401)

    data = user_update_schema.load(request.get_json(silent=True) or {})
    if "email" in data and data["email"] != user.email:
        taken = storage.get_session().query(User).filter(User.email == data["email"]).first()
        if taken:
            abort(409, description="Email already registered")
        user.email = data["email"]
    if "username" in data:
        user.username = data["username"]
    if data.get("password"):
        user.password_hash = current_auth().hasher.hash(data["password"])

    user.save()
    return jsonify({"data": user_out_schema.dump(user)}), 200
