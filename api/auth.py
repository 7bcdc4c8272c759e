"""
Authentication blueprint:
- POST /auth/register
- POST /auth/login
- POST /auth/refresh  (refresh token as Bearer credential)
- POST /auth/logout   (refresh token as Bearer credential)
- GET  /auth/me

Access tokens are stateless HS256 JWTs validated by the AuthorizationGate.
Refresh tokens are opaque random strings looked up in the refresh_tokens
table; the two kinds never share a validation path.
"""
from __future__ import annotations

import logging

from flask import Blueprint, request, jsonify, g, abort

from models import storage
from models.user import User
from models.schemas.user import UserCreateSchema, UserOutSchema, UserLoginSchema
from utils.auth_errors import (
    InvalidCredentials,
    RefreshTokenExpired,
    RefreshTokenRevoked,
)
from utils.authorization import extract_bearer_token
from utils.decorators import current_auth, jwt_required

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__)

user_create_schema = UserCreateSchema()
user_out_schema = UserOutSchema()
user_login_schema = UserLoginSchema()


def _access_token_response(access_token: str) -> dict:
    ttl = current_auth().settings.access_token_ttl
    return {
        "access_token": access_token,
        "token_type": "bearer",
        "expires_in": int(ttl.total_seconds()),
    }


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
            username: { type: string }
            email: { type: string }
            password: { type: string, minLength: 8 }
    responses:
      201:
        description: Created
      409:
        description: Email already registered
      422:
        description: Validation error
    """
    payload = request.get_json(silent=True) or {}
    data = user_create_schema.load(payload)

    session = storage.get_session()
    if session.query(User).filter(User.email == data["email"]).first():
        abort(409, description="Email already registered")

    user = User(
        username=data["username"],
        email=data["email"],
        password_hash=current_auth().hasher.hash(data["password"]),
    )
    storage.new(user)
    storage.save()
    logger.info("Registered user %s", user.id)

    return jsonify({"data": user_out_schema.dump(user)}), 201


@bp.post("/login")
def login():
    """
    Login: returns an access token and a refresh token
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
        description: Unauthorized
      422:
        description: Validation error
    """
    payload = request.get_json(silent=True) or {}
    data = user_login_schema.load(payload)
    auth = current_auth()

    session = storage.get_session()
    user: User | None = session.query(User).filter(User.email == data["email"]).first()
    if user is None:
        # same argon2 cost as a wrong password for an existing account
        auth.hasher.verify_dummy(data["password"])
        raise InvalidCredentials("unknown email")
    if not auth.hasher.verify(data["password"], user.password_hash):
        raise InvalidCredentials("password mismatch")

    if auth.hasher.needs_rehash(user.password_hash):
        # upgrade hashes made with older cost parameters
        user.password_hash = auth.hasher.hash(data["password"])
        storage.new(user)
        storage.save()
        logger.info("Upgraded password hash parameters for user %s", user.id)

    access_token = auth.codec.issue(user.id)
    refresh_token = auth.refresh_store.issue(user.id)
    logger.info("User %s logged in", user.id)

    body = {"data": user_out_schema.dump(user), "refresh_token": refresh_token}
    body.update(_access_token_response(access_token))
    return jsonify(body), 200


@bp.post("/refresh")
def refresh():
    """
    Obtain a new access token with a refresh token (the refresh token is not rotated)
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    parameters:
      - in: header
        name: Authorization
        type: string
        required: true
        description: "Bearer <refresh_token>"
    responses:
      200:
        description: OK (returns a new access token)
      401:
        description: Unauthorized
    """
    auth = current_auth()
    presented = extract_bearer_token(request.headers)
    record = auth.refresh_store.lookup(presented)

    now = auth.refresh_store.now()
    if record.revoked:
        raise RefreshTokenRevoked("refresh token revoked")
    if record.is_expired(now):
        raise RefreshTokenExpired("refresh token expired")

    access_token = auth.codec.issue(record.user_id)
    return jsonify(_access_token_response(access_token)), 200


@bp.post("/logout")
def logout():
    """
    Logout: revokes the presented refresh token
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    parameters:
      - in: header
        name: Authorization
        type: string
        required: true
        description: "Bearer <refresh_token>"
    responses:
      204:
        description: Revoked (also when it was already revoked)
      401:
        description: Unauthorized
    """
    presented = extract_bearer_token(request.headers)
    current_auth().refresh_store.revoke(presented)
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
    user = storage.get(User, g.current_user_id)
    if user is None:
        abort(401)
    return jsonify({"data": user_out_schema.dump(user)}), 200
