from __future__ import annotations

from flask import Blueprint, request, jsonify, abort
from sqlalchemy import func

from models import storage
from models.client import Client
from models.schemas.client import (
    ClientCreateSchema,
    ClientUpdateSchema,
    ClientOutSchema,
)
from utils.decorators import jwt_required
from .utils.pagination import paginate, parse_pagination, parse_sort

bp = Blueprint("clients", __name__)

create_schema = ClientCreateSchema()
update_schema = ClientUpdateSchema()
out_schema = ClientOutSchema()
out_list_schema = ClientOutSchema(many=True)

SORT_COLUMNS = {
    "name": Client.client_name,
    "created_at": Client.created_at,
}


def _get_or_404(client_id: str) -> Client:
    c = storage.get(Client, client_id)
    if not c:
        abort(404, description="Client not found")
    return c


def _ensure_unique_name(name: str, exclude_id: str | None = None):
    query = storage.get_session().query(Client).filter(func.lower(Client.client_name) == name.strip().lower())
    if exclude_id:
        query = query.filter(Client.id != exclude_id)
    if query.first():
        abort(409, description="A client with this name already exists.")


@bp.post("/clients")
@jwt_required()
def create_client():
    """
    Create a client
    ---
    tags: [Clients]
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
            client_name: { type: string, maxLength: 255 }
            email: { type: string }
            notes: { type: string }
    responses:
      201: { description: Created }
      409: { description: Client name already taken }
      422: { description: Validation error }
    """
    data = create_schema.load(request.get_json(silent=True) or {})
    _ensure_unique_name(data["client_name"])
    c = Client(
        client_name=data["client_name"].strip(),
        email=data.get("email"),
        notes=data.get("notes"),
    )
    storage.new(c)
    storage.save()
    return jsonify({"data": out_schema.dump(c)}), 201


@bp.get("/clients")
@jwt_required()
def list_clients():
    """
    List clients (pagination, sorting, exact name filter, q search)
    ---
    tags: [Clients]
    security:
      - Bearer: []
    parameters:
      - in: query
        name: name
        type: string
        description: exact (case-insensitive) client name
      - in: query
        name: q
        type: string
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
        default: name
    responses:
      200: { description: OK }
    """
    session = storage.get_session()
    page, limit = parse_pagination()
    order_by = parse_sort(SORT_COLUMNS, "name")
    query = session.query(Client)
    name = request.args.get("name")
    if name:
        query = query.filter(func.lower(Client.client_name) == name.strip().lower())
    q = request.args.get("q")
    if q:
        query = query.filter(func.lower(Client.client_name).like(f"%{q.strip().lower()}%"))
    rows, meta = paginate(query, order_by, page, limit)
    return jsonify({"data": out_list_schema.dump(rows), "meta": meta})


@bp.get("/clients/<client_id>")
@jwt_required()
def get_client(client_id: str):
    """
    Get a client by id
    ---
    tags: [Clients]
    security:
      - Bearer: []
    parameters:
      - in: path
        name: client_id
        type: string
        required: true
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    return jsonify({"data": out_schema.dump(_get_or_404(client_id))})


@bp.put("/clients/<client_id>")
@jwt_required()
def update_client(client_id: str):
    """
    Update a client (fields not sent are kept)
    ---
    tags: [Clients]
    security:
      - Bearer: []
    parameters:
      - in: path
        name: client_id
        type: string
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            client_name: { type: string, maxLength: 255 }
            email: { type: string }
            notes: { type: string }
    responses:
      200: { description: OK }
      404: { description: Not found }
      409: { description: Client name already taken }
      422: { description: Validation error }
    """
    c = _get_or_404(client_id)
    data = update_schema.load(request.get_json(silent=True) or {})
    if "client_name" in data:
        _ensure_unique_name(data["client_name"], exclude_id=c.id)
        c.client_name = data["client_name"].strip()
    if "email" in data:
        c.email = data["email"]
    if "notes" in data:
        c.notes = data["notes"]
    c.save()
    return jsonify({"data": out_schema.dump(c)})


@bp.delete("/clients/<client_id>")
@jwt_required()
def delete_client(client_id: str):
    """
    Delete a client that has no projects
    ---
    tags: [Clients]
    security:
      - Bearer: []
    parameters:
      - in: path
        name: client_id
        type: string
        required: true
    responses:
      204: { description: Deleted }
      404: { description: Not found }
      409: { description: Client still has projects }
    """
    c = _get_or_404(client_id)
    if c.projects:
        abort(409, description="Client still has projects")
    c.delete()
    storage.save()
    return ("", 204)
