from __future__ import annotations

from flask import Blueprint, request, jsonify, abort
from sqlalchemy import func

from models import storage
from models.client import Client
from models.project import Project
from models.schemas.project import (
    ProjectCreateSchema,
    ProjectUpdateSchema,
    ProjectOutSchema,
)
from utils.decorators import jwt_required
from .utils.pagination import paginate, parse_pagination, parse_sort

bp = Blueprint("projects", __name__)

project_create_schema = ProjectCreateSchema()
project_update_schema = ProjectUpdateSchema()
project_out_schema = ProjectOutSchema()
projects_out_schema = ProjectOutSchema(many=True)

# Sorting allowlist: API field -> SQLAlchemy column
SORT_COLUMNS = {
    "title": Project.title,
    "created_at": Project.created_at,
    "updated_at": Project.updated_at,
}


def _get_project_or_404(project_id: str) -> Project:
    p = storage.get(Project, project_id)
    if not p:
        abort(404, description="Project not found")
    return p


def _ensure_client_exists(client_id: str):
    if not storage.get(Client, client_id):
        abort(400, description="client_id not found")


@bp.post("/projects")
@jwt_required()
def create_project():
    """
    Create a project for an existing client
    ---
    tags:
      - Projects
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
          required: [title, client_id]
          properties:
            title: { type: string, maxLength: 255 }
            client_id: { type: string }
    responses:
      201: { description: Created }
      400: { description: Unknown client }
      422: { description: Validation error }
    """
    data = project_create_schema.load(request.get_json(silent=True) or {})
    _ensure_client_exists(data["client_id"])

    p = Project(title=data["title"].strip(), client_id=data["client_id"])
    storage.new(p)
    storage.save()
    return jsonify({"data": project_out_schema.dump(p)}), 201


@bp.get("/projects")
@jwt_required()
def list_projects():
    """
    List projects (filters: title, client_id, q; pagination and sorting)
    ---
    tags:
      - Projects
    security:
      - Bearer: []
    parameters:
      - in: query
        name: title
        type: string
        description: exact (case-insensitive) title
      - in: query
        name: client_id
        type: string
      - in: query
        name: q
        type: string
        description: substring search on title
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
        default: title
    responses:
      200: { description: OK }
    """
    session = storage.get_session()
    page, limit = parse_pagination()
    order_by = parse_sort(SORT_COLUMNS, "title")

    query = session.query(Project)
    title = request.args.get("title")
    if title:
        query = query.filter(func.lower(Project.title) == title.strip().lower())
    client_id = request.args.get("client_id")
    if client_id:
        query = query.filter(Project.client_id == client_id)
    q = request.args.get("q")
    if q:
        query = query.filter(func.lower(Project.title).like(f"%{q.strip().lower()}%"))

    rows, meta = paginate(query, order_by, page, limit)
    return jsonify({"data": projects_out_schema.dump(rows), "meta": meta})


@bp.get("/projects/<project_id>")
@jwt_required()
def get_project(project_id: str):
    """
    Get a project by id
    ---
    tags:
      - Projects
    security:
      - Bearer: []
    parameters:
      - in: path
        name: project_id
        type: string
        required: true
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    return jsonify({"data": project_out_schema.dump(_get_project_or_404(project_id))})


@bp.put("/projects/<project_id>")
@jwt_required()
def update_project(project_id: str):
    """
    Update a project's title and/or client
    ---
    tags:
      - Projects
    security:
      - Bearer: []
    parameters:
      - in: path
        name: project_id
        type: string
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            title: { type: string, maxLength: 255 }
            client_id: { type: string }
    responses:
      200: { description: OK }
      400: { description: Unknown client }
      404: { description: Not found }
      422: { description: Validation error }
    """
    p = _get_project_or_404(project_id)
    data = project_update_schema.load(request.get_json(silent=True) or {})
    if "client_id" in data:
        _ensure_client_exists(data["client_id"])
        p.client_id = data["client_id"]
    if "title" in data:
        p.title = data["title"].strip()
    p.save()
    return jsonify({"data": project_out_schema.dump(p)})


@bp.delete("/projects/<project_id>")
@jwt_required()
def delete_project(project_id: str):
    """
    Delete a project together with its episodes and their work sessions
    ---
    tags:
      - Projects
    security:
      - Bearer: []
    parameters:
      - in: path
        name: project_id
        type: string
        required: true
    responses:
      204: { description: Deleted }
      404: { description: Not found }
    """
    p = _get_project_or_404(project_id)
    p.delete()
    storage.save()
    return ("", 204)
