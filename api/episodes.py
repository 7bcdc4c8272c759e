from __future__ import annotations

from flask import Blueprint, request, jsonify, abort

from models import storage
from models.episode import Episode
from models.project import Project
from models.schemas.episode import (
    EpisodeCreateSchema,
    EpisodeUpdateSchema,
    EpisodeOutSchema,
)
from utils.decorators import jwt_required
from .utils.pagination import paginate, parse_pagination, parse_sort

bp = Blueprint("episodes", __name__)

episode_create_schema = EpisodeCreateSchema()
episode_update_schema = EpisodeUpdateSchema()
episode_out_schema = EpisodeOutSchema()
episodes_out_schema = EpisodeOutSchema(many=True)

SORT_COLUMNS = {
    "episode_number": Episode.episode_number,
    "title": Episode.title,
    "created_at": Episode.created_at,
}


def _get_episode_or_404(episode_id: str) -> Episode:
    e = storage.get(Episode, episode_id)
    if not e:
        abort(404, description="Episode not found")
    return e


def _ensure_number_free(project_id: str, episode_number: int, exclude_id: str | None = None):
    query = storage.get_session().query(Episode.id).filter(
        Episode.project_id == project_id,
        Episode.episode_number == episode_number,
    )
    if exclude_id:
        query = query.filter(Episode.id != exclude_id)
    if query.first():
        abort(409, description=f"Episode {episode_number} already exists in this project")


@bp.post("/episodes")
@jwt_required()
def create_episode():
    """
    Create an episode inside an existing project
    ---
    tags:
      - Episodes
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
          required: [episode_number, project_id]
          properties:
            title: { type: string, maxLength: 255 }
            episode_number: { type: integer, minimum: 0 }
            project_id: { type: string }
    responses:
      201: { description: Created }
      400: { description: Unknown project }
      409: { description: Episode number already used in the project }
      422: { description: Validation error }
    """
    data = episode_create_schema.load(request.get_json(silent=True) or {})
    if not storage.get(Project, data["project_id"]):
        abort(400, description="project_id not found")
    _ensure_number_free(data["project_id"], data["episode_number"])

    e = Episode(
        title=data.get("title"),
        episode_number=data["episode_number"],
        project_id=data["project_id"],
    )
    storage.new(e)
    storage.save()
    return jsonify({"data": episode_out_schema.dump(e)}), 201


@bp.get("/projects/<project_id>/episodes")
@jwt_required()
def list_project_episodes(project_id: str):
    """
    List the episodes of a project
    ---
    tags:
      - Episodes
    security:
      - Bearer: []
    parameters:
      - in: path
        name: project_id
        type: string
        required: true
      - in: query
        name: episode_number
        type: integer
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
        default: episode_number
    responses:
      200: { description: OK }
      400: { description: Invalid episode_number }
      404: { description: Project not found }
    """
    if not storage.get(Project, project_id):
        abort(404, description="Project not found")
    page, limit = parse_pagination()
    order_by = parse_sort(SORT_COLUMNS, "episode_number")

    query = storage.get_session().query(Episode).filter(Episode.project_id == project_id)
    raw_number = request.args.get("episode_number")
    if raw_number is not None:
        try:
            query = query.filter(Episode.episode_number == int(raw_number))
        except ValueError:
            abort(400, description="episode_number must be an integer")

    rows, meta = paginate(query, order_by, page, limit)
    return jsonify({"data": episodes_out_schema.dump(rows), "meta": meta})


@bp.get("/episodes/<episode_id>")
@jwt_required()
def get_episode(episode_id: str):
    """
    Get an episode by id
    ---
    tags:
      - Episodes
    security:
      - Bearer: []
    parameters:
      - in: path
        name: episode_id
        type: string
        required: true
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    return jsonify({"data": episode_out_schema.dump(_get_episode_or_404(episode_id))})


@bp.put("/episodes/<episode_id>")
@jwt_required()
def update_episode(episode_id: str):
    """
    Update an episode (title, number or owning project)
    ---
    tags:
      - Episodes
    security:
      - Bearer: []
    parameters:
      - in: path
        name: episode_id
        type: string
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            title: { type: string, maxLength: 255 }
            episode_number: { type: integer, minimum: 0 }
            project_id: { type: string }
    responses:
      200: { description: OK }
      400: { description: Unknown project }
      404: { description: Not found }
      409: { description: Episode number already used in the project }
      422: { description: Validation error }
    """
    e = _get_episode_or_404(episode_id)
    data = episode_update_schema.load(request.get_json(silent=True) or {})

    project_id = data.get("project_id", e.project_id)
    if project_id != e.project_id and not storage.get(Project, project_id):
        abort(400, description="project_id not found")
    number = data.get("episode_number", e.episode_number)
    if project_id != e.project_id or number != e.episode_number:
        _ensure_number_free(project_id, number, exclude_id=e.id)

    e.project_id = project_id
    e.episode_number = number
    if "title" in data:
        e.title = data["title"]
    e.save()
    return jsonify({"data": episode_out_schema.dump(e)})


@bp.delete("/episodes/<episode_id>")
@jwt_required()
def delete_episode(episode_id: str):
    """
    Delete an episode and its work sessions
    ---
    tags:
      - Episodes
    security:
      - Bearer: []
    parameters:
      - in: path
        name: episode_id
        type: string
        required: true
    responses:
      204: { description: Deleted }
      404: { description: Not found }
    """
    e = _get_episode_or_404(episode_id)
    e.delete()
    storage.save()
    return ("", 204)
