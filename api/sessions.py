from __future__ import annotations

from datetime import date
from typing import List, Optional

from flask import Blueprint, request, jsonify, abort, g

from models import storage
from models.episode import Episode
from models.user import User
from models.work_session import WorkSession, Part, Activity
from models.schemas.common import parse_enum
from models.schemas.session import (
    AddUsersSchema,
    WorkSessionCreateSchema,
    WorkSessionOutSchema,
)
from utils.decorators import jwt_required
from .utils.pagination import paginate, parse_pagination, parse_sort

bp = Blueprint("sessions", __name__)

session_create_schema = WorkSessionCreateSchema()
add_users_schema = AddUsersSchema()
session_out_schema = WorkSessionOutSchema()
sessions_out_schema = WorkSessionOutSchema(many=True)

SORT_COLUMNS = {
    "session_date": WorkSession.session_date,
    "duration": WorkSession.duration,
    "created_at": WorkSession.created_at,
}


def parse_date_param(name: str) -> Optional[date]:
    val = request.args.get(name)
    if not val:
        return None
    try:
        return date.fromisoformat(val)
    except ValueError:
        abort(400, description=f"Invalid date format for {name}. Use YYYY-MM-DD")


def _get_session_or_404(session_id: str) -> WorkSession:
    ws = storage.get(WorkSession, session_id)
    if not ws:
        abort(404, description="Session not found")
    return ws


def _load_users(user_ids: List[str]) -> List[User]:
    """Resolve every id to a User; unknown ids are a 400."""
    wanted = list(dict.fromkeys(user_ids))
    users = storage.get_session().query(User).filter(User.id.in_(wanted)).all()
    found = {u.id for u in users}
    missing = [uid for uid in wanted if uid not in found]
    if missing:
        abort(400, description=f"Unknown user ids: {', '.join(missing)}")
    return users


@bp.post("/sessions")
@jwt_required()
def create_session():
    """
    Record a work session on an episode
    ---
    tags:
      - Sessions
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
          required: [duration, session_date, episode_id, part_worked_on, activity_done]
          properties:
            duration: { type: integer, minimum: 1, description: "minutes" }
            session_date: { type: string, format: date }
            episode_id: { type: string }
            part_worked_on:
              type: string
              enum: [props, footsteps, movements, dialogue, adr, music, background, other]
            activity_done:
              type: string
              enum: [record, edit, service, spotting, other]
            user_ids:
              type: array
              items: { type: string }
              description: "participants; defaults to the authenticated user"
    responses:
      201: { description: Created }
      400: { description: Unknown episode or user }
      422: { description: Validation error }
    """
    data = session_create_schema.load(request.get_json(silent=True) or {})
    if not storage.get(Episode, data["episode_id"]):
        abort(400, description="episode_id not found")

    user_ids = data["user_ids"] or [g.current_user_id]
    ws = WorkSession(
        duration=data["duration"],
        session_date=data["session_date"],
        episode_id=data["episode_id"],
        part_worked_on=data["part_worked_on"],
        activity_done=data["activity_done"],
    )
    ws.users = _load_users(user_ids)
    storage.new(ws)
    storage.save()
    return jsonify({"data": session_out_schema.dump(ws)}), 201


@bp.get("/sessions")
@jwt_required()
def list_sessions():
    """
    List work sessions with filters, pagination and sorting
    ---
    tags:
      - Sessions
    security:
      - Bearer: []
    parameters:
      - in: query
        name: project_id
        type: string
      - in: query
        name: episode_id
        type: string
      - in: query
        name: part
        type: string
      - in: query
        name: activity
        type: string
      - in: query
        name: date_from
        type: string
        format: date
        description: "YYYY-MM-DD (inclusive)"
      - in: query
        name: date_to
        type: string
        format: date
        description: "YYYY-MM-DD (inclusive)"
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
        description: "Allowed: -session_date (default), session_date, duration, created_at"
        default: "-session_date"
    responses:
      200: { description: List of sessions }
      400: { description: Bad date filter }
      422: { description: Unknown part or activity }
    """
    page, limit = parse_pagination()
    order_by = parse_sort(SORT_COLUMNS, "-session_date")

    query = storage.get_session().query(WorkSession)

    project_id = request.args.get("project_id")
    if project_id:
        query = query.join(Episode, WorkSession.episode_id == Episode.id).filter(
            Episode.project_id == project_id
        )
    episode_id = request.args.get("episode_id")
    if episode_id:
        query = query.filter(WorkSession.episode_id == episode_id)

    part = request.args.get("part")
    if part:
        query = query.filter(WorkSession.part_worked_on == parse_enum(Part, part, "part"))
    activity = request.args.get("activity")
    if activity:
        query = query.filter(WorkSession.activity_done == parse_enum(Activity, activity, "activity"))

    date_from = parse_date_param("date_from")
    date_to = parse_date_param("date_to")
    if date_from:
        query = query.filter(WorkSession.session_date >= date_from)
    if date_to:
        query = query.filter(WorkSession.session_date <= date_to)

    rows, meta = paginate(query, order_by, page, limit)
    meta["filters"] = {k: v for k, v in request.args.items()}
    return jsonify({"data": sessions_out_schema.dump(rows), "meta": meta})


@bp.get("/sessions/<session_id>")
@jwt_required()
def get_session(session_id: str):
    """
    Get a work session with its participating users
    ---
    tags:
      - Sessions
    security:
      - Bearer: []
    parameters:
      - in: path
        name: session_id
        type: string
        required: true
    responses:
      200: { description: Session found }
      404: { description: Not found }
    """
    return jsonify({"data": session_out_schema.dump(_get_session_or_404(session_id))})


@bp.post("/sessions/<session_id>/users")
@jwt_required()
def add_session_users(session_id: str):
    """
    Add users to a work session (users already in it are ignored)
    ---
    tags:
      - Sessions
    security:
      - Bearer: []
    parameters:
      - in: path
        name: session_id
        type: string
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [user_ids]
          properties:
            user_ids:
              type: array
              items: { type: string }
    responses:
      200: { description: Updated session }
      400: { description: Unknown user }
      404: { description: Session not found }
      422: { description: Validation error }
    """
    ws = _get_session_or_404(session_id)
    data = add_users_schema.load(request.get_json(silent=True) or {})

    present = {u.id for u in ws.users}
    for user in _load_users(data["user_ids"]):
        if user.id not in present:
            ws.users.append(user)
    ws.save()
    return jsonify({"data": session_out_schema.dump(ws)})


@bp.delete("/sessions/<session_id>")
@jwt_required()
def delete_session(session_id: str):
    """
    Delete a work session
    ---
    tags:
      - Sessions
    security:
      - Bearer: []
    parameters:
      - in: path
        name: session_id
        type: string
        required: true
    responses:
      204: { description: Deleted }
      404: { description: Not found }
    """
    ws = _get_session_or_404(session_id)
    ws.delete()
    storage.save()
    return ("", 204)
