from marshmallow import Schema, fields, post_load, validate, validates

from models.schemas.common import parse_enum, validate_not_future
from models.work_session import Activity, Part


class WorkSessionCreateSchema(Schema):
    duration = fields.Integer(required=True, strict=True, validate=validate.Range(min=1))
    session_date = fields.Date(required=True)
    episode_id = fields.String(required=True)
    part_worked_on = fields.String(required=True)
    activity_done = fields.String(required=True)
    user_ids = fields.List(fields.String(), load_default=list)

    @validates("session_date")
    def _validate_session_date(self, value, **kwargs):
        validate_not_future(value)

    @post_load
    def _to_enums(self, data, **kwargs):
        data["part_worked_on"] = parse_enum(Part, data["part_worked_on"], "part_worked_on")
        data["activity_done"] = parse_enum(Activity, data["activity_done"], "activity_done")
        return data


class AddUsersSchema(Schema):
    user_ids = fields.List(fields.String(), required=True, validate=validate.Length(min=1))


class SessionUserSchema(Schema):
    id = fields.String()
    username = fields.String()
    email = fields.String()


class WorkSessionOutSchema(Schema):
    id = fields.String()
    duration = fields.Integer()
    session_date = fields.Date()
    episode_id = fields.String()
    part_worked_on = fields.Function(lambda obj: obj.part_worked_on.value)
    activity_done = fields.Function(lambda obj: obj.activity_done.value)
    users = fields.List(fields.Nested(SessionUserSchema))
    created_at = fields.DateTime()
