from marshmallow import Schema, fields, validate

from models.schemas.common import validate_not_blank


class ProjectCreateSchema(Schema):
    title = fields.String(required=True, validate=[validate.Length(max=255), validate_not_blank])
    client_id = fields.String(required=True)


class ProjectUpdateSchema(Schema):
    title = fields.String(validate=[validate.Length(max=255), validate_not_blank])
    client_id = fields.String()


class ProjectOutSchema(Schema):
    id = fields.String()
    title = fields.String()
    client_id = fields.String()
    created_at = fields.DateTime()
    updated_at = fields.DateTime()
    episode_count = fields.Method("get_episode_count")

    def get_episode_count(self, obj):
        return len(getattr(obj, "episodes", None) or [])
