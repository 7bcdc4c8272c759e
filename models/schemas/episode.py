from marshmallow import Schema, fields, validate


class EpisodeCreateSchema(Schema):
    title = fields.String(allow_none=True, validate=validate.Length(max=255))
    episode_number = fields.Integer(required=True, strict=True, validate=validate.Range(min=0))
    project_id = fields.String(required=True)


class EpisodeUpdateSchema(Schema):
    title = fields.String(allow_none=True, validate=validate.Length(max=255))
    episode_number = fields.Integer(strict=True, validate=validate.Range(min=0))
    project_id = fields.String()


class EpisodeOutSchema(Schema):
    id = fields.String()
    title = fields.String(allow_none=True)
    episode_number = fields.Integer()
    project_id = fields.String()
    created_at = fields.DateTime()
    updated_at = fields.DateTime()
