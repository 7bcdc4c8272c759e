from marshmallow import Schema, fields, validate

from models.schemas.common import validate_email, validate_not_blank


class ClientCreateSchema(Schema):
    client_name = fields.String(required=True, validate=[validate.Length(max=255), validate_not_blank])
    email = fields.String(allow_none=True, validate=validate_email)
    notes = fields.String(allow_none=True)


class ClientUpdateSchema(Schema):
    client_name = fields.String(validate=[validate.Length(max=255), validate_not_blank])
    email = fields.String(allow_none=True, validate=validate_email)
    notes = fields.String(allow_none=True)


class ClientOutSchema(Schema):
    id = fields.String()
    client_name = fields.String()
    email = fields.String(allow_none=True)
    notes = fields.String(allow_none=True)
    created_at = fields.DateTime()
    updated_at = fields.DateTime()
