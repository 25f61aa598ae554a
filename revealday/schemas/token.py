from marshmallow import EXCLUDE, Schema, fields, validate


class TokenVerifySchema(Schema):
    class Meta:
        unknown = EXCLUDE

    token = fields.Str(required=True, validate=validate.Length(min=1, max=8192))
