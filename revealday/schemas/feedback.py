from marshmallow import EXCLUDE, Schema, fields, validate


class FeedbackSubmitSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    rating = fields.Int(required=True, strict=True, validate=validate.Range(min=1, max=5))
    comment = fields.Str(required=False, allow_none=True, load_default="", validate=validate.Length(max=200))
