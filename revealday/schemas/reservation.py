from datetime import timezone

from marshmallow import EXCLUDE, Schema, fields, validate, validates_schema, ValidationError

GENDERS = ("boy", "girl")
ANIMATION_TYPES = ("confetti", "balloons", "fireworks", "falling", "reveal")


class BabyInfoSchema(Schema):
    name = fields.Str(required=True, validate=validate.Length(min=1, max=50))
    gender = fields.Str(required=True, validate=validate.OneOf(GENDERS))


class RevealPayloadSchema(Schema):
    """
    Owner-supplied descriptive fields embedded in tokens.
    Loads camelCase JSON into snake_case keys and dumps back to camelCase.
    """

    class Meta:
        unknown = EXCLUDE

    mother_name = fields.Str(data_key="motherName", required=True, validate=validate.Length(min=1, max=50))
    father_name = fields.Str(data_key="fatherName", required=True, validate=validate.Length(min=1, max=50))
    baby_name = fields.Str(data_key="babyName", required=True, validate=validate.Length(min=1, max=50))
    gender = fields.Str(required=True, validate=validate.OneOf(GENDERS))
    due_date = fields.Str(data_key="dueDate", required=False, allow_none=True)
    message = fields.Str(required=False, allow_none=True, validate=validate.Length(max=500))
    animation_type = fields.Str(data_key="animationType", required=True, validate=validate.OneOf(ANIMATION_TYPES))
    countdown_time = fields.Int(data_key="countdownTime", load_default=5, validate=validate.Range(min=3, max=10))
    is_multiple = fields.Bool(data_key="isMultiple", load_default=False)
    babies_info = fields.List(fields.Nested(BabyInfoSchema), data_key="babiesInfo", required=False)

    @validates_schema
    def multiple_babies_need_details(self, data, **kwargs):
        if data.get("is_multiple") and len(data.get("babies_info") or []) < 2:
            raise ValidationError(
                "At least two babies are required when isMultiple is set", field_name="babiesInfo"
            )


class ReservationCreateSchema(RevealPayloadSchema):
    scheduled_at = fields.AwareDateTime(data_key="scheduledAt", required=True, default_timezone=timezone.utc)


class ReservationReadSchema(Schema):
    reveal_id = fields.Str(data_key="revealId")
    countdown_token = fields.Str(data_key="countdownToken")
    reveal_token = fields.Str(data_key="revealToken")
