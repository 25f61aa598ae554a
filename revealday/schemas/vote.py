from marshmallow import EXCLUDE, Schema, fields, validate

from ..extensions import ma

VOTE_SIDES = ("prince", "princess")


class VoteSubmitSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    reveal_id = fields.Str(data_key="revealId", required=True, validate=validate.Length(min=1, max=64))
    vote = fields.Str(required=True, validate=validate.OneOf(VOTE_SIDES))
    device_id = fields.Str(data_key="deviceId", required=True, validate=validate.Length(min=1, max=128))


class VoteQuerySchema(Schema):
    reveal_id = fields.Str(data_key="revealId", required=True, validate=validate.Length(min=1, max=64))


class VoteCountsSchema(ma.Schema):
    prince = fields.Int()
    princess = fields.Int()


class VoteStatusSchema(ma.Schema):
    prince = fields.Int()
    princess = fields.Int()
    total = fields.Int()
    is_revealed = fields.Bool(data_key="isRevealed")
    server_time = fields.Int(data_key="serverTime")
