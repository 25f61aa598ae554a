from flask import Blueprint, request
from flasgger import swag_from

from ...schemas.vote import VoteQuerySchema, VoteCountsSchema, VoteStatusSchema
from ...services import get_services
from ...utils.clock import utcnow, to_epoch_ms
from ...utils.request import client_ip, json_body
from ...utils.validation import load_or_raise

votes_bp = Blueprint("votes", __name__)

vote_query_schema = VoteQuerySchema()
vote_counts_schema = VoteCountsSchema()
vote_status_schema = VoteStatusSchema()


@votes_bp.get("/votes")
@swag_from({
    "tags": ["Votes"],
    "summary": "Read vote counts and reveal state",
    "description": "Side-effect free; clients poll it every few seconds.",
    "parameters": [
        {"in": "query", "name": "revealId", "required": True, "type": "string"},
    ],
    "responses": {
        200: {"description": "Counts, revealed flag and server time", "schema": {"$ref": "#/definitions/VoteStatus"}},
        400: {"description": "Validation error"},
        404: {"description": "Unknown or expired revealId"},
    },
})
def vote_status():
    data = load_or_raise(vote_query_schema, request.args.to_dict())
    status = get_services().votes.get_status(data["reveal_id"])

    return vote_status_schema.dump({
        "prince": status.prince,
        "princess": status.princess,
        "total": status.total,
        "is_revealed": status.revealed,
        "server_time": to_epoch_ms(utcnow()),
    }), 200


@votes_bp.post("/votes")
@swag_from({
    "tags": ["Votes"],
    "summary": "Cast one vote per device",
    "parameters": [{
        "in": "body",
        "name": "body",
        "required": True,
        "schema": {
            "type": "object",
            "properties": {
                "revealId": {"type": "string", "example": "V1StGXR8"},
                "vote": {"type": "string", "enum": ["prince", "princess"]},
                "deviceId": {"type": "string", "example": "0b7c7f3e-5a6d-4c1e-9d1c-2f0a7e1b9c44"},
            },
            "required": ["revealId", "vote", "deviceId"],
        },
    }],
    "responses": {
        201: {"description": "Vote recorded", "schema": {"$ref": "#/definitions/VoteCounts"}},
        400: {"description": "Validation error"},
        404: {"description": "Unknown or expired revealId"},
        409: {"description": "Device already voted (details.previousVote)"},
        429: {"description": "Too many votes"},
        500: {"description": "Store failure"},
    },
})
def submit_vote():
    counts = get_services().votes.submit(json_body(), client_ip())
    return vote_counts_schema.dump(counts), 201
