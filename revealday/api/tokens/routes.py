from flask import Blueprint, current_app
from flasgger import swag_from

from ...schemas.reservation import RevealPayloadSchema
from ...schemas.token import TokenVerifySchema
from ...services import get_services
from ...services.token_codec import TokenVariant
from ...utils.request import json_body
from ...utils.validation import load_or_raise

tokens_bp = Blueprint("tokens", __name__)
token_verify_schema = TokenVerifySchema()
reveal_payload_schema = RevealPayloadSchema()


@tokens_bp.post("/tokens:verify")
@swag_from({
    "tags": ["Tokens"],
    "summary": "Verify a countdown or reveal token",
    "parameters": [{
        "in": "body",
        "name": "body",
        "required": True,
        "schema": {
            "type": "object",
            "properties": {"token": {"type": "string"}},
            "required": ["token"],
        },
    }],
    "responses": {
        200: {"description": "Token payload"},
        400: {"description": "Validation error"},
        401: {"description": "Invalid (INVALID_TOKEN) or expired (TOKEN_EXPIRED) token"},
    },
})
def verify_token():
    data = load_or_raise(token_verify_schema, json_body())
    verified = get_services().codec.verify(data["token"])
    return {"payload": verified.claims()}, 200


@tokens_bp.post("/tokens")
@swag_from({
    "tags": ["Tokens"],
    "summary": "Issue a stand-alone reveal token (no countdown, no voting)",
    "responses": {
        201: {"description": "Token issued"},
        400: {"description": "Validation error"},
    },
})
def issue_reveal_token():
    data = load_or_raise(reveal_payload_schema, json_body())
    payload = reveal_payload_schema.dump(data)

    token = get_services().codec.issue(
        payload,
        TokenVariant.REVEAL,
        lifetime=current_app.config["LEGACY_TOKEN_EXPIRES"],
    )
    return {"token": token}, 201
