from datetime import datetime, timezone

from flask import Blueprint, request
from flasgger import swag_from

from ...schemas.feedback import FeedbackSubmitSchema
from ...services import get_services
from ...services.feedback import Feedback
from ...utils.request import client_ip, json_body
from ...utils.validation import load_or_raise

feedback_bp = Blueprint("feedback", __name__)
feedback_submit_schema = FeedbackSubmitSchema()


@feedback_bp.post("/feedback")
@swag_from({
    "tags": ["Feedback"],
    "summary": "Send a star rating and optional comment",
    "parameters": [{
        "in": "body",
        "name": "body",
        "required": True,
        "schema": {
            "type": "object",
            "properties": {
                "rating": {"type": "integer", "minimum": 1, "maximum": 5},
                "comment": {"type": "string", "maxLength": 200},
            },
            "required": ["rating"],
        },
    }],
    "responses": {
        201: {"description": "Feedback delivered"},
        207: {"description": "Accepted, delivery failed (see warnings)"},
        400: {"description": "Validation error"},
        429: {"description": "Too many submissions"},
    },
})
def submit_feedback():
    data = load_or_raise(feedback_submit_schema, json_body())
    feedback = Feedback(
        rating=data["rating"],
        comment=(data.get("comment") or "").strip(),
        user_agent=(request.headers.get("User-Agent") or "")[:255],
        page_url=(request.headers.get("Referer") or "")[:500],
        timestamp=datetime.now(timezone.utc).isoformat(timespec="seconds"),
    )

    receipt = get_services().feedback.submit(feedback, client_ip())
    if not receipt.delivered:
        return {"success": True, "message": "Feedback received", "warnings": receipt.warnings}, 207
    return {"success": True, "message": "Feedback received"}, 201
