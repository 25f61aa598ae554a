def _error_definition():
    return {
        "type": "object",
        "properties": {
            "success": {"type": "boolean", "example": False},
            "error": {
                "type": "object",
                "properties": {
                    "code": {"type": "string", "example": "VALIDATION_ERROR"},
                    "message": {"type": "string", "example": "Validation error"},
                    "details": {"type": "object"},
                },
            },
            "request_id": {"type": "string"},
        },
    }


def swagger_template(app=None):
    title = "Reveal Day API"
    version = "1.0.0"

    if app:
        title = app.config.get("SWAGGER_TITLE", title)
        version = app.config.get("SWAGGER_VERSION", version)

    return {
        "swagger": "2.0",
        "info": {
            "title": title,
            "version": version,
            "description": "Schedule a reveal moment, share countdown links and collect guest votes.",
        },
        "tags": [
            {"name": "Reservations", "description": "Owner-side scheduling"},
            {"name": "Tokens", "description": "Countdown and reveal links"},
            {"name": "Votes", "description": "One vote per guest device"},
            {"name": "Feedback"},
        ],
        "definitions": {
            "ErrorResponse": _error_definition(),
            "Reservation": {
                "type": "object",
                "properties": {
                    "revealId": {"type": "string", "example": "V1StGXR8"},
                    "countdownToken": {"type": "string"},
                    "revealToken": {"type": "string"},
                },
            },
            "VoteCounts": {
                "type": "object",
                "properties": {
                    "prince": {"type": "integer", "example": 3},
                    "princess": {"type": "integer", "example": 5},
                },
            },
            "VoteStatus": {
                "type": "object",
                "properties": {
                    "prince": {"type": "integer"},
                    "princess": {"type": "integer"},
                    "total": {"type": "integer"},
                    "isRevealed": {"type": "boolean"},
                    "serverTime": {"type": "integer", "description": "Epoch milliseconds"},
                },
            },
        },
    }
