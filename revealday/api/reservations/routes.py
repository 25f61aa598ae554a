from flask import Blueprint, current_app
from flasgger import swag_from

from ...schemas.reservation import ReservationReadSchema
from ...services import get_services
from ...utils.request import client_ip, json_body

reservations_bp = Blueprint("reservations", __name__)
reservation_read_schema = ReservationReadSchema()


@reservations_bp.post("/reservations")
@swag_from({
    "tags": ["Reservations"],
    "summary": "Schedule a reveal moment and issue its two tokens",
    "description": (
        "Creates the vote ledger for a new reveal and returns a countdown token "
        "for guests and a reveal token for the owner. Rate limited per IP."
    ),
    "parameters": [{
        "in": "body",
        "name": "body",
        "required": True,
        "schema": {
            "type": "object",
            "properties": {
                "motherName": {"type": "string", "example": "Mina"},
                "fatherName": {"type": "string", "example": "Joon"},
                "babyName": {"type": "string", "example": "Sky"},
                "gender": {"type": "string", "enum": ["boy", "girl"]},
                "animationType": {"type": "string", "example": "confetti"},
                "countdownTime": {"type": "integer", "example": 5},
                "scheduledAt": {"type": "string", "format": "date-time"},
            },
            "required": ["motherName", "fatherName", "babyName", "gender", "animationType", "scheduledAt"],
        },
    }],
    "responses": {
        201: {"description": "Reservation created", "schema": {"$ref": "#/definitions/Reservation"}},
        400: {"description": "Validation error", "schema": {"$ref": "#/definitions/ErrorResponse"}},
        429: {"description": "Too many reservations"},
        500: {"description": "Id allocation or store failure"},
    },
})
def create_reservation():
    services = get_services()
    reservation = services.reservations.create(json_body(), client_ip())

    current_app.logger.info("Reservation issued reveal_id=%s", reservation.reveal_id)
    return reservation_read_schema.dump(reservation), 201
