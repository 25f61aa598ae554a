from marshmallow import ValidationError as SchemaValidationError

from ..errors import ValidationError, BadRequest


def load_or_raise(schema, payload):
    """Deserialize ``payload`` with ``schema`` or raise the service ValidationError."""
    if not isinstance(payload, dict) or not payload:
        raise BadRequest("Request body must be a non-empty JSON object")
    try:
        return schema.load(payload)
    except SchemaValidationError as e:
        raise ValidationError("Validation error", details=e.messages) from e
