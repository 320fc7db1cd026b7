from marshmallow import Schema, ValidationError

from ..errors import ValidationFailed


def load_or_fail(schema: Schema, data, message: str = "Invalid request") -> dict:
    """Load ``data`` or raise ValidationFailed carrying the field errors."""
    try:
        return schema.load(data)
    except ValidationError as e:
        errors = e.messages if isinstance(e.messages, dict) else {"_schema": e.messages}
        first = next(iter(errors.values()), None)
        if isinstance(first, list) and first:
            message = str(first[0])
        raise ValidationFailed(message, errors) from e
