import uuid

from src.core.exceptions import InvalidInputError


def validate_uuid(value) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise InvalidInputError(message="Invalid identifier", code="INVALID_ID")


def to_base36(number: int) -> str:
    alphabet = "0123456789abcdefghijklmnopqrstuvwxyz"
    if number == 0:
        return "0"
    out = []
    while number:
        number, rem = divmod(number, 36)
        out.append(alphabet[rem])
    return "".join(reversed(out))
