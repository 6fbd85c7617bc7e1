# Document identifiers: 24-character hex ObjectIds stored as plain strings.
# Tables carry no foreign keys, so every cross-table reference is one of these strings.
from bson import ObjectId
from fastapi import HTTPException, status


def new_object_id() -> str:
    return str(ObjectId())


def is_object_id(value: object) -> bool:
    return isinstance(value, str) and len(value) == 24 and ObjectId.is_valid(value)


def require_object_id(value: str, what: str = "id") -> str:
    """Return the id normalized to lowercase, or raise 400 when it is not a valid ObjectId."""
    if not is_object_id(value):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid {what}: {value!r}")
    return value.lower()
