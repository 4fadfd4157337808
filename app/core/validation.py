import uuid


def validate_uuid(value, field_name: str = "id") -> str:
    """Return the canonical form of a UUID string, or raise ValueError."""
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Invalid {field_name}: value is required")
    try:
        parsed = uuid.UUID(value.strip())
    except ValueError:
        raise ValueError(f"Invalid {field_name}: '{value}' is not a valid UUID")
    return str(parsed)
