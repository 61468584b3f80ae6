from datetime import datetime, timezone
from typing import Any


def utc_timestamp_iso():
    """
    Return the current UTC timestamp in ISO 8601 format.

    Returns:
        str: Timestamp string with millisecond precision, suffixed with ``Z``.
    """
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return now.isoformat(timespec="milliseconds") + "Z"


def clean_text(value: Any):
    """
    Normalize a free-text field from a JSON body.

    Args:
        value (Any): Raw payload value.

    Returns:
        str: Stripped string, or an empty string for non-string values.
    """
    if not isinstance(value, str):
        return ""
    return value.strip()


def read_json_object(flask_request):
    """
    Read a request body expected to be a JSON object.

    Args:
        flask_request (Request): Incoming request.

    Returns:
        dict: Parsed body, or an empty dict for missing, malformed or non-object bodies.
    """
    payload = flask_request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}
