from ..errors import ValidationError
from ..storage import generate_id
from ..utils import clean_text, utc_timestamp_iso

GUESTBOOK_COLLECTION = "guestbook"
GUESTBOOK_CACHE_PREFIX = "guestbook"
MAX_NAME_LENGTH = 50
MAX_MESSAGE_LENGTH = 500


def build_message(payload: dict | None):
    """
    Build a guestbook message document from a request body.

    Args:
        payload (dict | None): JSON body with ``name`` and ``message``.

    Returns:
        dict: Message ready to insert.

    Raises:
        ValidationError: When a field is missing or too long.
    """
    payload = payload or {}
    name = clean_text(payload.get("name"))
    message = clean_text(payload.get("message"))

    if not name or not message:
        raise ValidationError("Missing required fields")
    if len(name) > MAX_NAME_LENGTH or len(message) > MAX_MESSAGE_LENGTH:
        raise ValidationError("Message too long")

    return {
        "id": generate_id(),
        "name": name,
        "message": message,
        "timestamp": utc_timestamp_iso(),
    }
