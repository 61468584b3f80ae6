from ..errors import ValidationError
from ..storage import generate_id
from ..utils import clean_text, utc_timestamp_iso

COMMENTS_COLLECTION = "comments"
COMMENTS_CACHE_PREFIX = "comments"
MAX_AUTHOR_LENGTH = 50
MAX_TEXT_LENGTH = 500


def build_comment(payload: dict | None):
    """
    Build a comment document from a request body.

    Args:
        payload (dict | None): JSON body with ``mediaTitle``, ``author`` and ``text``.

    Returns:
        dict: Comment ready to insert, with trimmed fields, an id and a timestamp.

    Raises:
        ValidationError: When a field is missing or too long.
    """
    payload = payload or {}
    media_title = clean_text(payload.get("mediaTitle"))
    author = clean_text(payload.get("author"))
    text = clean_text(payload.get("text"))

    if not media_title or not author or not text:
        raise ValidationError("Missing required fields")

    if len(author) > MAX_AUTHOR_LENGTH or len(text) > MAX_TEXT_LENGTH:
        raise ValidationError("Comment too long")

    return {
        "id": generate_id(),
        "mediaTitle": media_title,
        "author": author,
        "text": text,
        "timestamp": utc_timestamp_iso(),
    }
