import logging

from flask import Blueprint, jsonify, request

from ..cache import ListingCache
from ..storage import DESCENDING
from ..utils import read_json_object
from .guestbook_functions import GUESTBOOK_CACHE_PREFIX, GUESTBOOK_COLLECTION, build_message

logger = logging.getLogger(__name__)


def build_guestbook_blueprint(store, cache: ListingCache):
    """
    Build the ``/api/guestbook`` routes.

    Args:
        store: Connected document store.
        cache (ListingCache): Listing cache, invalidated on every write.

    Returns:
        Blueprint: Routes ready to register on the app.
    """
    blueprint = Blueprint("guestbook", __name__, url_prefix="/api/guestbook")

    @blueprint.route("", methods=["GET"])
    def list_messages():
        """
        Handle GET requests for the guestbook.

        Returns:
            Response: Messages, newest first.
        """
        cached = cache.get(GUESTBOOK_CACHE_PREFIX)
        if cached is not None:
            return jsonify(cached)

        messages = store.find_many(GUESTBOOK_COLLECTION, sort=[("timestamp", DESCENDING)])
        cache.set(GUESTBOOK_CACHE_PREFIX, messages)
        return jsonify(messages)

    @blueprint.route("", methods=["POST"])
    def sign_guestbook():
        """
        Handle POST requests that add a guestbook message.

        Returns:
            Response: The stored message.
        """
        message = build_message(read_json_object(request))
        store.insert_one(GUESTBOOK_COLLECTION, message)
        cache.invalidate(GUESTBOOK_CACHE_PREFIX)
        logger.info(f"Guestbook signed by {message['name']!r}")
        return jsonify(message)

    @blueprint.route("/<message_id>", methods=["DELETE"])
    def delete_message(message_id: str):
        """
        Handle DELETE requests for a guestbook message.

        Args:
            message_id (str): Identifier of the message to remove.

        Returns:
            Response: ``{"success": true}`` whether or not the message existed.
        """
        store.delete_one(GUESTBOOK_COLLECTION, {"id": message_id})
        cache.invalidate(GUESTBOOK_CACHE_PREFIX)
        return jsonify({"success": True})

    return blueprint
