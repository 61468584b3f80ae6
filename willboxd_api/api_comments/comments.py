import logging

from flask import Blueprint, jsonify, request

from ..cache import ListingCache, build_cache_key
from ..utils import read_json_object
from .comments_functions import COMMENTS_CACHE_PREFIX, COMMENTS_COLLECTION, build_comment

logger = logging.getLogger(__name__)


def build_comments_blueprint(store, cache: ListingCache):
    """
    Build the ``/api/comments`` routes.

    Args:
        store: Connected document store.
        cache (ListingCache): Listing cache, invalidated on every write.

    Returns:
        Blueprint: Routes ready to register on the app.
    """
    blueprint = Blueprint("comments", __name__, url_prefix="/api/comments")

    def cached_listing(cache_key: str, filter: dict | None):
        cached = cache.get(cache_key)
        if cached is not None:
            return cached
        comments = store.find_many(COMMENTS_COLLECTION, filter)
        cache.set(cache_key, comments)
        return comments

    @blueprint.route("", methods=["GET"])
    def list_comments():
        """
        Handle GET requests for every comment.

        Returns:
            Response: Comments in insertion order.
        """
        return jsonify(cached_listing(COMMENTS_CACHE_PREFIX, None))

    @blueprint.route("/<path:media_title>", methods=["GET"])
    def list_media_comments(media_title: str):
        """
        Handle GET requests for the comments of one media title.

        Args:
            media_title (str): URL-decoded title from the path.

        Returns:
            Response: Matching comments.
        """
        cache_key = build_cache_key(COMMENTS_CACHE_PREFIX, media_title)
        return jsonify(cached_listing(cache_key, {"mediaTitle": media_title}))

    @blueprint.route("", methods=["POST"])
    def add_comment():
        """
        Handle POST requests that add a comment.

        Returns:
            Response: The stored comment.
        """
        comment = build_comment(read_json_object(request))
        store.insert_one(COMMENTS_COLLECTION, comment)
        cache.invalidate(COMMENTS_CACHE_PREFIX)
        logger.info(f"Added comment {comment['id']} on {comment['mediaTitle']!r}")
        return jsonify(comment)

    @blueprint.route("/<comment_id>", methods=["DELETE"])
    def delete_comment(comment_id: str):
        """
        Handle DELETE requests for a comment.

        Args:
            comment_id (str): Identifier of the comment to remove.

        Returns:
            Response: ``{"success": true}`` whether or not the comment existed.
        """
        deleted = store.delete_one(COMMENTS_COLLECTION, {"id": comment_id})
        cache.invalidate(COMMENTS_CACHE_PREFIX)
        if deleted:
            logger.info(f"Deleted comment {comment_id}")
        return jsonify({"success": True})

    return blueprint
