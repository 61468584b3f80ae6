from flask import Blueprint, jsonify, request

from ..errors import ValidationError
from ..utils import read_json_object
from .ratings_functions import IdentityResolver, RatingAggregator, RequestContext, parse_rating_value


def request_context_from(flask_request):
    """
    Extract the identity-relevant metadata of a Flask request.

    Args:
        flask_request (Request): Incoming request.

    Returns:
        RequestContext: Remote address and forwarded-for header.
    """
    return RequestContext(
        remote_addr=flask_request.remote_addr,
        forwarded_for=flask_request.headers.get("X-Forwarded-For"),
    )


def build_ratings_blueprint(aggregator: RatingAggregator, resolver: IdentityResolver):
    """
    Build the ``/api/ratings`` routes around an aggregator.

    Args:
        aggregator (RatingAggregator): Rating storage and aggregation.
        resolver (IdentityResolver): Voter identity derivation.

    Returns:
        Blueprint: Routes ready to register on the app.
    """
    blueprint = Blueprint("ratings", __name__, url_prefix="/api/ratings")

    @blueprint.route("/<path:item_id>", methods=["GET"])
    def get_item_ratings(item_id: str):
        """
        Handle GET requests for the rating summary of an item.

        Args:
            item_id (str): Item identifier from the path, already URL-decoded.

        Returns:
            Response: ``{total, sum, average}``.
        """
        stats = aggregator.query(item_id.strip())
        return jsonify(stats.to_dict())

    @blueprint.route("", methods=["POST"])
    def submit_rating():
        """
        Handle POST requests that record the caller's rating of an item.

        Returns:
            Response: ``{total, sum, average}`` after the write.
        """
        payload = read_json_object(request)
        raw_item_id = payload.get("item_id")
        item_id = raw_item_id.strip() if isinstance(raw_item_id, str) else ""

        if not item_id or "rating" not in payload:
            raise ValidationError("item_id and rating are required")

        value = parse_rating_value(payload.get("rating"))
        voter_key = resolver.resolve(request_context_from(request))
        stats = aggregator.submit(item_id, voter_key, value)
        return jsonify(stats.to_dict())

    return blueprint
