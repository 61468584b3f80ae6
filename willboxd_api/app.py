import logging
import os

from flask import Flask, jsonify, request, send_from_directory
from flask_cors import CORS

from . import config
from .api_comments import build_comments_blueprint
from .api_guestbook import build_guestbook_blueprint
from .api_ratings import IdentityResolver, RatingAggregator, build_ratings_blueprint
from .cache import ListingCache, build_redis_client
from .errors import StorageError, ValidationError
from .storage import build_store

logger = logging.getLogger(__name__)


def register_error_handlers(app: Flask):
    """
    Map API exceptions onto JSON error responses.

    Args:
        app (Flask): Application to configure.
    """

    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError):
        return jsonify({"error": str(error)}), 400

    @app.errorhandler(StorageError)
    def handle_storage_error(error: StorageError):
        logger.error(f"Storage failure during {request.method} {request.path}: {error}", exc_info=error)
        return jsonify({"error": "Storage operation failed"}), 500

    @app.errorhandler(404)
    def handle_not_found(error):
        if request.path.startswith("/api/"):
            return jsonify({"error": "Not found"}), 404
        return error


def register_static_files(app: Flask, static_dir: str):
    """
    Serve a directory of static files at the site root.

    Args:
        app (Flask): Application to configure.
        static_dir (str): Directory holding ``index.html`` and assets.
    """
    root = os.path.abspath(static_dir)

    @app.route("/", methods=["GET"])
    def index():
        return send_from_directory(root, "index.html")

    @app.route("/<path:filename>", methods=["GET"])
    def static_file(filename: str):
        return send_from_directory(root, filename)


def create_app(test_config: dict | None = None, store=None, redis_client=None):
    """
    Create the Flask application.

    The document store is connected (and pinged) before any blueprint is
    registered, so handlers never run against an unready store.

    Args:
        test_config (dict | None): Settings overriding ``config`` defaults.
        store: Pre-built document store; built from the settings when None.
        redis_client (Redis | None): Pre-built Redis client for the listing cache.

    Returns:
        Flask: Configured application.

    Raises:
        ValueError: On unknown enumerated settings.
        StorageError: When the configured store is unreachable.
    """
    app = Flask(__name__, static_folder=None)
    app.json.sort_keys = False
    app.config.from_mapping(config.default_settings())
    if test_config:
        app.config.update(test_config)
    config.validate_settings(app.config)

    CORS(app, resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}})

    if store is None:
        store = build_store(app.config)
    if redis_client is None:
        redis_client = build_redis_client(app.config)
    cache = ListingCache(redis_client, int(app.config["CACHE_TTL_SECONDS"]))

    aggregator = RatingAggregator(store)
    resolver = IdentityResolver(
        mode=app.config["VOTER_IDENTITY"],
        trust_proxy_headers=app.config["TRUST_PROXY_HEADERS"],
    )

    app.extensions["willboxd"] = {"store": store, "cache": cache, "aggregator": aggregator}

    app.register_blueprint(build_ratings_blueprint(aggregator, resolver))
    app.register_blueprint(build_comments_blueprint(store, cache))
    app.register_blueprint(build_guestbook_blueprint(store, cache))
    register_error_handlers(app)

    @app.route("/health", methods=["GET"])
    def health():
        """
        Handle GET requests probing storage readiness.

        Returns:
            Response: 200 when the store answers a ping, otherwise 503.
        """
        try:
            store.ping()
        except StorageError as exc:
            logger.warning(f"Health check failed: {exc}")
            return jsonify({"status": "unavailable"}), 503
        return jsonify({"status": "ok", "storage": store.backend_name})

    if app.config["STATIC_DIR"]:
        register_static_files(app, app.config["STATIC_DIR"])

    return app


def main():
    config.configure_logging(config.LOG_LEVEL, config.LOG_FORMAT)
    app = create_app()
    store = app.extensions["willboxd"]["store"]

    logger.info(f"Willboxd API running at http://{config.HOST}:{config.PORT}")
    if store.backend_name == "json":
        logger.info(f"Data saved to {store.path}")
    else:
        logger.info(f"Data saved to MongoDB database {config.MONGO_DB}")

    app.run(host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    main()
