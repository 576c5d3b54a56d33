# app/__init__.py
import logging

from flask import Flask, jsonify
from flask_jwt_extended import JWTManager
from werkzeug.exceptions import HTTPException

from app.config import check_secrets, load_config
from app.errors import DonationError
from app.models.donation import DonationStore
from app.realtime import init_socketio
from app.routes import admin_bp, core, donations_bp, webhooks_bp
from app.services.intent_service import StripeGateway
from app.services.profile_directory import ProfileDirectory
from app.utils.cache import redis_client

logger = logging.getLogger(__name__)


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DonationError)
    def handle_donation_error(e: DonationError):
        if e.status >= 500:
            app.logger.error("%s: %s", e.code, e.message)
        return jsonify({"error": e.code}), e.status

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        if isinstance(e, HTTPException):
            return jsonify({"error": e.name.lower().replace(" ", "_")}), e.code
        app.logger.exception("unhandled error")
        return jsonify({"error": "internal_error"}), 500


def create_app(overrides: dict | None = None, *, store=None, gateway=None, directory=None, cache=None):
    """
    Build the app. Collaborators (ledger store, Stripe gateway, profile
    directory, Redis cache) are built from configuration unless passed in.
    """
    app = Flask(__name__)
    app.url_map.strict_slashes = False

    app.config.update(load_config())
    if overrides:
        app.config.update(overrides)
    check_secrets(app.config)

    if store is None:
        store = DonationStore(
            app.config["DATABASE_URL"],
            connect_timeout=app.config["DB_CONNECT_TIMEOUT"],
            statement_timeout_ms=app.config["DB_STATEMENT_TIMEOUT_MS"],
        )
    if gateway is None:
        gateway = StripeGateway(
            app.config["STRIPE_SECRET_KEY"],
            timeout=app.config["STRIPE_TIMEOUT_SECONDS"],
        )
    if directory is None and app.config.get("PROFILE_DIRECTORY_URL"):
        directory = ProfileDirectory(
            app.config["PROFILE_DIRECTORY_URL"],
            timeout=app.config["PROFILE_DIRECTORY_TIMEOUT"],
        )
    if cache is None:
        cache = redis_client(app.config.get("REDIS_URL"))

    app.extensions["donations"] = {
        "store": store,
        "gateway": gateway,
        "directory": directory,
        "cache": cache,
    }

    _register_error_handlers(app)

    app.register_blueprint(core)
    app.register_blueprint(donations_bp)
    app.register_blueprint(webhooks_bp)
    if app.config.get("JWT_SECRET_KEY"):
        JWTManager(app)
        app.register_blueprint(admin_bp)
    else:
        logger.warning("JWT_SECRET not set; /admin/metrics disabled")

    init_socketio(app)
    return app
