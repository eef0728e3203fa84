import click
from flask import Flask, g, request
from flasgger import Swagger
from flask_cors import CORS
import logging
import time
from datetime import timedelta

from .config import get_config, check_production_secret
from .errors import register_error_handlers
from models import storage
from models.refresh_token_store import RefreshTokenStore
from models.user_store import UserStore
from services.auth_service import AuthService
from services.user_service import UserService
from utils.security import PasswordHasher
from utils.tokens import TokenConfig, TokenManager

logger = logging.getLogger(__name__)

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0.0",
    "info": {
        "title": "User Auth API",
        "version": "1.0.0",
        "description": "Signup, login and rotating access/refresh bearer tokens guarding a users resource.",
    },
    "basePath": "/",  # Blueprints are mounted under /api/v1
    "schemes": ["http"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Enter the access token with the `Bearer ` prefix, e.g. \"Bearer abcde12345\"."
        }
    }
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: True,   # include all endpoints
            "model_filter": lambda tag: True,   # include all models
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}


def token_config_from(config) -> TokenConfig:
    return TokenConfig(
        secret=config["JWT_SECRET"],
        issuer=config["JWT_ISSUER"],
        access_expires=config["ACCESS_TOKEN_EXPIRES"],
        refresh_expires=config["REFRESH_TOKEN_EXPIRES"],
        algorithm=config["JWT_ALGORITHM"],
        leeway=timedelta(seconds=config.get("JWT_LEEWAY_SECONDS", 0)),
    )


def configure_logging(level_name: str):
    level = getattr(logging, str(level_name).upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    logging.getLogger().setLevel(level)


def create_app(config_name: str | None = None, overrides: dict | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
      - Loads config by name or APP_ENV, then applies overrides (tests)
      - Binds the storage singleton to DATABASE_URL and creates tables
      - Builds the hasher, token manager, stores and services once per app
    """
    app = Flask(__name__)

    # Load configuration (reads .env via get_config)
    app.config.from_object(get_config(config_name))
    if overrides:
        app.config.update(overrides)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))
    if not app.debug and not app.testing:
        check_production_secret(app.config)

    # Cross-Origin Resource Sharing: enable for dev, configurable for prod
    CORS(app, resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})

    # Swagger UI and JSON
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    # Register global error handlers that return the uniform error envelope
    register_error_handlers(app)

    storage.configure(app.config["DATABASE_URL"], echo=app.config.get("SQL_ECHO", False))
    storage.reload()

    hasher = PasswordHasher(
        time_cost=app.config["PASSWORD_HASH_TIME_COST"],
        memory_cost=app.config["PASSWORD_HASH_MEMORY_COST"],
    )
    tokens = TokenManager(token_config_from(app.config))
    users = UserStore(storage)
    refresh_tokens = RefreshTokenStore(storage)
    app.extensions["auth_service"] = AuthService(users, refresh_tokens, hasher, tokens)
    app.extensions["user_service"] = UserService(users, refresh_tokens, hasher)

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .users import bp as users_bp

    app.register_blueprint(health_bp, url_prefix="/api/v1")
    # register_blueprint(url_prefix=...) replaces a Blueprint's own prefix, so spell it out
    app.register_blueprint(auth_bp, url_prefix="/api/v1/auth")
    app.register_blueprint(users_bp, url_prefix="/api/v1")

    @app.before_request
    def start_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def log_request(response):
        started = g.get("request_started")
        latency_ms = (time.perf_counter() - started) * 1000 if started else 0.0
        logger.info(
            "| %3d | %8.2fms | %15s | %s | %s",
            response.status_code, latency_ms, request.remote_addr, request.method, request.path,
        )
        return response

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        # This calls scoped_session.remove(), preventing connection leaks
        storage.close()

    @app.cli.command("purge-tokens")
    def purge_tokens():
        """Delete refresh tokens whose expiry has passed."""
        removed = app.extensions["auth_service"].purge_expired()
        click.echo(f"Removed {removed} expired refresh token(s)")

    @app.route("/")
    def root():
        return {
            "message": "Welcome to User Auth API",
            "docs": "/apidocs/",
            "health": "/api/v1/health",
        }, 200

    return app
