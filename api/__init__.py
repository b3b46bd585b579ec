from flask import Flask
from flasgger import Swagger
from flask_cors import CORS
import click
import logging

from .config import get_config, DEFAULT_JWT_SECRET
from .errors import register_error_handlers
from models import storage
from utils.refresh_tokens import RefreshTokenStore
from utils.security import AccessTokenCodec, CredentialHasher
from utils.session_manager import SessionManager

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "Issue Tracker API",
        "version": "1.0.0",
        "description": "REST API for projects, issues and comments behind token authentication.",
    },
    "basePath": "/",
    "schemes": ["http"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Enter the token with the `Bearer ` prefix, e.g. \"Bearer abcde12345\"."
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


def build_session_manager(config) -> SessionManager:
    """Wire the auth core from config values; nothing here is module-global."""
    hasher = CredentialHasher(
        time_cost=config["ARGON2_TIME_COST"],
        memory_cost=config["ARGON2_MEMORY_COST"],
        parallelism=config["ARGON2_PARALLELISM"],
        workers=config["HASH_WORKERS"],
    )
    codec = AccessTokenCodec(
        secret=config["JWT_SECRET"],
        algorithm=config["JWT_ALGORITHM"],
        ttl=config["ACCESS_TOKEN_EXPIRES"],
        issuer=config["JWT_ISSUER"],
    )
    refresh_store = RefreshTokenStore(ttl=config["REFRESH_TOKEN_EXPIRES"])
    return SessionManager(hasher, codec, refresh_store, storage)


def create_app(config_name: str | None = None, overrides: dict | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    `overrides` is applied on top of the selected config class (tests use
    it to point at a throwaway database).
    """
    app = Flask(__name__)
    app.config.from_object(get_config(config_name))
    if overrides:
        app.config.update(overrides)

    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    if not app.debug and not app.testing and app.config["JWT_SECRET"] == DEFAULT_JWT_SECRET:
        raise RuntimeError("JWT_SECRET must be set outside development")

    storage.reload(app.config["DATABASE_URL"], echo=app.config["SQL_ECHO"])
    app.extensions["session_manager"] = build_session_manager(app.config)

    CORS(app, resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    # Register global error handlers that return the uniform error envelope
    register_error_handlers(app)

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .projects import bp as projects_bp
    from .issues import bp as issues_bp
    from .comments import bp as comments_bp
    from .search import bp as search_bp

    app.register_blueprint(health_bp, url_prefix="/api/v1")
    app.register_blueprint(auth_bp, url_prefix="/api/v1/auth")
    app.register_blueprint(projects_bp, url_prefix="/api/v1")
    app.register_blueprint(issues_bp, url_prefix="/api/v1")
    app.register_blueprint(comments_bp, url_prefix="/api/v1")
    app.register_blueprint(search_bp, url_prefix="/api/v1")

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        storage.close()

    @app.cli.command("purge-tokens")
    def purge_tokens():
        """Delete expired refresh tokens."""
        removed = app.extensions["session_manager"].purge_expired()
        click.echo(f"Removed {removed} expired refresh tokens")

    @app.route("/")
    def root():
        return {
            "message": "Welcome to Issue Tracker API",
            "docs": "/apidocs/",
            "health": "/api/v1/health",
        }, 200

    return app
