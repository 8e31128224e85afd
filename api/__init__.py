import logging
from datetime import datetime
from typing import Callable

from flask import Flask
from flasgger import Swagger
from flask_cors import CORS

from .config import get_config, validate_config
from .errors import register_error_handlers
from models import AccountStore, DBStorage, RefreshTokenLedger, utc_now
from services import AuthService
from utils.security import PasswordHasher, TokenCodec

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "Store2Door Auth API",
        "version": "1.0.0",
        "description": "Registration, login, token rotation and role-based access for the store2door backend.",
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


def configure_logging(app: Flask) -> None:
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    app.logger.setLevel(level)


def build_auth_service(config, storage: DBStorage, clock: Callable[[], datetime] = utc_now) -> AuthService:
    """Wire the auth core from configuration; one instance per app."""
    return AuthService(
        storage=storage,
        accounts=AccountStore(storage),
        ledger=RefreshTokenLedger(storage, retention=config.get("REFRESH_TOKEN_RETENTION", 5)),
        codec=TokenCodec.from_config(config, clock=clock),
        hasher=PasswordHasher.from_config(config),
        clock=clock,
    )


def create_app(config_name: str | None = None, *, clock: Callable[[], datetime] | None = None,
               overrides: dict | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    The storage and AuthService are built here and handed to request
    handlers through app.extensions, never through module globals.
    """
    app = Flask(__name__)

    # Load configuration (reads .env via get_config)
    app.config.from_object(get_config(config_name))
    if overrides:
        app.config.update(overrides)
    validate_config(app.config)
    configure_logging(app)

    # Cross-Origin Resource Sharing: enable for dev, configurable for prod
    CORS(app, resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})

    # Swagger UI and JSON
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    # Register global error handlers that return the uniform error envelope
    register_error_handlers(app)

    storage = DBStorage(app.config["DATABASE_URL"], echo=app.config.get("SQL_ECHO", False))
    storage.reload()
    app.extensions["storage"] = storage
    app.extensions["auth_service"] = build_auth_service(app.config, storage, clock or utc_now)

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .accounts import bp as accounts_bp

    app.register_blueprint(health_bp, url_prefix="/api")
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(accounts_bp, url_prefix="/api/accounts")

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        # Calls scoped_session.remove(), preventing connection leaks
        storage.close()

    @app.route("/")
    def root():
        return {
            "message": "Welcome to Store2Door Auth API",
            "docs": "/apidocs/",
            "health": "/api/health",
        }, 200

    app.logger.info("Store2Door auth API ready (env=%s)", app.config.get("APP_ENV"))
    return app
