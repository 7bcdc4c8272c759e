import logging
from dataclasses import dataclass

from flask import Flask
from flasgger import Swagger
from flask_cors import CORS

from .config import DEV_JWT_SECRET, AuthSettings, get_config
from .errors import register_error_handlers
from models import storage
from models.refresh_token_store import RefreshTokenStore
from utils.authorization import AuthorizationGate
from utils.security import AccessTokenCodec, PasswordHasher

logger = logging.getLogger(__name__)

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "Foley Bookkeeper API",
        "version": "1.0.0",
        "description": "REST API for tracking clients, projects, episodes and recorded work sessions.",
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
            "rule_filter": lambda rule: True,
            "model_filter": lambda tag: True,
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}


@dataclass(frozen=True)
class AuthComponents:
    """The authentication core, wired once per app from AuthSettings."""

    settings: AuthSettings
    hasher: PasswordHasher
    codec: AccessTokenCodec
    refresh_store: RefreshTokenStore
    gate: AuthorizationGate


def build_auth_components(settings: AuthSettings, store_backend) -> AuthComponents:
    codec = AccessTokenCodec(
        secret=settings.secret,
        ttl=settings.access_token_ttl,
        issuer=settings.issuer,
    )
    return AuthComponents(
        settings=settings,
        hasher=PasswordHasher(
            time_cost=settings.argon2_time_cost,
            memory_cost=settings.argon2_memory_cost,
            parallelism=settings.argon2_parallelism,
        ),
        codec=codec,
        refresh_store=RefreshTokenStore(store_backend, ttl=settings.refresh_token_ttl),
        gate=AuthorizationGate(codec),
    )


def configure_logging(app: Flask) -> None:
    level = app.config.get("LOG_LEVEL", "INFO")
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app.logger.setLevel(level)


def create_app(config_name: str | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    Binds the DBStorage singleton to DATABASE_URL and builds the auth core
    (app.extensions["auth"]) from an immutable AuthSettings value.
    """
    app = Flask(__name__)
    app.config.from_object(get_config(config_name))
    configure_logging(app)

    settings = AuthSettings.from_mapping(app.config)
    if not (app.debug or app.testing) and settings.secret == DEV_JWT_SECRET:
        raise RuntimeError("JWT_SECRET must be set to a secure value outside development")
    if not app.config.get("DATABASE_URL"):
        raise RuntimeError("DATABASE_URL must be set")

    storage.init_app(
        app.config["DATABASE_URL"],
        echo=app.config.get("SQL_ECHO", False),
        statement_timeout_ms=app.config.get("DB_STATEMENT_TIMEOUT_MS"),
    )
    app.extensions["auth"] = build_auth_components(settings, storage)

    # Cross-Origin Resource Sharing: enable for dev, configurable for prod
    CORS(app, resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})

    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    # Global error handlers returning the uniform error envelope
    register_error_handlers(app)

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .users import bp as users_bp
    from .clients import bp as clients_bp
    from .projects import bp as projects_bp
    from .episodes import bp as episodes_bp
    from .sessions import bp as sessions_bp

    app.register_blueprint(health_bp, url_prefix="/api/v1")
    app.register_blueprint(auth_bp, url_prefix="/api/v1/auth")
    app.register_blueprint(users_bp, url_prefix="/api/v1")
    app.register_blueprint(clients_bp, url_prefix="/api/v1")
    app.register_blueprint(projects_bp, url_prefix="/api/v1")
    app.register_blueprint(episodes_bp, url_prefix="/api/v1")
    app.register_blueprint(sessions_bp, url_prefix="/api/v1")

    # Remove the scoped session at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        storage.close()

    @app.route("/")
    def root():
        return {
            "message": "Welcome to Foley Bookkeeper API",
            "docs": "/apidocs/",
            "health": "/api/v1/health",
        }, 200

    logger.info("Foley Bookkeeper API configured (env=%s)", app.config.get("APP_ENV"))
    return app
