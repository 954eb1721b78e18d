from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from .config import Config
from .db_utils import ensure_database_schema
from .extensions import csrf, db, login_manager, migrate
from .services.errors import ReelScriptError
from .services.generation_client import EXTENSION_KEY, build_generation_client

BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")

_UNSET = object()


def create_app(config_class: type[Config] = Config, generation_client: Any = _UNSET) -> Flask:
    """Build the application.

    ``generation_client`` replaces the OpenAI client built from configuration;
    pass ``None`` to run without one (every generator then serves its
    fallback payload).
    """

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_class)

    configure_logging(app)
    register_extensions(app)
    register_generation_client(app, generation_client)
    register_error_handlers(app)
    register_blueprints(app)

    with app.app_context():
        ensure_database_schema()

    return app


def configure_logging(app: Flask) -> None:
    level = str(app.config.get("LOG_LEVEL") or "INFO").upper()
    app.logger.setLevel(level)


def register_extensions(app: Flask) -> None:
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    csrf.init_app(app)

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"error": "Unauthorized"}), 401


def register_generation_client(app: Flask, client: Optional[Any]) -> None:
    if client is _UNSET:
        client = build_generation_client(app.config)
    app.extensions[EXTENSION_KEY] = client


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ReelScriptError)
    def handle_service_error(exc: ReelScriptError):
        if exc.status_code >= 500:
            app.logger.error("Request failed: %s", exc.message)
        return jsonify(exc.to_dict()), exc.status_code


def register_blueprints(app: Flask) -> None:
    from .admin import bp as admin_bp
    from .auth import bp as auth_bp
    from .chat import bp as chat_bp
    from .main import bp as main_bp
    from .split import bp as split_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(main_bp)
    app.register_blueprint(split_bp)
    app.register_blueprint(chat_bp)
    app.register_blueprint(admin_bp)
