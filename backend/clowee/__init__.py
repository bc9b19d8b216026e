# backend/clowee/__init__.py
from flask import Flask, request

from .config import Config
from .extensions import db, migrate
from .monitoring import PerformanceMonitor


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    app.extensions["performance_monitor"] = PerformanceMonitor(
        app.logger, slow_threshold_ms=app.config["SLOW_OPERATION_MS"]
    )

    # Register blueprints
    from .routes.system import system_bp
    from .routes.machines import machines_bp
    from .routes.counters import counters_bp
    from .routes.settlements import settlements_bp
    from .routes.invoices import invoices_bp
    from .routes.reports import reports_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(machines_bp)
    app.register_blueprint(counters_bp)
    app.register_blueprint(settlements_bp)
    app.register_blueprint(invoices_bp)
    app.register_blueprint(reports_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = {
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        }
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "X-User-Id, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
