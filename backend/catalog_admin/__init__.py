from flask import Flask, request, session

from .config import Config
from .extensions import db, migrate
from .services.image_host import CloudflareImagesClient
from .services.session_service import SessionProvider


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Long-lived collaborators, built once per app
    app.extensions["session_provider"] = SessionProvider(lambda: session)
    app.extensions["image_host"] = CloudflareImagesClient.from_config(app.config)

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.products import products_bp
    from .routes.uploads import uploads_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(uploads_bp)

    @app.after_request
    def allow_console_origin(response):
        # The console UI runs on its own dev server and sends the session cookie
        origin = request.headers.get("Origin")
        if origin and origin in app.config["CORS_ORIGINS"]:
            response.headers.update({
                "Access-Control-Allow-Origin": origin,
                "Access-Control-Allow-Credentials": "true",
                "Access-Control-Allow-Headers": "Content-Type",
                "Access-Control-Allow-Methods": "GET,POST,PUT,DELETE,OPTIONS",
                "Vary": "Origin",
            })
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
