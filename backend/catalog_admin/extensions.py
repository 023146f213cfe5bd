# Overview: Flask extension instances for database and migrations.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

db = SQLAlchemy()
migrate = Migrate()


def get_session_provider():
    """Session provider built once by create_app()."""
    from flask import current_app
    return current_app.extensions["session_provider"]


def get_image_host():
    """Image host client built once by create_app()."""
    from flask import current_app
    return current_app.extensions["image_host"]
