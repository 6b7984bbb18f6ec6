import logging

from flask import Flask
from flask_sqlalchemy import SQLAlchemy


db = SQLAlchemy()


def _configure_logging(app):
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="[jangji] %(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app.logger.setLevel(level)


def create_app(config_object=None):
    app = Flask(__name__)

    from jangji.config import DevelopmentConfig

    app.config.from_object(config_object or DevelopmentConfig)
    _configure_logging(app)

    db.init_app(app)

    from jangji.blueprints.auth import auth_bp
    from jangji.blueprints.health import health_bp
    from jangji.blueprints.sync import sync_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(health_bp)
    app.register_blueprint(sync_bp)

    @app.shell_context_processor
    def _ctx():
        from jangji.models.user import User
        from jangji.models.user_progress import UserProgress

        return {"db": db, "User": User, "UserProgress": UserProgress}

    return app
