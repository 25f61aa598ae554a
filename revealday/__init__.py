import logging

from dotenv import load_dotenv
from flask import Flask
from flasgger import Swagger

from .config import Config, validate_config
from .errors import register_error_handlers
from .extensions import ma, mail, store
from .middleware.request_id import init_request_id
from .services import init_services
from .swagger_config import swagger_template

load_dotenv()


def create_app(config_class=Config, redis_client=None) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))
    validate_config(app)

    Swagger(app, template=swagger_template(app))
    # Extensions
    ma.init_app(app)
    mail.init_app(app)
    store.init_app(app, client=redis_client)

    # Middleware + errors
    init_request_id(app)
    register_error_handlers(app)

    init_services(app, app.extensions["redis_store"], mail)

    # Blueprint imports
    from .api.reservations.routes import reservations_bp
    from .api.tokens.routes import tokens_bp
    from .api.votes.routes import votes_bp
    from .api.feedback.routes import feedback_bp

    # Blueprints
    app.register_blueprint(reservations_bp)
    app.register_blueprint(tokens_bp)
    app.register_blueprint(votes_bp)
    app.register_blueprint(feedback_bp)

    # Health checks
    @app.get("/health")
    def health():
        return {"status": "ok"}, 200

    @app.get("/health/ready")
    def readiness():
        if not store.ping():
            return {"status": "unavailable", "store": "down"}, 503
        return {"status": "ok", "store": "up"}, 200

    return app
