import logging
from flask import Flask, jsonify
from .extensions import db, migrate, login_manager
from .services.errors import OperationFailed, PlanningError

def register_error_handlers(app):
    @app.errorhandler(PlanningError)
    def planning_error(exc):
        if isinstance(exc, OperationFailed):
            app.logger.error("operation failed: %s", exc, exc_info=exc.__cause__ or exc)
            return jsonify({"error": "The operation could not be completed right now"}), 500
        return jsonify({"error": str(exc)}), exc.status_code

    @app.errorhandler(404)
    def not_found(exc):
        return jsonify({"error": "Resource not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(exc):
        return jsonify({"error": "Method not allowed"}), 405

def create_app(config_object="config.Config"):
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(),
                                logging.INFO))

    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    from . import models
    from .models import Teacher

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(Teacher, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"error": "Authentication required"}), 401

    from .blueprints.auth import bp as auth_bp
    from .blueprints.planning import bp as planning_bp
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(planning_bp, url_prefix="/api")
    register_error_handlers(app)

    return app
