from flask import Flask, jsonify, request

from config import Config

from .services.security import SecurityMiddleware
from .services.logging_config import LoggingConfig
from .extensions import advisory_manager, csrf, limiter

# Import Blueprints
from .routes.api import api_bp
from .routes.health import health_bp


def create_app(config_object=Config):
    app = Flask(__name__, template_folder='templates')
    app.config.from_object(config_object)

    # Validate configuration before proceeding
    try:
        config_object.validate_config()
    except ValueError as e:
        print(f"Configuration Error: {e}")
        raise

    # Setup logging first
    LoggingConfig.setup_logging(app)

    # Initialize extensions
    csrf.init_app(app)
    limiter.init_app(app)
    advisory_manager.init_app(app)

    # Register Blueprints
    app.register_blueprint(api_bp)
    app.register_blueprint(health_bp)

    # The JSON API is consumed by the single-page client, not by HTML forms.
    csrf.exempt(api_bp)

    # Security middleware
    @app.after_request
    def after_request(response):
        return SecurityMiddleware.add_security_headers(response)

    @app.errorhandler(404)
    def not_found(error):
        app.logger.warning(f"404 Not Found: The requested URL '{request.path}' was not found on the server.")
        return jsonify({"message": "Not found", "details": request.path}), 404

    @app.errorhandler(400)
    def handle_400_error(error):
        response = jsonify({
            "message": "Bad request",
            "details": str(error)
        })
        response.status_code = 400
        return response

    @app.errorhandler(500)
    def handle_500_error(error):
        app.logger.error(f"500 error: {error}", exc_info=True)
        response = jsonify({
            "message": "Internal server error",
            "details": str(error)
        })
        response.status_code = 500
        return response

    app.logger.info("Application initialized successfully")
    return app
