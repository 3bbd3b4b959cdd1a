"""
Health check routes for application monitoring.
"""
from flask import Blueprint, jsonify, current_app
from ..extensions import limiter
from ..services.health_check import HealthChecker
from ..services.logging_config import LoggingConfig

health_bp = Blueprint('health', __name__, url_prefix='/health')


@health_bp.route('/', methods=['GET'])
@limiter.limit("30 per minute")
def health_check():
    """
    Basic health check endpoint for load balancers and monitoring systems.
    Returns 200 OK if application is healthy, 503 if unhealthy.
    """
    try:
        result = HealthChecker().perform_full_health_check()
        status_code = 200 if result['status'] == 'healthy' else 503

        if result['status'] == 'unhealthy':
            current_app.logger.warning(f"Health check failed: {result}")

        return jsonify(result), status_code

    except Exception as e:
        current_app.logger.error(f"Health check endpoint error: {e}", exc_info=True)
        return jsonify({
            'status': 'unhealthy',
            'error': 'Health check system failure',
            'timestamp': None
        }), 503


@health_bp.route('/ready', methods=['GET'])
@limiter.limit("60 per minute")
def readiness_check():
    """
    Kubernetes-style readiness probe.
    Ready once prompt templates and configuration are in place.
    """
    checker = HealthChecker()
    templates_healthy, _ = checker.check_templates_health()
    config_healthy, _ = checker.check_configuration_health()

    if templates_healthy and config_healthy:
        return jsonify({'status': 'ready'}), 200
    return jsonify({'status': 'not_ready'}), 503


@health_bp.route('/live', methods=['GET'])
@limiter.limit("60 per minute")
def liveness_check():
    """Kubernetes-style liveness probe."""
    return jsonify({
        'status': 'alive',
        'service': 'personnel-planning-app'
    }), 200


@health_bp.route('/metrics', methods=['GET'])
@limiter.limit("10 per minute")
def metrics_endpoint():
    """
    Application metrics endpoint for monitoring systems.
    Combines health metrics with performance metrics.
    """
    try:
        checker = HealthChecker()
        return jsonify({
            'health_metrics': checker.get_application_metrics(),
            'performance_metrics': LoggingConfig.get_metrics(),
            'timestamp': checker.perform_full_health_check()['timestamp']
        }), 200

    except Exception as e:
        current_app.logger.error(f"Metrics endpoint error: {e}")
        return jsonify({'error': 'Metrics collection failed'}), 500
