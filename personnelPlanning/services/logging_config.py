"""
Logging configuration and lightweight metrics for the Personnel Planning app.
"""
import logging
import os
import json
import time
from datetime import datetime, timezone
from functools import wraps
from flask import request, g, has_request_context
from config import Config

logger = logging.getLogger(__name__)

SLOW_OPERATION_SECONDS = 1.0
SLOW_REQUEST_SECONDS = 2.0


class StructuredFormatter(logging.Formatter):
    """Custom formatter for structured JSON logging in production."""

    def format(self, record):
        log_entry = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        # Add request context if available
        if has_request_context():
            log_entry['request'] = {
                'method': request.method,
                'path': request.path,
                'remote_addr': request.remote_addr,
                'user_agent': str(request.user_agent)
            }

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False)


class MetricsCollector:
    """Collects request and engine timing metrics."""

    def __init__(self):
        self.request_metrics = {}
        self.engine_metrics = {}

    def record_request_metric(self, endpoint, method, duration, status_code):
        """Record request timing and status metrics."""
        key = f"{method}_{endpoint}"
        if key not in self.request_metrics:
            self.request_metrics[key] = {
                'count': 0,
                'total_duration': 0,
                'avg_duration': 0,
                'status_codes': {}
            }

        metrics = self.request_metrics[key]
        metrics['count'] += 1
        metrics['total_duration'] += duration
        metrics['avg_duration'] = metrics['total_duration'] / metrics['count']

        if status_code not in metrics['status_codes']:
            metrics['status_codes'][status_code] = 0
        metrics['status_codes'][status_code] += 1

    def record_engine_metric(self, operation, duration, success=True):
        """Record distribution engine run metrics."""
        if operation not in self.engine_metrics:
            self.engine_metrics[operation] = {
                'count': 0,
                'total_duration': 0,
                'avg_duration': 0,
                'success_count': 0,
                'error_count': 0
            }

        metrics = self.engine_metrics[operation]
        metrics['count'] += 1
        metrics['total_duration'] += duration
        metrics['avg_duration'] = metrics['total_duration'] / metrics['count']

        if success:
            metrics['success_count'] += 1
        else:
            metrics['error_count'] += 1

    def get_all_metrics(self):
        """Get all collected metrics."""
        return {
            'requests': self.request_metrics,
            'engine': self.engine_metrics,
            'collection_time': datetime.now(timezone.utc).isoformat()
        }


# Global metrics collector instance
metrics_collector = MetricsCollector()


def performance_monitor(operation_name):
    """Decorator to record timing of an engine operation."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.time()
            success = True
            try:
                return func(*args, **kwargs)
            except Exception:
                success = False
                raise
            finally:
                duration = time.time() - start_time
                metrics_collector.record_engine_metric(operation_name, duration, success)

                if duration > SLOW_OPERATION_SECONDS:
                    logger.warning(f"Slow operation detected: {operation_name} took {duration:.2f}s")
        return wrapper
    return decorator


class LoggingConfig:
    """Centralized logging configuration for the application."""

    @staticmethod
    def setup_logging(app=None):
        """Configure application logging with appropriate levels and formatting."""
        debug = app.config.get('FLASK_DEBUG', False) if app else Config.FLASK_DEBUG
        log_dir = app.config.get('LOG_DIR', Config.LOG_DIR) if app else Config.LOG_DIR
        os.makedirs(log_dir, exist_ok=True)

        log_level = logging.DEBUG if debug else logging.INFO

        if debug:
            # Human-readable format for development
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
        else:
            # Structured JSON format for production
            formatter = StructuredFormatter()

        root_logger = logging.getLogger()
        root_logger.setLevel(log_level)

        # Remove existing handlers to avoid duplicates
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)

        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

        file_handler = logging.FileHandler(os.path.join(log_dir, 'application.log'), encoding='utf-8')
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

        error_handler = logging.FileHandler(os.path.join(log_dir, 'errors.log'), encoding='utf-8')
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(formatter)
        root_logger.addHandler(error_handler)

        if app:
            LoggingConfig._setup_request_monitoring(app)

        return root_logger

    @staticmethod
    def _setup_request_monitoring(app):
        """Set up request timing and monitoring middleware."""

        @app.before_request
        def start_timer():
            g.start_time = time.time()

        @app.after_request
        def record_timing(response):
            if hasattr(g, 'start_time'):
                duration = time.time() - g.start_time

                metrics_collector.record_request_metric(
                    request.endpoint or 'unknown',
                    request.method,
                    duration,
                    response.status_code
                )

                if duration > SLOW_REQUEST_SECONDS:
                    app.logger.warning(
                        f"Slow request: {request.method} {request.path} took {duration:.2f}s"
                    )

                if app.config.get('FLASK_DEBUG'):
                    response.headers['X-Response-Time'] = f"{duration:.3f}s"

            return response

    @staticmethod
    def get_metrics():
        """Get current application metrics."""
        return metrics_collector.get_all_metrics()
