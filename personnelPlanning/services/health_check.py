"""
Health check service for monitoring application status.
"""
import os
from datetime import datetime, timezone
from flask import current_app

from .advisory import DISTRIBUTION_PROMPT_TEMPLATE, SYSTEM_PROMPT_TEMPLATE
from .logging_config import metrics_collector


class HealthChecker:
    """Centralized health checking for application components."""

    def __init__(self, app=None):
        self.app = app

    @property
    def config(self):
        return self.app.config if self.app is not None else current_app.config

    def check_templates_health(self):
        """Check the advisory prompt templates are present."""
        templates_folder = self.config['TEMPLATES_FOLDER']
        missing = [
            name for name in (SYSTEM_PROMPT_TEMPLATE, DISTRIBUTION_PROMPT_TEMPLATE)
            if not os.path.isfile(os.path.join(templates_folder, name))
        ]
        if missing:
            return False, f"Missing prompt templates: {', '.join(missing)}"
        return True, "Prompt templates available"

    def check_filesystem_health(self):
        """Check the log directory is writable."""
        log_dir = self.config['LOG_DIR']
        if not os.path.exists(log_dir):
            return False, f"Missing directory: {log_dir}"
        if not os.access(log_dir, os.R_OK | os.W_OK):
            return False, f"Permission denied: {log_dir}"
        return True, "All filesystem paths accessible"

    def check_configuration_health(self):
        """Validate critical configuration settings."""
        missing = [key for key in ('SECRET_KEY', 'TEMPLATES_FOLDER', 'LOG_DIR') if not self.config.get(key)]
        if missing:
            return False, f"Missing configuration: {', '.join(missing)}"

        if self.config.get('FLASK_DEBUG'):
            return True, "Configuration valid (FLASK_DEBUG ACTIVE)"

        return True, "Configuration healthy"

    def check_advisory_health(self):
        """Report whether the advisory model is configured; simulation mode is still healthy."""
        if self.config.get('GEMINI_API_KEY'):
            return True, f"Advisory model configured ({self.config.get('GEMINI_MODEL')})"
        return True, "Advisory model not configured, simulation mode"

    def get_application_metrics(self):
        """Summarize engine run counts for monitoring."""
        engine = metrics_collector.engine_metrics
        return {
            'engine_runs': sum(m['count'] for m in engine.values()),
            'engine_errors': sum(m['error_count'] for m in engine.values()),
            'advisory_mode': 'live' if self.config.get('GEMINI_API_KEY') else 'simulation',
        }

    def perform_full_health_check(self):
        """Perform comprehensive health check of all components."""
        checks = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'status': 'healthy',
            'checks': {}
        }

        results = {
            'templates': self.check_templates_health(),
            'filesystem': self.check_filesystem_health(),
            'configuration': self.check_configuration_health(),
            'advisory': self.check_advisory_health(),
        }
        for name, (healthy, message) in results.items():
            checks['checks'][name] = {
                'status': 'healthy' if healthy else 'unhealthy',
                'message': message
            }

        checks['metrics'] = self.get_application_metrics()

        if not all(healthy for healthy, _ in results.values()):
            checks['status'] = 'unhealthy'

        return checks
