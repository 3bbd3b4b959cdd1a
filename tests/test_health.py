"""
Unit tests for health check endpoints and monitoring functionality.
"""
import json
from unittest.mock import patch


class TestHealthEndpoints:
    """Test health check and monitoring endpoints."""

    def test_health_check_healthy(self, client):
        response = client.get('/health/')
        assert response.status_code == 200

        data = json.loads(response.data)
        assert data['status'] == 'healthy'
        assert 'timestamp' in data
        assert set(data['checks']) == {'templates', 'filesystem', 'configuration', 'advisory'}
        assert data['checks']['advisory']['message'] == 'Advisory model not configured, simulation mode'
        assert data['metrics']['advisory_mode'] == 'simulation'

    def test_liveness_check(self, client):
        response = client.get('/health/live')
        assert response.status_code == 200

        data = json.loads(response.data)
        assert data['status'] == 'alive'
        assert data['service'] == 'personnel-planning-app'

    def test_readiness_check_ready(self, client):
        response = client.get('/health/ready')
        assert response.status_code == 200
        assert json.loads(response.data)['status'] == 'ready'

    def test_metrics_endpoint(self, client, sample_payload):
        client.post('/api/distribute', json=sample_payload)

        response = client.get('/health/metrics')
        assert response.status_code == 200

        data = json.loads(response.data)
        assert data['health_metrics']['engine_runs'] >= 1
        assert 'engine_run_distribution' in data['performance_metrics']['engine']
        assert 'timestamp' in data


class TestHealthChecker:
    """Test health checker functionality."""

    def test_missing_templates_are_unhealthy(self, app, tmp_path):
        from personnelPlanning.services.health_check import HealthChecker

        app.config['TEMPLATES_FOLDER'] = str(tmp_path)
        with app.app_context():
            healthy, message = HealthChecker().check_templates_health()

        assert healthy is False
        assert 'Missing prompt templates' in message

    def test_unhealthy_component_sets_overall_status(self, app):
        from personnelPlanning.services.health_check import HealthChecker

        checker = HealthChecker(app)
        with patch.object(checker, 'check_filesystem_health', return_value=(False, 'Permission denied: /x')):
            result = checker.perform_full_health_check()

        assert result['status'] == 'unhealthy'
        assert result['checks']['filesystem']['message'] == 'Permission denied: /x'

    def test_health_endpoint_returns_503_when_unhealthy(self, client, app):
        app.config['LOG_DIR'] = '/nonexistent/personnel-planning-logs'

        response = client.get('/health/')

        assert response.status_code == 503
        assert json.loads(response.data)['status'] == 'unhealthy'

    def test_live_advisory_mode_is_reported(self, app):
        from personnelPlanning.services.health_check import HealthChecker

        app.config['GEMINI_API_KEY'] = 'abc'
        healthy, message = HealthChecker(app).check_advisory_health()

        assert healthy is True
        assert message.startswith('Advisory model configured')
