from flask import current_app
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_wtf.csrf import CSRFProtect

from .services.advisory import AdvisoryAgent

csrf = CSRFProtect()

limiter = Limiter(
    get_remote_address,
    default_limits=["200 per day", "50 per hour"],
    storage_uri="memory://"
)


class AdvisoryManager:
    """Holds the advisory agent built from the application config."""

    def init_app(self, app):
        agent = AdvisoryAgent.from_config(app.config)
        mode = 'simulation' if agent.simulation_mode else f"live ({agent.model_name})"
        app.logger.info(f"Advisory agent initialized in {mode} mode")
        app.extensions['advisory_agent'] = agent

    def get_agent(self):
        agent = current_app.extensions.get('advisory_agent')
        if agent is None:
            raise RuntimeError("Advisory agent used before init_app()")
        return agent


advisory_manager = AdvisoryManager()
