import os
import secrets

BASE_DIR = os.path.abspath(os.path.dirname(__file__))
PERSONNEL_PLANNING_DIR = os.path.join(BASE_DIR, 'personnelPlanning')

_GENERATED_SECRET_KEY = secrets.token_hex(32)


def _env_flag(name, default='0'):
    return os.environ.get(name, default).lower() in ('1', 'true', 'yes')


def _env_optional_int(name):
    raw = os.environ.get(name)
    if raw is None or raw.strip() == '':
        return None
    try:
        return int(raw)
    except ValueError:
        return None


class Config:
    """
    Application configuration class with environment variable support.

    This class centralizes all configuration settings and provides secure defaults
    for development while requiring proper configuration for production.
    """

    # --- Core Secrets / Flags ---
    SECRET_KEY = os.environ.get('SECRET_KEY') or _GENERATED_SECRET_KEY

    # Global debug mode toggle (string env values '1', 'true', 'True')
    DEBUG_MODE = _env_flag('DEBUG_MODE')
    FLASK_DEBUG = _env_flag('FLASK_DEBUG')

    # --- Flask-WTF Configuration ---
    WTF_CSRF_ENABLED = True
    WTF_CSRF_TIME_LIMIT = int(os.environ.get('CSRF_TIME_LIMIT', '3600'))  # 1 hour default
    WTF_CSRF_SSL_STRICT = not DEBUG_MODE

    # --- Security Configuration ---
    PERMANENT_SESSION_LIFETIME = int(os.environ.get('SESSION_LIFETIME', '1800'))  # 30 minutes default
    SESSION_COOKIE_SECURE = not DEBUG_MODE
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    # --- Advisory model ---
    # Without a key the advisory step runs in simulation mode.
    GEMINI_API_KEY = os.environ.get('GEMINI_API_KEY')
    GEMINI_MODEL = os.environ.get('GEMINI_MODEL', 'gemini-1.5-flash')
    # Number of personnel records included verbatim in the advisory prompt.
    ADVISORY_PERSONNEL_SAMPLE = int(os.environ.get('ADVISORY_PERSONNEL_SAMPLE', '50'))

    # --- Distribution engine ---
    # Optional fixed seed used when a request does not provide one.
    DISTRIBUTION_SEED = _env_optional_int('DISTRIBUTION_SEED')
    MAX_PERSONNEL = int(os.environ.get('MAX_PERSONNEL', '5000'))
    MAX_TEAMS = int(os.environ.get('MAX_TEAMS', '500'))
    MAX_RULES = int(os.environ.get('MAX_RULES', '100'))

    # --- Paths ---
    LOG_DIR = os.environ.get('LOG_DIR') or os.path.join(PERSONNEL_PLANNING_DIR, 'logs')
    TEMPLATES_FOLDER = os.path.join(PERSONNEL_PLANNING_DIR, 'templates')

    # Request body limit
    MAX_CONTENT_LENGTH = int(os.environ.get('MAX_UPLOAD_SIZE', '16777216'))  # 16MB default

    @classmethod
    def advisory_enabled(cls):
        """True when a model API key is configured."""
        return bool(cls.GEMINI_API_KEY)

    @classmethod
    def validate_config(cls):
        """Validate critical configuration settings."""
        errors = []

        # Check if SECRET_KEY is properly set in production
        if not cls.DEBUG_MODE and cls.SECRET_KEY == _GENERATED_SECRET_KEY:
            errors.append("SECRET_KEY should be explicitly set in production")

        if cls.MAX_CONTENT_LENGTH > 50 * 1024 * 1024:  # 50MB
            errors.append("MAX_CONTENT_LENGTH seems too large (>50MB)")

        for name in ('MAX_PERSONNEL', 'MAX_TEAMS', 'MAX_RULES', 'ADVISORY_PERSONNEL_SAMPLE'):
            if getattr(cls, name) <= 0:
                errors.append(f"{name} must be positive")

        if not os.path.isdir(cls.TEMPLATES_FOLDER):
            errors.append(f"Templates directory does not exist: {cls.TEMPLATES_FOLDER}")

        if errors:
            raise ValueError("Configuration validation failed:\n" + "\n".join(f"- {error}" for error in errors))
