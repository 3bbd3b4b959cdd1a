"""
Security utilities for input validation and sanitization.
"""
from functools import wraps
from flask import request, jsonify, current_app
import re
from typing import Any, Dict, List, Optional

from .exceptions import AdvisoryError


class InputValidator:
    """Centralized input validation and sanitization utilities."""

    @staticmethod
    def validate_integer(value: Any, min_val: int = None, max_val: int = None) -> int:
        """Validate and convert input to integer with optional range checking."""
        if isinstance(value, bool):
            raise ValueError(f"Invalid integer value: {value}")
        try:
            int_val = int(value)
        except (ValueError, TypeError) as e:
            raise ValueError(f"Invalid integer value: {value}") from e
        if min_val is not None and int_val < min_val:
            raise ValueError(f"Value {int_val} is less than minimum {min_val}")
        if max_val is not None and int_val > max_val:
            raise ValueError(f"Value {int_val} is greater than maximum {max_val}")
        return int_val

    @staticmethod
    def validate_string(value: Any, max_length: int = 255, pattern: str = None) -> str:
        """Validate and sanitize string input."""
        if not isinstance(value, str):
            raise ValueError(f"Expected string, got {type(value)}")

        # Basic sanitization - remove null bytes and excessive whitespace
        sanitized = value.replace('\x00', '').strip()

        if len(sanitized) > max_length:
            raise ValueError(f"String too long: {len(sanitized)} > {max_length}")

        if pattern and not re.match(pattern, sanitized):
            raise ValueError("String does not match required pattern")

        return sanitized

    @staticmethod
    def validate_list(value: Any, field_name: str, max_items: int = None) -> List:
        """Validate that a payload field is a list of at most ``max_items`` entries."""
        if not isinstance(value, list):
            raise ValueError(f"'{field_name}' must be a list")
        if max_items is not None and len(value) > max_items:
            raise ValueError(f"'{field_name}' has too many entries: {len(value)} > {max_items}")
        return value

    @staticmethod
    def validate_seed(value: Any) -> Optional[int]:
        """Random seed from a payload; None means unseeded."""
        if value is None:
            return None
        return InputValidator.validate_integer(value, min_val=0)

    @staticmethod
    def validate_json_request(required_fields: List[str] = None) -> Dict:
        """Validate JSON request and check for required fields."""
        if not request.is_json:
            raise ValueError("Request must be JSON")

        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValueError("JSON must be an object")

        if required_fields:
            missing = [field for field in required_fields if field not in data]
            if missing:
                raise ValueError(f"Missing required fields: {missing}")

        return data


def validate_request(*validation_rules):
    """Decorator for API endpoint input validation and error translation."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            try:
                for rule in validation_rules:
                    rule()
                return f(*args, **kwargs)
            except AdvisoryError as e:
                current_app.logger.error(f"Advisory error in {f.__name__}: {e}")
                return jsonify({"error": "AI agent processing failed", "details": str(e)}), 502
            except ValueError as e:
                current_app.logger.warning(f"Validation error in {f.__name__}: {e}")
                return jsonify({"error": str(e)}), 400
            except Exception as e:
                current_app.logger.error(f"Unexpected error in {f.__name__}: {e}", exc_info=True)
                return jsonify({"error": "Internal server error"}), 500
        return decorated_function
    return decorator


def require_json_fields(*fields):
    """Validation rule for required JSON fields."""
    def validation():
        InputValidator.validate_json_request(list(fields))
    return validation


class SecurityMiddleware:
    """Security middleware for additional protection."""

    @staticmethod
    def add_security_headers(response):
        """Add security headers to response."""
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['X-XSS-Protection'] = '1; mode=block'
        response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
        return response
