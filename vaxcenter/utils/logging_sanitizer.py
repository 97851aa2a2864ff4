"""
Logging Sanitizer Utility

Redacts personal and secret values from request payloads before they are
logged. Citizen identity numbers, contacts and dates of birth never reach the
log files.
"""

from typing import Any, Dict


# Fields whose values are never logged
SENSITIVE_FIELDS = {
    # Citizen identity
    'id_number',
    'date_of_birth',
    'dob',
    'contact',
    'email',
    'phone',
    'full_name',
    # Credentials
    'password',
    'secret',
    'secret_key',
    'token',
    'api_key',
    'apikey',
    'auth_token',
    'access_token',
    'refresh_token',
    'session_id',
    'csrf_token',
}


def sanitize_value(value: Any, redact_text: str = '[REDACTED]') -> Any:
    if isinstance(value, dict):
        return sanitize_dict(value, redact_text)
    if isinstance(value, (list, tuple)):
        return [sanitize_value(item, redact_text) for item in value]
    return value


def sanitize_dict(data: Dict[str, Any], redact_text: str = '[REDACTED]') -> Dict[str, Any]:
    """
    Sanitize a dictionary by replacing sensitive field values with redaction text.

    Nested dictionaries and lists of dictionaries are sanitized recursively.

    Example:
        >>> sanitize_dict({'id_type': 'nid', 'id_number': '1990123456'})
        {'id_type': 'nid', 'id_number': '[REDACTED]'}
    """
    if not data:
        return data

    sanitized = {}
    for key, value in data.items():
        if str(key).lower() in SENSITIVE_FIELDS:
            sanitized[key] = redact_text
        else:
            sanitized[key] = sanitize_value(value, redact_text)
    return sanitized


def sanitize_payload(payload: Any, redact_text: str = '[REDACTED]') -> Any:
    """
    Sanitize a decoded JSON request body (``request.get_json(silent=True)``) for logging.

    Non-dict bodies are returned as a type marker only.
    """
    if payload is None:
        return {}
    if isinstance(payload, dict):
        return sanitize_dict(payload, redact_text)
    return f'<{type(payload).__name__} body>'


def sanitize_exception_message(exception: Exception) -> str:
    """
    Sanitize exception messages so they don't echo sensitive field names or values.
    """
    message = str(exception)
    if any(field in message.lower() for field in SENSITIVE_FIELDS):
        return f"{type(exception).__name__}: [Message contains sensitive data]"
    return message
