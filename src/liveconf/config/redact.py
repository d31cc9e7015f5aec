"""Keep secrets out of logs and terminal output."""

import re
from typing import Any

# Patterns that indicate sensitive values to redact
SECRET_PATTERNS = [
    r"password",
    r"secret",
    r"salt",
    r"api[_-]?key",
    r"access[_-]?key",
    r"private[_-]?key",
    r"token",
    r"credential",
    r"auth",
    r"bearer",
    r"connection[_-]?string",
    r"database[_-]?url",
]

REDACTED = "<REDACTED>"

_secret_pattern = re.compile("|".join(SECRET_PATTERNS), re.IGNORECASE)


def is_sensitive_key(key: str) -> bool:
    """Check if a key name indicates sensitive data."""
    return bool(_secret_pattern.search(key))


def redact_secrets(data: Any) -> Any:
    """Recursively replace string values under sensitive keys."""
    if isinstance(data, dict):
        result = {}
        for key, value in data.items():
            if is_sensitive_key(str(key)) and isinstance(value, str):
                result[key] = REDACTED
            else:
                result[key] = redact_secrets(value)
        return result
    if isinstance(data, list):
        return [redact_secrets(item) for item in data]
    return data
