from typing import Any

from fastapi.responses import JSONResponse

SENSITIVE_KEYS = frozenset({"password", "password_hash"})


def strip_passwords(value: Any) -> Any:
    """Return a copy of ``value`` without password keys at any depth."""
    if isinstance(value, dict):
        return {
            key: strip_passwords(item)
            for key, item in value.items()
            if key not in SENSITIVE_KEYS
        }
    if isinstance(value, (list, tuple)):
        return [strip_passwords(item) for item in value]
    return value


class PasswordSafeJSONResponse(JSONResponse):
    """Default response class: no password field ever leaves the API."""

    def render(self, content: Any) -> bytes:
        return super().render(strip_passwords(content))
