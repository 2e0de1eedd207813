"""
Input validation utilities for the gateway API
"""

from typing import Mapping, Optional, Sequence, Tuple
from urllib.parse import urlparse

MISSING_PARAMETER_MESSAGE = "Missing required parameter"


class ValidationError(Exception):
    """Exception raised for validation errors."""
    def __init__(self, message: str, field: Optional[str] = None,
                 details: Optional[str] = None, code: int = 400):
        self.message = message
        self.field = field
        self.details = details
        self.code = code
        super().__init__(self.message)


def _describe_parameters(names: Sequence[str]) -> str:
    quoted = [f"'{name}'" for name in names]
    if len(quoted) == 1:
        return quoted[0]
    return ", ".join(quoted[:-1]) + " or " + quoted[-1]


def require_query_param(query: Mapping[str, str], names: Sequence[str],
                        usage: Optional[str] = None) -> Tuple[str, str]:
    """
    Return the first of *names* present in *query* with a non-empty value.

    Args:
        query: Decoded query parameters
        names: Accepted parameter names, in order of preference
        usage: Example query string appended to the error details

    Returns:
        Tuple of (parameter name, raw value)

    Raises:
        ValidationError: If none of the parameters carries a value
    """
    for name in names:
        value = query.get(name)
        if value:
            return name, value

    details = f"Missing {_describe_parameters(names)} parameter"
    if usage:
        details = f"{details}: {usage}"
    raise ValidationError(MISSING_PARAMETER_MESSAGE, field=names[0] if names else None,
                          details=details)


def validate_http_url(value: str, field: str = "url") -> str:
    """
    Validate that *value* is an absolute http(s) URL.

    Raises:
        ValidationError: If the scheme is not http/https or the host is missing
    """
    parsed = urlparse(value.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError(
            "Invalid parameter",
            field=field,
            details=f"'{field}' must be an absolute http or https URL",
        )
    return value.strip()
