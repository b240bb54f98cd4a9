"""Validation helpers for configuration input."""

from __future__ import annotations

from urllib.parse import urlparse

import voluptuous as vol


def validate_url(url: str) -> bool:
    """Validate that a URL is an absolute http(s) URL."""
    try:
        parsed = urlparse(url.strip())
        return bool(parsed.scheme in ("http", "https") and parsed.netloc)
    except (ValueError, TypeError, AttributeError):
        return False


def validate_discovery_url(url: str) -> bool:
    """Validate that a URL points at an OIDC discovery document."""
    try:
        parsed = urlparse(url.strip())
        return bool(
            parsed.scheme in ("http", "https")
            and parsed.netloc
            and parsed.path.endswith("/.well-known/openid-configuration")
        )
    except (ValueError, TypeError, AttributeError):
        return False


def validate_client_id(client_id: str) -> bool:
    """Validate client ID format."""
    return bool(client_id and client_id.strip())


def url(value) -> str:
    """Voluptuous validator for absolute http(s) URLs."""
    value = str(value).strip()
    if not validate_url(value):
        raise vol.Invalid(f"expected an absolute http(s) URL, got '{value}'")
    return value


def client_id(value) -> str:
    """Voluptuous validator for the client identifier."""
    value = str(value)
    if not validate_client_id(value):
        raise vol.Invalid("client_id must not be empty")
    return value.strip()
