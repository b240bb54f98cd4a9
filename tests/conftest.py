"""Shared fixtures"""

import pytest

from implicit_oidc.config.settings import ClientSettings

from .mocks.oidc_server import BASE_URL, CLIENT_ID, REDIRECT_URI


def make_config(**overrides) -> dict:
    """Return a raw client config pointing at the mock provider."""
    config = {
        "client_id": CLIENT_ID,
        "authority": BASE_URL,
        "redirect_uri": REDIRECT_URI,
        "scope": "openid profile",
    }
    config.update(overrides)
    return config


@pytest.fixture
def settings() -> ClientSettings:
    """Settings for a hybrid (id_token token) client."""
    return ClientSettings.from_config(make_config())
