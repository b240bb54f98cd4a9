"""Tests for the config schema and settings"""

import pytest
import voluptuous as vol

from implicit_oidc.config import CONFIG_SCHEMA, ClientSettings, normalize_authority
from implicit_oidc.config.const import (
    DEFAULT_REQUEST_STATE_KEY,
    DEFAULT_RESPONSE_TYPE,
    FEATURES,
    FEATURES_FILTER_PROTOCOL_CLAIMS,
    NETWORK,
    NETWORK_TLS_VERIFY,
)

from .conftest import make_config
from .mocks.oidc_server import BASE_URL, CLIENT_ID, REDIRECT_URI


def test_schema_defaults():
    """Test that the schema fills in the defaults."""
    config = CONFIG_SCHEMA({"client_id": CLIENT_ID})

    assert config["response_type"] == DEFAULT_RESPONSE_TYPE
    assert config["request_state_key"] == DEFAULT_REQUEST_STATE_KEY
    assert config[FEATURES][FEATURES_FILTER_PROTOCOL_CLAIMS] is True
    assert config[FEATURES]["trust_forwarded_proto"] is False
    assert config[NETWORK][NETWORK_TLS_VERIFY] is True


def test_schema_rejects_invalid_input():
    """Test that invalid config is rejected."""
    with pytest.raises(vol.Invalid):
        CONFIG_SCHEMA({})
    with pytest.raises(vol.Invalid):
        CONFIG_SCHEMA({"client_id": " "})
    with pytest.raises(vol.Invalid):
        CONFIG_SCHEMA({"client_id": CLIENT_ID, "authority": "oidc.example.com"})
    with pytest.raises(vol.Invalid):
        CONFIG_SCHEMA({"client_id": CLIENT_ID, "response_mode": "web_message"})


def test_schema_removes_extra_keys():
    """Test that unknown keys are dropped."""
    config = CONFIG_SCHEMA({"client_id": CLIENT_ID, "unknown": "value"})
    assert "unknown" not in config


def test_normalize_authority():
    """Test that the discovery path is appended once."""
    assert (
        normalize_authority("https://example.com")
        == "https://example.com/.well-known/openid-configuration"
    )
    assert (
        normalize_authority("https://example.com/realm/")
        == "https://example.com/realm/.well-known/openid-configuration"
    )
    assert (
        normalize_authority("https://example.com/.well-known/openid-configuration")
        == "https://example.com/.well-known/openid-configuration"
    )


def test_settings_from_config():
    """Test that settings are resolved from the raw config."""
    settings = ClientSettings.from_config(
        make_config(
            scope=["openid", "email"],
            max_age="60",
            features={"load_user_profile": False, "trust_forwarded_proto": True},
            network={"tls_verify": False},
        )
    )

    assert settings.authority == f"{BASE_URL}/.well-known/openid-configuration"
    assert settings.scope == "openid email"
    assert settings.max_age == 60
    assert settings.get_parameter("max_age") == "60"
    assert settings.get_parameter("prompt") is None
    assert settings.load_user_profile is False
    assert settings.filter_protocol_claims is True
    assert settings.trust_forwarded_proto is True
    assert settings.network.tls_verify is False


@pytest.mark.parametrize(
    "response_type,oidc,oauth",
    [
        ("id_token token", True, True),
        ("token id_token", True, True),
        ("id_token", True, False),
        ("token", False, True),
        ("code", False, False),
    ],
)
def test_response_type_flags(response_type, oidc, oauth):
    """Test that the requested flows follow the response type."""
    settings = ClientSettings.from_config(make_config(response_type=response_type))
    assert settings.is_oidc() is oidc
    assert settings.is_oauth() is oauth


def test_merge_request_options_precedence():
    """Test that request supplied options win over configured ones."""
    settings = ClientSettings.from_config(make_config(prompt="none", display="page"))
    merged = settings.merge_request_options(
        {"prompt": "login", "login_hint": "alice", "response_type": "id_token"}
    )

    assert merged.prompt == "login"
    assert merged.display == "page"
    assert merged.login_hint == "alice"
    assert merged.response_type == "id_token"
    assert merged.redirect_uri == REDIRECT_URI
    # The original settings are untouched
    assert settings.prompt == "none"


def test_merge_request_options_relative_callback(settings):
    """Test that a relative callback URL is resolved against the request URL."""
    merged = settings.merge_request_options(
        {"callback_url": "/auth/oidc/callback"},
        "https://app.example.com/auth/oidc/redirect?x=1",
    )
    assert merged.redirect_uri == "https://app.example.com/auth/oidc/callback"

    with pytest.raises(ValueError):
        settings.merge_request_options({"callback_url": "/auth/oidc/callback"})


def test_merge_request_options_scope(settings):
    """Test that the scope always contains openid."""
    assert settings.merge_request_options({}).scope == "openid profile"
    assert settings.merge_request_options({"scope": "email"}).scope == "openid email"
    assert (
        settings.merge_request_options({"scope": ["email", "groups"]}).scope
        == "openid email groups"
    )

    config = make_config()
    del config["scope"]
    without_scope = ClientSettings.from_config(config)
    assert without_scope.merge_request_options({}).scope == "openid"
