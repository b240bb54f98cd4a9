"""Typed client settings, resolved once from the validated config."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional
from urllib.parse import urljoin, urlparse

from ..tools.validation import validate_discovery_url
from .const import (
    CLIENT_ID,
    AUTHORITY,
    METADATA,
    JWKS,
    AUTHORIZATION_ENDPOINT,
    REDIRECT_URI,
    RESPONSE_TYPE,
    SCOPE,
    SCOPE_SEPARATOR,
    PROMPT,
    DISPLAY,
    MAX_AGE,
    UI_LOCALES,
    ID_TOKEN_HINT,
    LOGIN_HINT,
    ACR_VALUES,
    RESPONSE_MODE,
    POST_LOGOUT_REDIRECT_URI,
    REQUEST_STATE_KEY,
    VERBOSE_DEBUG_MODE,
    FEATURES,
    FEATURES_LOAD_USER_PROFILE,
    FEATURES_FILTER_PROTOCOL_CLAIMS,
    FEATURES_FORCE_HTTPS,
    FEATURES_TRUST_FORWARDED_PROTO,
    NETWORK,
    NETWORK_TLS_VERIFY,
    NETWORK_TLS_CA_PATH,
    NETWORK_USERINFO_FALLBACK,
    DEFAULT_RESPONSE_TYPE,
    DEFAULT_REQUEST_STATE_KEY,
    DEFAULT_SCOPE_SEPARATOR,
    REQUIRED_SCOPE,
    WELL_KNOWN_PATH,
)
from .schema import CONFIG_SCHEMA

_LOGGER = logging.getLogger(__name__)

# Request options that simply replace the configured value when supplied
_OVERRIDABLE_OPTIONS = (PROMPT, DISPLAY, LOGIN_HINT, ACR_VALUES)


def normalize_authority(authority: str) -> str:
    """Point an authority at its discovery document, unless it already does."""
    if WELL_KNOWN_PATH in authority:
        return authority

    if not authority.endswith("/"):
        authority += "/"
    return authority + WELL_KNOWN_PATH


@dataclass(frozen=True)
class NetworkOptions:
    """Transport options handed to the HTTP client."""

    tls_verify: bool = True
    tls_ca_path: Optional[str] = None
    userinfo_fallback: bool = False


# pylint: disable=too-many-instance-attributes
@dataclass(frozen=True)
class ClientSettings:
    """Relying party settings.

    Built once with `from_config` and never mutated afterwards; per-request
    adjustments go through `merge_request_options`, which returns a copy.
    """

    client_id: str
    authority: Optional[str] = None
    metadata: Optional[dict] = None
    jwks: Optional[dict] = None
    authorization_endpoint: Optional[str] = None
    redirect_uri: Optional[str] = None
    response_type: str = DEFAULT_RESPONSE_TYPE
    scope: Optional[str] = None
    scope_separator: str = DEFAULT_SCOPE_SEPARATOR
    prompt: Optional[str] = None
    display: Optional[str] = None
    max_age: Optional[int] = None
    ui_locales: Optional[str] = None
    id_token_hint: Optional[str] = None
    login_hint: Optional[str] = None
    acr_values: Optional[str] = None
    response_mode: Optional[str] = None
    post_logout_redirect_uri: Optional[str] = None
    request_state_key: str = DEFAULT_REQUEST_STATE_KEY
    load_user_profile: bool = True
    filter_protocol_claims: bool = True
    force_https: bool = False
    trust_forwarded_proto: bool = False
    verbose_debug_mode: bool = False
    network: NetworkOptions = field(default_factory=NetworkOptions)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "ClientSettings":
        """Validates a raw config mapping and resolves it into settings."""
        config = CONFIG_SCHEMA(dict(config))
        features = config[FEATURES]
        network = config[NETWORK]

        authority = config.get(AUTHORITY)
        if authority:
            authority = normalize_authority(authority)
            if not validate_discovery_url(authority):
                _LOGGER.warning(
                    "Authority %s does not end in /%s, discovery may fail",
                    authority,
                    WELL_KNOWN_PATH,
                )

        if config[VERBOSE_DEBUG_MODE]:
            _LOGGER.warning(
                "VERBOSE_DEBUG_MODE is enabled so detailed token and response "
                + "logging is active. Do NOT leave this enabled in production!"
            )

        scope = config.get(SCOPE)
        if isinstance(scope, list):
            scope = config[SCOPE_SEPARATOR].join(scope)

        return cls(
            client_id=config[CLIENT_ID],
            authority=authority,
            metadata=config.get(METADATA),
            jwks=config.get(JWKS),
            authorization_endpoint=config.get(AUTHORIZATION_ENDPOINT),
            redirect_uri=config.get(REDIRECT_URI),
            response_type=config[RESPONSE_TYPE],
            scope=scope,
            scope_separator=config[SCOPE_SEPARATOR],
            prompt=config.get(PROMPT),
            display=config.get(DISPLAY),
            max_age=config.get(MAX_AGE),
            ui_locales=config.get(UI_LOCALES),
            id_token_hint=config.get(ID_TOKEN_HINT),
            login_hint=config.get(LOGIN_HINT),
            acr_values=config.get(ACR_VALUES),
            response_mode=config.get(RESPONSE_MODE),
            post_logout_redirect_uri=config.get(POST_LOGOUT_REDIRECT_URI),
            request_state_key=config[REQUEST_STATE_KEY],
            load_user_profile=features[FEATURES_LOAD_USER_PROFILE],
            filter_protocol_claims=features[FEATURES_FILTER_PROTOCOL_CLAIMS],
            force_https=features[FEATURES_FORCE_HTTPS],
            trust_forwarded_proto=features[FEATURES_TRUST_FORWARDED_PROTO],
            verbose_debug_mode=config[VERBOSE_DEBUG_MODE],
            network=NetworkOptions(
                tls_verify=network[NETWORK_TLS_VERIFY],
                tls_ca_path=network.get(NETWORK_TLS_CA_PATH),
                userinfo_fallback=network[NETWORK_USERINFO_FALLBACK],
            ),
        )

    def _response_types(self) -> list[str]:
        return re.split(r"\s+", self.response_type.strip()) if self.response_type else []

    def is_oidc(self) -> bool:
        """Whether an identity token is requested."""
        return "id_token" in self._response_types()

    def is_oauth(self) -> bool:
        """Whether an access token is requested."""
        return "token" in self._response_types()

    def get_parameter(self, name: str) -> Optional[str]:
        """Returns an authorization request parameter as a string, if set."""
        value = getattr(self, name)
        if value is None or value == "":
            return None
        return str(value)

    def merge_request_options(
        self, options: Mapping[str, Any], request_url: Optional[str] = None
    ) -> "ClientSettings":
        """Returns settings with request-supplied options layered over these.

        A value supplied with the request always wins over the configured
        default. A relative callback URL is resolved against `request_url`.
        The scope always starts with `openid`.
        """
        changes: dict[str, Any] = {}

        callback_url = options.get("callback_url") or self.redirect_uri
        if callback_url and not urlparse(callback_url).scheme:
            if request_url is None:
                raise ValueError(
                    f"Relative callback URL {callback_url} needs the request URL"
                )
            callback_url = urljoin(request_url, callback_url)
        changes[REDIRECT_URI] = callback_url

        for key in (RESPONSE_MODE, RESPONSE_TYPE, *_OVERRIDABLE_OPTIONS):
            if options.get(key):
                changes[key] = options[key]

        scope = options.get(SCOPE) or self.scope
        if isinstance(scope, (list, tuple)):
            scope = self.scope_separator.join(scope)
        if not scope:
            scope = REQUIRED_SCOPE
        elif REQUIRED_SCOPE not in scope.replace(self.scope_separator, " ").split():
            scope = REQUIRED_SCOPE + self.scope_separator + scope
        changes[SCOPE] = scope

        merged = replace(self, **changes)
        if self.verbose_debug_mode:
            _LOGGER.debug("Merged request options into settings: %s", merged)
        return merged
