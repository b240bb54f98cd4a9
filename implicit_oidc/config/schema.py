"""Config schema"""

import voluptuous as vol

from ..tools import validation
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
)

FEATURES_SCHEMA = vol.Schema(
    {
        # Call the userinfo endpoint when an access token is available
        vol.Optional(FEATURES_LOAD_USER_PROFILE, default=True): vol.Coerce(bool),
        # Strip nonce, at_hash, iat, nbf, exp, aud, iss and idp from the profile
        vol.Optional(FEATURES_FILTER_PROTOCOL_CLAIMS, default=True): vol.Coerce(
            bool
        ),
        # Force HTTPS on all generated URLs (like redirect_uri)
        vol.Optional(FEATURES_FORCE_HTTPS, default=False): vol.Coerce(bool),
        # Use X-Forwarded-Proto for generated URLs, only behind a trusted proxy
        vol.Optional(FEATURES_TRUST_FORWARDED_PROTO, default=False): vol.Coerce(bool),
    }
)

NETWORK_SCHEMA = vol.Schema(
    {
        # Verify x509 certificates provided when starting TLS connections
        vol.Optional(NETWORK_TLS_VERIFY, default=True): vol.Coerce(bool),
        # Load custom certificate chain for private CAs
        vol.Optional(NETWORK_TLS_CA_PATH): vol.Coerce(str),
        # Constructed userinfo endpoint fallback if not provided in discovery
        vol.Optional(NETWORK_USERINFO_FALLBACK, default=False): vol.Coerce(bool),
    }
)

CONFIG_SCHEMA = vol.Schema(
    {
        # Required client ID as registered with the OIDC provider
        vol.Required(CLIENT_ID): validation.client_id,
        # Issuer or discovery URL, the well-known suffix is appended if missing
        vol.Optional(AUTHORITY): validation.url,
        # Pre-fetched discovery document and key set, skip the network if given
        vol.Optional(METADATA): dict,
        vol.Optional(JWKS): dict,
        # Overrides the authorization endpoint from the discovery document
        vol.Optional(AUTHORIZATION_ENDPOINT): validation.url,
        vol.Optional(REDIRECT_URI): vol.Coerce(str),
        vol.Optional(RESPONSE_TYPE, default=DEFAULT_RESPONSE_TYPE): vol.Coerce(str),
        vol.Optional(SCOPE): vol.Any([vol.Coerce(str)], vol.Coerce(str)),
        vol.Optional(SCOPE_SEPARATOR, default=DEFAULT_SCOPE_SEPARATOR): str,
        # Optional authentication request parameters, sent as-is
        vol.Optional(PROMPT): vol.Coerce(str),
        vol.Optional(DISPLAY): vol.Coerce(str),
        vol.Optional(MAX_AGE): vol.All(vol.Coerce(int), vol.Range(min=0)),
        vol.Optional(UI_LOCALES): vol.Coerce(str),
        vol.Optional(ID_TOKEN_HINT): vol.Coerce(str),
        vol.Optional(LOGIN_HINT): vol.Coerce(str),
        vol.Optional(ACR_VALUES): vol.Coerce(str),
        vol.Optional(RESPONSE_MODE): vol.In(["query", "fragment", "form_post"]),
        vol.Optional(POST_LOGOUT_REDIRECT_URI): validation.url,
        # Key the request state is kept under between redirect and callback
        vol.Optional(REQUEST_STATE_KEY, default=DEFAULT_REQUEST_STATE_KEY): vol.Coerce(
            str
        ),
        # If enabled, logging will include tokens and full provider responses
        vol.Optional(VERBOSE_DEBUG_MODE, default=False): vol.Coerce(bool),
        vol.Optional(FEATURES, default={}): FEATURES_SCHEMA,
        vol.Optional(NETWORK, default={}): NETWORK_SCHEMA,
    },
    # Any extra fields should not go into our config right now
    extra=vol.REMOVE_EXTRA,
)
