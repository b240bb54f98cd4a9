"""Config constants."""

## ===
## General constants
## ===

DOMAIN = "implicit_oidc"
WELL_KNOWN_PATH = ".well-known/openid-configuration"

## ===
## Config keys
## ===

CLIENT_ID = "client_id"
AUTHORITY = "authority"
METADATA = "metadata"
JWKS = "jwks"
AUTHORIZATION_ENDPOINT = "authorization_endpoint"
REDIRECT_URI = "redirect_uri"
RESPONSE_TYPE = "response_type"
SCOPE = "scope"
SCOPE_SEPARATOR = "scope_separator"
PROMPT = "prompt"
DISPLAY = "display"
MAX_AGE = "max_age"
UI_LOCALES = "ui_locales"
ID_TOKEN_HINT = "id_token_hint"
LOGIN_HINT = "login_hint"
ACR_VALUES = "acr_values"
RESPONSE_MODE = "response_mode"
POST_LOGOUT_REDIRECT_URI = "post_logout_redirect_uri"
REQUEST_STATE_KEY = "request_state_key"
VERBOSE_DEBUG_MODE = "enable_verbose_debug_mode"
FEATURES = "features"
FEATURES_LOAD_USER_PROFILE = "load_user_profile"
FEATURES_FILTER_PROTOCOL_CLAIMS = "filter_protocol_claims"
FEATURES_FORCE_HTTPS = "force_https"
FEATURES_TRUST_FORWARDED_PROTO = "trust_forwarded_proto"
NETWORK = "network"
NETWORK_TLS_VERIFY = "tls_verify"
NETWORK_TLS_CA_PATH = "tls_ca_path"
NETWORK_USERINFO_FALLBACK = "userinfo_fallback"

## ===
## Defaults
## ===

DEFAULT_RESPONSE_TYPE = "id_token token"
DEFAULT_REQUEST_STATE_KEY = "OidcClient.request_state"
DEFAULT_SCOPE_SEPARATOR = " "
REQUIRED_SCOPE = "openid"

## ===
## Protocol
## ===

# Order matters, parameters are appended to the authorization URL in this order
REQUIRED_REQUEST_PARAMETERS = (CLIENT_ID, REDIRECT_URI, RESPONSE_TYPE, SCOPE)
OPTIONAL_REQUEST_PARAMETERS = (
    PROMPT,
    DISPLAY,
    MAX_AGE,
    UI_LOCALES,
    ID_TOKEN_HINT,
    LOGIN_HINT,
    ACR_VALUES,
    RESPONSE_MODE,
)

# Claims that only make sense to the protocol, stripped from the profile
PROTOCOL_CLAIMS = ("nonce", "at_hash", "iat", "nbf", "exp", "aud", "iss", "idp")

# Identity tokens issued longer ago than this (in seconds) are rejected
MAX_TOKEN_AGE = 5 * 60

ID_TOKEN_SIGNING_ALGORITHMS = ["RS256", "RS384", "RS512", "PS256", "PS384", "PS512"]
