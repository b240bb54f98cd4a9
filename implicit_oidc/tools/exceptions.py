"""Exceptions raised by the OIDC client.

Every failure has its own class, grouped under a base class per kind, so
callers can catch as broadly or as narrowly as they like.
"""

from typing import Optional


class OIDCClientException(Exception):
    "Raised when the OIDC Client encounters an error"

    kind = "generic"
    default_message = "OIDC client error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


## ===
## Configuration
## ===


class OIDCConfigurationError(OIDCClientException):
    "Raised when the client is missing configuration needed for an operation."

    kind = "configuration"


class MissingConfiguration(OIDCConfigurationError):
    "Raised when no authority is configured and no metadata was supplied."

    default_message = "No authority configured"


class MissingAuthorizationEndpoint(OIDCConfigurationError):
    "Raised when neither configuration nor metadata provide an authorization endpoint."

    default_message = "No authorization_endpoint configured"


class MissingJwksUri(OIDCConfigurationError):
    "Raised when the metadata does not contain a jwks_uri."

    default_message = "Metadata does not contain jwks_uri"


class MissingUserinfoEndpoint(OIDCConfigurationError):
    "Raised when the metadata does not contain a userinfo_endpoint."

    default_message = "Metadata does not contain userinfo_endpoint"


class MissingEndSessionEndpoint(OIDCConfigurationError):
    "Raised when the metadata does not contain an end_session_endpoint."

    default_message = "No end_session_endpoint in metadata"


## ===
## Transport
## ===


class OIDCTransportError(OIDCClientException):
    "Raised when a document could not be obtained from the provider."

    kind = "transport"


class MetadataFetchFailed(OIDCTransportError):
    "Raised when the discovery document cannot be fetched."

    default_message = "Failed to load metadata"


class KeyFetchFailed(OIDCTransportError):
    "Raised when the JWKS cannot be fetched."

    default_message = "Failed to load signing keys"


class UserinfoFetchFailed(OIDCTransportError):
    "Raised when the userinfo endpoint cannot be reached."

    default_message = "Failed to load user profile"


## ===
## Key material
## ===


class OIDCKeyError(OIDCClientException):
    "Raised when the key set does not hold a usable signing key."

    kind = "key"


class NoSigningKeys(OIDCKeyError):
    "Raised when the key set is empty."

    default_message = "Signing keys empty"


class UnsupportedKeyType(OIDCKeyError):
    "Raised when the signing key is not an RSA key."

    default_message = "Signing key not RSA"


class EmptyCertificateChain(OIDCKeyError):
    "Raised when the RSA signing key has no x5c certificate chain."

    default_message = "RSA keys empty"


## ===
## Protocol / session
## ===


class OIDCProtocolError(OIDCClientException):
    "Raised when the callback cannot be matched to a request."

    kind = "protocol"


class MissingRequestState(OIDCProtocolError):
    "Raised when no (parsable) request state is stored for this callback."

    default_message = "No request state loaded"


class MissingState(OIDCProtocolError):
    "Raised when the stored request state has no state value."

    default_message = "No state loaded"


class NoResponse(OIDCProtocolError):
    "Raised when there is no callback result at all."

    default_message = "No OIDC response"


class StateMismatch(OIDCProtocolError):
    "Raised when the callback state does not match the stored state."

    default_message = "Invalid state"


class ProviderError(OIDCProtocolError):
    "Raised when the provider redirected back with an error."

    def __init__(self, error: str, error_description: Optional[str] = None):
        self.error = error
        self.error_description = error_description
        message = error
        if error_description:
            message = f"{error}: {error_description}"
        super().__init__(message)


## ===
## Token shape
## ===


class OIDCTokenShapeError(OIDCClientException):
    "Raised when the callback lacks tokens the request asked for."

    kind = "token_shape"


class MissingIdentityToken(OIDCTokenShapeError):
    "Raised when an identity token was requested but not returned."

    default_message = "No identity token"


class MissingNonce(OIDCTokenShapeError):
    "Raised when an identity token was requested but no nonce was stored."

    default_message = "No nonce loaded"


class MissingAccessToken(OIDCTokenShapeError):
    "Raised when an access token was requested but not returned."

    default_message = "No access token"


class InvalidTokenType(OIDCTokenShapeError):
    "Raised when the returned token type is not bearer."

    default_message = "Invalid token type"


class MissingExpiry(OIDCTokenShapeError):
    "Raised when the access token has no expires_in."

    default_message = "No token expiration"


## ===
## Cryptography and claims
## ===


class OIDCTokenInvalid(OIDCClientException):
    "Raised when a token fails signature or claims validation."

    kind = "token"


class SignatureInvalid(OIDCTokenInvalid):
    "Raised when the identity token signature does not verify."

    default_message = "JWT failed to validate"


class NonceMismatch(OIDCTokenInvalid):
    "Raised when the nonce claim does not match the stored nonce."

    default_message = "Invalid nonce"


class IssuerMismatch(OIDCTokenInvalid):
    "Raised when the iss claim does not match the metadata issuer."

    default_message = "Invalid issuer"


class AudienceMismatch(OIDCTokenInvalid):
    "Raised when the aud claim does not match the client ID."

    default_message = "Invalid audience"


class TokenTooOld(OIDCTokenInvalid):
    "Raised when the identity token was issued too long ago."

    default_message = "Token issued too long ago"


class TokenExpired(OIDCTokenInvalid):
    "Raised when the identity token has expired."

    default_message = "Token expired"


class MissingAtHash(OIDCTokenInvalid):
    "Raised when an access token must be bound but the id_token has no at_hash."

    default_message = "No at_hash in id_token"


class AtHashMismatch(OIDCTokenInvalid):
    "Raised when the access token does not match the at_hash claim."

    default_message = "at_hash failed to validate"
