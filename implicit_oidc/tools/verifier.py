"""Signature and claims verification of identity tokens."""

from __future__ import annotations

import base64
import logging
import time
from typing import Optional

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from joserfc import jwt, errors as joserfc_errors
from joserfc.jwk import RSAKey

from ..config.const import ID_TOKEN_SIGNING_ALGORITHMS, MAX_TOKEN_AGE
from ..config.settings import ClientSettings
from .exceptions import (
    AudienceMismatch,
    IssuerMismatch,
    NonceMismatch,
    SignatureInvalid,
    TokenExpired,
    TokenTooOld,
)
from .http import RawResponse
from .metadata import MetadataResolver

_LOGGER = logging.getLogger(__name__)


def load_certificate_key(certificate: str) -> RSAKey:
    """Imports the public key of a base64 DER (x5c) certificate."""
    der = base64.b64decode(certificate)
    public_key = x509.load_der_x509_certificate(der).public_key()
    pem = public_key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return RSAKey.import_key(pem)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class IdentityTokenVerifier:
    """Verifies identity tokens against the provider metadata and key set."""

    def __init__(self, settings: ClientSettings, resolver: MetadataResolver):
        self.settings = settings
        self.resolver = resolver

    def _verify_signature(self, id_token: str, certificate: str) -> dict:
        """Verifies the JWS signature and returns the unvalidated claims."""
        try:
            key = load_certificate_key(certificate)
        except (ValueError, TypeError, joserfc_errors.JoseError) as e:
            _LOGGER.warning("Signing certificate could not be loaded: %s", e)
            raise SignatureInvalid(
                "JWT failed to validate (unusable signing certificate)"
            ) from e

        try:
            token = jwt.decode(id_token, key, algorithms=ID_TOKEN_SIGNING_ALGORITHMS)
        except (joserfc_errors.JoseError, ValueError, TypeError) as e:
            _LOGGER.warning("JWT verification failed: %s", e)
            raise SignatureInvalid() from e

        return dict(token.claims)

    def _validate_lifetime(self, claims: dict) -> None:
        now = round(time.time())

        # Accept tokens issued up to 5 minutes ago
        iat = claims.get("iat")
        if not _is_number(iat):
            _LOGGER.warning("Identity token has no usable iat claim: %r", iat)
            raise TokenTooOld("Token has no issued at time")
        if now - iat > MAX_TOKEN_AGE:
            _LOGGER.warning(
                "Identity token issued %d seconds ago, at most %d allowed",
                now - iat,
                MAX_TOKEN_AGE,
            )
            raise TokenTooOld()

        exp = claims.get("exp")
        if not _is_number(exp):
            _LOGGER.warning("Identity token has no usable exp claim: %r", exp)
            raise TokenExpired("Token has no expiration time")
        if exp < now:
            _LOGGER.warning("Identity token expired at %s (now %s)", exp, now)
            raise TokenExpired()

    async def async_verify_identity_token(
        self, id_token: str, nonce: Optional[str], access_token: Optional[str] = None
    ) -> dict:
        """Verifies an identity token and returns its claims.

        Checks, in order: signature, nonce, issuer, audience, issue time and
        expiry. When an access token is given and user profiles are enabled,
        the userinfo response is merged over the claims.
        """
        certificate = await self.resolver.async_resolve_signing_key()
        claims = self._verify_signature(id_token, certificate)

        if self.settings.verbose_debug_mode:
            _LOGGER.debug("Identity token claims: %s", claims)

        if claims.get("nonce") != nonce:
            _LOGGER.warning("Nonce mismatch!")
            raise NonceMismatch()

        metadata = await self.resolver.async_resolve_metadata()
        if claims.get("iss") != metadata.issuer:
            _LOGGER.warning(
                "Issuer mismatch, expected: %s, got: %s",
                metadata.issuer,
                claims.get("iss"),
            )
            raise IssuerMismatch()

        if claims.get("aud") != self.settings.client_id:
            _LOGGER.warning(
                "Audience mismatch, expected: %s, got: %s",
                self.settings.client_id,
                claims.get("aud"),
            )
            raise AudienceMismatch()

        self._validate_lifetime(claims)

        if not (access_token and self.settings.load_user_profile):
            # No access token, so we have all our claims
            return claims

        profile = await self.resolver.async_load_user_profile(access_token)
        if isinstance(profile, RawResponse):
            _LOGGER.debug(
                "Userinfo returned a non-JSON response (status %s), "
                + "using identity token claims only",
                profile.status,
            )
            return dict(claims)

        merged = dict(claims)
        merged.update(profile)
        return merged
