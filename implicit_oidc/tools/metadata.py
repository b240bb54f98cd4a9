"""Resolves and caches the provider discovery document and signing keys."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import aiohttp

from ..config.settings import ClientSettings
from .exceptions import (
    EmptyCertificateChain,
    KeyFetchFailed,
    MetadataFetchFailed,
    MissingConfiguration,
    MissingJwksUri,
    MissingUserinfoEndpoint,
    NoSigningKeys,
    UnsupportedKeyType,
    UserinfoFetchFailed,
)
from .http import HTTPClientError, OIDCHttpClient, RawResponse
from .types import ProviderMetadata
from .validation import validate_url

_LOGGER = logging.getLogger(__name__)


def select_signing_certificate(jwks: dict) -> str:
    """Returns the first certificate of the first key in the key set.

    Only the first key is considered. If that key is not an RSA key with a
    certificate chain, selection fails even when a later key would qualify.
    """
    keys = jwks.get("keys") if isinstance(jwks, dict) else None
    if not keys:
        raise NoSigningKeys()

    key = keys[0]
    if key.get("kty") != "RSA":
        raise UnsupportedKeyType(f"Signing key not RSA (kty: {key.get('kty')})")

    x5c = key.get("x5c")
    if not x5c:
        raise EmptyCertificateChain()

    return x5c[0]


class MetadataResolver:
    """Discovery and JWKS resolution for one client configuration.

    Both documents are fetched at most once and kept for the lifetime of
    the resolver, there is no expiry.
    """

    def __init__(self, settings: ClientSettings, http_client: OIDCHttpClient):
        self.settings = settings
        self.http_client = http_client
        self._metadata: Optional[ProviderMetadata] = None
        self._jwks: Optional[dict] = settings.jwks

        if settings.metadata is not None:
            self._metadata = ProviderMetadata.from_document(settings.metadata)

    async def _fetch_discovery_document(self, discovery_url: str) -> dict:
        """Fetches discovery document from the given URL."""
        try:
            document = await self.http_client.fetch_json(discovery_url)
        except HTTPClientError as e:
            if e.status == 404:
                _LOGGER.warning(
                    "Error: Discovery document not found at %s", discovery_url
                )
            else:
                _LOGGER.warning("Error fetching discovery: %s", e)
            raise MetadataFetchFailed(f"Failed to load metadata ({e})") from e
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            _LOGGER.warning("Error fetching discovery: %s", e)
            raise MetadataFetchFailed(f"Failed to load metadata ({e})") from e

        if not isinstance(document, dict):
            _LOGGER.warning(
                "Error: Discovery document %s is not a JSON object", discovery_url
            )
            raise MetadataFetchFailed(
                "Failed to load metadata (document is not a JSON object)"
            )

        return document

    def _check_discovery_document(self, document: dict) -> None:
        """Logs endpoints that will not be usable later on."""
        for endpoint in (
            "authorization_endpoint",
            "userinfo_endpoint",
            "end_session_endpoint",
            "jwks_uri",
        ):
            if endpoint in document and not validate_url(document[endpoint]):
                _LOGGER.warning(
                    "Discovery document %s has invalid URL in endpoint: %s (%s)",
                    self.settings.authority,
                    endpoint,
                    document[endpoint],
                )

        if "issuer" not in document:
            _LOGGER.warning(
                "Discovery document %s has no issuer, identity tokens will not validate",
                self.settings.authority,
            )

    async def async_resolve_metadata(self) -> ProviderMetadata:
        """Returns the provider metadata, fetching it on first use."""
        if self._metadata is not None:
            return self._metadata

        if not self.settings.authority:
            _LOGGER.warning("No authority configured, cannot load metadata")
            raise MissingConfiguration()

        document = await self._fetch_discovery_document(self.settings.authority)
        self._check_discovery_document(document)

        if self.settings.verbose_debug_mode:
            _LOGGER.debug("Discovery document: %s", document)

        self._metadata = ProviderMetadata.from_document(document)
        return self._metadata

    async def _fetch_jwks(self, jwks_uri: str) -> dict:
        """Fetches JWKS from the given URL."""
        try:
            jwks = await self.http_client.fetch_json(jwks_uri)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            _LOGGER.warning("Error fetching JWKS: %s", e)
            raise KeyFetchFailed(f"Failed to load signing keys ({e})") from e

        if not isinstance(jwks, dict):
            _LOGGER.warning("Error: JWKS at %s is not a JSON object", jwks_uri)
            raise KeyFetchFailed(
                "Failed to load signing keys (document is not a JSON object)"
            )

        return jwks

    async def async_resolve_signing_key(self) -> str:
        """Returns the base64 DER certificate to verify identity tokens with."""
        if self._jwks is None:
            metadata = await self.async_resolve_metadata()
            if not metadata.jwks_uri:
                _LOGGER.warning("Metadata does not contain jwks_uri")
                raise MissingJwksUri()

            self._jwks = await self._fetch_jwks(metadata.jwks_uri)

            if self.settings.verbose_debug_mode:
                _LOGGER.debug("JWKS: %s", self._jwks)

        try:
            return select_signing_certificate(self._jwks)
        except (NoSigningKeys, UnsupportedKeyType, EmptyCertificateChain) as e:
            _LOGGER.warning("No usable signing key: %s", e)
            raise

    async def async_load_user_profile(self, access_token: str) -> dict | RawResponse:
        """Fetches the userinfo endpoint with the access token."""
        metadata = await self.async_resolve_metadata()

        userinfo_endpoint = metadata.userinfo_endpoint
        # Some OPs do not advertise the endpoint, but serve it at /userinfo
        if not userinfo_endpoint and self.settings.network.userinfo_fallback:
            if metadata.issuer:
                userinfo_endpoint = f"{metadata.issuer.rstrip('/')}/userinfo"
                _LOGGER.info("Using userinfo fallback endpoint: %s", userinfo_endpoint)

        if not userinfo_endpoint:
            _LOGGER.warning("Metadata does not contain userinfo_endpoint")
            raise MissingUserinfoEndpoint()

        try:
            profile = await self.http_client.fetch_json(userinfo_endpoint, access_token)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            _LOGGER.warning("Error fetching userinfo: %s", e)
            raise UserinfoFetchFailed(f"Failed to load user profile ({e})") from e

        if not isinstance(profile, (dict, RawResponse)):
            _LOGGER.warning("Userinfo response is not a JSON object: %s", profile)
            raise UserinfoFetchFailed(
                "Failed to load user profile (response is not a JSON object)"
            )

        if self.settings.verbose_debug_mode:
            _LOGGER.debug("Userinfo response: %s", profile)
        return profile
