"""OIDC Client class"""

from __future__ import annotations

import logging
import urllib.parse
from typing import Optional

import aiohttp

from ..config.const import (
    OPTIONAL_REQUEST_PARAMETERS,
    PROTOCOL_CLAIMS,
    REQUIRED_REQUEST_PARAMETERS,
)
from ..config.settings import ClientSettings
from ..stores.request_state_store import MemoryRequestStateStore, RequestStateStore
from .binding import verify_access_token_binding
from .exceptions import (
    InvalidTokenType,
    MissingAccessToken,
    MissingAuthorizationEndpoint,
    MissingEndSessionEndpoint,
    MissingExpiry,
    MissingIdentityToken,
    MissingNonce,
    MissingRequestState,
    MissingState,
    NoResponse,
    ProviderError,
    StateMismatch,
)
from .helpers import generate_random_url_string
from .http import OIDCHttpClient
from .metadata import MetadataResolver
from .types import (
    AuthenticationRequest,
    CallbackResult,
    NormalizedSession,
    ProviderMetadata,
    RequestState,
)
from .verifier import IdentityTokenVerifier

_LOGGER = logging.getLogger(__name__)


def _quote(value: str) -> str:
    return urllib.parse.quote(value, safe="")


class OIDCClient:
    """Relying party for the OpenID Connect implicit and hybrid flows."""

    def __init__(
        self,
        settings: ClientSettings,
        request_state_store: Optional[RequestStateStore] = None,
        http_session: Optional[aiohttp.ClientSession] = None,
        *,
        http_client: Optional[OIDCHttpClient] = None,
        resolver: Optional[MetadataResolver] = None,
    ):
        self.settings = settings
        self.request_state_store = request_state_store or MemoryRequestStateStore()
        self.http_client = http_client or OIDCHttpClient(
            settings.network, http_session
        )
        self.resolver = resolver or MetadataResolver(settings, self.http_client)
        self.verifier = IdentityTokenVerifier(settings, self.resolver)

    def derive(
        self,
        settings: Optional[ClientSettings] = None,
        request_state_store: Optional[RequestStateStore] = None,
    ) -> "OIDCClient":
        """Returns a client for a single request.

        The derived client shares the metadata cache and HTTP session, so
        the settings given must point at the same provider.
        """
        return OIDCClient(
            settings or self.settings,
            request_state_store or self.request_state_store,
            http_client=self.http_client,
            resolver=self.resolver,
        )

    async def async_close(self) -> None:
        """Closes the HTTP session."""
        await self.http_client.async_close()

    async def __aenter__(self) -> "OIDCClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.async_close()

    async def async_resolve_metadata(self) -> ProviderMetadata:
        """Returns the provider metadata."""
        return await self.resolver.async_resolve_metadata()

    async def _async_get_authorization_endpoint(self) -> str:
        """Configured authorization endpoint, or the one from the metadata."""
        if self.settings.authorization_endpoint:
            return self.settings.authorization_endpoint

        if not self.settings.authority and self.settings.metadata is None:
            _LOGGER.warning("No authorization_endpoint or authority configured")
            raise MissingAuthorizationEndpoint()

        metadata = await self.resolver.async_resolve_metadata()
        if not metadata.authorization_endpoint:
            _LOGGER.warning("Metadata does not contain authorization_endpoint")
            raise MissingAuthorizationEndpoint(
                "Metadata does not contain authorization_endpoint"
            )

        return metadata.authorization_endpoint

    async def async_build_authentication_request(self) -> AuthenticationRequest:
        """Creates the authorization URL and stores the matching request state."""
        settings = self.settings
        authorization_endpoint = await self._async_get_authorization_endpoint()

        state = generate_random_url_string()
        url = f"{authorization_endpoint}?state={_quote(state)}"

        nonce = None
        if settings.is_oidc():
            nonce = generate_random_url_string()
            url += f"&nonce={_quote(nonce)}"

        for key in (*REQUIRED_REQUEST_PARAMETERS, *OPTIONAL_REQUEST_PARAMETERS):
            value = settings.get_parameter(key)
            if value:
                url += f"&{key}={_quote(value)}"

        request_state = RequestState(
            state=state,
            nonce=nonce,
            oidc=settings.is_oidc(),
            oauth=settings.is_oauth(),
        )

        self.request_state_store.set(
            settings.request_state_key, request_state.to_json()
        )

        if settings.verbose_debug_mode:
            _LOGGER.debug("Authentication request: %s (%s)", url, request_state)

        return AuthenticationRequest(request_state=request_state, url=url)

    async def async_build_logout_url(self, id_token_hint: Optional[str] = None) -> str:
        """Creates the URL to end the session at the provider."""
        metadata = await self.resolver.async_resolve_metadata()
        if not metadata.end_session_endpoint:
            _LOGGER.warning("No end_session_endpoint in metadata")
            raise MissingEndSessionEndpoint()

        url = metadata.end_session_endpoint
        if id_token_hint and self.settings.post_logout_redirect_uri:
            url += "?post_logout_redirect_uri=" + _quote(
                self.settings.post_logout_redirect_uri
            )
            url += "&id_token_hint=" + _quote(id_token_hint)
        return url

    async def async_verify_identity_token(
        self, id_token: str, nonce: Optional[str], access_token: Optional[str] = None
    ) -> dict:
        """Verifies the identity token, see IdentityTokenVerifier."""
        return await self.verifier.async_verify_identity_token(
            id_token, nonce, access_token
        )

    def verify_access_token_binding(self, claims: dict, access_token: str) -> None:
        """Checks the access token against the at_hash claim."""
        verify_access_token_binding(claims, access_token)

    async def _async_verify_identity_and_access_token(
        self, id_token: str, nonce: str, access_token: str
    ) -> dict:
        claims = await self.async_verify_identity_token(id_token, nonce, access_token)
        self.verify_access_token_binding(claims, access_token)
        return claims

    def _load_request_state(
        self, request_state: Optional[RequestState | str]
    ) -> RequestState:
        """Uses the given request state, or takes it from the store."""
        if request_state is None:
            request_state = self.request_state_store.pop(
                self.settings.request_state_key
            )

        if not request_state:
            _LOGGER.warning("No request state loaded")
            raise MissingRequestState()

        if isinstance(request_state, str):
            request_state = RequestState.from_json(request_state)

        return request_state

    # pylint: disable=too-many-branches
    async def async_process_response(
        self,
        result: Optional[CallbackResult],
        request_state: Optional[RequestState | str] = None,
    ) -> NormalizedSession:
        """Validates the provider callback and returns the resulting session.

        Without an explicit request state, the stored one is read and removed,
        so a callback can only be processed once.
        """
        request_state = self._load_request_state(request_state)

        if not request_state.state:
            _LOGGER.warning("No state loaded")
            raise MissingState()

        if result is None:
            _LOGGER.warning("No OIDC response")
            raise NoResponse()

        if result.error:
            _LOGGER.warning(
                "Provider returned error: %s (%s)",
                result.error,
                result.error_description,
            )
            raise ProviderError(result.error, result.error_description)

        if result.state != request_state.state:
            _LOGGER.warning("State mismatch, callback does not belong to this request")
            raise StateMismatch()

        if request_state.oidc:
            if not result.id_token:
                _LOGGER.warning("No identity token in response")
                raise MissingIdentityToken()

            if not request_state.nonce:
                _LOGGER.warning("No nonce in request state")
                raise MissingNonce()

        if request_state.oauth:
            if not result.access_token:
                _LOGGER.warning("No access token in response")
                raise MissingAccessToken()

            if not result.token_type or result.token_type.lower() != "bearer":
                _LOGGER.warning("Invalid token type: %s", result.token_type)
                raise InvalidTokenType()

            if not result.expires_in:
                _LOGGER.warning("No token expiration in response")
                raise MissingExpiry()

        profile = None
        if request_state.oidc and request_state.oauth:
            profile = await self._async_verify_identity_and_access_token(
                result.id_token, request_state.nonce, result.access_token
            )
        elif request_state.oidc:
            profile = await self.async_verify_identity_token(
                result.id_token, request_state.nonce
            )

        if profile is not None and self.settings.filter_protocol_claims:
            profile = {
                key: value
                for key, value in profile.items()
                if key not in PROTOCOL_CLAIMS
            }

        _LOGGER.debug(
            "Authentication completed (subject: %s)",
            profile.get("sub") if profile else None,
        )

        return NormalizedSession(
            profile=profile,
            id_token=result.id_token,
            access_token=result.access_token,
            expires_in=result.expires_in,
            scope=result.scope,
            session_state=result.session_state,
        )
