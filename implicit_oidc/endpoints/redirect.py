"""Redirect route to send the user to the external OIDC provider."""

import logging

from aiohttp import web

from ..stores.request_state_store import CookieRequestStateStore
from ..tools.exceptions import OIDCClientException
from ..tools.helpers import get_url
from ..tools.oidc_client import OIDCClient
from .error import render_error

PATH = "/auth/oidc/redirect"
CALLBACK_PATH = "/auth/oidc/callback"

# Query parameters a caller may use to adjust a single authentication request
REQUEST_OPTIONS = ("prompt", "display", "login_hint", "acr_values")

_LOGGER = logging.getLogger(__name__)


class OIDCRedirectView:
    """OIDC Redirect View."""

    url = PATH
    name = "auth:oidc:redirect"

    def __init__(self, oidc_client: OIDCClient, cookie_options: dict | None = None):
        self.oidc_client = oidc_client
        self.cookie_options = cookie_options or {}

    async def get(self, request: web.Request) -> web.StreamResponse:
        """Redirect to the authorization endpoint."""
        settings = self.oidc_client.settings
        callback_url = settings.redirect_uri or get_url(
            request,
            CALLBACK_PATH,
            settings.force_https,
            settings.trust_forwarded_proto,
        )

        options = {
            key: request.query[key] for key in REQUEST_OPTIONS if request.query.get(key)
        }
        options["callback_url"] = callback_url

        store = CookieRequestStateStore(request, **self.cookie_options)
        client = self.oidc_client.derive(
            settings=settings.merge_request_options(options, str(request.url)),
            request_state_store=store,
        )

        try:
            auth_request = await client.async_build_authentication_request()
        except OIDCClientException as e:
            _LOGGER.warning("Error generating authorization URL: %s", e)
            return await render_error(
                "Integration is misconfigured, the authorization URL could not be created."
            )

        response = web.Response(status=302, headers={"Location": auth_request.url})
        return store.apply_to(response)

    async def post(self, request: web.Request) -> web.StreamResponse:
        """POST"""
        return await self.get(request)
