"""Logout route, ends the session at the OIDC provider."""

import logging

from aiohttp import web

from ..tools.exceptions import OIDCClientException
from ..tools.oidc_client import OIDCClient
from .error import render_error

PATH = "/auth/oidc/logout"

_LOGGER = logging.getLogger(__name__)


class OIDCLogoutView:
    """OIDC Logout View."""

    url = PATH
    name = "auth:oidc:logout"

    def __init__(self, oidc_client: OIDCClient):
        self.oidc_client = oidc_client

    async def get(self, request: web.Request) -> web.StreamResponse:
        """Redirect to the end session endpoint."""
        try:
            url = await self.oidc_client.async_build_logout_url(
                request.query.get("id_token_hint")
            )
        except OIDCClientException as e:
            _LOGGER.warning("Error generating logout URL: %s", e)
            return await render_error("Logout is not supported by the provider.")

        return web.Response(status=302, headers={"Location": url})
