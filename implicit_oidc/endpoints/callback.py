"""Callback route to return the user to after external OIDC interaction."""

import logging
from typing import Awaitable, Callable, Optional

from aiohttp import web

from ..stores.request_state_store import CookieRequestStateStore
from ..tools.exceptions import OIDCClientException, ProviderError
from ..tools.oidc_client import OIDCClient
from ..tools.types import CallbackResult, NormalizedSession
from .error import render_error

PATH = "/auth/oidc/callback"

_LOGGER = logging.getLogger(__name__)

SuccessHandler = Callable[[web.Request, NormalizedSession], Awaitable[web.StreamResponse]]


async def default_on_success(
    request: web.Request, session: NormalizedSession
) -> web.StreamResponse:
    """Answers with the profile of the authenticated user."""
    return web.json_response({"profile": session.profile})


class OIDCCallbackView:
    """OIDC Callback View."""

    url = PATH
    name = "auth:oidc:callback"

    def __init__(
        self,
        oidc_client: OIDCClient,
        on_success: Optional[SuccessHandler] = None,
        cookie_options: dict | None = None,
    ):
        self.oidc_client = oidc_client
        self.on_success = on_success or default_on_success
        self.cookie_options = cookie_options or {}

    async def _respond(
        self, request: web.Request, client: OIDCClient, params
    ) -> web.StreamResponse:
        try:
            session = await client.async_process_response(
                CallbackResult.from_params(params)
            )
        except ProviderError as e:
            return await render_error(f"The identity provider returned: {e}")
        except OIDCClientException as e:
            _LOGGER.warning("Failed to process OIDC callback: %s", e)
            return await render_error(
                "Failed to sign in, see the server logs for more information."
            )

        return await self.on_success(request, session)

    async def _process(self, request: web.Request, params) -> web.StreamResponse:
        store = CookieRequestStateStore(request, **self.cookie_options)
        client = self.oidc_client.derive(request_state_store=store)
        key = client.settings.request_state_key

        try:
            response = await self._respond(request, client, params)
        except web.HTTPException as e:
            # Handlers may answer by raising, e.g. web.HTTPFound
            store.clear(key)
            store.apply_to(e)
            raise
        except Exception:  # pylint: disable=broad-except
            _LOGGER.exception("Unexpected error while processing OIDC callback")
            response = await render_error(
                "Failed to sign in, see the server logs for more information.",
                status=500,
            )
        finally:
            # The request state is single use, drop the cookie on every path
            store.clear(key)

        return store.apply_to(response)

    async def get(self, request: web.Request) -> web.StreamResponse:
        """Receive a query response."""
        return await self._process(request, request.query)

    async def post(self, request: web.Request) -> web.StreamResponse:
        """Receive a form_post response."""
        return await self._process(request, await request.post())
