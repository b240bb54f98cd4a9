"""OpenID Connect implicit flow relying party for aiohttp applications."""

import logging
from typing import Any, Mapping, Optional

from aiohttp import web

# Import and re-export config schema explictly
# pylint: disable=useless-import-alias
from .config import CONFIG_SCHEMA as CONFIG_SCHEMA
from .config import ClientSettings as ClientSettings
from .config import DOMAIN
from .endpoints import OIDCCallbackView, OIDCLogoutView, OIDCRedirectView
from .endpoints.callback import SuccessHandler
from .stores.request_state_store import (
    CookieRequestStateStore as CookieRequestStateStore,
    MemoryRequestStateStore as MemoryRequestStateStore,
    RequestStateStore as RequestStateStore,
)
from .tools.binding import verify_access_token_binding as verify_access_token_binding
from .tools.exceptions import OIDCClientException as OIDCClientException
from .tools.oidc_client import OIDCClient as OIDCClient
from .tools.types import (
    AuthenticationRequest as AuthenticationRequest,
    CallbackResult as CallbackResult,
    NormalizedSession as NormalizedSession,
    ProviderMetadata as ProviderMetadata,
    RequestState as RequestState,
)

_LOGGER = logging.getLogger(__name__)

OIDC_CLIENT_KEY = web.AppKey(DOMAIN, OIDCClient)


async def async_setup(
    app: web.Application,
    config: Mapping[str, Any],
    on_success: Optional[SuccessHandler] = None,
    cookie_options: Optional[dict] = None,
) -> OIDCClient:
    """Adds the OIDC routes to an aiohttp application."""
    settings = ClientSettings.from_config(config)
    oidc_client = OIDCClient(settings)
    app[OIDC_CLIENT_KEY] = oidc_client

    redirect_view = OIDCRedirectView(oidc_client, cookie_options)
    callback_view = OIDCCallbackView(oidc_client, on_success, cookie_options)
    logout_view = OIDCLogoutView(oidc_client)

    app.router.add_get(redirect_view.url, redirect_view.get, name=redirect_view.name)
    app.router.add_post(redirect_view.url, redirect_view.post)
    app.router.add_get(callback_view.url, callback_view.get, name=callback_view.name)
    app.router.add_post(callback_view.url, callback_view.post)
    app.router.add_get(logout_view.url, logout_view.get, name=logout_view.name)

    async def _async_close_client(_app: web.Application) -> None:
        await oidc_client.async_close()

    app.on_cleanup.append(_async_close_client)

    _LOGGER.info("Registered OIDC routes for client %s", settings.client_id)
    return oidc_client
