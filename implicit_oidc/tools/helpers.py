"""Helper functions for the client and its views."""

import base64
import os

from aiohttp import web

from ..views.loader import AsyncTemplateRenderer


def base64url_encode(value: bytes) -> str:
    """Uses base64url encoding on a given byte string"""
    return base64.urlsafe_b64encode(value).rstrip(b"=").decode("utf-8")


def generate_random_url_string(length: int = 16) -> str:
    """Generates a random URL safe string (base64_url encoded)"""
    return base64url_encode(os.urandom(length))


def get_url(
    request: web.Request,
    path: str,
    force_https: bool,
    trust_forwarded_proto: bool = False,
) -> str:
    """Returns the requested path appended to the base URL of the request.

    X-Forwarded-Proto can be sent by any client, so it is only honoured when
    the application runs behind a reverse proxy that sets it.
    """
    scheme = request.scheme
    if (
        trust_forwarded_proto
        and request.headers.get("X-Forwarded-Proto", "").lower() == "https"
    ):
        scheme = "https"
    if force_https:
        scheme = "https"

    return f"{scheme}://{request.host}{path}"


async def get_view(template: str, parameters: dict | None = None) -> str:
    """Returns the generated HTML of the requested view."""
    if parameters is None:
        parameters = {}

    renderer = AsyncTemplateRenderer()
    return await renderer.render_template(f"{template}.html", **parameters)
