"""Error page shown when a step of the flow fails."""

from aiohttp import web

from ..tools.helpers import get_view


async def render_error(message: str, status: int = 400) -> web.Response:
    """Renders the error view with the given message."""
    view_html = await get_view("error", {"error": message})
    return web.Response(text=view_html, content_type="text/html", status=status)
