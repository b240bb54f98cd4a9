"""Jinja2 Async Environment"""

import logging
from os import path
from typing import Any

from aiofiles import open as async_open
from aiofiles.os import scandir as async_scandir
from jinja2 import DictLoader, Environment, select_autoescape

_LOGGER = logging.getLogger(__name__)

DEFAULT_TEMPLATE_DIR = path.join(path.dirname(path.abspath(__file__)), "templates")

# Template sources per template directory, read from disk once
_template_cache: dict[str, dict[str, str]] = {}


class AsyncTemplateRenderer:
    """Renders the HTML pages shown when an authentication attempt fails."""

    def __init__(self, template_dir: str | None = None):
        self.template_dir = template_dir or DEFAULT_TEMPLATE_DIR

    @property
    def templates(self) -> dict[str, str]:
        """Templates loaded for this renderer's directory."""
        return _template_cache.setdefault(self.template_dir, {})

    async def fetch_templates(self) -> None:
        """Reads all HTML files from the template directory."""
        templates = self.templates
        templates.clear()

        for entry in await async_scandir(self.template_dir):
            if entry.is_dir() or not entry.name.endswith(".html"):
                continue

            try:
                _LOGGER.debug("Fetching template %s from disk", entry.name)
                async with async_open(entry.path, mode="r", encoding="utf-8") as f:
                    templates[entry.name] = await f.read()
            except OSError as e:
                _LOGGER.warning("Error reading template file %s: %s", entry.name, e)

    async def render_template(self, template_name: str, **kwargs: Any) -> str:
        """Renders a template with the given parameters."""
        if not self.templates:
            await self.fetch_templates()

        if template_name not in self.templates:
            raise ValueError(f"Template '{template_name}' not found.")

        env = Environment(
            loader=DictLoader(self.templates),
            autoescape=select_autoescape(["html"]),
            enable_async=True,
        )
        template = env.get_template(template_name)
        return await template.render_async(**kwargs)
