"""Request State Store, keeps the state of an authentication attempt between
the redirect to the provider and the callback."""

from __future__ import annotations

import base64
import binascii
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from aiohttp import web

_LOGGER = logging.getLogger(__name__)


class RequestStateStore(ABC):
    """Key/value store for serialized request state"""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Returns the value stored under key, if any."""

    @abstractmethod
    def set(self, key: str, value: Optional[str] = None) -> None:
        """Stores value under key, or clears the key if no value is given."""

    def clear(self, key: str) -> None:
        """Removes the value stored under key."""
        self.set(key)

    def pop(self, key: str) -> Optional[str]:
        """Returns the value stored under key and removes it, it is one time use."""
        value = self.get(key)
        self.clear(key)
        return value


class MemoryRequestStateStore(RequestStateStore):
    """Holds request state in process memory"""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: Optional[str] = None) -> None:
        if value is None:
            self._data.pop(key, None)
        else:
            self._data[key] = value

    def get_data(self) -> dict[str, str]:
        """Returns the raw stored data."""
        return self._data


class CookieRequestStateStore(RequestStateStore):
    """Keeps request state in a cookie of an aiohttp request.

    Writes are collected and only land on a response through `apply_to`.
    Once cleared, a key reads as absent for the rest of the request, even
    though the browser still sent the cookie.
    """

    def __init__(self, request: web.Request, **cookie_options: Any) -> None:
        self.request = request
        self.cookie_options = {"httponly": True, "samesite": "Lax", "path": "/"}
        self.cookie_options.update(cookie_options)
        # key -> value to set, or None to delete
        self._pending: dict[str, Optional[str]] = {}

    def get(self, key: str) -> Optional[str]:
        if key in self._pending:
            return self._pending[key]

        cookie = self.request.cookies.get(key)
        if cookie is None:
            return None

        try:
            return base64.urlsafe_b64decode(cookie.encode("ascii")).decode("utf-8")
        except (binascii.Error, ValueError):
            _LOGGER.warning("Request state cookie %s could not be decoded", key)
            return None

    def set(self, key: str, value: Optional[str] = None) -> None:
        self._pending[key] = value

    def apply_to(self, response: web.StreamResponse) -> web.StreamResponse:
        """Writes the pending cookie changes onto the response."""
        for key, value in self._pending.items():
            if value is None:
                _LOGGER.debug("Clearing request state cookie %s", key)
                response.del_cookie(key, path=self.cookie_options.get("path", "/"))
            else:
                _LOGGER.debug("Setting request state cookie %s", key)
                # Cookie values cannot hold JSON as-is
                encoded = base64.urlsafe_b64encode(value.encode("utf-8")).decode("ascii")
                response.set_cookie(key, encoded, **self.cookie_options)
        return response
