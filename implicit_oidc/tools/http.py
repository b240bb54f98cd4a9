"""HTTP client used to talk to the OpenID provider."""

from __future__ import annotations

import asyncio
import logging
import ssl
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Optional

import aiohttp

from ..config.settings import NetworkOptions

_LOGGER = logging.getLogger(__name__)


class HTTPClientError(aiohttp.ClientResponseError):
    "Raised when the HTTP client encounters not OK (200) status code."

    body: str

    def __init__(self, *args, **kwargs):
        self.body = kwargs.pop("body")
        super().__init__(*args, **kwargs)

    def __str__(self):
        return f"{self.status} ({self.message}) with response body: {self.body}"


@dataclass(frozen=True)
class RawResponse:
    """A response that did not carry JSON, returned as-is."""

    status: int
    headers: dict = field(default_factory=dict)
    body: str = ""


async def http_raise_for_status(response: aiohttp.ClientResponse) -> None:
    """Raises an exception if the response is not OK."""
    if not response.ok:
        # reason should always be not None for a started response
        assert response.reason is not None
        body = await response.text()

        raise HTTPClientError(
            response.request_info,
            response.history,
            status=response.status,
            message=response.reason,
            headers=response.headers,
            body=body,
        )


def is_json_content_type(content_type: Optional[str]) -> bool:
    """Whether a content type denotes a JSON body."""
    if not content_type:
        return False
    return content_type == "application/json" or content_type.endswith("+json")


class OIDCHttpClient:
    """Fetches JSON documents, optionally with a bearer token."""

    def __init__(
        self,
        network: Optional[NetworkOptions] = None,
        http_session: Optional[aiohttp.ClientSession] = None,
    ):
        self.network = network or NetworkOptions()
        self.http_session = http_session
        # Only close sessions we created ourselves
        self._owns_session = http_session is None

    async def _get_http_session(self) -> aiohttp.ClientSession:
        """Create or get the existing client session with custom networking/TLS options"""
        if self.http_session is not None:
            return self.http_session

        _LOGGER.debug(
            "Creating HTTP session with options: "
            + "verify certificates: %r, custom CA file: %s",
            self.network.tls_verify,
            self.network.tls_ca_path,
        )

        tcp_connector_args: dict[str, Any] = {}
        if self.network.tls_ca_path:
            # Loading the CA file blocks, so do it in the executor
            ssl_context = await asyncio.get_running_loop().run_in_executor(
                None,
                partial(ssl.create_default_context, cafile=self.network.tls_ca_path),
            )
            if not self.network.tls_verify:
                ssl_context.check_hostname = False
                ssl_context.verify_mode = ssl.CERT_NONE
            tcp_connector_args["ssl"] = ssl_context
        elif not self.network.tls_verify:
            tcp_connector_args["ssl"] = False

        self.http_session = aiohttp.ClientSession(
            connector=aiohttp.TCPConnector(**tcp_connector_args)
        )
        self._owns_session = True
        return self.http_session

    async def fetch_json(self, url: str, bearer_token: Optional[str] = None) -> Any:
        """Fetches a document, returning parsed JSON or a RawResponse.

        Raises HTTPClientError for non-OK statuses and aiohttp.ClientError when
        the provider cannot be reached.
        """
        session = await self._get_http_session()
        headers = {"Accept": "application/json"}
        if bearer_token:
            headers["Authorization"] = "Bearer " + bearer_token

        _LOGGER.debug("Fetching %s", url)
        async with session.get(url, headers=headers) as response:
            await http_raise_for_status(response)

            if not is_json_content_type(response.content_type):
                _LOGGER.debug(
                    "Response from %s is %s, not JSON", url, response.content_type
                )
                return RawResponse(
                    status=response.status,
                    headers=dict(response.headers),
                    body=await response.text(),
                )

            return await response.json(content_type=None)

    async def async_close(self) -> None:
        """Closes the HTTP session if it was created by this client."""
        if self.http_session is not None and self._owns_session:
            _LOGGER.debug("Closing HTTP session")
            await self.http_session.close()
            self.http_session = None
