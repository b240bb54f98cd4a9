"""Tests for discovery and signing key resolution"""

import asyncio
from contextlib import asynccontextmanager
from unittest.mock import patch

import pytest

from implicit_oidc.config.settings import ClientSettings
from implicit_oidc.tools.exceptions import (
    EmptyCertificateChain,
    KeyFetchFailed,
    MetadataFetchFailed,
    MissingConfiguration,
    MissingJwksUri,
    MissingUserinfoEndpoint,
    NoSigningKeys,
    UnsupportedKeyType,
    UserinfoFetchFailed,
)
from implicit_oidc.tools.http import OIDCHttpClient, RawResponse
from implicit_oidc.tools.metadata import MetadataResolver, select_signing_certificate

from .conftest import make_config
from .mocks.oidc_server import BASE_URL, MockOIDCServer, mock_oidc_responses

RSA_KEY = {"kty": "RSA", "x5c": ["first-cert", "second-cert"]}
EC_KEY = {"kty": "EC", "x5c": ["ec-cert"]}


@asynccontextmanager
async def make_resolver(settings: ClientSettings):
    """Create a resolver with its own HTTP client."""
    http_client = OIDCHttpClient(settings.network)
    try:
        yield MetadataResolver(settings, http_client)
    finally:
        await http_client.async_close()


def test_select_signing_certificate():
    """Test that the first certificate of the first RSA key is used."""
    assert select_signing_certificate({"keys": [RSA_KEY]}) == "first-cert"


def test_select_signing_certificate_failures():
    """Test the key material failures."""
    with pytest.raises(NoSigningKeys):
        select_signing_certificate({"keys": []})
    with pytest.raises(NoSigningKeys):
        select_signing_certificate({})
    with pytest.raises(UnsupportedKeyType):
        select_signing_certificate({"keys": [EC_KEY]})
    with pytest.raises(EmptyCertificateChain):
        select_signing_certificate({"keys": [{"kty": "RSA", "x5c": []}]})
    with pytest.raises(EmptyCertificateChain):
        select_signing_certificate({"keys": [{"kty": "RSA"}]})


def test_select_signing_certificate_only_looks_at_first_key():
    """Test that a usable key after a non-RSA key is not picked."""
    with pytest.raises(UnsupportedKeyType):
        select_signing_certificate({"keys": [EC_KEY, RSA_KEY]})


@pytest.mark.asyncio
async def test_presupplied_metadata_skips_network():
    """Test that configured metadata is returned without fetching."""
    settings = ClientSettings.from_config(
        {"client_id": "dummy", "metadata": {"issuer": BASE_URL}}
    )

    with mock_oidc_responses() as (_, get_patch):
        async with make_resolver(settings) as resolver:
            metadata = await resolver.async_resolve_metadata()

    assert metadata.issuer == BASE_URL
    assert metadata.jwks_uri is None
    get_patch.assert_not_called()


@pytest.mark.asyncio
async def test_missing_authority():
    """Test that metadata cannot be resolved without an authority."""
    settings = ClientSettings.from_config({"client_id": "dummy"})

    async with make_resolver(settings) as resolver:
        with pytest.raises(MissingConfiguration):
            await resolver.async_resolve_metadata()


@pytest.mark.asyncio
async def test_metadata_is_fetched_once(settings):
    """Test that the discovery document is cached."""
    with mock_oidc_responses() as (server, get_patch):
        async with make_resolver(settings) as resolver:
            first = await resolver.async_resolve_metadata()
            second = await resolver.async_resolve_metadata()

    assert first is second
    assert first.issuer == BASE_URL
    assert first.authorization_endpoint == MockOIDCServer.get_authorize_url()
    assert first.document["id_token_signing_alg_values_supported"] == ["RS256"]
    assert get_patch.call_count == 1
    assert server.requests[0][1] == MockOIDCServer.get_discovery_url()


@pytest.mark.asyncio
async def test_metadata_fetch_failures():
    """Test that transport failures are reported as MetadataFetchFailed."""
    settings = ClientSettings.from_config(
        make_config(authority="https://oidc.example.com/unknown")
    )
    with mock_oidc_responses():
        async with make_resolver(settings) as resolver:
            with pytest.raises(MetadataFetchFailed) as exc_info:
                await resolver.async_resolve_metadata()
    assert "404" in exc_info.value.message

    settings = ClientSettings.from_config(make_config())
    with mock_oidc_responses(MockOIDCServer(discovery=["not", "an", "object"])):
        async with make_resolver(settings) as resolver:
            with pytest.raises(MetadataFetchFailed):
                await resolver.async_resolve_metadata()


@pytest.mark.asyncio
async def test_fetch_timeouts():
    """Test that a provider timing out is reported like any transport failure."""
    settings = ClientSettings.from_config(make_config())
    with patch("aiohttp.ClientSession.get", side_effect=asyncio.TimeoutError()):
        async with make_resolver(settings) as resolver:
            with pytest.raises(MetadataFetchFailed):
                await resolver.async_resolve_metadata()

    settings = ClientSettings.from_config(
        make_config(
            metadata={
                "issuer": BASE_URL,
                "jwks_uri": f"{BASE_URL}/jwks",
                "userinfo_endpoint": f"{BASE_URL}/userinfo",
            }
        )
    )
    with patch("aiohttp.ClientSession.get", side_effect=asyncio.TimeoutError()):
        async with make_resolver(settings) as resolver:
            with pytest.raises(KeyFetchFailed):
                await resolver.async_resolve_signing_key()
            with pytest.raises(UserinfoFetchFailed):
                await resolver.async_load_user_profile("exampleAccessToken")


@pytest.mark.asyncio
async def test_signing_key_from_jwks_uri(settings):
    """Test that the signing key is fetched through the jwks_uri and cached."""
    with mock_oidc_responses() as (server, get_patch):
        async with make_resolver(settings) as resolver:
            certificate = await resolver.async_resolve_signing_key()
            again = await resolver.async_resolve_signing_key()

    assert certificate == again
    assert certificate == server._x5c
    # Discovery once, JWKS once
    assert get_patch.call_count == 2


@pytest.mark.asyncio
async def test_presupplied_jwks_skips_network():
    """Test that a configured key set is used without fetching."""
    settings = ClientSettings.from_config(
        make_config(jwks={"keys": [RSA_KEY]})
    )

    with mock_oidc_responses() as (_, get_patch):
        async with make_resolver(settings) as resolver:
            assert await resolver.async_resolve_signing_key() == "first-cert"

    get_patch.assert_not_called()


@pytest.mark.asyncio
async def test_signing_key_failures(settings):
    """Test the failures while resolving the signing key."""
    discovery = {"issuer": BASE_URL}
    with mock_oidc_responses(MockOIDCServer(discovery=discovery)):
        async with make_resolver(settings) as resolver:
            with pytest.raises(MissingJwksUri):
                await resolver.async_resolve_signing_key()

    discovery = {"issuer": BASE_URL, "jwks_uri": f"{BASE_URL}/missing-jwks"}
    with mock_oidc_responses(MockOIDCServer(discovery=discovery)):
        async with make_resolver(settings) as resolver:
            with pytest.raises(KeyFetchFailed):
                await resolver.async_resolve_signing_key()

    with mock_oidc_responses(MockOIDCServer(jwks={"keys": []})):
        async with make_resolver(settings) as resolver:
            with pytest.raises(NoSigningKeys):
                await resolver.async_resolve_signing_key()


@pytest.mark.asyncio
async def test_load_user_profile(settings):
    """Test that userinfo is fetched with the access token as bearer."""
    with mock_oidc_responses() as (server, _):
        async with make_resolver(settings) as resolver:
            profile = await resolver.async_load_user_profile("exampleAccessToken")

    assert profile["name"] == "Test User"
    method, url, headers = server.requests[-1]
    assert (method, url) == ("GET", f"{BASE_URL}/userinfo")
    assert headers["Authorization"] == "Bearer exampleAccessToken"


@pytest.mark.asyncio
async def test_load_user_profile_raw_response(settings):
    """Test that a non-JSON userinfo response is returned as a RawResponse."""
    server = MockOIDCServer(userinfo_content_type="text/html")
    with mock_oidc_responses(server):
        async with make_resolver(settings) as resolver:
            profile = await resolver.async_load_user_profile("exampleAccessToken")

    assert isinstance(profile, RawResponse)
    assert profile.status == 200
    assert "Sign in" in profile.body


@pytest.mark.asyncio
async def test_userinfo_endpoint_fallback():
    """Test the userinfo endpoint fallback for providers that do not advertise it."""
    discovery = {"issuer": BASE_URL, "jwks_uri": f"{BASE_URL}/jwks"}

    settings = ClientSettings.from_config(make_config())
    with mock_oidc_responses(MockOIDCServer(discovery=discovery)):
        async with make_resolver(settings) as resolver:
            with pytest.raises(MissingUserinfoEndpoint):
                await resolver.async_load_user_profile("exampleAccessToken")

    settings = ClientSettings.from_config(
        make_config(network={"userinfo_fallback": True})
    )
    with mock_oidc_responses(MockOIDCServer(discovery=discovery)):
        async with make_resolver(settings) as resolver:
            profile = await resolver.async_load_user_profile("exampleAccessToken")
    assert profile["sub"] == "1234567890"
