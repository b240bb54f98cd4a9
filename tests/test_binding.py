"""Tests for the access token binding"""

import pytest

from implicit_oidc.tools.binding import compute_at_hash, verify_access_token_binding
from implicit_oidc.tools.exceptions import AtHashMismatch, MissingAtHash

from .mocks.oidc_server import make_at_hash

ACCESS_TOKEN = "exampleAccessToken"


def test_compute_at_hash():
    """Test at_hash against a known value."""
    assert (
        compute_at_hash("jHkWEdUXMU1BwAsC4vtUsZwnNjw4rgo8tGpM2lCgvtUTdaa6TXUJXTM")
        == "OG7iVVRj-Gaj_eF6qF_LDQ"
    )
    assert compute_at_hash(ACCESS_TOKEN) == make_at_hash(ACCESS_TOKEN)


def test_binding_accepts_matching_token():
    """Test that a correctly bound access token passes."""
    claims = {"at_hash": make_at_hash(ACCESS_TOKEN)}
    verify_access_token_binding(claims, ACCESS_TOKEN)


def test_binding_rejects_changed_token():
    """Test that changing any character of the access token is detected."""
    claims = {"at_hash": make_at_hash(ACCESS_TOKEN)}

    for index in range(len(ACCESS_TOKEN)):
        flipped = chr(ord(ACCESS_TOKEN[index]) ^ 0x01)
        tampered = ACCESS_TOKEN[:index] + flipped + ACCESS_TOKEN[index + 1 :]
        with pytest.raises(AtHashMismatch):
            verify_access_token_binding(claims, tampered)


def test_binding_requires_at_hash():
    """Test that an identity token without at_hash cannot bind a token."""
    with pytest.raises(MissingAtHash):
        verify_access_token_binding({"sub": "123"}, ACCESS_TOKEN)
