"""Access token binding through the at_hash claim."""

import hashlib
import logging

from .exceptions import AtHashMismatch, MissingAtHash
from .helpers import base64url_encode

_LOGGER = logging.getLogger(__name__)


def compute_at_hash(access_token: str) -> str:
    """Computes the at_hash value for an access token.

    base64url of the left half of the SHA-256 digest of the token, as used
    with RS256-family signatures (OpenID Connect Core 1.0 Section 3.2.2.9).
    """
    digest = hashlib.sha256(access_token.encode("utf-8")).digest()
    return base64url_encode(digest[: len(digest) // 2])


def verify_access_token_binding(claims: dict, access_token: str) -> None:
    """Checks that the access token is the one the identity token vouches for."""
    at_hash = claims.get("at_hash")
    if not at_hash:
        _LOGGER.warning("No at_hash in id_token, cannot bind the access token")
        raise MissingAtHash()

    expected_at_hash = compute_at_hash(access_token)
    if expected_at_hash != at_hash:
        _LOGGER.warning(
            "ID token at_hash mismatch! Expected: %s, got: %s (access_token tampering?)",
            expected_at_hash,
            at_hash,
        )
        raise AtHashMismatch()
