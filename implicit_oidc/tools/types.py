"""Generic data types"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Any, Mapping, Optional

from .exceptions import MissingRequestState


@dataclass(frozen=True)
class ProviderMetadata:
    """Discovery document of the OpenID provider."""

    issuer: Optional[str] = None
    authorization_endpoint: Optional[str] = None
    token_endpoint: Optional[str] = None
    userinfo_endpoint: Optional[str] = None
    end_session_endpoint: Optional[str] = None
    jwks_uri: Optional[str] = None
    # Full document as received, for any fields not modelled above
    document: dict = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "ProviderMetadata":
        """Creates metadata from a discovery document."""
        return cls(
            issuer=document.get("issuer"),
            authorization_endpoint=document.get("authorization_endpoint"),
            token_endpoint=document.get("token_endpoint"),
            userinfo_endpoint=document.get("userinfo_endpoint"),
            end_session_endpoint=document.get("end_session_endpoint"),
            jwks_uri=document.get("jwks_uri"),
            document=dict(document),
        )


@dataclass(frozen=True)
class RequestState:
    """State of one authentication attempt, kept between redirect and callback."""

    state: Optional[str]
    nonce: Optional[str] = None
    oidc: bool = False
    oauth: bool = False

    def to_json(self) -> str:
        """Serializes the request state for the request state store."""
        data: dict[str, Any] = {
            "oidc": self.oidc,
            "oauth": self.oauth,
            "state": self.state,
        }
        if self.nonce:
            data["nonce"] = self.nonce
        return json.dumps(data)

    @classmethod
    def from_json(cls, value: str) -> "RequestState":
        """Parses a stored request state, raising MissingRequestState if unusable."""
        try:
            data = json.loads(value)
        except (TypeError, ValueError) as e:
            raise MissingRequestState("Stored request state is not valid JSON") from e

        if not isinstance(data, dict):
            raise MissingRequestState()

        return cls(
            state=data.get("state"),
            nonce=data.get("nonce"),
            oidc=bool(data.get("oidc")),
            oauth=bool(data.get("oauth")),
        )


@dataclass(frozen=True)
class AuthenticationRequest:
    """An authorization URL and the request state that goes with it."""

    request_state: RequestState
    url: str


# pylint: disable=too-many-instance-attributes
@dataclass(frozen=True)
class CallbackResult:
    """Values the provider sent back to the redirect URI."""

    state: Optional[str] = None
    error: Optional[str] = None
    error_description: Optional[str] = None
    id_token: Optional[str] = None
    access_token: Optional[str] = None
    token_type: Optional[str] = None
    expires_in: Optional[str | int] = None
    scope: Optional[str] = None
    session_state: Optional[str] = None

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "CallbackResult":
        """Creates a callback result from query or form parameters."""
        return cls(
            state=params.get("state"),
            error=params.get("error"),
            error_description=params.get("error_description"),
            id_token=params.get("id_token"),
            access_token=params.get("access_token"),
            token_type=params.get("token_type"),
            expires_in=params.get("expires_in"),
            scope=params.get("scope"),
            session_state=params.get("session_state"),
        )


@dataclass
class NormalizedSession:
    """Outcome of a successful authentication."""

    # Identity token claims, merged with userinfo; None for pure OAuth flows
    profile: Optional[dict]
    id_token: Optional[str] = None
    access_token: Optional[str] = None
    expires_in: Optional[str | int] = None
    scope: Optional[str] = None
    session_state: Optional[str] = None

    def as_dict(self) -> dict:
        """Returns the session as a plain dict."""
        return asdict(self)
