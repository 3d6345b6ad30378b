"""
Data passed between the flow stages: token bundle, key set, credentials, result.
"""
from dataclasses import dataclass, field
from typing import Any

from jwt import PyJWK

from cognito_client.errors import ERROR_MESSAGES, ErrorKind


@dataclass(frozen=True)
class RedirectInstruction:
    url: str
    state: str


@dataclass(frozen=True)
class TokenBundle:
    """Parsed token endpoint response. id_token stays opaque until verified."""

    access_token: str
    id_token: str
    refresh_token: str | None = None
    expires_in: int | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(frozen=True)
class KeySet:
    """Signing keys in the order the provider published them."""

    keys: tuple[PyJWK, ...] = ()

    def __iter__(self):
        return iter(self.keys)

    def __len__(self) -> int:
        return len(self.keys)


@dataclass(frozen=True)
class Credentials:
    token: str
    refresh_token: str | None
    expires: bool
    expires_at: int | None = None


@dataclass
class FlowContext:
    """Per-callback scratch space: raw tokens and verified claims. Emptied by cleanup."""

    token_bundle: TokenBundle | None = None
    id_token_claims: dict[str, Any] | None = None


@dataclass(frozen=True)
class AuthResult:
    credentials: Credentials | None = None
    claims: dict[str, Any] | None = None
    uid: str | None = None
    error_kind: ErrorKind | None = None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.error_kind is None

    @classmethod
    def success(cls, credentials: Credentials, claims: dict[str, Any], uid: str | None) -> "AuthResult":
        return cls(credentials=credentials, claims=claims, uid=uid)

    @classmethod
    def failure(cls, kind: ErrorKind, reason: str | None = None) -> "AuthResult":
        return cls(error_kind=kind, reason=reason or ERROR_MESSAGES[kind])
