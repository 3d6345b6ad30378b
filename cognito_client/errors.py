"""
Error taxonomy for the Cognito login flow.
Components raise CognitoAuthError subclasses; the flow controller turns them into AuthResult failures.
"""
from enum import Enum


class ErrorKind(str, Enum):
    """Failure kinds surfaced to the application. Values are the strategy error codes."""

    MISSING_STATE = "no_state"
    STATE_MISMATCH = "bad_state"
    MISSING_CODE = "no_code"
    TOKEN_EXCHANGE_FAILED = "aws_response"
    KEY_SET_FETCH_FAILED = "jwks_response"
    INVALID_IDENTITY_TOKEN = "bad_id_token"


# Human-readable messages shown to the user; never include token contents.
ERROR_MESSAGES = {
    ErrorKind.MISSING_STATE: "Missing state param",
    ErrorKind.STATE_MISMATCH: "State parameter doesn't match",
    ErrorKind.MISSING_CODE: "Missing code param",
    ErrorKind.TOKEN_EXCHANGE_FAILED: "Non-200 error code from AWS",
    ErrorKind.KEY_SET_FETCH_FAILED: "Error fetching JWKs",
    ErrorKind.INVALID_IDENTITY_TOKEN: "Could not validate JWT id_token",
}


class ConfigError(Exception):
    """Configuration could not be resolved. Fatal: no flow can start."""


class TransportError(Exception):
    """The HTTP request did not produce a response (connect, timeout, protocol error)."""


class CognitoAuthError(Exception):
    """Base for flow failures. Each subclass maps to exactly one ErrorKind."""

    kind: ErrorKind

    def __init__(self, message: str | None = None):
        super().__init__(message or ERROR_MESSAGES[self.kind])


class TokenExchangeError(CognitoAuthError):
    kind = ErrorKind.TOKEN_EXCHANGE_FAILED


class KeySetFetchError(CognitoAuthError):
    kind = ErrorKind.KEY_SET_FETCH_FAILED


class InvalidIdentityTokenError(CognitoAuthError):
    kind = ErrorKind.INVALID_IDENTITY_TOKEN
