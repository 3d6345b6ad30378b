"""
Authorization Code flow against a Cognito user pool: redirect, callback, token exchange,
JWKS fetch, ID token verification, result assembly.
Collaborators are injected; production defaults use httpx and JwtVerifier.
"""
import logging
import secrets
import time
from typing import Any, Mapping, MutableMapping
from urllib.parse import urlencode

from cognito_client.config import CognitoConfig
from cognito_client.errors import CognitoAuthError, ERROR_MESSAGES, ErrorKind
from cognito_client.jwks import KeySetFetcher
from cognito_client.models import AuthResult, Credentials, FlowContext, RedirectInstruction
from cognito_client.token_client import TokenExchangeClient
from cognito_client.transport import HttpTransport, HttpxTransport
from cognito_client.verifier import IdentityVerifier, JwtVerifier

logger = logging.getLogger(__name__)

# Session key holding the CSRF state between /login and /callback
STATE_SESSION_KEY = "cognito_state"

# Claim used as the application-facing user id
USERNAME_CLAIM = "cognito:username"


def generate_state() -> str:
    """Opaque CSRF value: 32 random bytes, hex encoded."""
    return secrets.token_hex(32)


def build_authorize_url(*, config: CognitoConfig, redirect_uri: str, state: str) -> str:
    params = {
        "response_type": "code",
        "client_id": config.client_id,
        "redirect_uri": redirect_uri,
        "state": state,
        "scope": config.scope,
    }
    return f"{config.authorize_url}?{urlencode(params)}"


class AuthFlowController:
    def __init__(
        self,
        config: CognitoConfig,
        *,
        transport: HttpTransport | None = None,
        token_client: TokenExchangeClient | None = None,
        key_set_fetcher: KeySetFetcher | None = None,
        verifier: IdentityVerifier | None = None,
        clock=time.time,
    ):
        self.config = config
        transport = transport or HttpxTransport()
        self.token_client = token_client or TokenExchangeClient(transport)
        self.key_set_fetcher = key_set_fetcher or KeySetFetcher(transport)
        self.verifier = verifier or JwtVerifier(clock=clock)
        self.clock = clock

    def begin_auth(self, session: MutableMapping[str, Any], redirect_uri: str | None = None) -> RedirectInstruction:
        """Store a fresh state in the session and build the provider /oauth2/authorize URL."""
        state = generate_state()
        session[STATE_SESSION_KEY] = state
        url = build_authorize_url(
            config=self.config,
            redirect_uri=redirect_uri or self.config.redirect_uri,
            state=state,
        )
        return RedirectInstruction(url=url, state=state)

    def complete_auth(
        self,
        session: MutableMapping[str, Any],
        params: Mapping[str, str],
        redirect_uri: str | None = None,
    ) -> AuthResult:
        """
        Handle the provider callback. Never raises for flow errors; returns AuthResult.failure.
        The stored state is removed from the session on every path (single use).
        """
        expected_state = session.pop(STATE_SESSION_KEY, None)
        state = params.get("state")
        if not state:
            return self._fail(ErrorKind.MISSING_STATE)
        if expected_state is None or not secrets.compare_digest(str(state).encode("utf-8"), str(expected_state).encode("utf-8")):
            return self._fail(ErrorKind.STATE_MISMATCH)

        code = params.get("code")
        if not code:
            error = params.get("error")
            if error:
                description = params.get("error_description") or error
                return self._fail(ErrorKind.MISSING_CODE, f"{ERROR_MESSAGES[ErrorKind.MISSING_CODE]} ({description})")
            return self._fail(ErrorKind.MISSING_CODE)

        context = FlowContext()
        try:
            self.exchange_code_for_token(context, code, redirect_uri or self.config.redirect_uri)
        except CognitoAuthError as e:
            return self._fail(e.kind, str(e))

        result = AuthResult.success(
            credentials=self.credentials(context),
            claims=self.extra(context),
            uid=self.uid(context),
        )
        self.cleanup(context)
        logger.info("Cognito login succeeded for %s", result.uid)
        return result

    def exchange_code_for_token(self, context: FlowContext, code: str, redirect_uri: str) -> None:
        """Token exchange, JWKS fetch and ID token verification. Fills context or raises CognitoAuthError."""
        token_bundle = self.token_client.exchange(code, self.config, redirect_uri)
        key_set = self.key_set_fetcher.fetch(self.config)
        claims = self.verifier.verify(token_bundle.id_token, key_set, self.config)
        context.token_bundle = token_bundle
        context.id_token_claims = claims

    def credentials(self, context: FlowContext) -> Credentials:
        """expires_at (epoch seconds) only when the provider sent expires_in."""
        bundle = context.token_bundle
        expires_at = None
        if bundle.expires_in is not None:
            expires_at = int(self.clock()) + bundle.expires_in
        return Credentials(
            token=bundle.access_token,
            refresh_token=bundle.refresh_token,
            expires=expires_at is not None,
            expires_at=expires_at,
        )

    def uid(self, context: FlowContext) -> str | None:
        return context.id_token_claims.get(USERNAME_CLAIM)

    def extra(self, context: FlowContext) -> dict[str, Any]:
        """Full verified claims (raw info)."""
        return dict(context.id_token_claims)

    def cleanup(self, context: FlowContext) -> None:
        context.token_bundle = None
        context.id_token_claims = None

    def _fail(self, kind: ErrorKind, reason: str | None = None) -> AuthResult:
        logger.warning("Cognito login failed: %s", kind.value)
        return AuthResult.failure(kind, reason)
