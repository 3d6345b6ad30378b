"""
ID token verification against the user pool's JWKS.

Signature first, claims second. The algorithm is pinned to RS256 by the verifier; neither the
token header nor the JWK can change it. Issuer and audience expectations come from config,
never from the token. Every key in the set is tried in order, so entries with a missing or
mismatched kid still work. Any failure is reported as the same InvalidIdentityTokenError;
the specific reason is logged at DEBUG only.
"""
import json
import logging
import time
from typing import Any, Callable, Protocol

from jwt import api_jws
from jwt.exceptions import PyJWTError

from cognito_client.config import CognitoConfig
from cognito_client.errors import InvalidIdentityTokenError
from cognito_client.models import KeySet

logger = logging.getLogger(__name__)

ALGORITHM = "RS256"
TOKEN_USES = frozenset({"id", "access"})


class IdentityVerifier(Protocol):
    def verify(self, token: str, key_set: KeySet, config: CognitoConfig) -> dict[str, Any]: ...


def _reject(reason: str, *args) -> InvalidIdentityTokenError:
    logger.debug("ID token rejected: " + reason, *args)
    return InvalidIdentityTokenError()


class JwtVerifier:
    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock

    def verified_payload(self, token: str, key_set: KeySet) -> bytes:
        """Return the payload of the first key that verifies the signature. First success wins."""
        for signing_key in key_set:
            try:
                decoded = api_jws.decode_complete(token, key=signing_key.key, algorithms=[ALGORITHM])
            except (PyJWTError, TypeError, ValueError) as e:
                logger.debug("Key kid=%s did not verify token: %s", signing_key.key_id, e)
                continue
            return decoded["payload"]
        raise _reject("no key in the set of %d verified the signature", len(key_set))

    def verify(self, token: str, key_set: KeySet, config: CognitoConfig) -> dict[str, Any]:
        """
        Verify signature (RS256 only) and claims: aud == client_id, exp > now,
        iss == configured issuer, token_use in {"id", "access"}.
        Returns the full claims dict. Raises InvalidIdentityTokenError on any failure.
        """
        if not isinstance(token, str) or not token:
            raise _reject("no token")
        payload = self.verified_payload(token, key_set)

        try:
            claims = json.loads(payload)
        except ValueError:
            raise _reject("payload is not JSON")
        if not isinstance(claims, dict):
            raise _reject("payload is not a JSON object")

        aud = claims.get("aud")
        if not isinstance(aud, str) or aud != config.client_id:
            raise _reject("audience %r does not match client id", aud)

        exp = claims.get("exp")
        now = int(self.clock())
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            raise _reject("exp missing or not numeric")
        if not exp > now:
            raise _reject("expired (exp=%s, now=%s)", exp, now)

        if claims.get("iss") != config.issuer:
            raise _reject("issuer %r is not %r", claims.get("iss"), config.issuer)

        token_use = claims.get("token_use")
        if not isinstance(token_use, str) or token_use not in TOKEN_USES:
            raise _reject("token_use %r not allowed", token_use)

        return claims
