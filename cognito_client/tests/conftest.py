"""
Pytest configuration for cognito_client: test user pool settings, RSA keys, token builders,
and a fake HTTP transport so no test touches the network.
"""
import json
import os
import time

import jwt
import pytest
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives.asymmetric.rsa import generate_private_key

from cognito_client.config import CognitoConfig
from cognito_client.errors import TransportError
from cognito_client.jwks import load_key_set
from cognito_client.transport import HttpResponse

# Settings used when the app resolves config from the environment
os.environ["COGNITO_AUTH_DOMAIN"] = "test-app.auth.eu-west-1.amazoncognito.com"
os.environ["COGNITO_CLIENT_ID"] = "test-client-id"
os.environ["COGNITO_CLIENT_SECRET"] = "test-client-secret"
os.environ["COGNITO_USER_POOL_ID"] = "eu-west-1_TestPool"
os.environ["COGNITO_AWS_REGION"] = "eu-west-1"
os.environ["COGNITO_REDIRECT_URI"] = "http://127.0.0.1:8000/callback"


def _int_to_b64url(value: int) -> str:
    """Encode a positive int as base64url (JWK n/e)."""
    length = (value.bit_length() + 7) // 8
    s = jwt.utils.base64url_encode(value.to_bytes(length, "big"))
    return s.decode("utf-8") if isinstance(s, bytes) else s


def public_jwk(key, kid: str) -> dict:
    pub = key.public_key().public_numbers()
    return {
        "kty": "RSA",
        "kid": kid,
        "alg": "RS256",
        "use": "sig",
        "n": _int_to_b64url(pub.n),
        "e": _int_to_b64url(pub.e),
    }


class FakeTransport:
    """HttpTransport that serves canned responses per (method, url) and records requests."""

    def __init__(self):
        self.routes: dict[tuple[str, str], HttpResponse | Exception] = {}
        self.requests: list[dict] = []

    def add(self, method: str, url: str, status_code: int = 200, body=None, raw: bytes | None = None):
        if raw is None:
            raw = json.dumps(body).encode("utf-8") if body is not None else b""
        self.routes[(method, url)] = HttpResponse(
            status_code=status_code,
            headers={"content-type": "application/json"},
            body=raw,
        )

    def fail(self, method: str, url: str, message: str = "connection refused"):
        self.routes[(method, url)] = TransportError(message)

    def request(self, method, url, headers=None, body=None):
        self.requests.append({"method": method, "url": url, "headers": dict(headers or {}), "body": body})
        route = self.routes.get((method, url))
        if route is None:
            return HttpResponse(status_code=404, body=b"not found")
        if isinstance(route, Exception):
            raise route
        return route


@pytest.fixture
def config():
    return CognitoConfig(
        auth_domain="test-app.auth.eu-west-1.amazoncognito.com",
        client_id="test-client-id",
        client_secret="test-client-secret",
        user_pool_id="eu-west-1_TestPool",
        aws_region="eu-west-1",
    )


@pytest.fixture(scope="session")
def rsa_keys():
    """Three RSA signing keys (generation is slow, so shared across the session)."""
    return [generate_private_key(65537, 2048, default_backend()) for _ in range(3)]


@pytest.fixture
def signing_key(rsa_keys):
    return rsa_keys[0]


@pytest.fixture
def jwks(signing_key):
    return {"keys": [public_jwk(signing_key, "key-1")]}


@pytest.fixture
def make_claims(config):
    """Factory for ID token claims that pass every check. Overrides set to None remove the claim."""

    def _make(**overrides):
        now = int(time.time())
        claims = {
            "sub": "7d3f1a2e-0000-4000-8000-000000000001",
            "cognito:username": "alice",
            "email": "alice@example.com",
            "aud": config.client_id,
            "iss": config.issuer,
            "token_use": "id",
            "auth_time": now,
            "iat": now,
            "exp": now + 3600,
        }
        for name, value in overrides.items():
            name = name.replace("cognito_", "cognito:")
            if value is None:
                claims.pop(name, None)
            else:
                claims[name] = value
        return claims

    return _make


@pytest.fixture
def make_token(signing_key, make_claims):
    """Factory for RS256-signed ID tokens; key and kid can be swapped per test."""

    def _make(claims=None, *, key=None, kid="key-1", algorithm="RS256"):
        return jwt.encode(
            claims if claims is not None else make_claims(),
            key if key is not None else signing_key,
            algorithm=algorithm,
            headers={"kid": kid},
        )

    return _make


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def token_response():
    def _make(id_token: str, **extra):
        body = {
            "access_token": "test-access-token",
            "id_token": id_token,
            "refresh_token": "test-refresh-token",
            "expires_in": 3600,
            "token_type": "Bearer",
        }
        for name, value in extra.items():
            if value is None:
                body.pop(name, None)
            else:
                body[name] = value
        return body

    return _make


@pytest.fixture
def jwks_for():
    """Factory: JWKS document for the public halves of the given keys, kids key-1, key-2, ... in order."""

    def _make(*keys):
        return {"keys": [public_jwk(k, f"key-{i}") for i, k in enumerate(keys, start=1)]}

    return _make


@pytest.fixture
def key_set_for(jwks_for):
    def _make(*keys):
        return load_key_set(jwks_for(*keys))

    return _make
