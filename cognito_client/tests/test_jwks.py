"""Tests for fetching and loading the user pool JWKS."""
import pytest

from cognito_client.errors import ErrorKind, KeySetFetchError
from cognito_client.jwks import KeySetFetcher, load_key_set


def test_jwks_url_is_derived_from_region_and_pool(config):
    assert config.jwks_url == "https://cognito-idp.eu-west-1.amazonaws.com/eu-west-1_TestPool/.well-known/jwks.json"


def test_fetch_returns_keys_in_order(config, transport, rsa_keys, jwks_for):
    transport.add("GET", config.jwks_url, body=jwks_for(*rsa_keys))
    key_set = KeySetFetcher(transport).fetch(config)
    assert [k.key_id for k in key_set] == ["key-1", "key-2", "key-3"]
    assert len(key_set) == 3
    assert transport.requests[0]["method"] == "GET"
    assert transport.requests[0]["url"] == config.jwks_url


def test_fetch_every_call_hits_the_endpoint(config, transport, jwks):
    """No caching: each verification sees the provider's current keys."""
    transport.add("GET", config.jwks_url, body=jwks)
    fetcher = KeySetFetcher(transport)
    fetcher.fetch(config)
    fetcher.fetch(config)
    assert len(transport.requests) == 2


@pytest.mark.parametrize("status_code", [201, 301, 404, 500, 503])
def test_fetch_non_200_fails(config, transport, jwks, status_code):
    transport.add("GET", config.jwks_url, status_code=status_code, body=jwks)
    with pytest.raises(KeySetFetchError) as exc:
        KeySetFetcher(transport).fetch(config)
    assert exc.value.kind == ErrorKind.KEY_SET_FETCH_FAILED


def test_fetch_transport_error_fails(config, transport):
    transport.fail("GET", config.jwks_url)
    with pytest.raises(KeySetFetchError):
        KeySetFetcher(transport).fetch(config)


def test_fetch_malformed_body_fails(config, transport):
    transport.add("GET", config.jwks_url, raw=b"<html>oops</html>")
    with pytest.raises(KeySetFetchError):
        KeySetFetcher(transport).fetch(config)


@pytest.mark.parametrize("body", [[], {"keys": "nope"}, {"not_keys": []}, "keys"])
def test_fetch_body_without_key_list_fails(config, transport, body):
    transport.add("GET", config.jwks_url, body=body)
    with pytest.raises(KeySetFetchError):
        KeySetFetcher(transport).fetch(config)


def test_load_key_set_skips_unusable_entries(jwks):
    doc = {
        "keys": [
            "junk",
            {"kty": "UNKNOWN", "kid": "x"},
            {"kid": "no-kty"},
            {"kty": "RSA", "kid": "list-alg", "alg": ["RS256"], "n": "AQAB", "e": "AQAB"},
            *jwks["keys"],
        ]
    }
    key_set = load_key_set(doc)
    assert [k.key_id for k in key_set] == ["key-1"]


def test_load_key_set_empty_list_is_empty_set():
    assert len(load_key_set({"keys": []})) == 0
