"""
Fetch the user pool's JSON Web Key Set.
Fetched fresh for every verification: no caching, so rotated keys are always current.
"""
import logging

from jwt import PyJWK
from jwt.exceptions import PyJWTError

from cognito_client.config import CognitoConfig
from cognito_client.errors import KeySetFetchError, TransportError
from cognito_client.models import KeySet
from cognito_client.transport import HttpTransport

logger = logging.getLogger(__name__)


def load_key_set(data: object) -> KeySet:
    """
    Build a KeySet from a JWKS document ({"keys": [...]}).
    Entries that cannot be loaded as keys are skipped; order of the rest is kept.
    """
    if not isinstance(data, dict) or not isinstance(data.get("keys"), list):
        raise KeySetFetchError("JWKS document has no keys list")
    keys = []
    for entry in data["keys"]:
        if not isinstance(entry, dict):
            logger.warning("Skipping non-object JWKS entry")
            continue
        try:
            keys.append(PyJWK(entry))
        except (PyJWTError, ValueError, TypeError, KeyError) as e:
            logger.warning("Skipping unusable JWK (kid=%s): %s", entry.get("kid"), e)
    return KeySet(keys=tuple(keys))


class KeySetFetcher:
    def __init__(self, transport: HttpTransport):
        self.transport = transport

    def fetch(self, config: CognitoConfig) -> KeySet:
        """GET the JWKS. Anything other than 200 with a JSON key list raises KeySetFetchError."""
        try:
            r = self.transport.request("GET", config.jwks_url, headers={"Accept": "application/json"})
        except TransportError as e:
            raise KeySetFetchError() from e
        if r.status_code != 200:
            logger.warning("JWKS fetch from %s returned %s", config.jwks_url, r.status_code)
            raise KeySetFetchError()
        try:
            data = r.json()
        except ValueError as e:
            logger.warning("JWKS response from %s is not JSON", config.jwks_url)
            raise KeySetFetchError() from e
        key_set = load_key_set(data)
        logger.debug("Fetched %d signing keys from %s", len(key_set), config.jwks_url)
        return key_set
