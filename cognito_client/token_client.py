"""
Authorization code -> tokens at the Cognito /oauth2/token endpoint.
Confidential client: credentials go in Authorization: Basic base64(client_id:client_secret) (RFC 6749 §2.3.1).
"""
import base64
import logging
from urllib.parse import urlencode

from cognito_client.config import CognitoConfig
from cognito_client.errors import TokenExchangeError, TransportError
from cognito_client.models import TokenBundle
from cognito_client.transport import HttpTransport

logger = logging.getLogger(__name__)


def basic_auth_header(client_id: str, client_secret: str) -> str:
    encoded = base64.b64encode(f"{client_id}:{client_secret}".encode("utf-8")).decode("ascii")
    return f"Basic {encoded}"


def _parse_expires_in(value) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class TokenExchangeClient:
    def __init__(self, transport: HttpTransport):
        self.transport = transport

    def exchange(self, code: str, config: CognitoConfig, redirect_uri: str) -> TokenBundle:
        """
        POST grant_type=authorization_code. Success is exactly HTTP 200 with a JSON object
        carrying access_token and id_token; anything else raises TokenExchangeError. No retry.
        """
        body = urlencode(
            {
                "grant_type": "authorization_code",
                "code": code,
                "client_id": config.client_id,
                "redirect_uri": redirect_uri,
            }
        ).encode("ascii")
        headers = {
            "Authorization": basic_auth_header(config.client_id, config.client_secret),
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json",
        }
        try:
            r = self.transport.request("POST", config.token_url, headers=headers, body=body)
        except TransportError as e:
            raise TokenExchangeError() from e

        if r.status_code != 200:
            logger.warning("Token exchange at %s returned %s", config.token_url, r.status_code)
            raise TokenExchangeError()
        try:
            data = r.json()
        except ValueError as e:
            logger.warning("Token response from %s is not JSON", config.token_url)
            raise TokenExchangeError() from e
        if not isinstance(data, dict):
            raise TokenExchangeError()

        access_token = data.get("access_token")
        id_token = data.get("id_token")
        if not isinstance(access_token, str) or not isinstance(id_token, str) or not id_token:
            logger.warning("Token response is missing access_token or id_token")
            raise TokenExchangeError()
        refresh_token = data.get("refresh_token")
        return TokenBundle(
            access_token=access_token,
            id_token=id_token,
            refresh_token=refresh_token if isinstance(refresh_token, str) and refresh_token else None,
            expires_in=_parse_expires_in(data.get("expires_in")),
            raw=data,
        )
