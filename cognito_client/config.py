"""
Cognito client configuration.
Each setting is a literal string or a deferred call (module, function, args) evaluated at
resolution time, so secrets can come from a secret store instead of the environment.
"""
import importlib
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Mapping

from cognito_client.errors import ConfigError

logger = logging.getLogger(__name__)

# Scope requested at the authorize endpoint
DEFAULT_SCOPE = "openid profile email"

# Callback URL of this app (must be registered as an allowed callback on the app client)
DEFAULT_REDIRECT_URI = "http://127.0.0.1:8000/callback"

REQUIRED_SETTINGS = ("auth_domain", "client_id", "client_secret", "user_pool_id", "aws_region")

# Environment variable for each setting
ENV_VARS = {
    "auth_domain": "COGNITO_AUTH_DOMAIN",
    "client_id": "COGNITO_CLIENT_ID",
    "client_secret": "COGNITO_CLIENT_SECRET",
    "user_pool_id": "COGNITO_USER_POOL_ID",
    "aws_region": "COGNITO_AWS_REGION",
    "redirect_uri": "COGNITO_REDIRECT_URI",
    "scope": "COGNITO_SCOPE",
}

# Env values with this prefix name a function to call: call:pkg.module:function[:arg1,arg2]
DEFERRED_PREFIX = "call:"


@dataclass(frozen=True)
class Literal:
    value: str


@dataclass(frozen=True)
class Deferred:
    """A value computed by calling module.function(*args) when the config is resolved."""

    module: str
    function: str
    args: tuple[Any, ...] = field(default_factory=tuple)

    def resolve(self) -> Any:
        func = getattr(importlib.import_module(self.module), self.function)
        return func(*self.args)


ConfigValue = str | Literal | Deferred


def config_value(value: ConfigValue) -> str:
    """Resolve one setting to a string. Any failure of a deferred call is a ConfigError."""
    if isinstance(value, str):
        return value
    if isinstance(value, Literal):
        return value.value
    if isinstance(value, Deferred):
        try:
            result = value.resolve()
        except Exception as e:
            raise ConfigError(f"Deferred config value {value.module}.{value.function} failed: {e}") from e
        if not isinstance(result, str):
            raise ConfigError(
                f"Deferred config value {value.module}.{value.function} returned {type(result).__name__}, expected str"
            )
        return result
    raise ConfigError(f"Unsupported config value type: {type(value).__name__}")


def parse_env_value(raw: str) -> ConfigValue:
    """Turn an environment string into a literal or a Deferred (call:module:function[:a,b])."""
    if not raw.startswith(DEFERRED_PREFIX):
        return raw
    parts = raw[len(DEFERRED_PREFIX):].split(":", 2)
    if len(parts) < 2 or not parts[0] or not parts[1]:
        raise ConfigError(f"Malformed deferred config value: {raw!r}")
    args = tuple(a for a in parts[2].split(",") if a) if len(parts) == 3 else ()
    return Deferred(module=parts[0], function=parts[1], args=args)


def settings_from_env(environ: Mapping[str, str] | None = None) -> dict[str, ConfigValue]:
    """Collect settings from COGNITO_* environment variables. Unset variables are omitted."""
    environ = os.environ if environ is None else environ
    settings: dict[str, ConfigValue] = {}
    for name, var in ENV_VARS.items():
        raw = environ.get(var, "").strip()
        if raw:
            settings[name] = parse_env_value(raw)
    return settings


@dataclass(frozen=True)
class CognitoConfig:
    auth_domain: str
    client_id: str
    client_secret: str
    user_pool_id: str
    aws_region: str
    redirect_uri: str = DEFAULT_REDIRECT_URI
    scope: str = DEFAULT_SCOPE

    @property
    def issuer(self) -> str:
        """Expected iss claim; derived from region and pool, never taken from a token."""
        return f"https://cognito-idp.{self.aws_region}.amazonaws.com/{self.user_pool_id}"

    @property
    def jwks_url(self) -> str:
        return f"{self.issuer}/.well-known/jwks.json"

    @property
    def authorize_url(self) -> str:
        return f"https://{self.auth_domain}/oauth2/authorize"

    @property
    def token_url(self) -> str:
        return f"https://{self.auth_domain}/oauth2/token"


def resolve_config(settings: Mapping[str, ConfigValue] | None = None) -> CognitoConfig:
    """
    Build the immutable config record. Deferred values are evaluated here, once.
    Raises ConfigError if a required setting is missing or a deferred call fails.
    """
    settings = settings_from_env() if settings is None else settings
    missing = [name for name in REQUIRED_SETTINGS if name not in settings]
    if missing:
        raise ConfigError(f"Missing Cognito settings: {', '.join(missing)}")
    values = {name: config_value(value) for name, value in settings.items() if name in ENV_VARS}
    values["auth_domain"] = values["auth_domain"].removeprefix("https://").rstrip("/")
    config = CognitoConfig(**values)
    logger.info("Resolved Cognito config (domain=%s, region=%s, pool=%s)", config.auth_domain, config.aws_region, config.user_pool_id)
    return config
