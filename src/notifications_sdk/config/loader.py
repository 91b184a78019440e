"""
Resolve ApiConfiguration from a secrets file, a dotenv file and the environment.

Precedence, lowest to highest:
1. secrets file (JSON)
2. dotenv file (optional, via python-dotenv)
3. process environment

Environment always wins so a checked-in secrets file can be overridden per
deployment.
"""
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from dotenv import dotenv_values
from pydantic import ValidationError

from ..exceptions import ConfigError, MissingConfigError
from ..utils import is_blank, mask_sensitive
from .types import ApiConfiguration, ProxyConfig, TlsConfig

logger = logging.getLogger(__name__)


SECRETS_PATH_ENV = "FBN_SECRETS_PATH"
DEFAULT_SECRETS_FILE = "secrets.json"


@dataclass(frozen=True)
class ConfigKey:
    """A configuration field and the places it can be read from."""

    field: str
    secrets_key: str
    env_var: str
    section: str = "api"


API_KEYS = (
    ConfigKey("token_url", "tokenUrl", "FBN_TOKEN_URL"),
    ConfigKey("notifications_url", "notificationsUrl", "FBN_NOTIFICATIONS_API_URL"),
    ConfigKey("client_id", "clientId", "FBN_CLIENT_ID"),
    ConfigKey("client_secret", "clientSecret", "FBN_CLIENT_SECRET"),
    ConfigKey("scope", "scope", "FBN_TOKEN_SCOPE"),
    ConfigKey("personal_access_token", "personalAccessToken", "FBN_PERSONAL_ACCESS_TOKEN"),
    ConfigKey("application_name", "applicationName", "FBN_APP_NAME"),
)

PROXY_KEYS = (
    ConfigKey("address", "address", "FBN_PROXY_ADDRESS", section="proxy"),
    ConfigKey("username", "username", "FBN_PROXY_USERNAME", section="proxy"),
    ConfigKey("password", "password", "FBN_PROXY_PASSWORD", section="proxy"),
)

TLS_KEYS = (
    ConfigKey("verify_ssl", "verifySsl", "FBN_VERIFY_SSL", section="tls"),
    ConfigKey("ca_cert_path", "caCertPath", "FBN_CA_CERT_PATH", section="tls"),
)

ALWAYS_REQUIRED = ("notifications_url",)
CLIENT_CREDENTIALS_REQUIRED = ("token_url", "client_id", "client_secret")

_KEYS_BY_FIELD = {key.field: key for key in API_KEYS}

_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() not in _FALSE_VALUES


def describe_field(field: str) -> str:
    """Human-readable name of a field: its secrets key and environment variable."""
    key = _KEYS_BY_FIELD.get(field)
    if key is None:
        return field
    return f"{key.secrets_key} ({key.env_var})"


class ApiConfigurationLoader:
    """
    Build an ApiConfiguration from the available configuration sources.

    Example:
        loader = ApiConfigurationLoader()
        api_config = loader.build("secrets.json")
    """

    def __init__(self, env: Optional[Mapping[str, str]] = None):
        """
        Args:
            env: Environment mapping to read from. Defaults to os.environ.
        """
        self._env = env if env is not None else os.environ

    def resolve_secrets_path(self, secrets_path: Optional[str] = None) -> Tuple[Path, bool]:
        """
        Work out which secrets file to read.

        Returns:
            (path, explicit) where explicit is False for the implicit default
        """
        if secrets_path:
            return Path(secrets_path), True
        from_env = self._env.get(SECRETS_PATH_ENV)
        if from_env:
            return Path(from_env), True
        return Path(DEFAULT_SECRETS_FILE), False

    def read_secrets_file(self, secrets_path: Optional[str] = None) -> Dict[str, Any]:
        """
        Read the secrets document.

        A missing implicit default file yields an empty document; a file that
        was named explicitly must exist and contain a JSON object.
        """
        path, explicit = self.resolve_secrets_path(secrets_path)

        if not path.is_file():
            if explicit:
                raise ConfigError(f"Secrets file not found: {path}")
            logger.debug(
                f"ApiConfigurationLoader.read_secrets_file: {path} not present, "
                f"using environment only"
            )
            return {}

        logger.info(f"Loading secrets file: {path}")
        try:
            document = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ConfigError(f"Secrets file is not valid JSON: {path}: {e}") from e
        except UnicodeDecodeError as e:
            raise ConfigError(f"Secrets file is not valid UTF-8: {path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Unable to read secrets file {path}: {e}") from e

        if not isinstance(document, dict):
            raise ConfigError(f"Secrets file must contain a JSON object: {path}")
        return document

    def _section(self, document: Dict[str, Any], name: str) -> Dict[str, Any]:
        section = document.get(name)
        if isinstance(section, dict):
            return section
        # Flat documents keep the api keys at the top level
        if name == "api":
            return document
        return {}

    def _resolve(
        self,
        keys,
        document: Dict[str, Any],
        dotenv: Mapping[str, Optional[str]],
    ) -> Dict[str, Any]:
        values: Dict[str, Any] = {}
        for key in keys:
            value = self._section(document, key.section).get(key.secrets_key)
            source = "secrets"

            dotenv_value = dotenv.get(key.env_var)
            if not is_blank(dotenv_value):
                value, source = dotenv_value, "dotenv"

            env_value = self._env.get(key.env_var)
            if not is_blank(env_value):
                value, source = env_value, "env"

            if value is None or (isinstance(value, str) and is_blank(value)):
                continue

            values[key.field] = value
            logger.debug(
                f"ApiConfigurationLoader._resolve: {key.field} from {source} "
                f"= {mask_sensitive(str(value), 6)}"
            )
        return values

    def build(
        self,
        secrets_path: Optional[str] = None,
        env_file: Optional[str] = None,
    ) -> ApiConfiguration:
        """
        Resolve and validate an ApiConfiguration.

        Args:
            secrets_path: Path to a JSON secrets file. Falls back to
                FBN_SECRETS_PATH and then to ./secrets.json when present.
            env_file: Optional dotenv file layered between the secrets file
                and the process environment.

        Returns:
            Fully populated ApiConfiguration

        Raises:
            ConfigError: If a named secrets file is missing or unreadable, or a
                resolved value has the wrong type
            MissingConfigError: If a required field cannot be resolved
        """
        document = self.read_secrets_file(secrets_path)
        dotenv: Mapping[str, Optional[str]] = {}
        if env_file:
            if not Path(env_file).is_file():
                raise ConfigError(f"Env file not found: {env_file}")
            logger.info(f"Loading env file: {env_file}")
            dotenv = dotenv_values(env_file)

        api_values = self._resolve(API_KEYS, document, dotenv)
        proxy_values = self._resolve(PROXY_KEYS, document, dotenv)
        tls_values = self._resolve(TLS_KEYS, document, dotenv)

        if "verify_ssl" in tls_values:
            tls_values["verify_ssl"] = _parse_bool(tls_values["verify_ssl"])
        # SSL_CERT_VERIFY=0 is honoured as a blanket switch
        if self._env.get("SSL_CERT_VERIFY", "") == "0":
            tls_values["verify_ssl"] = False

        try:
            config = ApiConfiguration(
                **api_values,
                proxy=ProxyConfig(**proxy_values),
                tls=TlsConfig(**tls_values),
            )
        except ValidationError as e:
            path, _ = self.resolve_secrets_path(secrets_path)
            problems = "; ".join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in e.errors()
            )
            raise ConfigError(f"Invalid configuration in {path}: {problems}") from e

        self.validate(config)

        logger.info(
            f"Resolved api configuration: notifications_url={config.notifications_url}, "
            f"auth={'personal_access_token' if config.uses_personal_access_token else 'client_credentials'}"
        )
        return config

    @staticmethod
    def validate(config: ApiConfiguration) -> None:
        """Check that all required fields are present."""
        required: List[str] = list(ALWAYS_REQUIRED)
        if not config.uses_personal_access_token:
            required.extend(CLIENT_CREDENTIALS_REQUIRED)

        missing = []
        for field in required:
            value = getattr(config, field)
            if hasattr(value, "get_secret_value"):
                value = value.get_secret_value()
            if is_blank(value):
                missing.append(field)

        if missing:
            described = ", ".join(describe_field(field) for field in missing)
            raise MissingConfigError(
                f"The provided secrets file or environment variables are missing "
                f"the following required values: {described}",
                fields=missing,
            )


def build_api_configuration(
    secrets_path: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    env_file: Optional[str] = None,
) -> ApiConfiguration:
    """Convenience wrapper around ApiConfigurationLoader.build."""
    return ApiConfigurationLoader(env).build(secrets_path, env_file=env_file)
