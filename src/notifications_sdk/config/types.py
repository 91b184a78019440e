"""
Configuration models for notifications_sdk.
"""
from typing import Optional, Union

import httpx
from pydantic import BaseModel, ConfigDict, Field, SecretStr

from ..utils import is_blank


DEFAULT_NOTIFICATIONS_URL = "https://www.lusid.com/notifications"
APPLICATION_HEADER = "X-LUSID-Application"


class ProxyConfig(BaseModel):
    """Outbound proxy settings."""

    model_config = ConfigDict(populate_by_name=True)

    address: Optional[str] = None
    username: Optional[str] = None
    password: Optional[SecretStr] = None

    @property
    def proxy_url(self) -> Optional[str]:
        """Proxy address with credentials embedded, in the form httpx expects."""
        if is_blank(self.address):
            return None
        url = httpx.URL(self.address.strip())
        if self.username:
            password = self.password.get_secret_value() if self.password else ""
            url = url.copy_with(username=self.username, password=password)
        return str(url)


class TlsConfig(BaseModel):
    """TLS verification settings."""

    model_config = ConfigDict(populate_by_name=True)

    verify_ssl: bool = Field(default=True, alias="verifySsl")
    ca_cert_path: Optional[str] = Field(default=None, alias="caCertPath")

    @property
    def verify(self) -> Union[bool, str]:
        """Value for httpx's ``verify`` argument."""
        if not self.verify_ssl:
            return False
        if self.ca_cert_path:
            return self.ca_cert_path
        return True


class ApiConfiguration(BaseModel):
    """
    Connection settings for the notifications API.

    Every field is optional here so partially populated configurations can be
    built; the loader and ApiFactory decide what is actually required. Field
    aliases match the camelCase keys used in secrets files.

    A non-blank personal_access_token takes precedence over the
    client-credentials settings (token_url, client_id, client_secret).
    """

    model_config = ConfigDict(populate_by_name=True)

    token_url: Optional[str] = Field(default=None, alias="tokenUrl")
    notifications_url: Optional[str] = Field(default=None, alias="notificationsUrl")
    client_id: Optional[str] = Field(default=None, alias="clientId")
    client_secret: Optional[SecretStr] = Field(default=None, alias="clientSecret")
    scope: Optional[str] = None
    personal_access_token: Optional[SecretStr] = Field(
        default=None, alias="personalAccessToken"
    )
    application_name: Optional[str] = Field(default=None, alias="applicationName")
    proxy: ProxyConfig = Field(default_factory=ProxyConfig)
    tls: TlsConfig = Field(default_factory=TlsConfig)

    @property
    def uses_personal_access_token(self) -> bool:
        """True when the personal access token path is the active auth mode."""
        if self.personal_access_token is None:
            return False
        return not is_blank(self.personal_access_token.get_secret_value())
