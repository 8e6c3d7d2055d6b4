# hcloud_driver/models/settings.py

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_PATH = "/meta/proxy/api.hetzner.cloud/v1"


class DriverSettings(BaseSettings):
    """
    Pydantic settings for the Hetzner Cloud inventory client.
    Fields map to environment variables prefixed with `HCLOUD_DRIVER_`,
    e.g. `HCLOUD_DRIVER_CREDENTIAL_ID`, `HCLOUD_DRIVER_HOST_URL`.

    The client never holds the API token itself; the proxy at host_url
    resolves `credential_id` + `password_field` to the stored secret.
    """

    model_config = SettingsConfigDict(env_prefix="HCLOUD_DRIVER_")

    credential_id: str  # No default => must be set (e.g., HCLOUD_DRIVER_CREDENTIAL_ID)
    host_url: str = "http://localhost"
    base_path: str = DEFAULT_BASE_PATH
    password_field: str = "apiToken"
    auth_header: str = "X-Api-CattleAuth-Header"
    verify_ssl: bool = True
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    retries: int = Field(default=2, ge=1)
    retry_delay_seconds: float = Field(default=0.5, ge=0)

    @property
    def api_root(self) -> str:
        return f"{self.host_url.rstrip('/')}/{self.base_path.strip('/')}"

    def auth_header_value(self) -> str:
        return f"Bearer credID={self.credential_id} passwordField={self.password_field}"
