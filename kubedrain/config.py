from functools import lru_cache
from typing import Literal

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Adapter configuration sourced from environment variables."""

    model_config = SettingsConfigDict(env_file=(".env",), env_file_encoding="utf-8", extra="ignore")

    app_env: Literal["development", "production", "test"] = "development"
    log_level: str = "INFO"
    log_json: bool = False
    log_file: str | None = None
    log_format: str = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
    log_date_format: str = "%Y-%m-%d %H:%M:%S"
    # Cluster access
    kube_config_path: str | None = Field(default=None, alias="KUBE_CONFIG_PATH")
    kube_context: str | None = None
    api_server_url: str | None = Field(default=None, description="Overrides the server URL from the kubeconfig")
    in_cluster: bool = Field(default=False, description="Load the pod service account configuration")
    # Pod removal polling
    poll_interval_seconds: float = Field(default=1.0, gt=0, description="Delay between pod removal checks")
    poll_timeout_seconds: float = Field(default=120.0, gt=0, description="Upper bound on waiting for pod removal")

    @computed_field
    @property
    def is_debug(self) -> bool:
        return self.app_env == "development"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]
