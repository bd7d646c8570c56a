import logging
import os
import sys
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)


# =============================================================================
# Remote API Configuration
# =============================================================================


class ApiConfig(BaseModel):
    """Remote upload API configuration (nested in Config, uses env_nested_delimiter)."""

    base_url: str = "http://localhost:9000/"  # Single endpoint family, verbs chosen by query params
    connect_timeout: float = 5.0
    read_timeout: float = 30.0


class PaginationConfig(BaseModel):
    """Page sizes and append policy for the paginated stores."""

    list_limit: int = Field(default=20, ge=1)
    detail_limit: int = Field(default=100, ge=1)
    dedupe: bool = False  # Skip already-resident keys on append; raw append when False


# =============================================================================
# Authentication Configuration
# =============================================================================


class AuthConfig(BaseModel):
    """Identity token handling and access-gate behaviour."""

    # Claims read (and merged) for role membership, first one is the Cognito groups claim
    role_claims: list[str] = ["cognito:groups", "roles", "groups"]
    fallback_route: str = "/"  # Where a denied screen redirects
    verify_expiry: bool = True  # Expired tokens count as signed out


# =============================================================================
# Application Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging configuration (nested in Config, uses env_nested_delimiter)."""

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"

    @property
    def file(self) -> str | None:
        """Get log file path from MEDISYS_LOG_FILE env var."""
        return os.environ.get("MEDISYS_LOG_FILE")


class Config(BaseSettings):
    """MediSys settings.

    Sources, highest priority first: constructor arguments, ``MEDISYS_*``
    environment variables, ``.env``, the YAML file named by
    ``MEDISYS_CONFIG_FILE``, secrets files.
    """

    api: ApiConfig = ApiConfig()
    pagination: PaginationConfig = PaginationConfig()
    auth: AuthConfig = AuthConfig()
    logging: LoggingConfig = LoggingConfig()

    model_config = SettingsConfigDict(
        env_prefix="MEDISYS_",
        env_file=".env",
        env_nested_delimiter="__",  # MEDISYS_API__BASE_URL
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # A missing or unset file contributes nothing
        yaml_settings = YamlConfigSettingsSource(
            settings_cls, yaml_file=os.environ.get("MEDISYS_CONFIG_FILE")
        )
        return init_settings, env_settings, dotenv_settings, yaml_settings, file_secret_settings


def configure_logging(config: LoggingConfig) -> None:
    """Route every module logger through a single root handler.

    Call once before screens are mounted. Output goes to ``MEDISYS_LOG_FILE``
    when set, stderr otherwise.
    """
    if config.file:
        path = Path(config.file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(path)
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(config.format, datefmt=config.date_format))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(config.level)
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
