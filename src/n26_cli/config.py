"""Settings for the N26 client.

Values are resolved in this order: explicit arguments, ``N26_*`` environment
variables, a ``.env`` file, ``~/.config/n26-cli/config.yaml``, defaults.
"""

import logging
import os
import stat
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

logger = logging.getLogger(__name__)

CONFIG_PATH = Path.home() / ".config" / "n26-cli" / "config.yaml"


class ConfigFileSource(PydanticBaseSettingsSource):
    """Reads settings written by ``n26 config set``."""

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return load_config().get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        return load_config()


class Settings(BaseSettings):
    """Client configuration."""

    model_config = SettingsConfigDict(
        env_prefix="N26_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    username: str | None = Field(default=None, description="N26 login e-mail")
    password: SecretStr | None = Field(default=None, description="N26 password")
    base_url: str = Field(
        default="https://api.tech26.de",
        description="Base URL of the N26 API",
    )
    timeout: int = Field(default=30, ge=5, le=120, description="HTTP timeout in seconds")
    cache_dir: Path = Field(
        default=Path.home() / ".config" / "n26-cli",
        description="Directory for the session store and device token",
    )
    store_file: str = Field(
        default=".n26",
        description="Session store file name, relative to cache_dir unless absolute",
    )
    store_connection: bool = Field(
        default=True,
        description="Persist the session and reuse it on the next start",
    )
    store_backend: Literal["file", "keyring"] = Field(
        default="file",
        description="Where the session is persisted",
    )
    encryption_key: SecretStr | None = Field(
        default=None,
        description="Fernet key used to encrypt the session file at rest",
    )
    strict_store: bool = Field(
        default=False,
        description="Fail instead of logging in again when the stored session is unreadable",
    )
    device_backend: Literal["file", "keyring", "memory"] = Field(
        default="file",
        description="Where the device token is kept",
    )
    auto_collect: bool = Field(
        default=True,
        description="Parse API responses into models instead of returning raw JSON",
    )
    mfa_wait: float = Field(
        default=5,
        gt=0,
        le=60,
        description="Seconds between MFA approval polls",
    )
    mfa_max_wait: float = Field(
        default=60,
        gt=0,
        le=600,
        description="Seconds to wait for MFA approval before giving up",
    )

    @field_validator("cache_dir", mode="after")
    @classmethod
    def create_cache_dir(cls, v: Path) -> Path:
        v.expanduser().mkdir(parents=True, exist_ok=True)
        return v.expanduser()

    @property
    def store_path(self) -> Path:
        """Path to the session store file."""
        path = Path(self.store_file).expanduser()
        if path.is_absolute():
            return path
        return self.cache_dir / path

    @property
    def device_file(self) -> Path:
        """Path to the device token file (file backend only)."""
        return self.cache_dir / "device.json"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # The config file sits below the environment and replaces secrets dirs
        return (init_settings, env_settings, dotenv_settings, ConfigFileSource(settings_cls))


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Forget the cached settings so the next access reloads them."""
    global _settings
    _settings = None


def load_config() -> dict[str, Any]:
    """Read the config file.

    Returns:
        The stored mapping; empty when the file is missing, unparsable or
        not a mapping.
    """
    try:
        with open(CONFIG_PATH) as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        return {}
    except yaml.YAMLError as e:
        logger.warning(f"Ignoring unreadable config file {CONFIG_PATH}: {e}")
        return {}

    if not isinstance(data, dict):
        return {}
    return data


def save_config(config: dict[str, Any]) -> None:
    """Replace the config file with ``config``.

    The file can hold the login e-mail, so it is written owner-only.
    """
    CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
    temp_file = CONFIG_PATH.with_name(CONFIG_PATH.name + ".tmp")
    with open(temp_file, "w") as f:
        yaml.safe_dump(config, f, default_flow_style=False, allow_unicode=True)
    os.chmod(temp_file, stat.S_IRUSR | stat.S_IWUSR)  # 0600
    temp_file.replace(CONFIG_PATH)
