"""Runtime settings for vault-pricer.

Values are layered, highest precedence first:

1. CLI flags (passed as init kwargs)
2. environment variables and ``.env``
3. a TOML settings file, optionally under a ``[vault_pricer]`` table

API endpoints keep their historical unprefixed names (``YDAEMON_API``,
``SPORK_API``...); every other option is read as ``VAULT_PRICER_<NAME>``.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import (
    AliasChoices,
    Field,
    SecretStr,
    field_validator,
    model_validator,
)
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .constants import (
    CACHE_MAXSIZE,
    DEFAULT_HISTORICAL_CASCADE,
    DEFAULT_LATEST_CASCADE,
    RESOLVE_PRICE_TTL,
)

load_dotenv()

SECRET_FIELDS = {"spork_api_auth", "yprice_api_x_signature"}

SETTINGS_FILE_ENV = "VAULT_PRICER_CONFIG"
SETTINGS_TABLE = "vault_pricer"


def _default_settings_files() -> tuple[Path, ...]:
    return (
        Path("vault-pricer.toml"),
        Path.home() / ".config" / "vault-pricer" / "config.toml",
    )


def find_settings_file() -> Path | None:
    """Locate the TOML settings file.

    ``$VAULT_PRICER_CONFIG`` wins when set, even if the file is missing (the
    file source then contributes nothing). Otherwise the first existing
    default location is used.
    """
    explicit = os.environ.get(SETTINGS_FILE_ENV)
    if explicit:
        return Path(explicit)
    return next((path for path in _default_settings_files() if path.exists()), None)


class TomlConfigSource(PydanticBaseSettingsSource):
    """Settings source reading a TOML file; secrets are refused."""

    def __init__(self, settings_cls: type[BaseSettings], path: Path | None):
        super().__init__(settings_cls)
        self.path = path

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return None, "", False

    def __call__(self) -> dict[str, Any]:
        if self.path is None or not self.path.is_file():
            return {}

        with self.path.open("rb") as f:
            document = tomllib.load(f)
        values = document.get(SETTINGS_TABLE, document)
        if not isinstance(values, dict):
            return {}

        leaked = sorted(SECRET_FIELDS & values.keys())
        if leaked:
            raise ValueError(
                f"Security violation: {', '.join(leaked)} found in {self.path}. "
                "Provide secrets through the environment or CLI only."
            )
        return values


def _env(name: str) -> AliasChoices:
    """Accept both the bare variable name and the prefixed one."""
    return AliasChoices(name, f"VAULT_PRICER_{name}")


class PricerSettings(BaseSettings):
    """Single source of truth for configuration.

    Nothing else in the package reads the environment or settings files.
    """

    # --- prices config document ---
    prices_config: Path | None = None
    config_dir: Path = Path("config")

    # --- rpc ---
    rpc_urls: dict[int, str] = Field(default_factory=dict)
    rpc_timeout: float = Field(default=15.0, gt=0)

    # --- third-party pricing apis ---
    ydaemon_api: str | None = Field(default=None, validation_alias=_env("YDAEMON_API"))
    spork_api: str | None = Field(default=None, validation_alias=_env("SPORK_API"))
    spork_api_auth: SecretStr | None = Field(
        default=None, validation_alias=_env("SPORK_API_AUTH")
    )
    yprice_enabled: bool = Field(default=False, validation_alias=_env("YPRICE_ENABLED"))
    yprice_api: str | None = Field(default=None, validation_alias=_env("YPRICE_API"))
    yprice_api_x_signature: SecretStr | None = Field(
        default=None, validation_alias=_env("YPRICE_API_X_SIGNATURE")
    )
    yprice_api_x_signer: str | None = Field(
        default=None, validation_alias=_env("YPRICE_API_X_SIGNER")
    )

    # --- http ---
    http_timeout: float = Field(default=10.0, gt=0)
    http_max_tries: int = Field(default=3, ge=1)

    # --- resolution ---
    provider_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Upper bound for a single provider attempt; a timeout is a miss.",
    )
    price_cache_ttl: float = Field(default=RESOLVE_PRICE_TTL, gt=0)
    cache_maxsize: int = Field(default=CACHE_MAXSIZE, gt=0)
    latest_cascade: list[str] = Field(
        default_factory=lambda: list(DEFAULT_LATEST_CASCADE)
    )
    historical_cascade: list[str] = Field(
        default_factory=lambda: list(DEFAULT_HISTORICAL_CASCADE)
    )

    # --- logging ---
    log_level: str = Field(default="INFO", validation_alias=_env("LOG_LEVEL"))

    model_config = SettingsConfigDict(
        env_prefix="VAULT_PRICER_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
        frozen=True,
    )

    @field_validator("spork_api_auth", "yprice_api_x_signature", mode="before")
    @classmethod
    def wrap_secrets(cls, v: Any) -> SecretStr | None:
        """Wrap string secrets in SecretStr."""
        if v is None or isinstance(v, SecretStr):
            return v
        if v == "":
            return None
        return SecretStr(v)

    @field_validator("ydaemon_api", "spork_api", "yprice_api", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.rstrip("/") or None
        return v

    @field_validator("latest_cascade", "historical_cascade", mode="after")
    @classmethod
    def normalize_cascade(cls, v: list[str]) -> list[str]:
        return [name.strip().lower() for name in v if name.strip()]

    @field_validator("log_level", mode="after")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return v.upper()

    @model_validator(mode="after")
    def validate_rpc_urls(self) -> "PricerSettings":
        """Validate that every configured chain has a usable RPC URL."""
        for chain_id, url in self.rpc_urls.items():
            if chain_id <= 0:
                raise ValueError(f"rpc_urls: invalid chain id {chain_id}")
            if not url.startswith(("http://", "https://")):
                raise ValueError(
                    f"rpc_urls: RPC URL for chain {chain_id} must be http(s), got {url!r}"
                )
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Order sources so that CLI beats ENV, and ENV beats the TOML file."""
        return (
            init_settings,
            env_settings,
            TomlConfigSource(settings_cls, find_settings_file()),
            file_secret_settings,
        )

    def as_safe_dict(self) -> dict[str, Any]:
        """Return the config as a dict with secrets redacted."""
        data = self.model_dump(mode="json")
        for key in SECRET_FIELDS:
            if getattr(self, key):
                data[key] = "***redacted***"
        return data

    @property
    def spork_configured(self) -> bool:
        return bool(self.spork_api and self.spork_api_auth)

    @property
    def yprice_configured(self) -> bool:
        return self.yprice_enabled and bool(self.yprice_api)

    def rpc_url(self, chain_id: int) -> str:
        """Get the RPC URL for a chain, raising ValueError if not set."""
        url = self.rpc_urls.get(chain_id)
        if url is None:
            raise ValueError(f"No RPC URL configured for chain {chain_id}")
        return url
