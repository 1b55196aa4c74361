"""Application configuration using pydantic-settings."""

from typing import Any

from pydantic import field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from services.credential_manager import CREDENTIAL_KEYS, get_credential


class ConfigurationError(Exception):
    """A required configuration value is missing or invalid."""

    pass


class KeychainSettingsSource(PydanticBaseSettingsSource):
    """Load credential fields from the system keychain via ``keyring``.

    Only fields whose uppercase name appears in
    :data:`~services.credential_manager.CREDENTIAL_KEYS` are looked up.
    All other fields return ``None`` so the next source in the chain
    handles them.
    """

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str, bool]:
        env_name = field_name.upper()
        if env_name not in CREDENTIAL_KEYS:
            return None, field_name, False
        value = get_credential(env_name)
        return value, field_name, False

    def __call__(self) -> dict[str, Any]:
        d: dict[str, Any] = {}
        for field_name, field_info in self.settings_cls.model_fields.items():
            value, key, is_complex = self.get_field_value(field_info, field_name)
            if value is not None:
                d[key] = value
        return d


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
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
        return (
            init_settings,
            KeychainSettingsSource(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )

    # Database
    DATABASE_URL: str = "sqlite:///./mint.db"

    # Plaid credentials (required before any ingest run)
    PLAID_CLIENT_ID: str = ""
    PLAID_SECRET: str = ""
    PLAID_ENVIRONMENT: str = "sandbox"
    PLAID_TIMEOUT_SECONDS: float = 30.0

    # Ingest
    INGEST_LOOKBACK_DAYS: int = 30

    @field_validator("INGEST_LOOKBACK_DAYS")
    @classmethod
    def validate_lookback(cls, v: int) -> int:
        """Lookback window must be a positive number of days."""
        if v < 1:
            raise ValueError(f"INGEST_LOOKBACK_DAYS must be positive, got {v}")
        return v

    # Access token encryption at rest (64 hex chars, optional)
    ENCRYPTION_KEY: str = ""

    # API key guarding the /manual/* routes
    API_KEY: str = ""

    # Server
    HOST: str = "127.0.0.1"
    PORT: int = 8080

    # Output files
    RESULTS_LOG_PATH: str = "./ccc-results.txt"
    EXPORT_PATH: str = "./transactions.csv"

    # App settings
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize LOG_LEVEL to an uppercase Python logging level."""
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"LOG_LEVEL must be one of {valid}, got {v!r}")
        return v.upper()

    def missing_plaid_credentials(self) -> list[str]:
        """Return the names of required Plaid settings that are empty."""
        required = {
            "PLAID_CLIENT_ID": self.PLAID_CLIENT_ID,
            "PLAID_SECRET": self.PLAID_SECRET,
            "PLAID_ENVIRONMENT": self.PLAID_ENVIRONMENT,
        }
        return [key for key, value in required.items() if not value]

    def require_plaid_credentials(self) -> None:
        """Raise ``ConfigurationError`` if any Plaid credential is missing.

        Called by entry points before an ingest pipeline is built, so a
        missing credential fails at startup rather than mid-run.
        """
        missing = self.missing_plaid_credentials()
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}"
            )


settings = Settings()
