"""Process configuration loaded from environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings with environment variable loading and sensible defaults.

    Plugin options (files, commit message, identities) are not settings; they
    arrive per run as ``PluginConfig``.
    """

    model_config = SettingsConfigDict(
        env_prefix="RELEASE_COMMITTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = "INFO"
    json_logs: bool = False
    request_timeout: float = 30.0


settings = Settings()
