"""AgentFS configuration settings."""

from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from agentfs.infrastructure.config.settings_utils import (
    env_bool,
    env_bytes,
    env_choice,
    env_int,
    env_list,
    env_str,
)
from agentfs.infrastructure.logging_setup import bind_store_context, configure_logging
from agentfs.infrastructure.storage.file_store import DEFAULT_MAX_READ_BYTES, StoreConfig
from agentfs.infrastructure.storage.path_guard import normalize_path
from agentfs.infrastructure.storage.unified_diff import PatchMode


class Settings(BaseSettings):
    """Application settings with env var support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Sandbox
    root: Path = Field(default_factory=lambda: Path(env_str("AGENTFS_ROOT", "project-folder")))
    max_read_bytes: int = Field(
        default_factory=lambda: env_bytes("AGENTFS_MAX_READ_BYTES", DEFAULT_MAX_READ_BYTES, minimum=0)
    )
    patch_mode: PatchMode = Field(
        default_factory=lambda: PatchMode(
            env_choice(
                "AGENTFS_PATCH_MODE",
                PatchMode.LENIENT.value,
                [mode.value for mode in PatchMode],
            )
        )
    )

    # Server/observability
    api_host: str = Field(default_factory=lambda: env_str("AGENTFS_HOST", "127.0.0.1"))
    api_port: int = Field(
        default_factory=lambda: env_int("AGENTFS_PORT", 8000, minimum=1, maximum=65535)
    )
    api_reload: bool = Field(default_factory=lambda: env_bool("AGENTFS_RELOAD", False))
    log_level: str = Field(default_factory=lambda: env_str("AGENTFS_LOG_LEVEL", "INFO"))
    log_json: bool = Field(default_factory=lambda: env_bool("AGENTFS_LOG_JSON", False))
    cors_origins: list[str] = Field(
        default_factory=lambda: env_list("AGENTFS_CORS_ORIGINS", default=["*"])
    )

    # Tool layer
    allow_write: bool = Field(default_factory=lambda: env_bool("AGENTFS_ALLOW_WRITE", True))
    allow_exec: bool = Field(default_factory=lambda: env_bool("AGENTFS_ALLOW_EXEC", False))
    script_timeout_seconds: int = Field(
        default_factory=lambda: env_int("AGENTFS_SCRIPT_TIMEOUT", 300, minimum=1, maximum=3600)
    )

    @field_validator("patch_mode", mode="before")
    @classmethod
    def _parse_patch_mode(cls, value):
        return PatchMode.parse(value)

    @model_validator(mode="after")
    def _normalize_root(self) -> "Settings":
        self.root = normalize_path(self.root)
        return self

    def store_config(self) -> StoreConfig:
        """Build the per-store configuration from these settings."""
        return StoreConfig(
            root=self.root,
            max_read_bytes=self.max_read_bytes,
            patch_mode=self.patch_mode,
        )

    def setup_logging(self) -> None:
        configure_logging(level=self.log_level, json_logs=self.log_json)
        bind_store_context(str(self.root), self.patch_mode.value)


# Global settings instance
settings = Settings()
