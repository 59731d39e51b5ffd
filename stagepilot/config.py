"""
StagePilot Configuration

Environment-based configuration for the storage and band-setup core.
"""
import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_name: str = "StagePilot"
    debug: bool = False

    # Storage
    # Per-user root holding storage.json, projects/, exports/, versions/, temp/, library/
    user_data_dir: Path = Path("./user_data")
    # Read-only source records: bands/*.json and musicians/<role>/*.json
    data_dir: Path = Path("./data")
    # Development reset: wipe user_data_dir before initialising storage
    dev_wipe_storage: bool = False

    # Renderer subprocess
    # STAGEPILOT_RENDERER_COMMAND is a JSON array, e.g. ["node", "--import", "tsx"]
    renderer_command: list[str] = ["node", "--import", "tsx"]
    export_script: Path = Path("scripts/desktop_export.ts")
    preview_script: Path = Path("scripts/desktop_preview.ts")
    renderer_cwd: Optional[Path] = None  # None = current working directory

    @model_validator(mode="after")
    def _warn_wipe_outside_debug(self) -> "Settings":
        """Warn when the storage wipe is enabled without debug mode."""
        if self.dev_wipe_storage and not self.debug:
            logging.getLogger(__name__).warning(
                "⚠️ STAGEPILOT_DEV_WIPE_STORAGE is set with STAGEPILOT_DEBUG=false. "
                "User data under %s will be deleted on init.",
                self.user_data_dir,
            )
        return self

    model_config = SettingsConfigDict(
        env_prefix="STAGEPILOT_",
        env_file=".env",
        env_file_encoding="utf-8",
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
