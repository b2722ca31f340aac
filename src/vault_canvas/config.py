"""
vault-canvas Configuration

Settings are loaded from:
1. Environment variables (prefixed with VCANVAS_)
2. ~/.vcanvas/.env file

Key settings:
- VCANVAS_VAULT_PATH: Root directory of the note vault (default: current directory)
- VCANVAS_CANVAS_FOLDER: Vault-relative folder for new canvases (default: vault root)
- VCANVAS_NODE_WIDTH / VCANVAS_NODE_HEIGHT: Grid node size
- VCANVAS_SORT_PROPERTY: Frontmatter key used to order grid nodes
- VCANVAS_EXCLUDED_SECTIONS: Comma-separated heading titles stripped from the aggregate
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".vcanvas"
ENV_FILE = CONFIG_DIR / ".env"
ENV_PREFIX = "VCANVAS_"


class Settings(BaseSettings):
    """vault-canvas configuration settings."""

    vault_path: Path = Field(
        default=Path("."), validate_default=True, description="Root directory of the note vault"
    )
    canvas_folder: str = Field(default="", description="Folder for new canvases ('' = vault root)")
    node_width: int = Field(default=400, gt=0, description="Width of grid nodes")
    node_height: int = Field(default=600, gt=0, description="Height of grid nodes")
    sort_property: str = Field(
        default="created_at",
        description="Frontmatter key ordering grid nodes (falls back to creation time)",
    )
    excluded_sections: str = Field(
        default="",
        description="Comma-separated heading titles removed from aggregated content",
    )

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("vault_path", mode="before")
    @classmethod
    def _normalize_vault_path(cls, value: str | Path | None) -> Path:
        if value is None or value == "":
            return Path(".").resolve()
        return Path(value).expanduser().resolve()

    @field_validator("canvas_folder", mode="before")
    @classmethod
    def _normalize_canvas_folder(cls, value: Optional[str]) -> str:
        cleaned = (value or "").strip().strip("/")
        if "\\" in cleaned or ".." in cleaned.split("/"):
            raise ValueError("Canvas folder must be a vault-relative path without '..' or '\\'")
        return cleaned

    @field_validator("sort_property", mode="before")
    @classmethod
    def _strip_sort_property(cls, value: Optional[str]) -> str:
        return (value or "").strip()

    @property
    def excluded_section_titles(self) -> List[str]:
        """Configured section titles, trimmed, empties dropped."""
        return [title.strip() for title in self.excluded_sections.split(",") if title.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load and cache settings."""
    settings = Settings()
    logger.debug(
        "Settings loaded",
        extra={"vault_path": str(settings.vault_path), "canvas_folder": settings.canvas_folder},
    )
    return settings


def reload_settings() -> Settings:
    """Clear cached settings (useful for tests) and reload."""
    get_settings.cache_clear()
    return get_settings()


def set_env_value(key: str, value: str, env_path: Path | None = None) -> Path:
    """
    Persist a single setting in the env file, preserving other lines.

    Raises ValueError for unknown keys or invalid values.
    """
    field_name = key.strip().lower()
    if field_name.startswith(ENV_PREFIX.lower()):
        field_name = field_name[len(ENV_PREFIX):]
    if field_name not in Settings.model_fields:
        raise ValueError(f"Unknown setting: {key}")
    # Reject values the settings model would not load.
    Settings(_env_file=None, **{field_name: value})

    env_path = env_path or ENV_FILE
    env_key = f"{ENV_PREFIX}{field_name.upper()}"

    lines: List[str] = []
    if env_path.exists():
        lines = env_path.read_text(encoding="utf-8").splitlines(keepends=True)

    lines = [line for line in lines if not line.startswith(f"{env_key}=")]
    if lines and not lines[-1].endswith("\n"):
        lines[-1] += "\n"
    lines.append(f"{env_key}={value}\n")

    env_path.parent.mkdir(parents=True, exist_ok=True)
    env_path.write_text("".join(lines), encoding="utf-8")
    return env_path


__all__ = ["Settings", "get_settings", "reload_settings", "set_env_value", "ENV_FILE", "CONFIG_DIR"]
