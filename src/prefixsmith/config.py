"""Configuration management for PrefixSmith."""

import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from .engine.bridge import SCRIPT_PATH
from .engine.transformer import PrefixOptions

load_dotenv()

# autoprefixer's own `defaults` browserslist query
DEFAULT_BROWSERS = ["> 0.5%", "last 2 versions", "Firefox ESR", "not dead"]


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_browsers() -> list[str]:
    """Parse the browserslist queries from the environment."""
    browsers_env = os.getenv("AUTOPREFIXER_BROWSERS")
    if browsers_env:
        browsers = [b.strip() for b in browsers_env.split(",") if b.strip()]
        if browsers:
            return browsers
    return list(DEFAULT_BROWSERS)


class Settings(BaseModel):
    """Extension settings."""

    model_config = ConfigDict(extra="forbid")

    # Autoprefixer options
    browsers: list[str] = Field(default_factory=_parse_browsers)
    cascade: bool = Field(default_factory=lambda: _env_bool("AUTOPREFIXER_CASCADE", True))
    remove: bool = Field(default_factory=lambda: _env_bool("AUTOPREFIXER_REMOVE", True))

    # Save hook
    run_on_save: bool = Field(
        default_factory=lambda: _env_bool("AUTOPREFIXER_RUN_ON_SAVE", False)
    )
    html_enabled: bool = Field(default_factory=lambda: _env_bool("AUTOPREFIXER_HTML", False))

    # Node.js helper
    node_path: str = Field(default_factory=lambda: os.getenv("AUTOPREFIXER_NODE_PATH", "node"))
    script_path: Path = Field(
        default_factory=lambda: Path(os.getenv("AUTOPREFIXER_SCRIPT_PATH", str(SCRIPT_PATH)))
    )

    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())

    def prefix_options(self) -> PrefixOptions:
        return PrefixOptions(
            browsers=list(self.browsers), cascade=self.cascade, remove=self.remove
        )


# Setting descriptions for host settings panels
CONFIG_SCHEMA: dict[str, dict[str, Any]] = {
    "browsers": {
        "title": "Supported Browsers",
        "description": "Using the [following syntax](https://github.com/browserslist/browserslist#queries).",
        "type": "array",
        "default": DEFAULT_BROWSERS,
        "items": {"type": "string"},
    },
    "cascade": {
        "title": "Cascade Prefixes",
        "type": "boolean",
        "default": True,
    },
    "remove": {
        "title": "Remove Unneeded Prefixes",
        "type": "boolean",
        "default": True,
    },
    "run_on_save": {
        "title": "Run on Save",
        "type": "boolean",
        "default": False,
    },
    "html_enabled": {
        "title": "Process HTML",
        "description": "Prefix CSS inside HTML documents, including on save.",
        "type": "boolean",
        "default": False,
    },
}


class ConfigStore:
    """Host-side settings store, read fresh at every invocation."""

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings or Settings()

    def get(self) -> Settings:
        return self._settings

    def update(self, **changes: Any) -> Settings:
        """Replace settings with ``changes`` applied, validating them."""
        data = self._settings.model_dump()
        data.update(changes)
        self._settings = Settings.model_validate(data)
        return self._settings
