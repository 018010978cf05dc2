"""Configuration management for PixeLens (pixelens.toml parsing + defaults)."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

CONFIG_FILENAME = "pixelens.toml"
PIXELENS_DIRNAME = ".pixelens"

DEFAULT_EXTENSIONS = [
    ".js",
    ".ts",
    ".tsx",
    ".jsx",
    ".html",
    ".css",
    ".scss",
    ".less",
    ".json",
]

DEFAULT_EXCLUDE = [
    "node_modules",
    "venv",
    ".venv",
    "dist",
    "build",
    ".git",
    ".next",
    "out",
    "target",
    PIXELENS_DIRNAME,
]


class ConfigError(ValueError):
    """pixelens.toml contains a value of the wrong shape."""


@dataclass
class SearchConfig:
    preview_length: int = 100
    max_workers: int = 4


@dataclass
class FixConfig:
    history_db: str = f"{PIXELENS_DIRNAME}/edit_history.db"


@dataclass
class PixeLensConfig:
    """Complete PixeLens configuration."""

    extensions: list[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    exclude: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE))
    search: SearchConfig = field(default_factory=SearchConfig)
    fix: FixConfig = field(default_factory=FixConfig)

    @property
    def allowed_extensions(self) -> frozenset[str]:
        return frozenset(normalize_extension(ext) for ext in self.extensions)

    @property
    def excluded_dir_names(self) -> frozenset[str]:
        return frozenset(name.strip().rstrip("/").lower() for name in self.exclude if name.strip())


def normalize_extension(ext: str) -> str:
    """'.TSX', 'tsx' and ' .tsx ' all become '.tsx'."""
    ext = ext.strip().lower()
    if ext and not ext.startswith("."):
        ext = "." + ext
    return ext


def load_config(project_path: Path | None = None) -> PixeLensConfig:
    """Load configuration from pixelens.toml if present, otherwise return defaults."""
    config = PixeLensConfig()

    if project_path is None:
        project_path = Path.cwd()

    config_file = project_path / CONFIG_FILENAME
    if not config_file.exists():
        return config

    with open(config_file, "rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"{config_file}: {e}") from e

    if "general" in data:
        gen = data["general"]
        if "extensions" in gen:
            config.extensions = _string_list(gen["extensions"], "general.extensions")
        if "exclude" in gen:
            config.exclude = _string_list(gen["exclude"], "general.exclude")

    if "search" in data:
        s = data["search"]
        for attr in ("preview_length", "max_workers"):
            if attr in s:
                setattr(config.search, attr, _positive_int(s[attr], f"search.{attr}"))

    if "fix" in data:
        fx = data["fix"]
        if "history_db" in fx:
            if not isinstance(fx["history_db"], str) or not fx["history_db"].strip():
                raise ConfigError("fix.history_db must be a non-empty string")
            config.fix.history_db = fx["history_db"]

    return config


def get_pixelens_dir(project_path: Path | None = None) -> Path:
    """Get or create the .pixelens directory."""
    if project_path is None:
        project_path = Path.cwd()
    pixelens_dir = project_path / PIXELENS_DIRNAME
    pixelens_dir.mkdir(parents=True, exist_ok=True)
    return pixelens_dir


def history_db_path(project_path: Path, config: PixeLensConfig) -> Path:
    """Resolve the edit ledger location, relative paths against the project."""
    db_path = Path(config.fix.history_db)
    if not db_path.is_absolute():
        db_path = project_path / db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return db_path


def _string_list(value: object, key: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{key} must be a list of strings")
    return list(value)


def _positive_int(value: object, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigError(f"{key} must be a positive integer")
    return value
