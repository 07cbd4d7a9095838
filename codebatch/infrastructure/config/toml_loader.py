"""TOML configuration loader with env overrides."""

import logging
import os
import tomllib
from pathlib import Path

from codebatch.domain.ports.config import (
    AppConfig,
    ArtifactsConfig,
    BatchingConfig,
    ContentConfig,
    PersistenceConfig,
    SecurityConfig,
    ServerConfig,
)

logger = logging.getLogger(__name__)


def _load_toml(path: Path) -> dict:
    """Load TOML file."""
    with open(path, "rb") as f:
        return tomllib.load(f)


def _int_override(config: dict, env_name: str, section: str, key: str) -> None:
    if raw := os.getenv(env_name):
        try:
            config.setdefault(section, {})[key] = int(raw)
        except ValueError:
            logger.warning("Invalid %s env value: %r, ignoring", env_name, raw)


def _apply_env_overrides(config: dict) -> dict:
    """Apply environment variable overrides."""
    _int_override(config, "PORT", "server", "port")
    if level := os.getenv("LOG_LEVEL"):
        config.setdefault("logging", {})["level"] = level.upper()
    if path := os.getenv("LOG_FILE"):
        config.setdefault("logging", {})["file"] = path.strip()
    if state_dir := os.getenv("CODEBATCH_STATE_DIR"):
        config.setdefault("persistence", {})["state_dir"] = state_dir.strip()
    if docs_dir := os.getenv("CODEBATCH_DOCS_DIR"):
        config.setdefault("artifacts", {})["docs_dir"] = docs_dir.strip()
    _int_override(config, "CODEBATCH_TARGET_BATCH_SIZE", "batching", "target_batch_size")
    _int_override(config, "CODEBATCH_MAX_BATCH_SIZE", "batching", "max_batch_size")
    if origins := os.getenv("CORS_ORIGINS"):
        config.setdefault("security", {})["cors_origins"] = [o.strip() for o in origins.split(",")]
    _int_override(config, "RATE_LIMIT_PER_MINUTE", "security", "rate_limit_requests_per_minute")
    return config


def load_config(config_dir: Path | None = None) -> AppConfig:
    """Load configuration from TOML files with env overrides.

    Loads default.toml, then development.toml if exists.
    """
    if config_dir is None:
        config_dir = Path(__file__).resolve().parent.parent.parent.parent / "config"

    config: dict = {}

    default_path = config_dir / "default.toml"
    if default_path.exists():
        config = _load_toml(default_path)

    dev_path = config_dir / "development.toml"
    if dev_path.exists():
        dev_config = _load_toml(dev_path)
        for key, value in dev_config.items():
            if isinstance(value, dict) and key in config and isinstance(config[key], dict):
                config[key] = {**config[key], **value}
            else:
                config[key] = value

    config = _apply_env_overrides(config)

    logging_raw = config.get("logging") or {}
    return AppConfig(
        server=ServerConfig(**(config.get("server") or {})),
        batching=BatchingConfig(**(config.get("batching") or {})),
        persistence=PersistenceConfig(**(config.get("persistence") or {})),
        artifacts=ArtifactsConfig(**(config.get("artifacts") or {})),
        content=ContentConfig(**(config.get("content") or {})),
        security=SecurityConfig(**(config.get("security") or {})),
        log_level=logging_raw.get("level", "INFO"),
        log_file=(logging_raw.get("file") or "").strip(),
        log_rotation_max_mb=int(logging_raw.get("log_rotation_max_mb", 5)),
        log_rotation_backups=int(logging_raw.get("log_rotation_backups", 3)),
    )
