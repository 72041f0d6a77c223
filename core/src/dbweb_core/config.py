from __future__ import annotations

import json
import logging
import secrets
from dataclasses import replace
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from dbweb_core.home import DBWebPaths


class NetworkConfig(BaseModel):
    bind_host: str = Field(default="127.0.0.1")
    port: int = Field(default=8978, ge=1, le=65535)


class PathOverrides(BaseModel):
    db_dir: str | None = None
    logs_dir: str | None = None
    web_dir: str | None = Field(
        default=None,
        description="Content root of the web client; relative values resolve under DBWEB_HOME",
    )


LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO", description="One of " + ", ".join(LOG_LEVELS))
    max_size_mb: int = Field(default=10, ge=1, description="Size in MB at which core.log rolls")
    backup_count: int = Field(default=5, ge=1, description="Rolled log files to keep")

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"unknown log level {value!r}")
        return level

    def file_handler(self, log_path: Path) -> RotatingFileHandler:
        handler = RotatingFileHandler(
            log_path,
            maxBytes=self.max_size_mb * 1024 * 1024,
            backupCount=self.backup_count,
            encoding="utf-8",
        )
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        return handler


class ServerConfig(BaseModel):
    root_uri: str = Field(
        default="/",
        description="Public path the web client is served under, substituted for {ROOT_URI}",
    )
    configuration_mode: bool = Field(
        default=True,
        description="Server is still in initial setup; automatic SSO redirects are disabled",
    )
    session_idle_minutes: int = Field(default=30, ge=1)

    @field_validator("root_uri")
    @classmethod
    def _normalize_root_uri(cls, value: str) -> str:
        value = (value or "").strip().rstrip("/")
        if value and not value.startswith("/"):
            value = "/" + value
        return value


class AuthProviderConfig(BaseModel):
    """A named configuration of an auth provider (e.g. one identity provider tenant)."""

    provider: str = Field(min_length=1)
    disabled: bool = Field(default=False)
    display_name: str | None = None
    description: str | None = None
    parameters: dict[str, Any] = Field(default_factory=dict)


class AuthConfig(BaseModel):
    install_token: str | None = Field(default=None)
    admin_name: str = Field(default="admin", min_length=1)
    enabled_providers: list[str] = Field(default_factory=lambda: ["local"])
    configurations: dict[str, AuthProviderConfig] = Field(default_factory=dict)


class CoreConfig(BaseModel):
    version: str = Field(default="1")
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    paths: PathOverrides = Field(default_factory=PathOverrides)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)


def load_core_config(paths: DBWebPaths) -> CoreConfig:
    """Read ``config/core.json`` from the workspace.

    A missing file yields the defaults; anything present is validated by
    pydantic and a malformed file raises ``ValidationError``.
    """

    try:
        raw = paths.core_config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return CoreConfig()
    return CoreConfig.model_validate_json(raw)


def write_core_config(paths: DBWebPaths, config: CoreConfig) -> None:
    payload = json.dumps(config.model_dump(mode="json", exclude_none=True), indent=2) + "\n"
    paths.config_dir.mkdir(parents=True, exist_ok=True)

    # Replace in one step so a reader never sees a half-written file.
    staging = paths.core_config_path.with_suffix(".json.tmp")
    staging.write_text(payload, encoding="utf-8")
    staging.replace(paths.core_config_path)


def ensure_install_token(paths: DBWebPaths, config: CoreConfig) -> CoreConfig:
    """Return ``config`` with an install token, generating and saving one on first start."""

    if (config.auth.install_token or "").strip():
        return config

    auth = config.auth.model_copy(update={"install_token": secrets.token_urlsafe(32)})
    updated = config.model_copy(update={"auth": auth})
    write_core_config(paths, updated)
    return updated


def resolve_configured_paths(paths: DBWebPaths, config: CoreConfig) -> DBWebPaths:
    """Apply the ``paths`` overrides of ``config`` and create the resulting directories.

    Relative overrides resolve under the workspace. ``config/`` and ``tmp/``
    cannot be moved.
    """

    overrides: dict[str, Path] = {}
    for name, raw in config.paths.model_dump().items():
        if raw is None or not str(raw).strip():
            continue
        candidate = Path(raw).expanduser()
        if not candidate.is_absolute():
            candidate = paths.home / candidate
        overrides[name] = candidate.resolve()

    resolved = replace(paths, **overrides)
    for directory in (resolved.db_dir, resolved.logs_dir, resolved.web_dir):
        directory.mkdir(parents=True, exist_ok=True)
    return resolved
