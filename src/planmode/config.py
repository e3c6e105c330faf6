"""User configuration stored at ``~/.planmode/config`` (YAML).

Example::

    auth:
      github_token: ghp_...
    registries:
      acme: github.com/acme/planmode-registry
    cache:
      dir: /tmp/planmode-cache
      ttl: 600

``PLANMODE_HOME`` relocates the whole directory and ``PLANMODE_GITHUB_TOKEN``
takes precedence over ``auth.github_token``. A missing or unreadable file
means "all defaults".
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from planmode.exceptions import FileSystemError

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY = "github.com/planmode/registry"
DEFAULT_CACHE_TTL = 3600

HOME_ENV = "PLANMODE_HOME"
TOKEN_ENV = "PLANMODE_GITHUB_TOKEN"


def config_dir() -> Path:
    override = os.environ.get(HOME_ENV)
    if override:
        return Path(override)
    return Path.home() / ".planmode"


def config_path() -> Path:
    return config_dir() / "config"


@dataclass
class Config:
    """Parsed user configuration.

    Attributes:
        github_token: Token sent as a bearer credential to GitHub.
        registries: Scope name to registry (``github.com/org/repo``). The
            ``default`` key is used for unscoped packages.
        cache_dir: Where the registry index cache lives.
        cache_ttl: Seconds a cached index stays fresh.
    """

    github_token: str | None = None
    registries: dict[str, str] = field(default_factory=dict)
    cache_dir: Path | None = None
    cache_ttl: int = DEFAULT_CACHE_TTL

    @property
    def token(self) -> str | None:
        return os.environ.get(TOKEN_ENV) or self.github_token

    @property
    def all_registries(self) -> dict[str, str]:
        return {"default": DEFAULT_REGISTRY, **self.registries}

    @property
    def effective_cache_dir(self) -> Path:
        return self.cache_dir or config_dir() / "cache"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.github_token:
            data["auth"] = {"github_token": self.github_token}
        if self.registries:
            data["registries"] = dict(self.registries)
        cache: dict[str, Any] = {}
        if self.cache_dir is not None:
            cache["dir"] = str(self.cache_dir)
        if self.cache_ttl != DEFAULT_CACHE_TTL:
            cache["ttl"] = self.cache_ttl
        if cache:
            data["cache"] = cache
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Config:
        auth = _section(data, "auth")
        cache = _section(data, "cache")
        registries = _section(data, "registries")
        cache_dir = cache.get("dir")
        try:
            ttl = int(cache.get("ttl", DEFAULT_CACHE_TTL))
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid cache.ttl %r", cache.get("ttl"))
            ttl = DEFAULT_CACHE_TTL
        return cls(
            github_token=auth.get("github_token"),
            registries={str(k): str(v) for k, v in registries.items()},
            cache_dir=Path(cache_dir) if cache_dir else None,
            cache_ttl=ttl,
        )


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        logger.warning("Ignoring config section %s: expected a mapping, got %r", key, value)
        return {}
    return value


def read_config(path: Path | None = None) -> Config:
    """Load configuration, falling back to defaults on any problem."""
    path = path or config_path()
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return Config()
    except (OSError, yaml.YAMLError, UnicodeDecodeError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", path, exc)
        return Config()
    if not isinstance(data, dict):
        return Config()
    return Config.from_dict(data)


def write_config(config: Config, path: Path | None = None) -> None:
    """Persist configuration.

    Raises:
        FileSystemError: If the file cannot be written.
    """
    path = path or config_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(yaml.safe_dump(config.to_dict(), sort_keys=False), encoding="utf-8")
    except OSError as exc:
        raise FileSystemError(f"Failed to write {path}: {exc}") from exc


def add_registry(scope: str, url: str, path: Path | None = None) -> Config:
    """Register *url* as the registry for ``@scope`` packages."""
    config = read_config(path)
    config.registries[scope] = url
    write_config(config, path)
    return config


def set_github_token(token: str, path: Path | None = None) -> Config:
    config = read_config(path)
    config.github_token = token
    write_config(config, path)
    return config
