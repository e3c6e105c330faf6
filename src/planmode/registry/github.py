"""Registry fetcher backed by GitHub repositories.

A registry is a GitHub repository (``github.com/<org>/<repo>``) laid out as::

    index.json
    packages/<name>/metadata.json
    packages/<name>/versions/<version>.json

Files are read through ``raw.githubusercontent.com``. Package content lives
in each package's own repository and is read at the release tag recorded in
the version metadata.

Scoped packages (``@acme/deploy``) are looked up in the registry configured
for their scope; unscoped packages use the ``default`` registry.
"""

from __future__ import annotations

import json
import logging
import re
import time
from pathlib import Path

import httpx

from planmode.config import Config, read_config
from planmode.registry.base import (
    PackageFetcher,
    PackageMetadata,
    PackageSummary,
    SourceLocation,
    VersionMetadata,
)
from planmode.registry.http_client import fetch_json, fetch_text, make_client
from planmode.exceptions import (
    ConfigurationError,
    NotFoundError,
    PackageNotFoundError,
    VersionNotFoundError,
)

logger = logging.getLogger(__name__)

RAW_HOST = "https://raw.githubusercontent.com"
INDEX_FILE = "index.json"
INDEX_CACHE_FILE = "index.json"

_REPO_RE = re.compile(r"^(?:https?://)?github\.com/(?P<org>[^/]+)/(?P<repo>[^/]+?)(?:\.git)?/?$")


def raw_url(repository: str, ref: str, path: str) -> str:
    """Build a raw-content URL for *path* at *ref* in a GitHub repository.

    Raises:
        ConfigurationError: If *repository* is not ``github.com/org/repo``.
    """
    m = _REPO_RE.match(repository.strip())
    if not m:
        raise ConfigurationError(f"Unsupported repository URL: {repository}")
    return f"{RAW_HOST}/{m.group('org')}/{m.group('repo')}/{ref}/{path}"


def split_scope(name: str) -> tuple[str | None, str]:
    """Split ``@scope/name`` into ``("scope", "name")``; unscoped gives None."""
    if name.startswith("@") and "/" in name:
        scope, _, bare = name[1:].partition("/")
        return scope, bare
    return None, name


class GitHubRegistry(PackageFetcher):
    """``PackageFetcher`` over GitHub-hosted registries.

    Args:
        config: User configuration; read from disk if omitted.
        transport: Custom httpx transport, mainly for tests.
        branch: Branch of the registry repository to read.
    """

    def __init__(
        self,
        config: Config | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        branch: str = "main",
    ) -> None:
        self._config = config if config is not None else read_config()
        self._transport = transport
        self._branch = branch

    def _client(self) -> httpx.AsyncClient:
        return make_client(token=self._config.token, transport=self._transport)

    def registry_for(self, name: str) -> str:
        """Return the registry repository that serves package *name*.

        Raises:
            ConfigurationError: If *name* is scoped and no registry is
                configured for its scope.
        """
        registries = self._config.all_registries
        scope, _ = split_scope(name)
        if scope is None:
            return registries["default"]
        try:
            return registries[scope]
        except KeyError:
            raise ConfigurationError(
                f'No registry configured for scope "@{scope}". '
                f"Add it under 'registries' in your planmode config."
            ) from None

    def _registry_url(self, name: str, path: str) -> str:
        return raw_url(self.registry_for(name), self._branch, path)

    # -- PackageFetcher -----------------------------------------------------

    async def fetch_package_metadata(self, name: str) -> PackageMetadata:
        _, bare = split_scope(name)
        url = self._registry_url(name, f"packages/{bare}/metadata.json")
        async with self._client() as client:
            try:
                data = await fetch_json(url, client=client)
            except NotFoundError:
                raise PackageNotFoundError(
                    name,
                    f"Package '{name}' not found in registry. "
                    "Run `planmode search <query>` to find packages.",
                ) from None
        return PackageMetadata.from_dict(data)

    async def fetch_version_metadata(self, name: str, version: str) -> VersionMetadata:
        _, bare = split_scope(name)
        url = self._registry_url(name, f"packages/{bare}/versions/{version}.json")
        async with self._client() as client:
            try:
                data = await fetch_json(url, client=client)
            except NotFoundError:
                raise VersionNotFoundError(version, [], name=name) from None
        return VersionMetadata.from_dict(data)

    async def fetch_file(self, source: SourceLocation, path: str) -> str:
        url = raw_url(source.repository, source.tag, source.file_path(path))
        async with self._client() as client:
            try:
                return await fetch_text(url, client=client)
            except NotFoundError:
                raise NotFoundError(
                    f"File not found: {path} in {source.repository}@{source.tag}"
                ) from None

    # -- Index and search ---------------------------------------------------

    def _index_cache_path(self) -> Path:
        return self._config.effective_cache_dir / INDEX_CACHE_FILE

    def _read_cached_index(self) -> list[PackageSummary] | None:
        path = self._index_cache_path()
        try:
            age = time.time() - path.stat().st_mtime
            if age >= self._config.cache_ttl:
                return None
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return None
        return [PackageSummary.from_dict(p) for p in data.get("packages", [])]

    def _write_cached_index(self, data: dict) -> None:
        path = self._index_cache_path()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError as exc:
            logger.warning("Could not cache registry index at %s: %s", path, exc)

    async def fetch_index(self, *, refresh: bool = False) -> list[PackageSummary]:
        """Return the default registry's package index.

        Served from the on-disk cache while it is younger than the
        configured TTL, unless *refresh* is set.
        """
        if not refresh:
            cached = self._read_cached_index()
            if cached is not None:
                return cached

        url = raw_url(self._config.all_registries["default"], self._branch, INDEX_FILE)
        async with self._client() as client:
            data = await fetch_json(url, client=client)
        if not isinstance(data, dict):
            data = {"packages": []}
        self._write_cached_index(data)
        return [PackageSummary.from_dict(p) for p in data.get("packages", [])]

    async def search(
        self,
        query: str,
        *,
        package_type: str | None = None,
        category: str | None = None,
    ) -> list[PackageSummary]:
        """Search the index by name, description, author, and tags.

        Results are sorted by download count, most downloaded first.
        """
        results = [p for p in await self.fetch_index() if p.matches(query)]
        if package_type:
            results = [p for p in results if p.type == package_type]
        if category:
            results = [p for p in results if p.category == category]
        return sorted(results, key=lambda p: p.downloads, reverse=True)
