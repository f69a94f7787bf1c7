"""Caching repository of loaded schema bundles.

:class:`SpecRepository` turns configuration into the list of currently
active :class:`~kubeschema.models.Spec` objects. Parsing a bundle is
expensive (the Kubernetes bundles hold hundreds of models), so every
``(package, version)`` pair is loaded at most once per repository and then
served from memory.

The cache is unbounded for the lifetime of the repository. Switching to a
different package version simply adds a new entry; entries for versions no
longer configured stay resident until :meth:`SpecRepository.clear` is
called.

Thread safety: queries may arrive from several threads at once. Each cache
key has its own lock, so concurrent first requests for the same bundle parse
it once while requests for other bundles proceed independently. Cached spec
lists are stored as tuples of frozen models and may be shared freely.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Optional

from kubeschema.exceptions import BundleLoadError
from kubeschema.loader.bundle import find_bundle, read_bundle
from kubeschema.models import DEFAULT_PACKAGE_VERSIONS, PackageConfig, Spec

logger = logging.getLogger(__name__)

_CacheKey = tuple[str, str]


def effective_version(name: str, package: PackageConfig) -> Optional[str]:
    """Return the configured version of *package*, or its built-in default.

    Args:
        name: Package name, used to look up the default version.
        package: The package's configuration entry.

    Returns:
        The version string, or ``None`` for an unknown package that does not
        pin a version.
    """
    if package.version:
        return package.version
    return DEFAULT_PACKAGE_VERSIONS.get(name)


class SpecRepository:
    """Loads bundles from a search path and caches the decoded specs.

    Args:
        search_paths: Directories searched for ``<package>-<version>.zip``,
            in priority order.
        load_timeout: Seconds to wait for another thread that is already
            loading the same bundle. ``None`` waits indefinitely; otherwise
            it must be positive.

    Raises:
        ValueError: If *load_timeout* is zero or negative.

    Example::

        repo = SpecRepository(["/opt/kubeschema/bundles"])
        specs = repo.load_bundle("kubernetes", "1.9")
        same = repo.load_bundle("kubernetes", "1.9")  # served from cache
    """

    def __init__(
        self,
        search_paths: Iterable[str | Path],
        load_timeout: Optional[float] = 30.0,
    ) -> None:
        if load_timeout is not None and load_timeout <= 0:
            raise ValueError(f"load_timeout must be positive, got {load_timeout}")
        self._search_paths = tuple(Path(p) for p in search_paths)
        self._load_timeout = load_timeout
        self._cache: dict[_CacheKey, tuple[Spec, ...]] = {}
        self._key_locks: dict[_CacheKey, threading.Lock] = {}
        self._registry_lock = threading.Lock()
        self._generation = 0

    @property
    def search_paths(self) -> tuple[Path, ...]:
        """The directories searched for bundles."""
        return self._search_paths

    def locate_bundle(self, package: str, version: str) -> Optional[Path]:
        """Return the archive that would be loaded for *package* at *version*."""
        return find_bundle(self._search_paths, package, version)

    def load_bundle(self, package: str, version: str) -> list[Spec]:
        """Return the specs of one bundle, loading it on first use.

        Args:
            package: Logical package name, e.g. ``kubernetes``.
            version: Bundle version, e.g. ``1.9``.

        Returns:
            A new list of the bundle's specs. Empty when no archive exists
            for the pair; that outcome is cached like any other.

        Raises:
            BundleLoadError: If the archive is corrupt, or if another thread
                is loading the same bundle and does not finish within
                ``load_timeout``. Failed loads are not cached.
        """
        key = (package, version)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Bundle cache hit for %s-%s", package, version)
            return list(cached)

        lock = self._lock_for(key)
        timeout = -1 if self._load_timeout is None else self._load_timeout
        if not lock.acquire(timeout=timeout):
            raise BundleLoadError(
                f"Timed out after {self._load_timeout}s waiting for bundle "
                f"{package}-{version} to load"
            )
        try:
            cached = self._cache.get(key)
            if cached is None:
                generation = self._generation
                cached = tuple(self._load(package, version))
                with self._registry_lock:
                    # A clear() during the load discards its result.
                    if self._generation == generation:
                        self._cache[key] = cached
        finally:
            lock.release()
        return list(cached)

    def get_active_specs(self, packages: Mapping[str, PackageConfig]) -> list[Spec]:
        """Collect the specs of every enabled package.

        Packages are visited in mapping order and their specs concatenated.
        Disabled packages contribute nothing. An enabled package with no
        version and no built-in default is skipped with a warning.

        Args:
            packages: Package name to configuration, typically
                :attr:`~kubeschema.models.GlobalConfig.packages`.

        Returns:
            The active specs.
        """
        specs: list[Spec] = []
        for name, package in packages.items():
            if not package.enabled:
                continue
            version = effective_version(name, package)
            if version is None:
                logger.warning(
                    "Package '%s' has no version configured and no default; skipping",
                    name,
                )
                continue
            specs.extend(self.load_bundle(name, version))
        return specs

    def cached_keys(self) -> set[_CacheKey]:
        """Return the ``(package, version)`` pairs currently cached."""
        return set(self._cache)

    def clear(self) -> None:
        """Drop every cached bundle.

        Per-key locks are kept, so a load already in progress still excludes
        other loaders of the same bundle. Its result is returned to its
        callers but not cached.
        """
        with self._registry_lock:
            self._cache.clear()
            self._generation += 1

    def _lock_for(self, key: _CacheKey) -> threading.Lock:
        with self._registry_lock:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = self._key_locks[key] = threading.Lock()
            return lock

    def _load(self, package: str, version: str) -> list[Spec]:
        path = self.locate_bundle(package, version)
        if path is None:
            logger.warning(
                "No bundle %s-%s.zip found in %s",
                package,
                version,
                ", ".join(str(p) for p in self._search_paths) or "(empty search path)",
            )
            return []
        logger.debug("Loading bundle %s", path)
        specs = read_bundle(path)
        logger.info("Loaded %d API declarations from %s", len(specs), path)
        return specs
