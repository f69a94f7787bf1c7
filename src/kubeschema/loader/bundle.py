"""Locate schema bundles on disk and read the declarations inside them.

A bundle is a zip archive named ``<package>-<version>.zip`` (for example
``kubernetes-1.9.zip``) holding one JSON API declaration per API version.
Bundles are looked up along an ordered search path; the first directory
containing the archive wins.
"""

from __future__ import annotations

import logging
import zipfile
from collections.abc import Iterable
from pathlib import Path
from typing import Optional

from kubeschema.exceptions import BundleLoadError
from kubeschema.loader.decoder import decode_spec
from kubeschema.models import Spec

logger = logging.getLogger(__name__)


def bundle_filename(package: str, version: str) -> str:
    """Return the archive name for a package version, e.g. ``openshift-3.6.zip``."""
    return f"{package}-{version}.zip"


def find_bundle(
    search_paths: Iterable[str | Path], package: str, version: str
) -> Optional[Path]:
    """Find the bundle archive for *package* at *version*.

    Args:
        search_paths: Directories to look in, in priority order. Missing
            directories are skipped.
        package: Logical package name such as ``kubernetes``.
        version: Bundle version such as ``1.9``.

    Returns:
        Path of the first matching archive, or ``None`` if no directory
        contains one.
    """
    name = bundle_filename(package, version)
    for directory in search_paths:
        candidate = Path(directory).expanduser() / name
        if candidate.is_file():
            return candidate
    return None


def read_bundle(path: str | Path) -> list[Spec]:
    """Decode every JSON member of a bundle archive.

    Members are read in archive order. Only members whose name ends in
    ``json`` are considered, and members that decode to ``None`` (blank or
    ``null`` documents) are skipped.

    Args:
        path: Path to the zip archive.

    Returns:
        The decoded specs.

    Raises:
        BundleLoadError: If the archive is corrupt or any member is not a
            valid API declaration.
    """
    path = Path(path)
    specs: list[Spec] = []
    try:
        with zipfile.ZipFile(path) as archive:
            for info in archive.infolist():
                if info.is_dir() or not info.filename.endswith("json"):
                    continue
                source = f"{path.name}:{info.filename}"
                spec = decode_spec(archive.read(info), source=source)
                if spec is None:
                    logger.debug("Skipping empty declaration %s", source)
                    continue
                specs.append(spec)
    except zipfile.BadZipFile as exc:
        raise BundleLoadError(f"Corrupt bundle archive {path}: {exc}") from exc
    except OSError as exc:
        raise BundleLoadError(f"Failed to read bundle {path}: {exc}") from exc
    return specs
