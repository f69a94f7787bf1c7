"""Shared test fixtures for kubeschema.

Provides reusable fixtures for loading spec fixtures, building bundle
archives, creating isolated config environments, managing output state,
and running CLI commands. These fixtures are automatically discovered by
pytest and available to all test modules without explicit imports.
"""

from __future__ import annotations

import json
import zipfile
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, Union

import pytest

from kubeschema.loader import SpecRepository
from kubeschema.models import PackageConfig, Spec
from kubeschema.output import OutputFormat, OutputManager, reset_output, set_output
from kubeschema.provider import SchemaProvider


FIXTURES_DIR = Path(__file__).parent / "fixtures"

KUBERNETES_FIXTURES = ["core_v1.json", "batch_v1.json", "apps_v1beta1.json", "extensions_v1beta1.json"]
OPENSHIFT_FIXTURES = ["openshift_v1.json"]

BundleMember = Union[str, bytes, Mapping[str, Any], None]
BundleBuilder = Callable[..., Path]


def load_fixture(name: str) -> dict[str, Any]:
    """Load a JSON fixture from ``tests/fixtures`` as a plain dict."""
    with open(FIXTURES_DIR / name, encoding="utf-8") as f:
        return json.load(f)


def write_bundle(
    directory: Path,
    package: str,
    version: str,
    members: Mapping[str, BundleMember],
) -> Path:
    """Write ``<package>-<version>.zip`` into *directory*.

    Dict members are serialised as JSON, ``None`` becomes the literal
    ``null`` and strings or bytes are stored verbatim.
    """
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{package}-{version}.zip"
    with zipfile.ZipFile(path, "w") as archive:
        for name, content in members.items():
            if content is None:
                data: Union[str, bytes] = "null"
            elif isinstance(content, (str, bytes)):
                data = content
            else:
                data = json.dumps(content)
            archive.writestr(name, data)
    return path


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Spec fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def spec_fixture() -> Callable[[str], dict[str, Any]]:
    """Loader for raw API declarations in ``tests/fixtures`` by file name."""
    return load_fixture


@pytest.fixture
def core_v1_raw() -> dict[str, Any]:
    """Raw ``v1`` API declaration (Pod, PodSpec, Container, ...)."""
    return load_fixture("core_v1.json")


@pytest.fixture
def kubernetes_specs() -> list[Spec]:
    """Decoded specs of every Kubernetes fixture."""
    return [Spec.model_validate(load_fixture(name)) for name in KUBERNETES_FIXTURES]


# ---------------------------------------------------------------------------
# Bundle fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def make_bundle(tmp_path: Path) -> BundleBuilder:
    """Factory writing bundle archives under ``tmp_path / "bundles"`` by default.

    Usage::

        path = make_bundle("kubernetes", "1.9", {"v1.json": {...}})
    """
    default_dir = tmp_path / "bundles"

    def _make(
        package: str,
        version: str,
        members: Mapping[str, BundleMember],
        directory: Path | None = None,
    ) -> Path:
        return write_bundle(directory or default_dir, package, version, members)

    return _make


@pytest.fixture
def bundle_dir(tmp_path: Path) -> Path:
    """Directory holding ``kubernetes-1.9.zip`` and ``openshift-3.6.zip`` built from the fixtures."""
    directory = tmp_path / "bundles"
    write_bundle(
        directory,
        "kubernetes",
        "1.9",
        {name: load_fixture(name) for name in KUBERNETES_FIXTURES},
    )
    write_bundle(
        directory,
        "openshift",
        "3.6",
        {name: load_fixture(name) for name in OPENSHIFT_FIXTURES},
    )
    return directory


@pytest.fixture
def provider(bundle_dir: Path) -> SchemaProvider:
    """Provider over the fixture bundles with only Kubernetes enabled."""
    return SchemaProvider(
        SpecRepository([bundle_dir]),
        {"kubernetes": PackageConfig(enabled=True), "openshift": PackageConfig(enabled=False)},
    )


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME, XDG_CACHE_HOME, and XDG_DATA_HOME to
    subdirectories of tmp_path so that tests never touch real user
    config. Clears all KUBESCHEMA_* environment variables and changes
    the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("kubeschema.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in [
        "KUBESCHEMA_KUBERNETES_VERSION",
        "KUBESCHEMA_OPENSHIFT_VERSION",
        "KUBESCHEMA_BUNDLE_PATH",
        "NO_COLOR",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager and reset it afterwards."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def json_output() -> OutputManager:
    """Install a JSON-format OutputManager and reset it afterwards."""
    output = OutputManager(format=OutputFormat.JSON)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner.

    Returns a CliRunner instance that captures stdout/stderr and
    provides a consistent interface for invoking Typer apps in tests.
    """
    from typer.testing import CliRunner

    return CliRunner()
