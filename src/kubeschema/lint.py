"""Schema checks for Kubernetes resource documents written in YAML.

The checker applies the resolver to every key of a parsed document and
reports three kinds of problems:

* **Duplicated keys** -- a mapping that defines the same key twice. PyYAML
  silently keeps the last value, so duplicates are recorded while the
  document is constructed (see :func:`load_documents`).
* **Wrong value shape** -- a property declared as ``array`` whose value is
  not a sequence, or one declared as ``object`` whose value is not a
  mapping.
* **Missing required properties** -- a mapping (or each mapping in a
  sequence) whose model declares required properties that are absent.

Documents that do not look like Kubernetes resources, or whose
``apiVersion``/``kind`` pair is unknown to the loaded schemas, only get the
duplicate-key check.

Typical usage::

    provider = SchemaProvider.from_config(resolve_config())
    for loaded in load_documents(Path("deploy.yaml").read_text()):
        for diagnostic in check_document(provider, loaded):
            print(diagnostic.location, diagnostic.message)
"""

from __future__ import annotations

import enum
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Optional

import yaml
from pydantic import BaseModel

from kubeschema import resolver
from kubeschema.exceptions import DocumentParseError
from kubeschema.models import FieldType, Model, ResourceKey, Spec
from kubeschema.provider import SchemaProvider

_MERGE_TAG = "tag:yaml.org,2002:merge"


class Severity(str, enum.Enum):
    """How serious a :class:`Diagnostic` is."""

    ERROR = "error"
    WARNING = "warning"


class Diagnostic(BaseModel):
    """One problem found in a document.

    ``path`` is a display path such as ``spec.containers[0].ports``; it is
    empty for problems that can only be located by ``line``.
    """

    severity: Severity
    message: str
    path: str = ""
    line: Optional[int] = None
    document: int = 0

    @property
    def location(self) -> str:
        if self.line is not None:
            return f"line {self.line}"
        return self.path or "<root>"


@dataclass(frozen=True)
class DuplicateKey:
    """A mapping key that appeared more than once, with its 1-based line."""

    key: str
    line: int


@dataclass
class LoadedDocument:
    """A parsed YAML document plus the duplicate keys seen while parsing it."""

    document: Any
    duplicate_keys: list[DuplicateKey] = field(default_factory=list)
    index: int = 0


class _DuplicateTrackingLoader(yaml.SafeLoader):
    """``SafeLoader`` that records duplicated scalar keys instead of dropping them silently."""

    def __init__(self, stream: Any) -> None:
        super().__init__(stream)
        self.duplicate_keys: list[DuplicateKey] = []

    def construct_mapping(self, node: yaml.MappingNode, deep: bool = False) -> dict:
        if isinstance(node, yaml.MappingNode):
            seen: set[str] = set()
            for key_node, _value_node in node.value:
                if not isinstance(key_node, yaml.ScalarNode) or key_node.tag == _MERGE_TAG:
                    continue
                name = key_node.value.strip()
                if name in seen:
                    self.duplicate_keys.append(
                        DuplicateKey(key=name, line=key_node.start_mark.line + 1)
                    )
                seen.add(name)
        return super().construct_mapping(node, deep=deep)


def load_documents(text: str) -> list[LoadedDocument]:
    """Parse every YAML document in *text*.

    Behaves like :func:`yaml.safe_load_all` but keeps track of duplicated
    keys per document.

    Raises:
        DocumentParseError: If the text is not valid YAML.
    """
    loader = _DuplicateTrackingLoader(text)
    documents: list[LoadedDocument] = []
    try:
        while loader.check_data():
            start = len(loader.duplicate_keys)
            data = loader.get_data()
            documents.append(
                LoadedDocument(
                    document=data,
                    duplicate_keys=loader.duplicate_keys[start:],
                    index=len(documents),
                )
            )
    except yaml.YAMLError as exc:
        raise DocumentParseError(f"Invalid YAML: {exc}") from exc
    finally:
        loader.dispose()
    return documents


def is_kubernetes_document(document: Any) -> bool:
    """A document looks like a Kubernetes resource if it has a top-level ``apiVersion`` or ``kind``."""
    return isinstance(document, dict) and ("apiVersion" in document or "kind" in document)


def find_resource_key(document: Any) -> Optional[ResourceKey]:
    """Return the document's ``apiVersion``/``kind`` pair, or ``None`` if either is missing."""
    if not isinstance(document, dict):
        return None
    api_version = document.get("apiVersion")
    kind = document.get("kind")
    if api_version is None or kind is None:
        return None
    return ResourceKey(api_version=str(api_version).strip(), kind=str(kind).strip())


def check_document(provider: SchemaProvider, loaded: LoadedDocument) -> list[Diagnostic]:
    """Check one loaded document against the active schemas.

    Args:
        provider: Supplies the active specs.
        loaded: A document from :func:`load_documents`.

    Returns:
        Diagnostics in document order: duplicate keys first, then schema
        problems from a depth-first walk of the document.
    """
    diagnostics = [
        Diagnostic(
            severity=Severity.ERROR,
            message=f"Duplicated property '{duplicate.key}'",
            line=duplicate.line,
            document=loaded.index,
        )
        for duplicate in loaded.duplicate_keys
    ]

    document = loaded.document
    if not is_kubernetes_document(document):
        return diagnostics
    key = find_resource_key(document)
    if key is None:
        return diagnostics

    checker = _SchemaChecker(provider.specs(), key, loaded.index)
    checker.check_mapping(document, (), "")
    diagnostics.extend(checker.diagnostics)
    return diagnostics


def check_text(provider: SchemaProvider, text: str) -> list[Diagnostic]:
    """Load every document in *text* and check each of them."""
    diagnostics: list[Diagnostic] = []
    for loaded in load_documents(text):
        diagnostics.extend(check_document(provider, loaded))
    return diagnostics


class _SchemaChecker:
    """Depth-first walk of one document, collecting diagnostics."""

    def __init__(self, specs: Sequence[Spec], key: ResourceKey, index: int) -> None:
        self._specs = specs
        self._key = key
        self._index = index
        self.diagnostics: list[Diagnostic] = []

    def check_mapping(self, mapping: dict, keys: tuple[str, ...], display: str) -> None:
        for name, value in mapping.items():
            name = str(name)
            child_display = f"{display}.{name}" if display else name
            self._check_key(name, value, keys + (name,), child_display)

    def _check_key(self, name: str, value: Any, keys: tuple[str, ...], display: str) -> None:
        prop = resolver.resolve_property(self._specs, self._key, keys)
        if prop is not None and prop.type is not None and value is not None:
            if prop.type is FieldType.ARRAY and not isinstance(value, list):
                self._report(Severity.ERROR, f"The content of {name} should be an array.", display)
            elif prop.type is FieldType.OBJECT and not isinstance(value, dict):
                self._report(Severity.ERROR, f"The content of {name} should be an object.", display)

        model = resolver.resolve_model(self._specs, self._key, keys)
        if isinstance(value, dict):
            if model is not None:
                self._check_required(model, value, display)
            self.check_mapping(value, keys, display)
        elif isinstance(value, list):
            for position, item in enumerate(value):
                if not isinstance(item, dict):
                    continue
                item_display = f"{display}[{position}]"
                if model is not None:
                    self._check_required(model, item, item_display)
                self.check_mapping(item, keys, item_display)

    def _check_required(self, model: Model, mapping: dict, display: str) -> None:
        missing = resolver.missing_required_properties(model, (str(k) for k in mapping))
        if missing:
            self._report(
                Severity.WARNING,
                f"Missing required properties on {model.id}: {', '.join(missing)}",
                display,
            )

    def _report(self, severity: Severity, message: str, display: str) -> None:
        self.diagnostics.append(
            Diagnostic(severity=severity, message=message, path=display, document=self._index)
        )
