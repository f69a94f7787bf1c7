"""Decode Swagger 1.2 API declarations into :class:`~kubeschema.models.Spec` objects.

The decoder is pure: it takes the raw text (or bytes) of one JSON member of
a bundle and returns a frozen :class:`~kubeschema.models.Spec`. It never
touches the filesystem, so it can be tested against literal JSON fixtures.

Wire-format quirks are handled by the model aliases (``$ref`` -> ``ref``,
``required`` -> ``required_properties``) and unknown type names decode to
``None``.

A blank member or a JSON ``null`` document carries no declaration and
decodes to ``None``; the bundle reader skips it. Anything else that is not a
valid declaration is a corrupt bundle and raises
:class:`~kubeschema.exceptions.BundleLoadError`.
"""

from __future__ import annotations

import json
from typing import Optional

from pydantic import ValidationError

from kubeschema.exceptions import BundleLoadError
from kubeschema.models import Spec


def decode_spec(content: str | bytes, source: str = "<string>") -> Optional[Spec]:
    """Decode one API declaration.

    Args:
        content: The JSON document, as text or UTF-8 bytes.
        source: Name used in error messages (e.g. ``kubernetes-1.9.zip:v1.json``).

    Returns:
        The decoded :class:`~kubeschema.models.Spec`, or ``None`` when the
        document is blank or the JSON literal ``null``.

    Raises:
        BundleLoadError: If the content is not valid JSON, is not a JSON
            object, or does not match the declaration schema.
    """
    if isinstance(content, bytes):
        try:
            content = content.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise BundleLoadError(f"{source} is not valid UTF-8: {exc}") from exc

    if not content.strip():
        return None

    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise BundleLoadError(f"Invalid JSON in {source}: {exc}") from exc

    if data is None:
        return None
    if not isinstance(data, dict):
        raise BundleLoadError(
            f"{source} must contain a JSON object (got {type(data).__name__})"
        )

    try:
        return Spec.model_validate(data)
    except ValidationError as exc:
        raise BundleLoadError(f"Invalid API declaration in {source}: {exc}") from exc
