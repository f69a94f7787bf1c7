"""Ordering of Kubernetes API version strings.

API versions follow the convention ``[group/]v<major>[<qualifier>]``, for
example ``v1``, ``v2beta1`` or ``apps/v1beta2``. This module orders them so
that "later" versions sort after "earlier" ones:

1. The group is compared lexicographically. A version without a group sorts
   before any version with one.
2. The major version is compared numerically (``v2 < v10``).
3. The qualifier is compared lexicographically, and a missing qualifier
   sorts after any qualifier, so a stable release is newer than every
   alpha or beta of the same major version
   (``v1alpha1 < v1alpha2 < v1beta1 < v1``).

If either string does not follow the convention, the pair is compared as
plain strings instead.

Example::

    sorted(["v1", "v1beta1", "v2alpha1"], key=api_version_key)
    # ['v1beta1', 'v1', 'v2alpha1']
"""

from __future__ import annotations

import functools
import re
from collections.abc import Iterable
from typing import NamedTuple, Optional

_VERSION_RE = re.compile(
    r"(?:(?P<group>.+)/)?v(?P<major>\d+)(?P<qualifier>[A-Za-z]+\d+)?"
)


class ApiVersion(NamedTuple):
    """The parsed parts of a conventional API version string."""

    group: Optional[str]
    major: int
    qualifier: Optional[str]


def parse_api_version(version: str) -> Optional[ApiVersion]:
    """Split *version* into group, major and qualifier.

    Returns:
        The parsed :class:`ApiVersion`, or ``None`` if the string does not
        follow the ``[group/]v<major>[<qualifier>]`` convention.
    """
    match = _VERSION_RE.fullmatch(version)
    if match is None:
        return None
    return ApiVersion(match["group"], int(match["major"]), match["qualifier"])


def _sign(left: object, right: object) -> int:
    return (left > right) - (left < right)  # type: ignore[operator]


def _sort_tuple(version: ApiVersion) -> tuple:
    # (False, "") sorts first: no group before any group, qualifier before none.
    return (
        (version.group is not None, version.group or ""),
        version.major,
        (version.qualifier is None, version.qualifier or ""),
    )


def compare_api_versions(first: str, second: str) -> int:
    """Compare two API version strings.

    Args:
        first: An API version such as ``extensions/v1beta1``.
        second: The version to compare against.

    Returns:
        ``-1`` if *first* is older than *second*, ``1`` if it is newer and
        ``0`` if they are equivalent.
    """
    parsed_first = parse_api_version(first)
    parsed_second = parse_api_version(second)
    if parsed_first is None or parsed_second is None:
        return _sign(first, second)
    return _sign(_sort_tuple(parsed_first), _sort_tuple(parsed_second))


api_version_key = functools.cmp_to_key(compare_api_versions)
"""Sort key for ``sorted``/``max`` that applies :func:`compare_api_versions`."""


def latest_api_version(versions: Iterable[str]) -> Optional[str]:
    """Return the newest of *versions*, or ``None`` when there are none."""
    return max(versions, key=api_version_key, default=None)
