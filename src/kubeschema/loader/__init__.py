"""Schema bundle loading -- decode, locate and cache Swagger API declarations.

This sub-package turns ``<package>-<version>.zip`` archives into the
:class:`~kubeschema.models.Spec` objects the resolver navigates.

Typical usage::

    from kubeschema.loader import SpecRepository

    repo = SpecRepository(["/opt/kubeschema/bundles"])
    specs = repo.get_active_specs(config.packages)

Sub-modules:

* :mod:`~kubeschema.loader.decoder` -- Pure JSON to ``Spec`` decoding.
* :mod:`~kubeschema.loader.bundle` -- Archive lookup along a search path and
  member reading.
* :mod:`~kubeschema.loader.repository` -- The compute-once cache and
  configuration-driven selection of active specs.
"""

from kubeschema.loader.bundle import bundle_filename, find_bundle, read_bundle
from kubeschema.loader.decoder import decode_spec
from kubeschema.loader.repository import SpecRepository, effective_version

__all__ = [
    "SpecRepository",
    "bundle_filename",
    "decode_spec",
    "effective_version",
    "find_bundle",
    "read_bundle",
]
