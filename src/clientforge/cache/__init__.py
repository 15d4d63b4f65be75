"""Spec cache metadata for clientforge.

This package provides :class:`SpecCache`, which tracks the hash, timestamp,
and source of the spec cached in the output folder's ``_internal``
directory. The fetcher and the ``diff``/``status`` commands use it to decide
whether anything changed since the last generation.
"""

from clientforge.cache.cache import SpecCache

__all__ = ["SpecCache"]
