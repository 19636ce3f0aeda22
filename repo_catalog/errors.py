"""
errors.py

Exception types shared across the package. Every fatal condition surfaces as a
`CatalogError` so the CLI can turn it into a non-zero exit status.
"""

from __future__ import annotations


class CatalogError(RuntimeError):
    pass


class ProjectFileError(CatalogError):
    pass


class OutputWriteError(CatalogError):
    pass
