"""STEM Tutor utilities."""

from .catalog_loader import (
    load_catalog,
    load_catalog_data,
    get_available_catalogs,
    DEFAULT_CATALOG_PATH,
)

__all__ = [
    "load_catalog",
    "load_catalog_data",
    "get_available_catalogs",
    "DEFAULT_CATALOG_PATH",
]
