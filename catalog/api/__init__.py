"""HTTP surface of the import service."""

from catalog.api.app import create_app  # noqa: F401
