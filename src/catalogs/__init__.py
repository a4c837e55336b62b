"""HTTP clients for the remote mod catalogs."""

from .base import CatalogClient
from .curseforge import CurseForgeClient
from .modrinth import ModrinthClient

__all__ = [
    "CatalogClient",
    "CurseForgeClient",
    "ModrinthClient",
]
