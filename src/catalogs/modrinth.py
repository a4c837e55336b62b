"""Client for the Modrinth (catalog B) REST API."""
from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Optional

from packutils.errors import NetworkError

from .base import CatalogClient

MODRINTH_API = "https://api.modrinth.com"
MODRINTH_ALGORITHMS = ("sha1", "sha512")


class ModrinthClient(CatalogClient):
    """Batch lookups against Modrinth; the token is optional for read endpoints."""

    name = "Modrinth"

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: str = MODRINTH_API,
        user_agent: str = "packmatch",
        **kwargs: Any,
    ) -> None:
        headers = {"user-agent": user_agent}
        if token:
            headers["authorization"] = token
        super().__init__(base_url, headers=headers, **kwargs)

    async def versions_from_hashes(
        self, hashes: Iterable[str], algorithm: str = "sha1"
    ) -> Dict[str, Dict[str, Any]]:
        """Map each known hash to the raw version record that contains it."""

        if algorithm not in MODRINTH_ALGORITHMS:
            raise ValueError(f"Modrinth cannot look up {algorithm!r} hashes")
        values = sorted(set(hashes))
        versions: Dict[str, Dict[str, Any]] = {}
        if not values:
            return versions
        for batch in self._batches(values):
            payload = await self._json(
                "POST", "/v2/version_files", json={"hashes": batch, "algorithm": algorithm}
            )
            if not isinstance(payload, dict):
                raise NetworkError(f"{self.name} /v2/version_files: unexpected response shape")
            versions.update(payload)
        return versions

    async def get_projects(self, project_ids: Iterable[str]) -> List[Dict[str, Any]]:
        values = sorted(set(project_ids))
        projects: List[Dict[str, Any]] = []
        if not values:
            return projects
        for batch in self._batches(values):
            payload = await self._json("GET", "/v2/projects", params={"ids": json.dumps(batch)})
            if not isinstance(payload, list):
                raise NetworkError(f"{self.name} /v2/projects: unexpected response shape")
            projects.extend(payload)
        return projects
