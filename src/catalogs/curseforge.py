"""Client for the CurseForge (catalog A) REST API."""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from packutils.errors import NetworkError

from .base import CatalogClient

CURSEFORGE_API = "https://api.curseforge.com"
# returned by the download-url endpoint when the author disabled third party downloads
DISTRIBUTION_RESTRICTED = 403


class CurseForgeClient(CatalogClient):
    """Batch lookups against CurseForge, authenticated with an ``x-api-key``."""

    name = "CurseForge"

    def __init__(self, api_key: str, base_url: str = CURSEFORGE_API, **kwargs: Any) -> None:
        super().__init__(base_url, headers={"x-api-key": api_key}, **kwargs)

    async def match_fingerprints(self, fingerprints: Iterable[int]) -> List[Dict[str, Any]]:
        """Return the raw ``exactMatches`` for ``fingerprints``."""

        values = sorted(set(fingerprints))
        matches: List[Dict[str, Any]] = []
        if not values:
            return matches
        for batch in self._batches(values):
            payload = await self._json("POST", "/v1/fingerprints", json={"fingerprints": batch})
            data = self._data(payload, "/v1/fingerprints")
            if not isinstance(data, dict):
                raise NetworkError(f"{self.name} /v1/fingerprints: unexpected response shape")
            matches.extend(data.get("exactMatches") or [])
        return matches

    async def get_files(self, file_ids: Iterable[int]) -> List[Dict[str, Any]]:
        """Return file records (including ``downloadUrl``) for ``file_ids``."""

        values = sorted(set(file_ids))
        files: List[Dict[str, Any]] = []
        if not values:
            return files
        for batch in self._batches(values):
            payload = await self._json("POST", "/v1/mods/files", json={"fileIds": batch})
            data = self._data(payload, "/v1/mods/files")
            if not isinstance(data, list):
                raise NetworkError(f"{self.name} /v1/mods/files: unexpected response shape")
            files.extend(data)
        return files

    async def get_download_url(self, project_id: int, file_id: int) -> Optional[str]:
        """Return the direct URL of one file, or ``None`` when distribution is restricted."""

        url = f"/v1/mods/{project_id}/files/{file_id}/download-url"
        response = await self._request("GET", url, allow_status=(DISTRIBUTION_RESTRICTED,))
        if response.status_code == DISTRIBUTION_RESTRICTED:
            return None
        data = self._data(self._decode(response), url)
        return data or None

    def _data(self, payload: Any, url: str) -> Any:
        if not isinstance(payload, dict) or "data" not in payload:
            raise NetworkError(f"{self.name} {url}: response has no 'data' member")
        return payload["data"]
