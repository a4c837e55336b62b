"""Configuration helpers for packmatch."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import yaml
from pydantic import BaseModel, Field

from .errors import ConfigError

DEFAULT_CONFIG_PATH = Path("packmatch.yml")


class MatchConfig(BaseModel):
    """Run level configuration shared by every phase."""

    curseforge_api_key: Optional[str] = None
    modrinth_token: Optional[str] = None
    curseforge_base_url: str = "https://api.curseforge.com"
    modrinth_base_url: str = "https://api.modrinth.com"
    user_agent: str = "packmatch/0.1.0"
    timeout: float = Field(default=30.0, gt=0)
    min_size: int = Field(default=4096, ge=0)
    workers: Optional[int] = Field(default=None, ge=1)
    batch_size: int = Field(default=0, ge=0)
    packwiz_command: List[str] = Field(default_factory=lambda: ["packwiz"])
    materialize: Literal["tool", "metadata"] = "tool"
    url_lookup: Literal["batch", "per-file"] = "batch"
    dry_run: bool = False

    def with_overrides(self, **overrides: Any) -> "MatchConfig":
        """Return a copy with every non-``None`` override applied."""

        updates = {key: value for key, value in overrides.items() if value is not None}
        return self.model_validate({**self.model_dump(), **updates})


def load_config(path: Path, required: bool = False) -> MatchConfig:
    """Load configuration from a YAML file.

    A missing file yields the defaults unless ``required`` is set.
    """

    data: Dict[str, Any] = {}
    if required and not path.is_file():
        raise ConfigError(f"Config file {path} does not exist")
    if path.exists():
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    return MatchConfig(**data)
