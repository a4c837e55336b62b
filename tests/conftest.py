from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import httpx
import pytest
import tomli_w

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = PROJECT_ROOT / "src"
for root in (SRC_ROOT, PROJECT_ROOT):
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))

from packutils.process import CommandResult  # noqa: E402


@pytest.fixture(autouse=True)
def _configure_test_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RICH_PROGRESS_BAR", "0")
    monkeypatch.delenv("CF_API_KEY", raising=False)
    monkeypatch.delenv("MODRINTH_TOKEN", raising=False)


class FakeRunner:
    """Stands in for packwiz; records every invocation."""

    def __init__(self, failures: Optional[Mapping[str, int]] = None) -> None:
        self.calls: List[tuple[str, ...]] = []
        self.inputs: List[Optional[str]] = []
        self.failures = dict(failures or {})
        self.on_call: Optional[Callable[[tuple[str, ...]], None]] = None

    def run(self, args: Sequence[str], *, input: Optional[str] = None) -> CommandResult:
        argv = tuple(str(arg) for arg in args)
        self.calls.append(argv)
        self.inputs.append(input)
        if self.on_call is not None:
            self.on_call(argv)
        subcommand = " ".join(argv[1:3])
        for prefix, code in self.failures.items():
            if subcommand.startswith(prefix):
                return CommandResult(argv, code, stderr="boom")
        return CommandResult(argv, 0)

    def subcommands(self) -> List[str]:
        return [" ".join(call[1:3]) for call in self.calls]


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


def write_pack(
    root: Path,
    files: Optional[Dict[str, bytes]] = None,
    metafiles: Optional[Dict[str, Dict[str, Any]]] = None,
) -> Path:
    """Lay out a minimal packwiz pack under ``root`` and return its pack.toml."""

    root.mkdir(parents=True, exist_ok=True)
    entries: List[Dict[str, Any]] = []
    for name, data in (files or {}).items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        entries.append({"file": name, "hash": "0"})
    for name, record in (metafiles or {}).items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(tomli_w.dumps(record).encode("utf-8"))
        entries.append({"file": name, "hash": "0", "metafile": True})
    (root / "index.toml").write_text(
        tomli_w.dumps({"hash-format": "sha256", "files": entries}), encoding="utf-8"
    )
    pack_path = root / "pack.toml"
    pack_path.write_text(
        tomli_w.dumps(
            {
                "name": "Test Pack",
                "pack-format": "packwiz:1.1.0",
                "index": {"file": "index.toml", "hash-format": "sha256", "hash": "0"},
                "versions": {"minecraft": "1.20.1", "fabric": "0.15.0"},
            }
        ),
        encoding="utf-8",
    )
    return pack_path


@pytest.fixture
def pack_factory(tmp_path: Path) -> Callable[..., Path]:
    def build(
        files: Optional[Dict[str, bytes]] = None,
        metafiles: Optional[Dict[str, Dict[str, Any]]] = None,
    ) -> Path:
        return write_pack(tmp_path / "pack", files, metafiles)

    return build


def curseforge_metadata(name: str = "Sodium", file_id: int = 4001, project_id: int = 394468, **extra: Any) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        "name": name,
        "filename": f"{name.lower()}.jar",
        "side": "both",
        "download": {"hash-format": "sha1", "hash": "a" * 40, "mode": "metadata:curseforge"},
        "update": {"curseforge": {"file-id": file_id, "project-id": project_id}},
    }
    record.update(extra)
    return record


class Recorder:
    """Routes mock HTTP requests to per-path handlers and keeps them for assertions."""

    def __init__(self, routes: Mapping[str, Callable[[httpx.Request], httpx.Response]]) -> None:
        self.routes = dict(routes)
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get(request.url.path)
        if handler is None:
            return httpx.Response(404, json={"error": "not found"})
        return handler(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def paths(self) -> List[str]:
        return [request.url.path for request in self.requests]


def body(request: httpx.Request) -> Any:
    return json.loads(request.content)
