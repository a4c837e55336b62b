from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest
import tomli_w

from conftest import curseforge_metadata
from pack import PackStore
from pack.schema import ModMetadata
from pack.store import load_toml, read_metadata, slugify, write_metadata
from packutils.errors import PackFormatError


def test_tracked_files_resolve_relative_to_pack(pack_factory: Callable[..., Path]) -> None:
    pack_path = pack_factory(
        files={"mods/a.jar": b"a" * 10, "config/b.cfg": b"b"},
        metafiles={"mods/sodium.pw.toml": curseforge_metadata()},
    )
    store = PackStore(pack_path)
    tracked = {store.relative(item.path): item for item in store.tracked_files()}
    assert set(tracked) == {"mods/a.jar", "config/b.cfg", "mods/sodium.pw.toml"}
    assert tracked["mods/sodium.pw.toml"].is_metafile
    assert not tracked["mods/a.jar"].is_metafile


def test_entries_outside_the_pack_are_skipped(
    pack_factory: Callable[..., Path], caplog: pytest.LogCaptureFixture
) -> None:
    pack_path = pack_factory(files={"mods/a.jar": b"a"})
    index_path = pack_path.parent / "index.toml"
    index = load_toml(index_path)
    index["files"].append({"file": "../../etc/passwd", "hash": "0"})
    index_path.write_text(tomli_w.dumps(index))

    files = PackStore(pack_path).tracked_files()
    assert [item.entry.file for item in files] == ["mods/a.jar"]
    assert "outside the pack" in caplog.text


@pytest.mark.parametrize("pack_format", ["packwiz:2.0.0", "other:1.0.0", "packwiz"])
def test_unsupported_pack_format_is_rejected(pack_factory: Callable[..., Path], pack_format: str) -> None:
    pack_path = pack_factory()
    data = load_toml(pack_path)
    data["pack-format"] = pack_format
    pack_path.write_text(tomli_w.dumps(data))
    with pytest.raises(PackFormatError):
        PackStore(pack_path).pack


def test_missing_pack_file(tmp_path: Path) -> None:
    with pytest.raises(PackFormatError):
        PackStore(tmp_path / "pack.toml").tracked_files()


def test_metadata_round_trip_preserves_unknown_fields(tmp_path: Path) -> None:
    path = tmp_path / "sodium.pw.toml"
    record = curseforge_metadata(
        option={"optional": True, "default": False, "description": "Faster rendering"},
        x_custom={"keep": "me"},
    )
    path.write_text(tomli_w.dumps(record))

    metadata = read_metadata(path)
    assert metadata.update.curseforge is not None
    assert metadata.update.curseforge.file_id == 4001
    write_metadata(path, metadata)

    assert load_toml(path) == record
    assert not list(tmp_path.glob("*.tmp"))


def test_metadata_without_update_omits_table(tmp_path: Path) -> None:
    metadata = ModMetadata.model_validate(
        {"name": "Lib", "filename": "lib.jar", "download": {"hash-format": "sha1", "hash": "ABC", "url": "https://x/lib.jar"}}
    )
    path = tmp_path / "lib.pw.toml"
    write_metadata(path, metadata)
    data = load_toml(path)
    assert "update" not in data
    assert data["download"]["hash"] == "abc"


def test_invalid_metadata_raises(tmp_path: Path) -> None:
    path = tmp_path / "broken.pw.toml"
    path.write_text('name = "Broken"\n')
    with pytest.raises(PackFormatError):
        read_metadata(path)


@pytest.mark.parametrize(
    ("name", "slug"),
    [("Sodium", "sodium"), ("Fabric API", "fabric-api"), ("  (Indium) ", "indium"), ("???", "unnamed")],
)
def test_slugify(name: str, slug: str) -> None:
    assert slugify(name) == slug
