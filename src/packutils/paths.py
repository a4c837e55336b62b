"""Path utility helpers."""
from __future__ import annotations

from pathlib import Path


def normalise_path(path: Path) -> Path:
    """Return a normalised path handling Windows drive casing."""

    return Path(str(path).replace("\\", "/")).expanduser().resolve()


def resolve_within(root: Path, relative: str) -> Path:
    """Resolve the forward-slash ``relative`` path against ``root``.

    Raises :class:`ValueError` when the result would leave ``root``, which
    covers ``..`` segments, absolute paths and symlinks pointing elsewhere.
    """

    base = normalise_path(root)
    candidate = normalise_path(base / relative)
    if candidate != base and base not in candidate.parents:
        raise ValueError(f"{relative!r} escapes {base}")
    return candidate
