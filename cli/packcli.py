"""Typer-based command line interface for packmatch."""
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

import sys

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = PROJECT_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from matching import MODES, PackMatcher, RunReport  # type: ignore  # noqa: E402
from pack import PackStore  # type: ignore  # noqa: E402
from packutils.config import DEFAULT_CONFIG_PATH, load_config  # type: ignore  # noqa: E402
from packutils.errors import PackMatchError  # type: ignore  # noqa: E402
from packutils.hashing import file_fingerprint, file_sha1  # type: ignore  # noqa: E402
from packutils.logging import configure_logging, get_logger  # type: ignore  # noqa: E402

app = typer.Typer(add_completion=False)
console = Console()
LOGGER = get_logger("packmatch")

USAGE = (
    "usage: packmatch run [--pack pack.toml] [--cf-api-key KEY] "
    "[--cf-detect] [--cf-url] [--mr-detect] [--mr-merge]"
)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging.")) -> None:
    configure_logging("DEBUG" if verbose else "INFO")


def _render(report: RunReport) -> None:
    table = Table(title="packmatch")
    table.add_column("mode")
    table.add_column("checked", justify="right")
    table.add_column("matched", justify="right")
    table.add_column("changed", justify="right")
    for phase in report.phases:
        table.add_row(phase.mode, str(phase.checked), str(phase.matched), str(phase.changed))
    console.print(table)


@app.command()
def run(
    pack: Path = typer.Option(Path("pack.toml"), "--pack", help="Path to the pack.toml file."),
    config_path: Optional[Path] = typer.Option(
        None, "--config", help=f"YAML settings file (default: {DEFAULT_CONFIG_PATH} if present)."
    ),
    cf_api_key: Optional[str] = typer.Option(None, "--cf-api-key", envvar="CF_API_KEY", help="CurseForge API key."),
    mr_token: Optional[str] = typer.Option(None, "--mr-token", envvar="MODRINTH_TOKEN", help="Modrinth token."),
    cf_detect: bool = typer.Option(False, "--cf-detect", help="Replace raw files found on CurseForge."),
    cf_url: bool = typer.Option(False, "--cf-url", help="Cache CurseForge download URLs."),
    mr_detect: bool = typer.Option(False, "--mr-detect", help="Replace raw files found on Modrinth."),
    mr_merge: bool = typer.Option(False, "--mr-merge", help="Add Modrinth sources to existing metadata."),
    min_size: Optional[int] = typer.Option(None, "--min-size", min=0, help="Ignore smaller files (bytes)."),
    workers: Optional[int] = typer.Option(None, "--workers", min=1, help="Hashing processes (default: CPUs)."),
    materialize: Optional[str] = typer.Option(None, "--materialize", help="'tool' (packwiz add) or 'metadata'."),
    url_lookup: Optional[str] = typer.Option(None, "--url-lookup", help="'batch' or 'per-file'."),
    batch_size: Optional[int] = typer.Option(None, "--batch-size", min=0, help="Split lookups (0 = never)."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Look up matches without changing anything."),
) -> None:
    flags = {"cf-detect": cf_detect, "cf-url": cf_url, "mr-detect": mr_detect, "mr-merge": mr_merge}
    modes = [mode for mode in MODES if flags[mode]]
    if not modes:
        typer.echo(USAGE)
        raise typer.Exit()

    try:
        base = load_config(config_path or DEFAULT_CONFIG_PATH, required=config_path is not None)
    except PackMatchError as exc:
        LOGGER.error("%s", exc)
        raise typer.Exit(exc.exit_code) from exc
    try:
        config = base.with_overrides(
            curseforge_api_key=cf_api_key,
            modrinth_token=mr_token,
            min_size=min_size,
            workers=workers,
            materialize=materialize,
            url_lookup=url_lookup,
            batch_size=batch_size,
            dry_run=dry_run or None,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    matcher = PackMatcher(PackStore(pack), config)
    try:
        report = asyncio.run(matcher.run(modes))
    except PackMatchError as exc:
        LOGGER.error("%s", exc)
        raise typer.Exit(exc.exit_code) from exc
    _render(report)


@app.command()
def fingerprint(files: List[Path] = typer.Argument(..., help="Files to fingerprint.")) -> None:
    """Print the CurseForge fingerprint and sha1 of each file."""

    for path in files:
        if not path.is_file():
            raise typer.BadParameter(f"{path} is not a file")
        typer.echo(f"{file_fingerprint(path)}\t{file_sha1(path)}\t{path}")


if __name__ == "__main__":
    app()
