"""Command Line Interface"""

import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import click

from osutools.beatmap import Beatmap
from osutools.files import (
    make_folder_loader,
    open_beatmap,
    save_beatmap,
    try_open_beatmap,
)
from osutools.summary import dump_summary
from osutools.version import __version__

from .helpers import dumper_option


@click.group()
@click.version_option(__version__)
def cli() -> None:
    """Read, check and rewrite osu! beatmap files"""


@cli.command()
@click.argument("src", type=click.Path(exists=True, dir_okay=False))
@click.argument("dst", type=click.Path(dir_okay=False))
@dumper_option(
    "--crlf",
    "line_ending",
    flag_value="\r\n",
    help="Write Windows line endings instead of Unix ones",
)
def normalize(
    src: str,
    dst: str,
    dumper_options: Optional[Dict[str, Any]] = None,
) -> None:
    """Rewrite SRC to DST in the canonical layout"""
    beatmap = open_beatmap(src)
    dumper_options = dumper_options or {}
    save_beatmap(beatmap, dst, **dumper_options)


@dataclass
class CheckResult:
    result: Union[Beatmap, ValueError]
    warnings: List[str] = field(default_factory=list)


def check_file(path: Path) -> CheckResult:
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        result = try_open_beatmap(path)

    return CheckResult(result, [str(w.message) for w in caught])


check_folder = make_folder_loader("*.osu", check_file)


@cli.command()
@click.argument("path", type=click.Path(exists=True))
def check(path: str) -> None:
    """Check that PATH, a .osu file or a folder of them, can be read"""
    results = check_folder(Path(path))
    if not results:
        click.echo(f"No .osu file found in {path}")
        return

    failures = 0
    for file_path, checked in results.items():
        for message in checked.warnings:
            click.echo(f"{file_path} : warning : {message}")

        if isinstance(checked.result, ValueError):
            failures += 1
            click.echo(f"{file_path} : error : {checked.result}")
        else:
            click.echo(f"{file_path} : OK")

    if failures:
        click.echo(f"{failures} out of {len(results)} file(s) could not be read")
        raise click.exceptions.Exit(1)


@cli.command()
@click.argument("src", type=click.Path(exists=True, dir_okay=False))
def inspect(src: str) -> None:
    """Print a JSON summary of SRC"""
    click.echo(dump_summary(open_beatmap(src)))


if __name__ == "__main__":
    cli()
