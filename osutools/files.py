"""Reading and writing .osu files on disk

Files are read as UTF-8 (a leading BOM is fine) and written as UTF-8 without
BOM. Errors from the filesystem or from decoding are not caught here."""

from pathlib import Path
from typing import Dict, Iterable, Optional, Protocol, TypeVar, Union

from osutools.beatmap import Beatmap
from osutools.errors import FormatError
from osutools.format import dump_beatmap, load_beatmap_text

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)

PathLike = Union[str, Path]


def read_beatmap_text(path: PathLike) -> str:
    with Path(path).open("rb") as f:
        contents = f.read()

    return contents.decode("utf-8-sig")


def open_beatmap(path: PathLike) -> Beatmap:
    return load_beatmap_text(read_beatmap_text(path))


def save_beatmap(beatmap: Beatmap, path: PathLike, line_ending: str = "\n") -> None:
    # dump first so that nothing is written if the beatmap can't be serialized
    contents = dump_beatmap(beatmap, line_ending=line_ending).encode("utf-8")
    with Path(path).open("wb") as f:
        f.write(contents)


def try_open_beatmap(path: Path) -> Union[Beatmap, ValueError]:
    """Like open_beatmap but format and text decoding errors are returned
    instead of raised"""
    try:
        return open_beatmap(path)
    except (FormatError, UnicodeDecodeError) as e:
        return e


class FileLoader(Protocol[T_co]):
    """Function that expects a path to a file as a parameter and returns its
    contents in whatever form suitable. Returns None to skip the file"""

    def __call__(self, path: Path) -> Optional[T_co]:
        ...


class FolderLoader(Protocol[T]):
    """Function that expects a folder or a file path as a parameter. Loads
    either all matching files in the folder or just the given file depending
    on the argument"""

    def __call__(self, path: Path) -> Dict[Path, T]:
        ...


def make_folder_loader(
    glob_pattern: str, file_loader: FileLoader[T]
) -> FolderLoader[T]:
    def folder_loader(path: Path) -> Dict[Path, T]:
        files: Dict[Path, T] = {}
        if path.is_dir():
            paths: Iterable[Path] = sorted(path.glob(glob_pattern))
        else:
            paths = [path]

        for p in paths:
            value = file_loader(p)
            if value is not None:
                files[p] = value

        return files

    return folder_loader

