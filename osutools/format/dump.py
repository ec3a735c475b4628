"""Turns a Beatmap back into .osu text

The output always has the same layout : the version line, then General,
Editor, Metadata, Difficulty, Events, TimingPoints, Colours and HitObjects,
then any unknown section in the order they were found. Every section is
followed by a blank line."""

from typing import Iterator, List, Tuple

from osutools.beatmap import Beatmap

from .colours import dump_colour
from .events import dump_event
from .hit_objects import dump_hit_object
from .key_value import dump_key_values
from .sections import SUPPORTED_FORMAT_VERSIONS
from .timing_points import dump_timing_point

LINE_ENDINGS = ("\n", "\r\n")


def dump_beatmap(beatmap: Beatmap, line_ending: str = "\n") -> str:
    if line_ending not in LINE_ENDINGS:
        raise ValueError(f"Unsupported line ending : {line_ending!r}")

    if beatmap.format_version not in SUPPORTED_FORMAT_VERSIONS:
        raise ValueError(
            f"Can't write format version {beatmap.format_version}, it's not "
            "one this library can read back"
        )

    lines = [f"osu file format v{beatmap.format_version}", ""]
    for name, contents in iter_sections(beatmap):
        lines.append(f"[{name}]")
        lines.extend(contents)
        lines.append("")

    return "".join(line + line_ending for line in lines)


def iter_sections(beatmap: Beatmap) -> Iterator[Tuple[str, List[str]]]:
    for key_values in (
        beatmap.general,
        beatmap.editor,
        beatmap.metadata,
        beatmap.difficulty,
    ):
        yield key_values.NAME, dump_key_values(key_values)

    yield "Events", [dump_event(e) for e in beatmap.events]
    yield "TimingPoints", [dump_timing_point(p) for p in beatmap.timing_points]
    yield "Colours", [dump_colour(c) for c in beatmap.colours]
    yield "HitObjects", [dump_hit_object(o) for o in beatmap.hit_objects]
    for section in beatmap.extra_sections:
        yield section.name, list(section.lines)
