"""Turns the text of a .osu file into a Beatmap

Sections are decoded in file order. A section that appears several times is
merged into the same part of the Beatmap, later keys overwriting earlier ones
and list sections being extended. Sections this library does not know about
are kept verbatim and reported with an UnknownSection warning. The first
error aborts the whole parse."""

import warnings
from functools import partial
from typing import Callable, Dict, Tuple

from osutools.beatmap import Beatmap, OpaqueSection
from osutools.errors import FormatError, UnknownSection

from .colours import load_colour
from .events import load_event
from .hit_objects import load_hit_object
from .key_value import load_key_value
from .sections import RawSection, split_sections
from .timing_points import load_timing_point

KEY_VALUE_SECTIONS = {
    "General": "general",
    "Editor": "editor",
    "Metadata": "metadata",
    "Difficulty": "difficulty",
}

LIST_SECTIONS: Dict[str, Tuple[str, Callable[[str], object]]] = {
    "Events": ("events", load_event),
    "TimingPoints": ("timing_points", load_timing_point),
    "Colours": ("colours", load_colour),
    "HitObjects": ("hit_objects", load_hit_object),
}


def load_beatmap_text(text: str) -> Beatmap:
    split = split_sections(text)
    beatmap = Beatmap(format_version=split.version)
    for section in split.sections:
        load_section(beatmap, section)

    return beatmap


def load_section(beatmap: Beatmap, section: RawSection) -> None:
    decode_line: Callable[[str], None]
    if section.name in KEY_VALUE_SECTIONS:
        target = getattr(beatmap, KEY_VALUE_SECTIONS[section.name])
        decode_line = partial(load_key_value, target)
    elif section.name in LIST_SECTIONS:
        attribute, decoder = LIST_SECTIONS[section.name]
        decode_line = partial(_append_decoded, getattr(beatmap, attribute), decoder)
    else:
        warnings.warn(
            f"Unknown section [{section.name}] on line {section.line_number}, "
            "it will be kept as-is",
            UnknownSection,
        )
        beatmap.extra_sections.append(
            OpaqueSection(section.name, [line.text for line in section.lines])
        )
        return

    for line in section.lines:
        try:
            decode_line(line.text)
        except FormatError as e:
            raise e.at(section.name, line.number) from None


def _append_decoded(
    values: list, decoder: Callable[[str], object], line: str
) -> None:
    values.append(decoder(line))
