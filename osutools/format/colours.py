"""Colours section, one "Name : r,g,b" entry per line"""

from osutools.beatmap import ColourEntry, Rgb
from osutools.errors import MalformedLine, MalformedNumber

from .values import parse_int


def load_colour(line: str) -> ColourEntry:
    name, colon, raw_colour = line.partition(":")
    if not colon:
        raise MalformedLine(f"Expected 'Name : r,g,b', no colon found in {line!r}")

    name = name.strip()
    if not name:
        raise MalformedLine(f"Empty colour name in {line!r}")

    components = raw_colour.split(",")
    if len(components) != 3:
        raise MalformedNumber(
            f"Expected 3 comma separated components for {name}, got {raw_colour.strip()!r}"
        )

    red, green, blue = (parse_int(c, name) for c in components)
    try:
        colour = Rgb(red, green, blue)
    except ValueError as e:
        raise MalformedNumber(f"Invalid colour for {name} : {e}") from None

    return ColourEntry(name, colour)


def dump_colour(entry: ColourEntry) -> str:
    red, green, blue = entry.colour
    return f"{entry.name} : {red},{green},{blue}"
