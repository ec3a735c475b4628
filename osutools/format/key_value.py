"""Key-value sections : General, Editor, Metadata and Difficulty

Each line is split on its first colon, both sides are trimmed. Values of
known keys are converted to their declared type, values of unknown keys are
kept as the raw string"""

from typing import Any, Callable, Dict, List, Tuple

from osutools.beatmap import (
    Countdown,
    GameMode,
    GeneralSampleSet,
    KeyValueSection,
    OverlayPosition,
    ValueType,
)
from osutools.errors import MalformedLine

from .values import (
    dump_value,
    parse_bool,
    parse_decimal,
    parse_int,
    parse_int_enum,
    parse_int_list,
    parse_named_enum,
)


def split_key_value(line: str) -> Tuple[str, str]:
    key, colon, value = line.partition(":")
    if not colon:
        raise MalformedLine(f"Expected 'Key: Value', no colon found in {line!r}")

    key = key.strip()
    if not key:
        raise MalformedLine(f"Empty key in {line!r}")

    return key, value.strip()


def parse_string_list(raw: str) -> List[str]:
    return raw.split()


VALUE_PARSERS: Dict[ValueType, Callable[[str, str], Any]] = {
    ValueType.STRING: lambda raw, key: raw,
    ValueType.INTEGER: lambda raw, key: parse_int(raw, key),
    ValueType.DECIMAL: lambda raw, key: parse_decimal(raw, key),
    ValueType.BOOLEAN: lambda raw, key: parse_bool(raw, key),
    ValueType.INTEGER_LIST: lambda raw, key: parse_int_list(raw, what=key),
    ValueType.STRING_LIST: lambda raw, key: parse_string_list(raw),
    ValueType.GAME_MODE: lambda raw, key: parse_int_enum(raw, GameMode, key),
    ValueType.COUNTDOWN: lambda raw, key: parse_int_enum(raw, Countdown, key),
    ValueType.OVERLAY_POSITION: lambda raw, key: parse_named_enum(
        raw, OverlayPosition, key
    ),
    ValueType.GENERAL_SAMPLE_SET: lambda raw, key: parse_named_enum(
        raw, GeneralSampleSet, key
    ),
}


def load_key_value(section: KeyValueSection, line: str) -> None:
    """Decode one line into the given section, overwriting any previous value
    of the same key"""
    key, raw = split_key_value(line)
    value_type = section.SCHEMA.get(key)
    if value_type is None:
        section[key] = raw
    else:
        section[key] = VALUE_PARSERS[value_type](raw, key)


# Files written by the game put a space after the colon in these sections only
SPACED_SECTIONS = {"General", "Editor"}


def dump_key_values(section: KeyValueSection) -> List[str]:
    separator = ": " if section.NAME in SPACED_SECTIONS else ":"
    return [f"{key}{separator}{dump_value(value)}" for key, value in section.items()]
