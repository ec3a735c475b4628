"""
Events section

Only three kinds of events are decoded :

    0,startTime,"filename",xOffset,yOffset     background
    1,startTime,"filename",xOffset,yOffset     video
    2,startTime,endTime                        break

The type can also be spelled Background, Video or Break. Every other line
(storyboard objects, their indented commands, legacy colour events ...) is
kept as-is.
"""

import csv
from functools import singledispatch
from typing import Callable, Dict, List

from osutools.beatmap import (
    Background,
    Break,
    Event,
    Position,
    RawStoryboardLine,
    Video,
    check_event_filename,
)
from osutools.errors import MalformedLine

from .values import parse_int

EVENT_TYPES = {
    "0": "Background",
    "Background": "Background",
    "1": "Video",
    "Video": "Video",
    "2": "Break",
    "Break": "Break",
}


def split_event_fields(line: str) -> List[str]:
    """Split on commas, except in between double quotes"""
    try:
        return next(csv.reader([line], skipinitialspace=True))
    except csv.Error as e:
        raise MalformedLine(f"Unreadable event line : {e}") from None


def load_filename(raw: str) -> str:
    try:
        check_event_filename(raw)
    except ValueError as e:
        raise MalformedLine(str(e)) from None
    return raw


def load_event(line: str) -> Event:
    # storyboard commands are indented with spaces or underscores
    if line[:1] in (" ", "_", "\t"):
        return RawStoryboardLine(line)

    event_type = EVENT_TYPES.get(line.split(",", 1)[0].strip())
    if event_type is None:
        return RawStoryboardLine(line)

    fields = split_event_fields(line)
    return EVENT_LOADERS[event_type](fields[1:])


def _check_field_count(
    kind: str, params: List[str], at_least: int, at_most: int
) -> None:
    if not at_least <= len(params) <= at_most:
        raise MalformedLine(
            f"A {kind} event has {at_least + 1} to {at_most + 1} fields, "
            f"found {len(params) + 1}"
        )


def _load_offset(params: List[str]) -> Position:
    x = parse_int(params[0], "x offset") if len(params) > 0 else 0
    y = parse_int(params[1], "y offset") if len(params) > 1 else 0
    return Position(x, y)


def load_background(params: List[str]) -> Background:
    _check_field_count("background", params, 2, 4)
    return Background(
        filename=load_filename(params[1]),
        offset=_load_offset(params[2:]),
        start_time=parse_int(params[0], "start time"),
    )


def load_video(params: List[str]) -> Video:
    _check_field_count("video", params, 2, 4)
    return Video(
        filename=load_filename(params[1]),
        time=parse_int(params[0], "start time"),
        offset=_load_offset(params[2:]),
    )


def load_break(params: List[str]) -> Break:
    _check_field_count("break", params, 2, 2)
    return Break(parse_int(params[0], "start time"), parse_int(params[1], "end time"))


EVENT_LOADERS: Dict[str, Callable[[List[str]], Event]] = {
    "Background": load_background,
    "Video": load_video,
    "Break": load_break,
}


@singledispatch
def dump_event(event: Event) -> str:
    raise NotImplementedError(f"Unknown event : {event!r}")


@dump_event.register
def dump_background(event: Background) -> str:
    return f'0,{event.start_time},"{event.filename}",{event.offset.x},{event.offset.y}'


@dump_event.register
def dump_video(event: Video) -> str:
    return f'1,{event.time},"{event.filename}",{event.offset.x},{event.offset.y}'


@dump_event.register
def dump_break(event: Break) -> str:
    return f"2,{event.start},{event.end}"


@dump_event.register
def dump_raw_storyboard_line(event: RawStoryboardLine) -> str:
    return event.text
