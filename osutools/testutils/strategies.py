"""
Hypothesis strategies to generate beatmaps and their parts

Everything generated here survives a trip through the text format : strings
have no line breaks or surrounding whitespace, and they never look like a
comment or a section header.
"""

from decimal import Decimal
from typing import Dict, List, Optional, Type, TypeVar

import hypothesis.strategies as st

from osutools.beatmap import (
    LATEST_FORMAT_VERSION,
    Background,
    Beatmap,
    Break,
    Circle,
    ColourEntry,
    Countdown,
    CurveType,
    Difficulty,
    EdgeSet,
    Editor,
    Effects,
    Event,
    GameMode,
    General,
    GeneralSampleSet,
    HitObject,
    HitSample,
    HitSound,
    Hold,
    KeyValueSection,
    Metadata,
    OpaqueSection,
    OverlayPosition,
    Payload,
    Position,
    RawStoryboardLine,
    Rgb,
    SampleSet,
    Slider,
    Spinner,
    TimingPoint,
    ValueType,
    Video,
)

KNOWN_SECTIONS = {
    "General",
    "Editor",
    "Metadata",
    "Difficulty",
    "Events",
    "TimingPoints",
    "Colours",
    "HitObjects",
}


def is_line_safe(text: str) -> bool:
    return not text.startswith(("//", "["))


def safe_text(
    forbidden: str = "", min_size: int = 0, max_size: int = 20
) -> st.SearchStrategy[str]:
    alphabet = st.characters(
        whitelist_categories=("L", "N", "P", "S", "Zs"),
        blacklist_characters=forbidden,
    )
    return (
        st.text(alphabet, min_size=min_size, max_size=max_size)
        .map(str.strip)
        .filter(lambda s: len(s) >= min_size and is_line_safe(s))
    )


def word() -> st.SearchStrategy[str]:
    return st.text(
        st.characters(whitelist_categories=("L", "N"), max_codepoint=0x7F),
        min_size=1,
        max_size=10,
    )


def decimals(
    min_value: Decimal = Decimal(-10000),
    max_value: Decimal = Decimal(10000),
    places: int = 3,
) -> st.SearchStrategy[Decimal]:
    return st.decimals(
        min_value=min_value,
        max_value=max_value,
        places=places,
        allow_nan=False,
        allow_infinity=False,
    )


def times() -> st.SearchStrategy[int]:
    return st.integers(min_value=0, max_value=10 * 60 * 1000)


VALUE_STRATEGIES: Dict[ValueType, st.SearchStrategy] = {
    ValueType.STRING: safe_text(),
    ValueType.INTEGER: st.integers(min_value=-(10 ** 6), max_value=10 ** 6),
    ValueType.DECIMAL: decimals(),
    ValueType.BOOLEAN: st.booleans(),
    ValueType.INTEGER_LIST: st.lists(times(), max_size=5),
    ValueType.STRING_LIST: st.lists(word(), max_size=5),
    ValueType.GAME_MODE: st.sampled_from(GameMode),
    ValueType.COUNTDOWN: st.sampled_from(Countdown),
    ValueType.OVERLAY_POSITION: st.sampled_from(OverlayPosition),
    ValueType.GENERAL_SAMPLE_SET: st.sampled_from(GeneralSampleSet),
}

S = TypeVar("S", bound=KeyValueSection)


@st.composite
def key_value_section(
    draw: st.DrawFn,
    section_type: Type[S],
    extras: bool = True,
) -> S:
    section = section_type()
    for key, value_type in section_type.SCHEMA.items():
        if draw(st.booleans()):
            section[key] = draw(VALUE_STRATEGIES[value_type])

    if extras:
        unknown_keys = safe_text(forbidden=":", min_size=1).filter(
            lambda k: k not in section_type.SCHEMA
        )
        unknown = draw(st.dictionaries(unknown_keys, safe_text(), max_size=3))
        for key, value in unknown.items():
            section[key] = value

    return section


@st.composite
def timing_point(
    draw: st.DrawFn,
    time_strat: st.SearchStrategy[int] = times(),
) -> TimingPoint:
    uninherited = draw(st.booleans())
    if uninherited:
        beat_length = draw(decimals(min_value=Decimal("0.001")))
    else:
        beat_length = draw(decimals(max_value=Decimal("-0.001")))

    return TimingPoint(
        time=draw(time_strat),
        beat_length=beat_length,
        meter=draw(st.integers(min_value=1, max_value=16)),
        sample_set=draw(st.sampled_from(SampleSet)),
        sample_index=draw(st.integers(min_value=0, max_value=100)),
        volume=draw(st.integers(min_value=0, max_value=100)),
        uninherited=uninherited,
        effects=Effects(draw(st.sampled_from([0, 1, 8, 9]))),
    )


@st.composite
def rgb(draw: st.DrawFn) -> Rgb:
    red, green, blue = (draw(st.integers(min_value=0, max_value=255)) for _ in range(3))
    return Rgb(red, green, blue)


@st.composite
def colour_entry(draw: st.DrawFn) -> ColourEntry:
    name = draw(
        st.one_of(
            st.integers(min_value=1, max_value=8).map(lambda i: f"Combo{i}"),
            st.sampled_from(["SliderTrackOverride", "SliderBorder"]),
            safe_text(forbidden=":", min_size=1),
        )
    )
    return ColourEntry(name, draw(rgb()))


def positions(
    min_value: int = -1000, max_value: int = 1000
) -> st.SearchStrategy[Position]:
    coordinates = st.integers(min_value=min_value, max_value=max_value)
    return st.builds(Position, coordinates, coordinates)


@st.composite
def background(draw: st.DrawFn) -> Background:
    return Background(
        filename=draw(safe_text(forbidden='"')),
        offset=draw(positions()),
        start_time=draw(times()),
    )


@st.composite
def video(draw: st.DrawFn) -> Video:
    return Video(
        filename=draw(safe_text(forbidden='"')),
        time=draw(times()),
        offset=draw(positions()),
    )


@st.composite
def break_(draw: st.DrawFn) -> Break:
    start = draw(times())
    duration = draw(st.integers(min_value=0, max_value=60 * 1000))
    return Break(start, start + duration)


STORYBOARD_LINES = [
    'Sprite,Foreground,Centre,"sb/star.png",320,240',
    " F,0,1000,2000,0,1",
    "  M,0,1000,2000,320,240,100,100",
    "_S,0,1000,,0.5",
    'Animation,Fail,TopLeft,"sb/loop.png",0,0,4,100,LoopForever',
    "3,100,163,162,255",
    'Sample,2000,0,"hit.wav",60',
]


@st.composite
def raw_storyboard_line(draw: st.DrawFn) -> RawStoryboardLine:
    text = draw(
        st.one_of(
            st.sampled_from(STORYBOARD_LINES),
            safe_text(min_size=1).map(lambda s: " " + s),
        )
    )
    return RawStoryboardLine(text)


def event() -> st.SearchStrategy[Event]:
    return st.one_of(background(), video(), break_(), raw_storyboard_line())


@st.composite
def hit_sample(draw: st.DrawFn) -> HitSample:
    return HitSample(
        normal_set=draw(st.sampled_from(SampleSet)),
        addition_set=draw(st.sampled_from(SampleSet)),
        index=draw(st.integers(min_value=0, max_value=100)),
        volume=draw(st.integers(min_value=0, max_value=100)),
        filename=draw(safe_text(forbidden=",")),
    )


def hit_sounds() -> st.SearchStrategy[HitSound]:
    return st.integers(min_value=0, max_value=15).map(HitSound)


@st.composite
def edge_set(draw: st.DrawFn) -> EdgeSet:
    return EdgeSet(draw(st.sampled_from(SampleSet)), draw(st.sampled_from(SampleSet)))


@st.composite
def slider(draw: st.DrawFn, with_edges: Optional[bool] = None) -> Slider:
    slides = draw(st.integers(min_value=1, max_value=5))
    result = Slider(
        curve_type=draw(st.sampled_from(CurveType)),
        control_points=draw(st.lists(positions(), min_size=1, max_size=6)),
        slides=slides,
        length=draw(decimals(min_value=Decimal(0))),
    )
    if with_edges is None:
        with_edges = draw(st.booleans())

    if with_edges:
        edges = st.lists(hit_sounds(), min_size=slides + 1, max_size=slides + 1)
        result.edge_sounds = draw(edges)
        if draw(st.booleans()):
            sets = st.lists(edge_set(), min_size=slides + 1, max_size=slides + 1)
            result.edge_sets = draw(sets)

    return result


@st.composite
def payload(draw: st.DrawFn, time: int) -> Payload:
    kind = draw(st.sampled_from([Circle, Slider, Spinner, Hold]))
    if kind is Circle:
        return Circle()
    elif kind is Slider:
        return draw(slider())
    else:
        return kind(time + draw(st.integers(min_value=0, max_value=10000)))


@st.composite
def hit_object(
    draw: st.DrawFn,
    time_strat: st.SearchStrategy[int] = times(),
) -> HitObject:
    time = draw(time_strat)
    payload_ = draw(payload(time))
    can_have_sample = not isinstance(payload_, Slider) or payload_.edge_sets is not None
    sample = draw(st.none() | hit_sample()) if can_have_sample else None
    return HitObject(
        position=draw(positions(min_value=0, max_value=512)),
        time=time,
        payload=payload_,
        new_combo=draw(st.booleans()),
        combo_skip=draw(st.integers(min_value=0, max_value=7)),
        hit_sound=draw(hit_sounds()),
        hit_sample=sample,
    )


@st.composite
def opaque_section(draw: st.DrawFn) -> OpaqueSection:
    name = draw(
        safe_text(forbidden="[]", min_size=1).filter(lambda n: n not in KNOWN_SECTIONS)
    )
    lines: List[str] = draw(st.lists(safe_text(min_size=1), max_size=5))
    return OpaqueSection(name, lines)


@st.composite
def beatmap(
    draw: st.DrawFn,
    extra_sections: bool = True,
    max_objects: int = 20,
) -> Beatmap:
    return Beatmap(
        format_version=draw(st.integers(min_value=3, max_value=LATEST_FORMAT_VERSION)),
        general=draw(key_value_section(General)),
        editor=draw(key_value_section(Editor)),
        metadata=draw(key_value_section(Metadata)),
        difficulty=draw(key_value_section(Difficulty)),
        events=draw(st.lists(event(), max_size=5)),
        timing_points=draw(st.lists(timing_point(), max_size=5)),
        colours=draw(st.lists(colour_entry(), max_size=5)),
        hit_objects=draw(st.lists(hit_object(), max_size=max_objects)),
        extra_sections=(
            draw(st.lists(opaque_section(), max_size=2)) if extra_sections else []
        ),
    )
