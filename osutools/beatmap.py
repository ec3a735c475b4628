"""Provides the Beatmap class, the in-memory model of a .osu file

Every .osu file is parsed to a Beatmap instance and every Beatmap can be
written back to text that parses to an equal instance.

Times are integer milliseconds from the start of the audio. Fractional values
found in the files (beat lengths, difficulty settings, slider lengths ...) are
kept as Decimal so that they survive a round trip without float noise."""

from __future__ import annotations

import re
from dataclasses import astuple, dataclass, field
from decimal import Decimal
from enum import Enum, IntEnum, IntFlag, auto
from pathlib import Path
from typing import (
    Any,
    Callable,
    ClassVar,
    Dict,
    Iterator,
    List,
    MutableMapping,
    Optional,
    Tuple,
    Type,
    TypeVar,
    Union,
)

from sortedcontainers import SortedKeyList

LATEST_FORMAT_VERSION = 14


@dataclass(frozen=True, order=True)
class Position:
    """2D integer vector, in osu! pixels for hit objects"""

    x: int
    y: int

    def __iter__(self) -> Iterator[int]:
        yield from astuple(self)


class GameMode(IntEnum):
    STANDARD = 0
    TAIKO = 1
    CATCH = 2
    MANIA = 3


class Countdown(IntEnum):
    NONE = 0
    NORMAL = 1
    HALF = 2
    DOUBLE = 3


class OverlayPosition(str, Enum):
    """Where hit circle overlays are drawn relative to the numbers"""

    NO_CHANGE = "NoChange"
    BELOW = "Below"
    ABOVE = "Above"


class GeneralSampleSet(str, Enum):
    """Default sample set of the map, used when timing points don't say"""

    NORMAL = "Normal"
    SOFT = "Soft"
    DRUM = "Drum"


class ValueType(Enum):
    STRING = auto()
    INTEGER = auto()
    DECIMAL = auto()
    BOOLEAN = auto()
    # comma separated, like Bookmarks
    INTEGER_LIST = auto()
    # whitespace separated, like Tags
    STRING_LIST = auto()
    GAME_MODE = auto()
    COUNTDOWN = auto()
    OVERLAY_POSITION = auto()
    GENERAL_SAMPLE_SET = auto()


Value = Union[str, int, Decimal, bool, List[int], List[str], Enum]


def check_single_line(text: str, what: str = "Values") -> None:
    if "\n" in text or "\r" in text:
        raise ValueError(f"{what} can't contain line breaks : {text!r}")


def _coerce_string(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"Expected a string, got {type(value).__name__}")
    check_single_line(value)
    return value


def _coerce_integer(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"Expected an integer, got {type(value).__name__}")
    return value


def _coerce_decimal(value: Any) -> Decimal:
    if isinstance(value, bool):
        raise TypeError("Expected a number, got bool")
    elif isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        # repr gives the shortest string that maps back to the same float
        result = Decimal(repr(value))
    else:
        raise TypeError(f"Expected a number, got {type(value).__name__}")

    if not result.is_finite():
        raise ValueError(f"Expected a finite number, got {value}")
    return result


def _coerce_boolean(value: Any) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"Expected a bool, got {type(value).__name__}")
    return value


def _coerce_integer_list(value: Any) -> List[int]:
    return [_coerce_integer(v) for v in value]


def _coerce_string_list(value: Any) -> List[str]:
    strings = [_coerce_string(v) for v in value]
    for s in strings:
        if not s or any(c.isspace() for c in s):
            raise ValueError(f"List items can't be empty or contain whitespace : {s!r}")
    return strings


E = TypeVar("E", bound=Enum)


def _enum_coercer(enum_type: Type[E]) -> Callable[[Any], E]:
    """Members pass through, raw values are looked up (integers for IntEnums,
    names as written in the file for the others)"""
    raw_type = int if issubclass(enum_type, int) else str

    def coerce(value: Any) -> E:
        if isinstance(value, bool) or not isinstance(value, raw_type):
            raise TypeError(
                f"Expected a {enum_type.__name__}, got {type(value).__name__}"
            )
        return enum_type(value)

    return coerce


COERCERS: Dict[ValueType, Callable[[Any], Value]] = {
    ValueType.STRING: _coerce_string,
    ValueType.INTEGER: _coerce_integer,
    ValueType.DECIMAL: _coerce_decimal,
    ValueType.BOOLEAN: _coerce_boolean,
    ValueType.INTEGER_LIST: _coerce_integer_list,
    ValueType.STRING_LIST: _coerce_string_list,
    ValueType.GAME_MODE: _enum_coercer(GameMode),
    ValueType.COUNTDOWN: _enum_coercer(Countdown),
    ValueType.OVERLAY_POSITION: _enum_coercer(OverlayPosition),
    ValueType.GENERAL_SAMPLE_SET: _enum_coercer(GeneralSampleSet),
}


class KeyField:
    """Typed attribute giving access to one key of a key-value section.
    Reading an absent key gives None, assigning None removes the key"""

    def __init__(self, key: str, value_type: ValueType) -> None:
        self.key = key
        self.value_type = value_type

    def __get__(self, instance: Optional[KeyValueSection], owner: Any = None) -> Any:
        if instance is None:
            return self
        return instance.get(self.key)

    def __set__(self, instance: KeyValueSection, value: Any) -> None:
        if value is None:
            instance.pop(self.key, None)
        else:
            instance[self.key] = value


@dataclass
class KeyValueSection(MutableMapping[str, Any]):
    """Ordered mapping of "Key: Value" entries. Keys declared with a KeyField
    on the subclass hold typed values, any other key is kept as the raw
    string found in the file"""

    NAME: ClassVar[str] = ""
    SCHEMA: ClassVar[Dict[str, ValueType]] = {}

    entries: Dict[str, Any] = field(default_factory=dict)

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.SCHEMA = {
            attr.key: attr.value_type
            for attr in vars(cls).values()
            if isinstance(attr, KeyField)
        }

    def __post_init__(self) -> None:
        raw_entries, self.entries = self.entries, {}
        for key, value in raw_entries.items():
            self[key] = value

    def __getitem__(self, key: str) -> Any:
        return self.entries[key]

    def __setitem__(self, key: str, value: Any) -> None:
        value_type = self.SCHEMA.get(key)
        if value_type is not None:
            value = COERCERS[value_type](value)
        elif not isinstance(value, str):
            raise TypeError(
                f"{key!r} is not a known {self.NAME} key, only raw string "
                "values can be stored under it"
            )
        else:
            check_single_line(value)
        check_single_line(key, "Keys")
        self.entries[key] = value

    def __delitem__(self, key: str) -> None:
        del self.entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def extras(self) -> Dict[str, str]:
        """Entries whose key this section does not know about"""
        return {k: v for k, v in self.entries.items() if k not in self.SCHEMA}


class General(KeyValueSection):
    NAME = "General"

    audio_filename = KeyField("AudioFilename", ValueType.STRING)
    # milliseconds of silence before the audio starts playing
    audio_lead_in = KeyField("AudioLeadIn", ValueType.INTEGER)
    audio_hash = KeyField("AudioHash", ValueType.STRING)
    preview_time = KeyField("PreviewTime", ValueType.INTEGER)
    countdown = KeyField("Countdown", ValueType.COUNTDOWN)
    sample_set = KeyField("SampleSet", ValueType.GENERAL_SAMPLE_SET)
    stack_leniency = KeyField("StackLeniency", ValueType.DECIMAL)
    mode = KeyField("Mode", ValueType.GAME_MODE)
    letterbox_in_breaks = KeyField("LetterboxInBreaks", ValueType.BOOLEAN)
    story_fire_in_front = KeyField("StoryFireInFront", ValueType.BOOLEAN)
    use_skin_sprites = KeyField("UseSkinSprites", ValueType.BOOLEAN)
    always_show_playfield = KeyField("AlwaysShowPlayfield", ValueType.BOOLEAN)
    overlay_position = KeyField("OverlayPosition", ValueType.OVERLAY_POSITION)
    skin_preference = KeyField("SkinPreference", ValueType.STRING)
    epilepsy_warning = KeyField("EpilepsyWarning", ValueType.BOOLEAN)
    countdown_offset = KeyField("CountdownOffset", ValueType.INTEGER)
    special_style = KeyField("SpecialStyle", ValueType.BOOLEAN)
    widescreen_storyboard = KeyField("WidescreenStoryboard", ValueType.BOOLEAN)
    samples_match_playback_rate = KeyField(
        "SamplesMatchPlaybackRate", ValueType.BOOLEAN
    )


class Editor(KeyValueSection):
    NAME = "Editor"

    bookmarks = KeyField("Bookmarks", ValueType.INTEGER_LIST)
    distance_spacing = KeyField("DistanceSpacing", ValueType.DECIMAL)
    beat_divisor = KeyField("BeatDivisor", ValueType.INTEGER)
    grid_size = KeyField("GridSize", ValueType.INTEGER)
    timeline_zoom = KeyField("TimelineZoom", ValueType.DECIMAL)


class Metadata(KeyValueSection):
    NAME = "Metadata"

    title = KeyField("Title", ValueType.STRING)
    title_unicode = KeyField("TitleUnicode", ValueType.STRING)
    artist = KeyField("Artist", ValueType.STRING)
    artist_unicode = KeyField("ArtistUnicode", ValueType.STRING)
    creator = KeyField("Creator", ValueType.STRING)
    # difficulty name
    version = KeyField("Version", ValueType.STRING)
    source = KeyField("Source", ValueType.STRING)
    tags = KeyField("Tags", ValueType.STRING_LIST)
    beatmap_id = KeyField("BeatmapID", ValueType.INTEGER)
    beatmap_set_id = KeyField("BeatmapSetID", ValueType.INTEGER)


class Difficulty(KeyValueSection):
    """Difficulty settings. Values outside of the documented ranges are kept
    as-is, the game is the one deciding what to do with them"""

    NAME = "Difficulty"

    hp_drain = KeyField("HPDrainRate", ValueType.DECIMAL)
    circle_size = KeyField("CircleSize", ValueType.DECIMAL)
    overall_difficulty = KeyField("OverallDifficulty", ValueType.DECIMAL)
    approach_rate = KeyField("ApproachRate", ValueType.DECIMAL)
    # base slider velocity in hundreds of osu! pixels per beat
    slider_multiplier = KeyField("SliderMultiplier", ValueType.DECIMAL)
    # slider ticks per beat
    slider_tick_rate = KeyField("SliderTickRate", ValueType.DECIMAL)

    RANGES: ClassVar[Dict[str, Tuple[Decimal, Decimal]]] = {
        "HPDrainRate": (Decimal(0), Decimal(10)),
        "CircleSize": (Decimal(0), Decimal(10)),
        "OverallDifficulty": (Decimal(0), Decimal(10)),
        "ApproachRate": (Decimal(0), Decimal(10)),
        "SliderMultiplier": (Decimal("0.4"), Decimal("3.6")),
        "SliderTickRate": (Decimal("0.5"), Decimal(8)),
    }

    def out_of_range(self) -> Dict[str, Decimal]:
        """Settings found outside of their documented range"""
        res = {}
        for key, (low, high) in self.RANGES.items():
            value = self.get(key)
            if value is not None and not low <= value <= high:
                res[key] = value
        return res


class SampleSet(IntEnum):
    DEFAULT = 0
    NORMAL = 1
    SOFT = 2
    DRUM = 3


class Effects(IntFlag):
    KIAI = 1
    OMIT_FIRST_BARLINE = 8


class HitSound(IntFlag):
    NORMAL = 1
    WHISTLE = 2
    FINISH = 4
    CLAP = 8


@dataclass
class TimingPoint:
    """Uninherited points set the tempo, beat_length is then the duration of
    a beat in milliseconds. Inherited points scale the slider velocity, their
    beat_length is negative and gives the multiplier as -100 / beat_length"""

    time: int
    beat_length: Decimal
    meter: int = 4
    sample_set: SampleSet = SampleSet.DEFAULT
    sample_index: int = 0
    volume: int = 100
    uninherited: bool = True
    effects: Effects = Effects(0)

    @classmethod
    def inheriting(
        cls, time: int, slider_velocity: Decimal, **kwargs: Any
    ) -> TimingPoint:
        if slider_velocity <= 0:
            raise ValueError(f"Slider velocity must be positive : {slider_velocity}")
        beat_length = Decimal(-100) / slider_velocity
        return cls(time, beat_length, uninherited=False, **kwargs)

    @property
    def inherited(self) -> bool:
        return not self.uninherited

    @property
    def slider_velocity(self) -> Decimal:
        if self.beat_length < 0:
            return Decimal(-100) / self.beat_length
        else:
            return Decimal(1)

    @property
    def bpm(self) -> Optional[Decimal]:
        if self.uninherited and self.beat_length > 0:
            return Decimal(60000) / self.beat_length
        else:
            return None


@dataclass(frozen=True)
class Rgb:
    red: int
    green: int
    blue: int

    def __post_init__(self) -> None:
        for name, value in zip(("red", "green", "blue"), astuple(self)):
            if not 0 <= value <= 255:
                raise ValueError(f"{name} out of [0, 255] range : {value}")

    def __iter__(self) -> Iterator[int]:
        yield from astuple(self)


@dataclass
class ColourEntry:
    # Combo1 to Combo8, SliderTrackOverride, SliderBorder ...
    name: str
    colour: Rgb


COMBO_COLOUR_NAME = re.compile(r"Combo(\d+)")


def check_event_filename(filename: str) -> None:
    # filenames are written between double quotes, with no way to escape one
    if '"' in filename:
        raise ValueError(f"Event filenames can't contain double quotes : {filename!r}")
    check_single_line(filename, "Event filenames")


@dataclass
class Background:
    filename: str
    offset: Position = Position(0, 0)
    start_time: int = 0

    def __post_init__(self) -> None:
        check_event_filename(self.filename)


@dataclass
class Video:
    filename: str
    time: int = 0
    offset: Position = Position(0, 0)

    def __post_init__(self) -> None:
        check_event_filename(self.filename)


@dataclass
class Break:
    start: int
    end: int

    @property
    def duration(self) -> int:
        return self.end - self.start


@dataclass
class RawStoryboardLine:
    """Any line of the Events section that is not a background, a video or a
    break. Kept exactly as found in the file"""

    text: str

    def __post_init__(self) -> None:
        check_single_line(self.text, "Storyboard lines")


Event = Union[Background, Video, Break, RawStoryboardLine]


@dataclass(frozen=True)
class HitSample:
    normal_set: SampleSet = SampleSet.DEFAULT
    addition_set: SampleSet = SampleSet.DEFAULT
    # custom sample index, 0 means the timing point's one
    index: int = 0
    # 0 means the timing point's volume
    volume: int = 0
    filename: str = ""


@dataclass(frozen=True)
class EdgeSet:
    normal_set: SampleSet = SampleSet.DEFAULT
    addition_set: SampleSet = SampleSet.DEFAULT


class CurveType(str, Enum):
    BEZIER = "B"
    CATMULL = "C"
    LINEAR = "L"
    PERFECT_CIRCLE = "P"


@dataclass(frozen=True)
class Circle:
    TYPE_BIT: ClassVar[int] = 0b0000_0001


@dataclass
class Slider:
    TYPE_BIT: ClassVar[int] = 0b0000_0010

    curve_type: CurveType
    control_points: List[Position]
    slides: int = 1
    # visual length in osu! pixels
    length: Decimal = Decimal(0)
    # one entry per edge when defined, an edge being the head, each repeat
    # and the tail of the slider
    edge_sounds: Optional[List[HitSound]] = None
    edge_sets: Optional[List[EdgeSet]] = None

    @property
    def edge_count(self) -> int:
        return self.slides + 1


@dataclass
class Spinner:
    TYPE_BIT: ClassVar[int] = 0b0000_1000

    end_time: int


@dataclass
class Hold:
    """osu!mania hold note"""

    TYPE_BIT: ClassVar[int] = 0b1000_0000

    end_time: int


Payload = Union[Circle, Slider, Spinner, Hold]

PAYLOAD_TYPES: Dict[int, Type[Payload]] = {
    t.TYPE_BIT: t for t in (Circle, Slider, Spinner, Hold)  # type: ignore[misc]
}

KIND_BITS = sum(PAYLOAD_TYPES)
NEW_COMBO_BIT = 0b0000_0100
COMBO_SKIP_SHIFT = 4
COMBO_SKIP_MAX = 0b111


@dataclass
class HitObject:
    position: Position
    time: int
    payload: Payload = field(default_factory=Circle)
    new_combo: bool = False
    # how many combo colours to skip, only meaningful on a new combo
    combo_skip: int = 0
    hit_sound: HitSound = HitSound(0)
    hit_sample: Optional[HitSample] = None

    def __post_init__(self) -> None:
        if not 0 <= self.combo_skip <= COMBO_SKIP_MAX:
            raise ValueError(f"combo_skip out of [0, 7] range : {self.combo_skip}")

    @property
    def x(self) -> int:
        return self.position.x

    @property
    def y(self) -> int:
        return self.position.y

    @property
    def type_mask(self) -> int:
        mask = self.payload.TYPE_BIT | (self.combo_skip << COMBO_SKIP_SHIFT)
        if self.new_combo:
            mask |= NEW_COMBO_BIT
        return mask


@dataclass
class OpaqueSection:
    """A section this library knows nothing about, kept line by line"""

    name: str
    lines: List[str] = field(default_factory=list)


@dataclass
class Beatmap:
    """The document model of a .osu file. Sequences keep the order found in
    the file, time-ordered views are derived on demand"""

    format_version: int = LATEST_FORMAT_VERSION
    general: General = field(default_factory=General)
    editor: Editor = field(default_factory=Editor)
    metadata: Metadata = field(default_factory=Metadata)
    difficulty: Difficulty = field(default_factory=Difficulty)
    events: List[Event] = field(default_factory=list)
    timing_points: List[TimingPoint] = field(default_factory=list)
    colours: List[ColourEntry] = field(default_factory=list)
    hit_objects: List[HitObject] = field(default_factory=list)
    extra_sections: List[OpaqueSection] = field(default_factory=list)

    @classmethod
    def parse(cls, text: str) -> Beatmap:
        from osutools.format.load import load_beatmap_text

        return load_beatmap_text(text)

    @classmethod
    def open(cls, path: Union[str, Path]) -> Beatmap:
        from osutools.files import open_beatmap

        return open_beatmap(path)

    def to_text(self, line_ending: str = "\n") -> str:
        from osutools.format.dump import dump_beatmap

        return dump_beatmap(self, line_ending=line_ending)

    def save(self, path: Union[str, Path], line_ending: str = "\n") -> None:
        from osutools.files import save_beatmap

        save_beatmap(self, path, line_ending=line_ending)

    def hit_objects_by_time(self) -> Tuple[HitObject, ...]:
        return tuple(sorted(self.hit_objects, key=lambda o: o.time))

    def _timing_points_by_time(
        self, uninherited_only: bool = False
    ) -> SortedKeyList[TimingPoint, int]:
        return SortedKeyList(
            (p for p in self.timing_points if p.uninherited or not uninherited_only),
            key=lambda p: p.time,
        )

    def timing_point_at(self, time: int) -> Optional[TimingPoint]:
        """The timing point in effect at the given time. Points sharing the
        same time are applied in file order. Before the first point, the
        first point is used"""
        return _active_point(self._timing_points_by_time(), time)

    def uninherited_timing_point_at(self, time: int) -> Optional[TimingPoint]:
        return _active_point(self._timing_points_by_time(uninherited_only=True), time)

    def slider_velocity_at(self, time: int) -> Decimal:
        """Slider velocity multiplier in effect at the given time, an
        uninherited point resets it to 1"""
        point = self.timing_point_at(time)
        if point is None or point.uninherited:
            return Decimal(1)
        else:
            return point.slider_velocity

    def bpm_at(self, time: int) -> Optional[Decimal]:
        point = self.uninherited_timing_point_at(time)
        if point is None:
            return None
        return point.bpm

    @property
    def breaks(self) -> List[Break]:
        return [e for e in self.events if isinstance(e, Break)]

    @property
    def background(self) -> Optional[Background]:
        return next((e for e in self.events if isinstance(e, Background)), None)

    @property
    def storyboard_lines(self) -> List[str]:
        return [e.text for e in self.events if isinstance(e, RawStoryboardLine)]

    @property
    def combo_colours(self) -> List[Rgb]:
        """Combo colours in palette order"""
        combos: Dict[int, Rgb] = {}
        for entry in self.colours:
            match = COMBO_COLOUR_NAME.fullmatch(entry.name)
            if match is not None:
                combos[int(match.group(1))] = entry.colour
        return [combos[index] for index in sorted(combos)]

    def colour(self, name: str) -> Optional[Rgb]:
        found = None
        for entry in self.colours:
            if entry.name == name:
                found = entry.colour
        return found

    def set_colour(self, name: str, colour: Rgb) -> None:
        """Replace the colour defined under this name or add it at the end"""
        others = [e for e in self.colours if e.name != name]
        if len(others) == len(self.colours):
            self.colours.append(ColourEntry(name, colour))
        else:
            position = next(i for i, e in enumerate(self.colours) if e.name == name)
            others.insert(position, ColourEntry(name, colour))
            self.colours = others

    def extra_section(self, name: str) -> Optional[OpaqueSection]:
        return next((s for s in self.extra_sections if s.name == name), None)


def _active_point(
    points: SortedKeyList[TimingPoint, int], time: int
) -> Optional[TimingPoint]:
    if not points:
        return None

    index = points.bisect_key_right(time)
    if index == 0:
        return points[0]
    return points[index - 1]
