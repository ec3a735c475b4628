"""
HitObjects section

Every line describes one object :

    x,y,time,type,hitSound,objectParams,hitSample

The type field is a bit field :
  - bit 0 (1)      : circle
  - bit 1 (2)      : slider
  - bit 2 (4)      : new combo
  - bit 3 (8)      : spinner
  - bits 4-6 (112) : how many combo colours to skip
  - bit 7 (128)    : osu!mania hold

Exactly one of the circle / slider / spinner / hold bits must be set.

objectParams depend on the kind of object :
  - circle  : nothing
  - slider  : curveType|curvePoints,slides,length,edgeSounds,edgeSets
  - spinner : endTime
  - hold    : endTime, glued to the hit sample with a colon instead of a comma

hitSample is normalSet:additionSet:index:volume:filename, it's optional and
so are its trailing parts
"""

from functools import singledispatch
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

from parsimonious import Grammar, NodeVisitor, ParseError
from parsimonious.nodes import Node

from osutools.beatmap import (
    COMBO_SKIP_MAX,
    COMBO_SKIP_SHIFT,
    NEW_COMBO_BIT,
    PAYLOAD_TYPES,
    Circle,
    CurveType,
    EdgeSet,
    HitObject,
    HitSample,
    HitSound,
    Hold,
    Payload,
    Position,
    Slider,
    Spinner,
)
from osutools.errors import InvalidTypeMask, MalformedHitObject, MalformedNumber

from .values import dump_value, parse_decimal, parse_int, parse_sample_set

COMMON_FIELDS = 5

curve_grammar = Grammar(
    r"""
    curve      = curve_type point+
    curve_type = ~r"[BCLP]"
    point      = "|" coordinate ":" coordinate
    coordinate = ~r"[+-]?[0-9]+"
    """
)


class CurveVisitor(NodeVisitor):

    """Returns a (curve type, control points) tuple"""

    def visit_curve(
        self, node: Node, visited_children: List[Any]
    ) -> Tuple[CurveType, List[Position]]:
        curve_type, points = visited_children
        return curve_type, points

    def visit_curve_type(self, node: Node, visited_children: List[Any]) -> CurveType:
        return CurveType(node.text)

    def visit_point(self, node: Node, visited_children: List[Any]) -> Position:
        _, x, _, y = visited_children
        return Position(x, y)

    def visit_coordinate(self, node: Node, visited_children: List[Any]) -> int:
        return int(node.text)

    def generic_visit(self, node: Node, visited_children: List[Any]) -> Any:
        return visited_children or node


def parse_curve(raw: str) -> Tuple[CurveType, List[Position]]:
    try:
        return CurveVisitor().visit(curve_grammar.parse(raw))  # type: ignore
    except ParseError:
        raise MalformedHitObject(
            f"Expected a curve like 'B|x:y|x:y...', got {raw!r}"
        ) from None


def decode_type_mask(mask: int) -> Tuple[Type[Payload], bool, int]:
    """Return the payload type, new combo flag and combo skip count"""
    if not 0 <= mask <= 255:
        raise InvalidTypeMask(f"Type {mask} does not fit in a byte")

    kinds = [kind for bit, kind in PAYLOAD_TYPES.items() if mask & bit]
    if len(kinds) != 1:
        raise InvalidTypeMask(
            f"Type {mask} should have exactly one of the circle, slider, "
            f"spinner or hold bits set, found {len(kinds)}"
        )

    new_combo = bool(mask & NEW_COMBO_BIT)
    combo_skip = (mask >> COMBO_SKIP_SHIFT) & COMBO_SKIP_MAX
    return kinds[0], new_combo, combo_skip


def parse_hit_sample(raw: str) -> HitSample:
    parts = raw.split(":", 4)
    if len(parts) < 2:
        raise MalformedHitObject(
            f"Expected a hit sample like 'normal:addition[:index:volume:filename]', got {raw!r}"
        )

    normal_set = parse_sample_set(parts[0], "normal set")
    addition_set = parse_sample_set(parts[1], "addition set")
    index = parse_int(parts[2], "sample index") if len(parts) > 2 else 0
    volume = parse_int(parts[3], "sample volume") if len(parts) > 3 else 0
    filename = parts[4] if len(parts) > 4 else ""
    return HitSample(normal_set, addition_set, index, volume, filename)


def parse_hit_sound(raw: str, what: str = "hit sound") -> HitSound:
    value = parse_int(raw, what)
    if value < 0:
        raise MalformedNumber(f"{what} can't be negative : {value}")
    return HitSound(value)


def parse_edge_set(raw: str) -> EdgeSet:
    normal, colon, addition = raw.partition(":")
    if not colon:
        raise MalformedHitObject(
            f"Expected an edge set like 'normal:addition', got {raw!r}"
        )
    return EdgeSet(
        parse_sample_set(normal, "edge normal set"),
        parse_sample_set(addition, "edge addition set"),
    )


def load_hit_object(line: str) -> HitObject:
    fields = [f.strip() for f in line.split(",")]
    if len(fields) < COMMON_FIELDS:
        raise MalformedHitObject(
            f"Expected at least {COMMON_FIELDS} comma separated fields, "
            f"found {len(fields)} in {line!r}"
        )

    try:
        return _load_fields(fields)
    except MalformedNumber as e:
        raise MalformedHitObject(e.reason) from None


def _load_fields(fields: List[str]) -> HitObject:
    x, y, time, mask, hit_sound = fields[:COMMON_FIELDS]
    payload_type, new_combo, combo_skip = decode_type_mask(parse_int(mask, "type"))
    load_payload = PAYLOAD_LOADERS[payload_type]
    payload, hit_sample = load_payload(fields[COMMON_FIELDS:])
    return HitObject(
        position=Position(parse_int(x, "x"), parse_int(y, "y")),
        time=parse_int(time, "time"),
        payload=payload,
        new_combo=new_combo,
        combo_skip=combo_skip,
        hit_sound=parse_hit_sound(hit_sound),
        hit_sample=hit_sample,
    )


PayloadAndSample = Tuple[Payload, Optional[HitSample]]


def _check_field_count(
    kind: str, params: List[str], at_least: int, at_most: int
) -> None:
    if not at_least <= len(params) <= at_most:
        total_min = COMMON_FIELDS + at_least
        total_max = COMMON_FIELDS + at_most
        expected = (
            f"{total_min}" if total_min == total_max else f"{total_min} to {total_max}"
        )
        raise MalformedHitObject(
            f"A {kind} has {expected} fields, found {COMMON_FIELDS + len(params)}"
        )


def _optional_hit_sample(params: List[str], index: int) -> Optional[HitSample]:
    if len(params) > index:
        return parse_hit_sample(params[index])
    else:
        return None


def load_circle(params: List[str]) -> PayloadAndSample:
    _check_field_count("circle", params, 0, 1)
    return Circle(), _optional_hit_sample(params, 0)


def load_spinner(params: List[str]) -> PayloadAndSample:
    _check_field_count("spinner", params, 1, 2)
    end_time = parse_int(params[0], "end time")
    return Spinner(end_time), _optional_hit_sample(params, 1)


def load_hold(params: List[str]) -> PayloadAndSample:
    _check_field_count("hold", params, 1, 1)
    raw_end_time, colon, raw_hit_sample = params[0].partition(":")
    end_time = parse_int(raw_end_time, "end time")
    hit_sample = parse_hit_sample(raw_hit_sample) if colon else None
    return Hold(end_time), hit_sample


def load_slider(params: List[str]) -> PayloadAndSample:
    _check_field_count("slider", params, 3, 6)
    curve_type, control_points = parse_curve(params[0])
    slides = parse_int(params[1], "slides")
    if slides < 1:
        raise MalformedHitObject(f"A slider should slide at least once, got {slides}")

    length = parse_decimal(params[2], "length")
    slider = Slider(curve_type, control_points, slides, length)
    if len(params) > 3:
        slider.edge_sounds = [
            parse_hit_sound(s, "edge sound") for s in params[3].split("|")
        ]
        _check_edge_count("edge sounds", slider.edge_sounds, slider)
    if len(params) > 4:
        slider.edge_sets = [parse_edge_set(s) for s in params[4].split("|")]
        _check_edge_count("edge sets", slider.edge_sets, slider)

    return slider, _optional_hit_sample(params, 5)


def _check_edge_count(what: str, values: List[Any], slider: Slider) -> None:
    if len(values) != slider.edge_count:
        raise MalformedHitObject(
            f"A slider with {slider.slides} slides needs {slider.edge_count} "
            f"{what}, found {len(values)}"
        )


PAYLOAD_LOADERS: Dict[Type[Payload], Callable[[List[str]], PayloadAndSample]] = {
    Circle: load_circle,
    Slider: load_slider,
    Spinner: load_spinner,
    Hold: load_hold,
}


def dump_hit_sample(sample: HitSample) -> str:
    return ":".join(
        dump_value(v)
        for v in (
            sample.normal_set,
            sample.addition_set,
            sample.index,
            sample.volume,
            sample.filename,
        )
    )


def dump_hit_object(hit_object: HitObject) -> str:
    fields = [
        dump_value(v)
        for v in (
            hit_object.x,
            hit_object.y,
            hit_object.time,
            hit_object.type_mask,
            hit_object.hit_sound,
        )
    ]
    fields += dump_payload(hit_object.payload, hit_object.hit_sample)
    return ",".join(fields)


@singledispatch
def dump_payload(payload: Payload, hit_sample: Optional[HitSample]) -> List[str]:
    raise NotImplementedError(f"Unknown hit object payload : {payload!r}")


@dump_payload.register
def dump_circle(payload: Circle, hit_sample: Optional[HitSample]) -> List[str]:
    return _with_hit_sample([], hit_sample)


@dump_payload.register
def dump_spinner(payload: Spinner, hit_sample: Optional[HitSample]) -> List[str]:
    return _with_hit_sample([dump_value(payload.end_time)], hit_sample)


@dump_payload.register
def dump_hold(payload: Hold, hit_sample: Optional[HitSample]) -> List[str]:
    end_time = dump_value(payload.end_time)
    if hit_sample is None:
        return [end_time]
    else:
        return [f"{end_time}:{dump_hit_sample(hit_sample)}"]


@dump_payload.register
def dump_slider(payload: Slider, hit_sample: Optional[HitSample]) -> List[str]:
    if payload.slides < 1:
        raise ValueError(f"A slider should slide at least once, got {payload.slides}")
    if not payload.control_points:
        raise ValueError("A slider needs at least one control point")

    points = "".join(f"|{p.x}:{p.y}" for p in payload.control_points)
    fields = [
        f"{payload.curve_type.value}{points}",
        dump_value(payload.slides),
        dump_value(payload.length),
    ]

    # Optional fields are positional, a later one can't be written if an
    # earlier one is missing
    if payload.edge_sets is not None and payload.edge_sounds is None:
        raise ValueError("A slider with edge sets must also have edge sounds")
    if hit_sample is not None and payload.edge_sets is None:
        raise ValueError(
            "A slider with a hit sample must also have edge sounds and sets"
        )

    if payload.edge_sounds is not None:
        _check_dumped_edge_count("edge sounds", payload.edge_sounds, payload)
        fields.append("|".join(dump_value(s) for s in payload.edge_sounds))
    if payload.edge_sets is not None:
        _check_dumped_edge_count("edge sets", payload.edge_sets, payload)
        fields.append(
            "|".join(
                f"{dump_value(e.normal_set)}:{dump_value(e.addition_set)}"
                for e in payload.edge_sets
            )
        )

    return _with_hit_sample(fields, hit_sample)


def _check_dumped_edge_count(what: str, values: List[Any], slider: Slider) -> None:
    if len(values) != slider.edge_count:
        raise ValueError(
            f"A slider with {slider.slides} slides needs {slider.edge_count} "
            f"{what}, found {len(values)}"
        )


def _with_hit_sample(fields: List[str], hit_sample: Optional[HitSample]) -> List[str]:
    if hit_sample is not None:
        fields.append(dump_hit_sample(hit_sample))
    return fields
