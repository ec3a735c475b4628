"""TimingPoints section

One point per line :

    time,beatLength,meter,sampleSet,sampleIndex,volume,uninherited,effects

Only the first two fields are mandatory. When the uninherited flag is missing
it is deduced from the sign of beatLength, negative meaning inherited."""

import warnings
from typing import List

from osutools.beatmap import Effects, TimingPoint
from osutools.errors import InheritanceMismatch, MalformedNumber, MalformedTimingPoint

from .values import (
    dump_value,
    parse_bool,
    parse_decimal,
    parse_int,
    parse_sample_set,
)

MIN_FIELDS = 2
MAX_FIELDS = 8


def load_timing_point(line: str) -> TimingPoint:
    fields = [f.strip() for f in line.split(",")]
    if not MIN_FIELDS <= len(fields) <= MAX_FIELDS:
        raise MalformedTimingPoint(
            f"Expected {MIN_FIELDS} to {MAX_FIELDS} comma separated fields, "
            f"found {len(fields)} in {line!r}"
        )

    try:
        return _load_fields(fields)
    except MalformedNumber as e:
        raise MalformedTimingPoint(e.reason) from None


def _load_fields(fields: List[str]) -> TimingPoint:
    time = parse_int(fields[0], "time")
    beat_length = parse_decimal(fields[1], "beat length")
    point = TimingPoint(time, beat_length, uninherited=beat_length >= 0)
    optional = fields[2:]
    if len(optional) >= 1:
        point.meter = parse_int(optional[0], "meter")
    if len(optional) >= 2:
        point.sample_set = parse_sample_set(optional[1], "sample set")
    if len(optional) >= 3:
        point.sample_index = parse_int(optional[2], "sample index")
    if len(optional) >= 4:
        point.volume = parse_int(optional[3], "volume")
    if len(optional) >= 5:
        point.uninherited = parse_bool(optional[4], "uninherited")
        if point.uninherited != (beat_length >= 0):
            warnings.warn(
                f"Timing point at {time} ms is marked as "
                f"{'uninherited' if point.uninherited else 'inherited'} but "
                f"has a beat length of {fields[1]}, using the flag",
                InheritanceMismatch,
            )
    if len(optional) >= 6:
        effects = parse_int(optional[5], "effects")
        if effects < 0:
            raise MalformedNumber(f"Effects can't be negative : {effects}")
        point.effects = Effects(effects)

    return point


def dump_timing_point(point: TimingPoint) -> str:
    return ",".join(
        dump_value(v)
        for v in (
            point.time,
            point.beat_length,
            point.meter,
            point.sample_set,
            point.sample_index,
            point.volume,
            point.uninherited,
            point.effects,
        )
    )
