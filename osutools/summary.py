"""Short machine-readable overview of a beatmap, used by `osutools inspect`"""

from collections import Counter
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

import simplejson as json
from marshmallow import EXCLUDE, Schema, post_dump
from marshmallow_dataclass import class_schema

from osutools.beatmap import Beatmap, HitObject, Hold, Slider, Spinner

# The game's default when the Difficulty section doesn't say
DEFAULT_SLIDER_MULTIPLIER = Decimal("1.4")


@dataclass
class DifficultySettings:
    hp_drain: Optional[Decimal]
    circle_size: Optional[Decimal]
    overall_difficulty: Optional[Decimal]
    approach_rate: Optional[Decimal]
    slider_multiplier: Optional[Decimal]
    slider_tick_rate: Optional[Decimal]


@dataclass
class ObjectCounts:
    circles: int
    sliders: int
    spinners: int
    holds: int


@dataclass
class BeatmapSummary:
    format_version: int
    title: Optional[str]
    artist: Optional[str]
    creator: Optional[str]
    version: Optional[str]
    mode: Optional[int]
    difficulty: DifficultySettings
    objects: ObjectCounts
    timing_points: int
    breaks: int
    min_bpm: Optional[Decimal]
    max_bpm: Optional[Decimal]
    # in ms, from the first object to the end of the last one, minus breaks
    drain_length: int


class BaseSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    @post_dump
    def remove_none_values(self, data: dict, **kwargs: Any) -> dict:
        return {key: value for key, value in data.items() if value is not None}


SUMMARY_SCHEMA = class_schema(BeatmapSummary, base_schema=BaseSchema)()


def end_time(beatmap: Beatmap, hit_object: HitObject) -> int:
    payload = hit_object.payload
    if isinstance(payload, (Spinner, Hold)):
        return payload.end_time
    elif isinstance(payload, Slider):
        return hit_object.time + slider_duration(beatmap, hit_object.time, payload)
    else:
        return hit_object.time


def slider_duration(beatmap: Beatmap, time: int, slider: Slider) -> int:
    point = beatmap.uninherited_timing_point_at(time)
    if point is None or point.beat_length <= 0:
        return 0

    multiplier = beatmap.difficulty.slider_multiplier or DEFAULT_SLIDER_MULTIPLIER
    pixels_per_beat = multiplier * 100 * beatmap.slider_velocity_at(time)
    if pixels_per_beat <= 0:
        return 0

    beats = slider.length * slider.slides / pixels_per_beat
    return int(beats * point.beat_length)


def summarize(beatmap: Beatmap) -> BeatmapSummary:
    kinds = Counter(type(o.payload).__name__ for o in beatmap.hit_objects)
    bpms = [p.bpm for p in beatmap.timing_points if p.bpm is not None]
    objects = beatmap.hit_objects_by_time()
    if objects:
        drain_length = max(end_time(beatmap, o) for o in objects) - objects[0].time
        drain_length -= sum(b.duration for b in beatmap.breaks)
    else:
        drain_length = 0

    return BeatmapSummary(
        format_version=beatmap.format_version,
        title=beatmap.metadata.title,
        artist=beatmap.metadata.artist,
        creator=beatmap.metadata.creator,
        version=beatmap.metadata.version,
        mode=beatmap.general.mode,
        difficulty=DifficultySettings(
            hp_drain=beatmap.difficulty.hp_drain,
            circle_size=beatmap.difficulty.circle_size,
            overall_difficulty=beatmap.difficulty.overall_difficulty,
            approach_rate=beatmap.difficulty.approach_rate,
            slider_multiplier=beatmap.difficulty.slider_multiplier,
            slider_tick_rate=beatmap.difficulty.slider_tick_rate,
        ),
        objects=ObjectCounts(
            circles=kinds["Circle"],
            sliders=kinds["Slider"],
            spinners=kinds["Spinner"],
            holds=kinds["Hold"],
        ),
        timing_points=len(beatmap.timing_points),
        breaks=len(beatmap.breaks),
        min_bpm=round(min(bpms), 3) if bpms else None,
        max_bpm=round(max(bpms), 3) if bpms else None,
        drain_length=max(drain_length, 0),
    )


def dump_summary(beatmap: Beatmap) -> str:
    summary = SUMMARY_SCHEMA.dump(summarize(beatmap))
    return json.dumps(summary, indent=4, use_decimal=True)
