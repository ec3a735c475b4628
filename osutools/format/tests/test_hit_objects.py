from decimal import Decimal

import pytest
from hypothesis import given

from osutools.beatmap import (
    Circle,
    CurveType,
    EdgeSet,
    HitObject,
    HitSample,
    HitSound,
    Hold,
    Position,
    SampleSet,
    Slider,
    Spinner,
)
from osutools.errors import InvalidTypeMask, MalformedHitObject
from osutools.testutils.strategies import hit_object

from ..hit_objects import decode_type_mask, dump_hit_object, load_hit_object


def test_circle() -> None:
    circle = load_hit_object("256,192,4000,1,0,0:0:0:0:")
    assert circle.position == Position(256, 192)
    assert circle.time == 4000
    assert circle.payload == Circle()
    assert not circle.new_combo
    assert circle.hit_sound == 0
    assert circle.hit_sample == HitSample()


def test_slider() -> None:
    slider = load_hit_object("100,100,1000,2,0,B|200:200|300:100,1,300")
    assert slider.payload == Slider(
        curve_type=CurveType.BEZIER,
        control_points=[Position(200, 200), Position(300, 100)],
        slides=1,
        length=Decimal(300),
    )
    assert slider.hit_sample is None


def test_slider_with_everything() -> None:
    slider = load_hit_object(
        "100,100,4500,6,2,P|150:50|200:100,2,157.5,2|0|8,0:0|1:2|3:0,1:0:0:0:"
    )
    assert slider.new_combo
    assert slider.hit_sound == HitSound.WHISTLE
    payload = slider.payload
    assert isinstance(payload, Slider)
    assert payload.curve_type == CurveType.PERFECT_CIRCLE
    assert payload.length == Decimal("157.5")
    assert payload.edge_sounds == [HitSound.WHISTLE, HitSound(0), HitSound.CLAP]
    assert payload.edge_sets == [
        EdgeSet(),
        EdgeSet(SampleSet.NORMAL, SampleSet.SOFT),
        EdgeSet(SampleSet.DRUM, SampleSet.DEFAULT),
    ]
    assert slider.hit_sample == HitSample(normal_set=SampleSet.NORMAL)


def test_spinner() -> None:
    spinner = load_hit_object("256,192,6000,12,0,7000,0:0:0:0:")
    assert spinner.payload == Spinner(7000)
    assert spinner.new_combo


def test_hold() -> None:
    hold = load_hit_object("64,192,1000,128,0,1500:1:2:3:40:key.wav")
    assert hold.payload == Hold(1500)
    assert hold.hit_sample == HitSample(
        SampleSet.NORMAL, SampleSet.SOFT, 3, 40, "key.wav"
    )
    assert dump_hit_object(hold) == "64,192,1000,128,0,1500:1:2:3:40:key.wav"

    bare = load_hit_object("64,192,1000,128,0,1500")
    assert bare.payload == Hold(1500)
    assert bare.hit_sample is None


def test_partial_hit_sample() -> None:
    circle = load_hit_object("0,0,0,1,0,1:2")
    assert circle.hit_sample == HitSample(SampleSet.NORMAL, SampleSet.SOFT, 0, 0, "")


def test_combo_skip() -> None:
    circle = load_hit_object("0,0,0,101,0")
    assert circle.new_combo
    assert circle.combo_skip == 6
    assert circle.type_mask == 101


KIND_PARAMS = {
    1: "",
    2: ",L|10:10,1,10",
    8: ",2000",
    128: ",2000:0:0:0:0:",
}


@pytest.mark.parametrize("mask", range(256))
def test_every_type_byte(mask: int) -> None:
    kind_bits = [bit for bit in KIND_PARAMS if mask & bit]
    if len(kind_bits) != 1:
        with pytest.raises(InvalidTypeMask):
            decode_type_mask(mask)
        with pytest.raises(InvalidTypeMask):
            load_hit_object(f"256,192,1000,{mask},0{KIND_PARAMS[1]}")
    else:
        line = f"256,192,1000,{mask},0{KIND_PARAMS[kind_bits[0]]}"
        hit_object = load_hit_object(line)
        assert hit_object.type_mask == mask
        assert dump_hit_object(hit_object) == line


@pytest.mark.parametrize("mask", [-1, 256, 1000])
def test_that_out_of_range_types_are_invalid(mask: int) -> None:
    with pytest.raises(InvalidTypeMask):
        load_hit_object(f"0,0,0,{mask},0")


@pytest.mark.parametrize(
    "line, reason",
    [
        ("256,192,4000", "at least 5"),
        ("256,192,4000,one,0", "type"),
        ("256,192,4000,1,0,0:0:0:0:,extra", "6 fields"),
        ("256,192,4000,8,0", "6 to 7"),
        ("256,192,4000,2,0,B|1:1", "8 to 11"),
        ("256,192,4000,2,0,X|1:1,1,100", "curve"),
        ("256,192,4000,2,0,B,1,100", "curve"),
        ("256,192,4000,2,0,B|1.5:1,1,100", "curve"),
        ("256,192,4000,2,0,B|1:1,0,100", "at least once"),
        ("256,192,4000,2,0,B|1:1,1,100,0|0|0", "edge sounds"),
        ("256,192,4000,2,0,B|1:1,1,100,0|0,0:0", "edge sets"),
        ("256,192,4000,1,0,0", "hit sample"),
        ("256,192,4000,1,0,7:0:0:0:", "normal set"),
        ("256,192,4000,128,0,soon:0:0:0:0:", "end time"),
        ("256,192,4000,1,-1", "hit sound"),
    ],
)
def test_malformed_hit_objects(line: str, reason: str) -> None:
    with pytest.raises(MalformedHitObject, match=reason):
        load_hit_object(line)


def test_that_inconsistent_sliders_are_refused_when_dumping() -> None:
    slider = HitObject(
        position=Position(0, 0),
        time=0,
        payload=Slider(CurveType.LINEAR, [Position(1, 1)], slides=2),
        hit_sample=HitSample(),
    )
    with pytest.raises(ValueError):
        dump_hit_object(slider)

    slider.hit_sample = None
    slider.payload.edge_sounds = [HitSound(0)]  # type: ignore[union-attr]
    with pytest.raises(ValueError):
        dump_hit_object(slider)


def test_that_combo_skip_is_validated() -> None:
    with pytest.raises(ValueError):
        HitObject(Position(0, 0), 0, combo_skip=8)


@given(hit_object())
def test_that_dumped_hit_objects_load_back(expected: HitObject) -> None:
    assert load_hit_object(dump_hit_object(expected)) == expected
