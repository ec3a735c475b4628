import warnings
from decimal import Decimal

import pytest
from hypothesis import given

from osutools.beatmap import Effects, SampleSet, TimingPoint
from osutools.errors import InheritanceMismatch, MalformedTimingPoint
from osutools.testutils.strategies import decimals, timing_point

from ..timing_points import dump_timing_point, load_timing_point


def test_uninherited_point() -> None:
    point = load_timing_point("1000,500,4,2,1,60,1,0")
    assert point == TimingPoint(
        time=1000,
        beat_length=Decimal(500),
        meter=4,
        sample_set=SampleSet.SOFT,
        sample_index=1,
        volume=60,
        uninherited=True,
        effects=Effects(0),
    )
    assert point.bpm == Decimal(120)
    assert point.slider_velocity == 1


def test_inherited_point() -> None:
    point = load_timing_point("1500,-50,4,2,1,60,0,0")
    assert point.inherited
    assert point.slider_velocity == Decimal(2)
    assert point.bpm is None


def test_defaults() -> None:
    point = load_timing_point("1000,500")
    assert point.meter == 4
    assert point.sample_set == SampleSet.DEFAULT
    assert point.sample_index == 0
    assert point.volume == 100
    assert point.effects == Effects(0)
    assert dump_timing_point(point) == "1000,500,4,0,0,100,1,0"


@given(decimals())
def test_that_the_sign_decides_when_the_flag_is_missing(beat_length: Decimal) -> None:
    point = load_timing_point(f"1000,{beat_length}")
    assert point.uninherited == (beat_length >= 0)


def test_that_the_flag_wins_over_the_sign() -> None:
    with pytest.warns(InheritanceMismatch):
        point = load_timing_point("1000,-50,4,0,0,100,1,0")
    assert point.uninherited


def test_that_a_consistent_flag_does_not_warn() -> None:
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        load_timing_point("1000,-50,4,0,0,100,0,0")


def test_that_unknown_effect_bits_are_kept() -> None:
    point = load_timing_point("1000,500,4,0,0,100,1,5")
    assert point.effects & Effects.KIAI
    assert dump_timing_point(point).endswith(",5")


@pytest.mark.parametrize(
    "line",
    [
        "1000",
        "1000,500,4,0,0,100,1,0,0",
        "soon,500",
        "1000,fast",
        "1000,500,4,9",
        "1000,500,4,0,0,100,yes",
        "1000,500,4,0,0,100,1,-1",
    ],
)
def test_malformed_timing_points(line: str) -> None:
    with pytest.raises(MalformedTimingPoint):
        load_timing_point(line)


@given(timing_point())
def test_that_dumped_points_load_back(point: TimingPoint) -> None:
    assert load_timing_point(dump_timing_point(point)) == point
