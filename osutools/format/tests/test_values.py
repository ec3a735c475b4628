from decimal import Decimal

import pytest
from hypothesis import given

from osutools.beatmap import GameMode, HitSound, OverlayPosition, SampleSet
from osutools.errors import MalformedLine, MalformedNumber
from osutools.testutils.strategies import decimals

from ..values import (
    dump_value,
    parse_decimal,
    parse_int,
    parse_int_enum,
    parse_named_enum,
    pretty_print_decimal,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        (Decimal("1.50"), "1.5"),
        (Decimal("2.000"), "2"),
        (Decimal("100"), "100"),
        (Decimal("1E+2"), "100"),
        (Decimal("-0.250"), "-0.25"),
        (Decimal("333.33"), "333.33"),
    ],
)
def test_pretty_print_decimal(value: Decimal, expected: str) -> None:
    assert pretty_print_decimal(value) == expected


@given(decimals())
def test_that_pretty_printed_decimals_keep_their_value(value: Decimal) -> None:
    assert parse_decimal(pretty_print_decimal(value)) == value


@pytest.mark.parametrize("raw", ["", "1.0", "0x10", "1_000", "١٢", "- 1"])
def test_that_integers_are_strict(raw: str) -> None:
    with pytest.raises(MalformedNumber):
        parse_int(raw)


@pytest.mark.parametrize("raw", ["NaN", "inf", "-Infinity", "1,5", "1.2.3", "."])
def test_that_decimals_are_finite_numbers(raw: str) -> None:
    with pytest.raises(MalformedNumber):
        parse_decimal(raw)


def test_dump_value() -> None:
    assert dump_value(True) == "1"
    assert dump_value(False) == "0"
    assert dump_value(SampleSet.SOFT) == "2"
    assert dump_value(HitSound.WHISTLE | HitSound.CLAP) == "10"
    assert dump_value([1, 2, 3]) == "1,2,3"
    assert dump_value(["a", "b"]) == "a b"
    assert dump_value(Decimal("0.70")) == "0.7"
    assert dump_value(OverlayPosition.NO_CHANGE) == "NoChange"
    assert dump_value(GameMode.MANIA) == "3"


@pytest.mark.parametrize("raw", ["1e5", "1E+5000000", "2.5e-3", "1e999999999"])
def test_that_exponents_are_refused(raw: str) -> None:
    with pytest.raises(MalformedNumber):
        parse_decimal(raw)


def test_enum_values() -> None:
    assert parse_int_enum(" 2 ", GameMode, "mode") is GameMode.CATCH
    below = parse_named_enum("Below", OverlayPosition, "overlay")
    assert below is OverlayPosition.BELOW
    with pytest.raises(MalformedNumber, match="mode"):
        parse_int_enum("9", GameMode, "mode")
    with pytest.raises(MalformedLine, match="NoChange, Below, Above"):
        parse_named_enum("Sideways", OverlayPosition, "overlay")
