"""Useful things to parse and dump the scalar values found in .osu files

Integers are plain base 10 (with an optional minus sign), decimals are plain
<int>.<frac> in positional notation, exponents are never written by the game
and are refused. NaN and infinities are never accepted. Booleans are written
as 0 or 1."""

import re
from decimal import Decimal, InvalidOperation
from enum import Enum, IntEnum
from functools import singledispatch
from typing import List, Type, TypeVar, Union

from osutools.beatmap import SampleSet
from osutools.errors import MalformedLine, MalformedNumber

INTEGER = re.compile(r"[+-]?\d+", re.ASCII)
DECIMAL = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)", re.ASCII)

I = TypeVar("I", bound=IntEnum)
S = TypeVar("S", bound=Enum)


def parse_int(raw: str, what: str = "value") -> int:
    value = raw.strip()
    if INTEGER.fullmatch(value) is None:
        raise MalformedNumber(f"Expected an integer for {what}, got {raw!r}")
    return int(value)


def parse_decimal(raw: str, what: str = "value") -> Decimal:
    value = raw.strip()
    if DECIMAL.fullmatch(value) is None:
        raise MalformedNumber(f"Expected a number for {what}, got {raw!r}")
    try:
        return Decimal(value)
    except InvalidOperation:
        raise MalformedNumber(f"Expected a number for {what}, got {raw!r}") from None


def parse_bool(raw: str, what: str = "value") -> bool:
    value = raw.strip()
    if value == "1":
        return True
    elif value == "0":
        return False
    else:
        raise MalformedNumber(f"Expected 0 or 1 for {what}, got {raw!r}")


def parse_int_enum(raw: str, enum_type: Type[I], what: str) -> I:
    value = parse_int(raw, what)
    try:
        return enum_type(value)
    except ValueError:
        raise MalformedNumber(f"Unknown {what} : {value}") from None


def parse_named_enum(raw: str, enum_type: Type[S], what: str) -> S:
    """For enums written by value, like OverlayPosition"""
    value = raw.strip()
    try:
        return enum_type(value)
    except ValueError:
        expected = ", ".join(member.value for member in enum_type)
        raise MalformedLine(
            f"Unknown {what} {value!r}, expected one of {expected}"
        ) from None


def parse_sample_set(raw: str, what: str = "sample set") -> SampleSet:
    return parse_int_enum(raw, SampleSet, what)


def parse_int_list(raw: str, separator: str = ",", what: str = "value") -> List[int]:
    if not raw.strip():
        return []
    return [parse_int(v, what) for v in raw.split(separator)]


DumpableValue = Union[str, int, bool, Decimal, List[int], List[str]]


@singledispatch
def dump_value(value: DumpableValue) -> str:
    return str(value)


@dump_value.register
def dump_int_value(value: int) -> str:
    # IntEnum and IntFlag members end up here too, str() would give their name
    return str(int(value))


@dump_value.register
def dump_bool_value(value: bool) -> str:
    return "1" if value else "0"


@dump_value.register
def dump_decimal_value(value: Decimal) -> str:
    return pretty_print_decimal(value)


@dump_value.register
def dump_string_value(value: str) -> str:
    # str based enums like OverlayPosition are written as their value
    if isinstance(value, Enum):
        return str(value.value)
    return value


@dump_value.register
def dump_list_value(value: list) -> str:
    if all(isinstance(v, str) for v in value):
        return " ".join(value)
    else:
        return ",".join(dump_value(v) for v in value)


def pretty_print_decimal(d: Decimal) -> str:
    """Shortest positional notation, no exponent and no trailing zeros"""
    raw_string_form = format(d, "f")
    if "." in raw_string_form:
        return raw_string_form.rstrip("0").rstrip(".")
    else:
        return raw_string_form
