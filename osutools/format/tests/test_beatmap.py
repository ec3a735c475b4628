import warnings
from decimal import Decimal
from importlib import resources
from pathlib import Path

import pytest
from hypothesis import given

import osutools
from osutools.beatmap import (
    Background,
    Beatmap,
    Break,
    Circle,
    Hold,
    OpaqueSection,
    Position,
    RawStoryboardLine,
    Rgb,
    Slider,
    Spinner,
    Video,
)
from osutools.errors import (
    InvalidTypeMask,
    MalformedHitObject,
    MalformedLine,
    MalformedNumber,
    MalformedTimingPoint,
    UnknownSection,
)
from osutools.testutils.strategies import beatmap
from osutools.testutils.test_patterns import dump_and_load_then_compare

from . import data
from ..dump import dump_beatmap
from ..load import load_beatmap_text


def load_example(name: str) -> Beatmap:
    with resources.path(data, name) as p:
        return osutools.open(p)


def test_example_file() -> None:
    example = load_example("example.osu")
    assert example.format_version == 14
    assert example.general.audio_filename == "audio.mp3"
    assert example.general.stack_leniency == Decimal("0.7")
    assert example.editor.bookmarks == [1500, 12000, 24000]
    assert example.metadata.title == "Example Song"
    assert example.metadata.source == ""
    assert example.metadata.tags == ["example", "test", "osu"]
    assert example.metadata.beatmap_set_id == 54321
    assert example.difficulty.slider_multiplier == Decimal("1.8")
    assert example.events[:3] == [
        Background("bg.jpg"),
        Video("intro.mp4", time=500),
        Break(8000, 11000),
    ]
    assert example.storyboard_lines == [
        'Sprite,Background,Centre,"sb/glow.png",320,240',
        " F,0,1000,2000,0,1",
        " S,0,1000,2000,0.5,1",
    ]
    assert len(example.timing_points) == 4
    assert example.combo_colours == [Rgb(255, 128, 0), Rgb(0, 202, 255)]
    assert [type(o.payload) for o in example.hit_objects] == [
        Circle,
        Slider,
        Slider,
        Spinner,
        Circle,
    ]


def test_that_the_example_file_survives_a_round_trip() -> None:
    example = load_example("example.osu")
    assert load_beatmap_text(dump_beatmap(example)) == example


def test_header_and_empty_hit_objects() -> None:
    parsed = osutools.parse("osu file format v14\n[HitObjects]\n")
    assert parsed.hit_objects == []
    text = parsed.to_text()
    assert text.startswith("osu file format v14\n")
    assert "[HitObjects]\n" in text
    assert osutools.parse(text) == parsed


def test_that_the_format_version_is_kept() -> None:
    old = osutools.parse("osu file format v5\n[General]\nMode: 0\n")
    assert old.format_version == 5
    assert old.to_text().startswith("osu file format v5\n")


def test_canonical_layout() -> None:
    text = Beatmap().to_text()
    assert text == (
        "osu file format v14\n"
        "\n"
        "[General]\n"
        "\n"
        "[Editor]\n"
        "\n"
        "[Metadata]\n"
        "\n"
        "[Difficulty]\n"
        "\n"
        "[Events]\n"
        "\n"
        "[TimingPoints]\n"
        "\n"
        "[Colours]\n"
        "\n"
        "[HitObjects]\n"
        "\n"
    )


def test_crlf_output() -> None:
    text = Beatmap().to_text(line_ending="\r\n")
    assert text.startswith("osu file format v14\r\n\r\n[General]\r\n")
    assert "\n" not in text.replace("\r\n", "")
    with pytest.raises(ValueError):
        Beatmap().to_text(line_ending="\r")


def test_that_repeated_sections_are_merged() -> None:
    parsed = osutools.parse(
        "osu file format v14\n"
        "[General]\n"
        "Mode: 0\n"
        "[HitObjects]\n"
        "0,0,100,1,0\n"
        "[General]\n"
        "Mode: 3\n"
        "[HitObjects]\n"
        "0,0,200,1,0\n"
    )
    assert parsed.general.mode == 3
    assert [o.time for o in parsed.hit_objects] == [100, 200]


def test_that_unknown_sections_are_kept() -> None:
    text = (
        "osu file format v14\n"
        "[Mania]\n"
        "  custom line\n"
        "Key: value\n"
        "[HitObjects]\n"
        "0,0,100,1,0\n"
    )
    with pytest.warns(UnknownSection, match="Mania"):
        parsed = osutools.parse(text)
    assert parsed.extra_sections == [
        OpaqueSection("Mania", ["  custom line", "Key: value"])
    ]
    assert parsed.extra_section("Mania") is parsed.extra_sections[0]
    dumped = parsed.to_text()
    assert dumped.endswith("[Mania]\n  custom line\nKey: value\n\n")
    with pytest.warns(UnknownSection):
        assert osutools.parse(dumped) == parsed


@pytest.mark.parametrize(
    "section, line, error",
    [
        ("General", "AudioLeadIn", MalformedLine),
        ("General", "AudioLeadIn: later", MalformedNumber),
        ("General", "Mode: 9", MalformedNumber),
        ("General", "OverlayPosition: Sideways", MalformedLine),
        ("Difficulty", "SliderMultiplier:1e5000000", MalformedNumber),
        ("TimingPoints", "1000", MalformedTimingPoint),
        ("Colours", "Combo1 : 1,2", MalformedNumber),
        ("Events", "2,100,later", MalformedNumber),
        ("Events", '0,0,bg"1.jpg,0,0', MalformedLine),
        ("Events", '0,0,"a""b.jpg",0,0', MalformedLine),
        ("HitObjects", "0,0,100,3,0", InvalidTypeMask),
        ("HitObjects", "0,0,100", MalformedHitObject),
    ],
)
def test_that_errors_are_located(section: str, line: str, error: type) -> None:
    text = f"osu file format v14\n\n[{section}]\n// comment\n{line}\n"
    with pytest.raises(error) as excinfo:
        osutools.parse(text)
    assert excinfo.value.section == section
    assert excinfo.value.line == 5
    assert str(excinfo.value).startswith(f"[{section}] line 5: ")


def test_that_a_single_error_fails_the_whole_parse() -> None:
    with pytest.raises(MalformedHitObject):
        osutools.parse(
            "osu file format v14\n[HitObjects]\n0,0,100,1,0\n0,0,100,1\n0,0,300,1,0\n"
        )


def test_that_parse_does_not_warn_on_clean_files() -> None:
    with resources.path(data, "example.osu") as p:
        text = p.read_text(encoding="utf-8")
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        osutools.parse(text)


def test_editing_then_dumping() -> None:
    example = load_example("example.osu")
    example.metadata.version = "Extra"
    example.hit_objects.append(
        osutools.beatmap.HitObject(Position(10, 10), 9000, Hold(9500))
    )
    example.events.append(RawStoryboardLine("Sprite,Foreground,Centre,\"a.png\",0,0"))
    reloaded = osutools.parse(example.to_text())
    assert reloaded.metadata.version == "Extra"
    assert reloaded.hit_objects[-1].payload == Hold(9500)
    assert reloaded == example


@pytest.mark.filterwarnings("ignore::osutools.errors.UnknownSection")
@given(beatmap())
def test_that_dumped_beatmaps_load_back(expected: Beatmap) -> None:
    dump_and_load_then_compare(expected)


@pytest.mark.filterwarnings("ignore::osutools.errors.UnknownSection")
@given(beatmap(max_objects=5))
def test_that_dumping_is_idempotent(original: Beatmap) -> None:
    text = original.to_text()
    assert osutools.parse(text).to_text() == text


@pytest.mark.filterwarnings("ignore::osutools.errors.UnknownSection")
@given(beatmap(max_objects=5))
def test_crlf_files_load_back(expected: Beatmap) -> None:
    dump_and_load_then_compare(expected, line_ending="\r\n")


def test_that_files_with_a_bom_can_be_opened(tmp_path: Path) -> None:
    path = tmp_path / "bom.osu"
    path.write_bytes(
        "\ufeffosu file format v14\r\n[Metadata]\r\nTitle:Ça va\r\n".encode("utf-8")
    )
    assert osutools.open(path).metadata.title == "Ça va"


def test_save(tmp_path: Path) -> None:
    example = load_example("example.osu")
    path = tmp_path / "out.osu"
    osutools.save(example, path)
    assert osutools.open(path) == example
    example.save(path, line_ending="\r\n")
    assert b"\r\n" in path.read_bytes()
    assert Beatmap.open(path) == example
