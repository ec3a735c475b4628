"""
Splits the text of a .osu file into its version and its raw sections

A .osu file looks like this :

    osu file format v14

    [General]
    AudioFilename: audio.mp3
    // comments are allowed on their own line

    [HitObjects]
    256,192,4000,1,0,0:0:0:0:

The first line gives the format version, then each [Name] header line opens
a section that runs until the next header. Blank lines and comment lines are
not part of any section. Lines keep their exact text (minus the line ending)
so that indentation, which matters in storyboards, is not lost.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional

from more_itertools import split_before
from parsimonious import Grammar, NodeVisitor, ParseError
from parsimonious.nodes import Node

from osutools.errors import MalformedLine, UnsupportedFormatVersion

SUPPORTED_FORMAT_VERSIONS = range(3, 15)

structure_grammar = Grammar(
    r"""
    version_line   = ws "osu file format v" version ws
    version        = ~r"[0-9]+"
    section_header = ws "[" section_name "]" ws
    section_name   = ~r"[^\[\]]+"
    ws             = ~r"[\t ]*"
    """
)


class StructureVisitor(NodeVisitor):

    """Returns the version number or the section name"""

    def visit_version_line(self, node: Node, visited_children: List[Any]) -> int:
        _, _, version, _ = visited_children
        return int(version)

    def visit_section_header(self, node: Node, visited_children: List[Any]) -> str:
        _, _, section_name, _, _ = visited_children
        return str(section_name)

    def visit_version(self, node: Node, visited_children: List[Any]) -> str:
        return node.text

    def visit_section_name(self, node: Node, visited_children: List[Any]) -> str:
        return node.text.strip()

    def generic_visit(self, node: Node, visited_children: List[Any]) -> None:
        ...


def parse_version_line(line: str) -> int:
    try:
        node = structure_grammar["version_line"].parse(line)
    except ParseError:
        raise MalformedLine(
            f"Expected 'osu file format v<version>', got {line!r}", line=1
        ) from None

    version: int = StructureVisitor().visit(node)
    if version not in SUPPORTED_FORMAT_VERSIONS:
        raise UnsupportedFormatVersion(
            f"Format version {version} is not supported, only versions "
            f"{SUPPORTED_FORMAT_VERSIONS.start} to {SUPPORTED_FORMAT_VERSIONS.stop - 1} are",
            line=1,
        )

    return version


def parse_section_header(line: str) -> Optional[str]:
    """Return the section name if the line is a [Section] header"""
    if not line.lstrip().startswith("["):
        return None

    try:
        node = structure_grammar["section_header"].parse(line)
    except ParseError:
        return None

    name: str = StructureVisitor().visit(node)
    return name


def is_section_header(line: str) -> bool:
    return parse_section_header(line) is not None


def is_blank_or_comment(line: str) -> bool:
    stripped = line.strip()
    return not stripped or stripped.startswith("//")


@dataclass
class Line:
    # 1-based, counted in the original text
    number: int
    text: str


@dataclass
class RawSection:
    name: str
    # line number of the [Name] header
    line_number: int
    lines: List[Line] = field(default_factory=list)


@dataclass
class SplitFile:
    version: int
    sections: List[RawSection] = field(default_factory=list)


def normalize_text(text: str) -> str:
    """Remove the BOM and turn every line ending into \\n"""
    if text.startswith("\ufeff"):
        text = text[1:]

    return text.replace("\r\n", "\n").replace("\r", "\n")


def split_sections(text: str) -> SplitFile:
    raw_lines = normalize_text(text).split("\n")
    version = parse_version_line(raw_lines[0])
    lines = [
        Line(number, raw_line)
        for number, raw_line in enumerate(raw_lines, start=1)
        if number > 1 and not is_blank_or_comment(raw_line)
    ]
    sections = []
    for header, *contents in split_before(lines, lambda l: is_section_header(l.text)):
        name = parse_section_header(header.text)
        if name is None:
            raise MalformedLine(
                f"Found content before the first section : {header.text!r}",
                line=header.number,
            )

        sections.append(RawSection(name, header.number, contents))

    return SplitFile(version, sections)
