"""Errors and warnings raised while reading .osu files

Structural problems are fatal and raised as FormatError subclasses carrying
the section name and the 1-based line number of the offending line.
Recoverable oddities are reported through the warnings module, the parse
carries on."""

from __future__ import annotations

from typing import Optional


class FormatError(ValueError):
    def __init__(
        self,
        reason: str,
        section: Optional[str] = None,
        line: Optional[int] = None,
    ) -> None:
        super().__init__(reason, section, line)
        self.reason = reason
        self.section = section
        self.line = line

    def at(self, section: Optional[str], line: Optional[int]) -> FormatError:
        """Return a copy of this error located at the given section and line,
        keeps any location already known"""
        return type(self)(
            self.reason,
            section=self.section if self.section is not None else section,
            line=self.line if self.line is not None else line,
        )

    def __str__(self) -> str:
        location = []
        if self.section is not None:
            location.append(f"[{self.section}]")
        if self.line is not None:
            location.append(f"line {self.line}")

        if location:
            return f"{' '.join(location)}: {self.reason}"
        else:
            return self.reason


class UnsupportedFormatVersion(FormatError):
    pass


class MalformedLine(FormatError):
    pass


class MalformedNumber(MalformedLine):
    pass


class MalformedTimingPoint(FormatError):
    pass


class MalformedHitObject(FormatError):
    pass


class InvalidTypeMask(MalformedHitObject):
    """Zero or several of the circle / slider / spinner / hold bits are set"""


class FormatWarning(UserWarning):
    pass


class UnknownSection(FormatWarning):
    pass


class InheritanceMismatch(FormatWarning):
    """The sign of a timing point's beat length disagrees with its explicit
    uninherited flag, the flag wins"""
