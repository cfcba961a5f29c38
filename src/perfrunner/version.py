"""
Release versions for baseline records.

A baseline is identified by a ``major.minor.patch`` triple. The text form is a
wire contract shared by baseline files and calculation output, so it has its
own encode/decode pair instead of relying on pydantic's generic handling of
dataclasses. ``VersionField`` bridges that pair into pydantic models.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Any

from pydantic import PlainSerializer, PlainValidator

from perfrunner.exceptions import ParseError

VERSION_FORMAT_MESSAGE = (
    "must be in the format major.minor.patch where each component is an integer"
)


@dataclass(frozen=True, order=True)
class Version:
    """
    Ordered ``(major, minor, patch)`` triple.

    Field order defines the total order, so comparisons are lexicographic on
    ``(major, minor, patch)``.

    Example:
        >>> Version(1, 2, 0) < Version(2, 0, 0)
        True
        >>> Version.from_text("1.2.3").to_text()
        '1.2.3'
    """

    major: int
    minor: int
    patch: int

    def to_text(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    def __str__(self) -> str:
        return self.to_text()

    @classmethod
    def from_text(cls, text: str) -> Version:
        """
        Parse the canonical ``major.minor.patch`` form.

        Raises:
            ParseError: If ``text`` does not split into exactly three integer
                components, or a component does not fit in a signed 32-bit
                integer.
        """
        if not isinstance(text, str):
            raise ParseError(
                VERSION_FORMAT_MESSAGE,
                error_code="PARSE_002",
                context={"value": repr(text)},
            )

        components = text.split(".")
        if len(components) != 3:
            raise ParseError(
                VERSION_FORMAT_MESSAGE,
                error_code="PARSE_001",
                context={"value": text, "components": len(components)},
            )

        try:
            major, minor, patch = (_parse_component(c) for c in components)
        except ValueError as e:
            raise ParseError(
                VERSION_FORMAT_MESSAGE,
                error_code="PARSE_002",
                context={"value": text, "original_error": str(e)},
            ) from e

        return cls(major, minor, patch)


COMPONENT_MIN = -(2 ** 31)
COMPONENT_MAX = 2 ** 31 - 1


def _parse_component(component: str) -> int:
    # int() tolerates surrounding whitespace and underscores; the wire format does not.
    # A leading "+" or leading zeros are accepted and normalised away by to_text().
    if component != component.strip() or "_" in component:
        raise ValueError(f"invalid integer component: {component!r}")
    value = int(component)
    if not COMPONENT_MIN <= value <= COMPONENT_MAX:
        raise ValueError(f"component out of 32-bit range: {component!r}")
    return value


def compare(a: Version, b: Version) -> int:
    """Return -1, 0 or 1 as ``a`` is less than, equal to or greater than ``b``."""
    if a < b:
        return -1
    if a > b:
        return 1
    return 0


def _decode_version(value: Any) -> Version:
    if isinstance(value, Version):
        return value
    return Version.from_text(value)


def _encode_version(value: Version) -> str:
    return value.to_text()


VersionField = Annotated[
    Version,
    PlainValidator(_decode_version),
    PlainSerializer(_encode_version, return_type=str),
]


__all__ = ["Version", "VersionField", "compare", "VERSION_FORMAT_MESSAGE"]
