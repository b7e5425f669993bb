"""Decide whether a file sits in the folder its name says it belongs in."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Sequence

from .attributes import AttributeSet
from .config import FRAME_SIZE, FRAME_TYPE

# Abbreviation used in file names -> acceptable frame types in folder names
FrameTypeMapping = Mapping[str, Sequence[str]]


class MatchKind(Enum):
    """Outcome of comparing a file against its folder."""

    MATCH = "match"
    WRONG_SIZE = "wrong size"
    WRONG_TYPE = "wrong type"
    WRONG_SIZE_AND_TYPE = "wrong size and type"


@dataclass(frozen=True)
class UnknownType:
    """The file's frame type abbreviation has no mapping entry."""

    frame_type: str


@dataclass(frozen=True)
class MatchResult:
    """Comparison of a file's attributes against its folder's."""

    size_ok: bool
    type_ok: bool
    suggestions: list[str] = field(default_factory=list)

    @property
    def kind(self) -> MatchKind:
        if self.size_ok and self.type_ok:
            return MatchKind.MATCH
        if self.type_ok:
            return MatchKind.WRONG_SIZE
        if self.size_ok:
            return MatchKind.WRONG_TYPE
        return MatchKind.WRONG_SIZE_AND_TYPE

    @property
    def is_match(self) -> bool:
        return self.size_ok and self.type_ok

    def suggestion_text(self) -> str:
        """Correct folder names, quoted and joined with OR."""
        return " OR ".join(f'"{name}"' for name in self.suggestions)


CheckResult = MatchResult | UnknownType


def check(
    file_attrs: AttributeSet,
    folder_attrs: AttributeSet,
    frame_type_mapping: FrameTypeMapping,
) -> CheckResult:
    """Compare file attributes against folder attributes.

    The folder's frame type is correct if it equals any of the candidates
    mapped from the file's abbreviation. The size must match exactly.

    Args:
        file_attrs: Attributes extracted from the file name.
        folder_attrs: Attributes extracted from the parent folder name.
        frame_type_mapping: Abbreviation to candidate folder frame types.

    Returns:
        UnknownType if the abbreviation is not mapped, otherwise a
        MatchResult carrying the correct folder names on mismatch.

    """
    abbreviation = file_attrs[FRAME_TYPE]
    candidates = frame_type_mapping.get(abbreviation)
    if candidates is None:
        return UnknownType(frame_type=abbreviation)

    file_size = file_attrs[FRAME_SIZE]
    folder_type = folder_attrs.get(FRAME_TYPE, "")

    size_ok = folder_attrs.get(FRAME_SIZE) == file_size
    type_ok = any(folder_type == candidate for candidate in candidates)

    if size_ok and type_ok:
        return MatchResult(size_ok=True, type_ok=True)

    if type_ok:
        suggestions = [f"{file_size} {folder_type}".strip()]
    else:
        suggestions = [f"{file_size} {candidate}".strip() for candidate in candidates]

    return MatchResult(size_ok=size_ok, type_ok=type_ok, suggestions=suggestions)
