"""Extract frame attributes from file and folder names."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Iterable

from .config import FRAME_SIZE, FRAME_TYPE

# Attribute name ("frame_type", "frame_size") -> lowercase, trimmed value
AttributeSet = dict[str, str]


@dataclass(frozen=True)
class ParseFailure:
    """A name that did not yield a mandatory attribute."""

    name: str
    kind: str  # "missing frame_type" or "missing frame_size"

    def __str__(self) -> str:
        return f'{self.kind}: "{self.name}"'


ExtractResult = AttributeSet | ParseFailure


class NamePatterns:
    """Ordered list of independently compiled name patterns.

    Patterns are tried left to right and the first one that matches wins;
    each pattern keeps its own anchoring.
    """

    def __init__(self, patterns: Iterable[str]) -> None:
        """Compile the patterns.

        Args:
            patterns: Regex sources, expected to be validated already.

        """
        self._patterns = [re.compile(p) for p in patterns]

    def __len__(self) -> int:
        return len(self._patterns)

    def match(self, name: str) -> AttributeSet:
        """Named groups captured by the first matching pattern.

        Groups that did not participate, or captured only whitespace, are
        left out. An empty result means no pattern matched.

        """
        for pattern in self._patterns:
            if m := pattern.search(name):
                return {
                    group: value.strip().lower()
                    for group, value in m.groupdict().items()
                    if value is not None and value.strip()
                }
        return {}


def extract(name: str, patterns: NamePatterns | Iterable[str]) -> AttributeSet:
    """Extract whatever named attributes the first matching pattern yields."""
    if not isinstance(patterns, NamePatterns):
        patterns = NamePatterns(patterns)
    return patterns.match(name)


def extract_file_attributes(file_name: str, patterns: NamePatterns | Iterable[str]) -> ExtractResult:
    """Extract attributes from a file name.

    The extension is stripped before matching. Both ``frame_type`` and
    ``frame_size`` are mandatory.

    Args:
        file_name: Base name of the file, with or without extension.
        patterns: File name patterns.

    Returns:
        The attributes, or a ParseFailure naming the first missing one.

    """
    stem, _ext = os.path.splitext(file_name)
    attrs = extract(stem, patterns)

    if FRAME_TYPE not in attrs:
        return ParseFailure(name=file_name, kind=f"missing {FRAME_TYPE}")
    if FRAME_SIZE not in attrs:
        return ParseFailure(name=file_name, kind=f"missing {FRAME_SIZE}")

    return attrs


def extract_folder_attributes(folder_name: str, patterns: NamePatterns | Iterable[str]) -> ExtractResult:
    """Extract attributes from a folder name.

    ``frame_size`` is mandatory; a missing ``frame_type`` is reported as the
    empty string, meaning an unframed print.

    Args:
        folder_name: Base name of the folder.
        patterns: Folder name patterns.

    Returns:
        The attributes, or a ParseFailure if no frame size was found.

    """
    attrs = extract(folder_name, patterns)

    if FRAME_SIZE not in attrs:
        return ParseFailure(name=folder_name, kind=f"missing {FRAME_SIZE}")

    attrs.setdefault(FRAME_TYPE, "")
    return attrs
