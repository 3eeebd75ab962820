"""
Schema version values.

Versions are written in three forms:

- bare decimal:       "0.001", "2.001"
- v-prefixed decimal: "v0.001"
- dotted:             "2.001.001"

A decimal fraction is read in groups of three digits, so "0.001" and
"0.3" become the components (0, 1) and (0, 300). Dotted forms use each
component as written. Trailing zero components are ignored when comparing,
so "2.0", "2" and "2.000.000" are equal.
"""

import re
from functools import total_ordering
from typing import Any, Iterable, Iterator

from vschema.core.exceptions import InvalidVersionFormat

_DECIMAL_RE = re.compile(r"^v?(\d+)(?:\.(\d+))?$")
_DOTTED_RE = re.compile(r"^v?\d+(?:\.\d+){2,}$")


def _strip_trailing_zeros(parts: tuple[int, ...]) -> tuple[int, ...]:
    end = len(parts)
    while end > 1 and parts[end - 1] == 0:
        end -= 1
    return parts[:end]


@total_ordering
class Version:
    """
    A comparable schema version.

    Use Version.parse() to build one from a string. The original text is kept
    for display and persistence; comparison and hashing use the normalized
    numeric components.
    """

    __slots__ = ("text", "parts", "_key")

    def __init__(self, text: str, parts: tuple[int, ...]) -> None:
        self.text = text
        self.parts = parts
        self._key = _strip_trailing_zeros(parts)

    @classmethod
    def parse(cls, value: Any) -> "Version":
        """
        Parse a version literal.

        Args:
            value: Version string, int, float or an existing Version

        Returns:
            Parsed Version

        Raises:
            InvalidVersionFormat: If the value is not a recognized version form
        """
        if isinstance(value, Version):
            return value
        if isinstance(value, bool):
            raise InvalidVersionFormat(value)
        if isinstance(value, (int, float)):
            value = repr(value)
        if not isinstance(value, str):
            raise InvalidVersionFormat(value)

        text = value.strip()

        if _DOTTED_RE.match(text):
            parts = tuple(int(p) for p in text.lstrip("v").split("."))
            return cls(text, parts)

        match = _DECIMAL_RE.match(text)
        if not match:
            raise InvalidVersionFormat(value)

        integer, fraction = match.groups()
        parts = [int(integer)]
        if fraction:
            padded = fraction + "0" * (-len(fraction) % 3)
            parts.extend(int(padded[i : i + 3]) for i in range(0, len(padded), 3))
        return cls(text, tuple(parts))

    @property
    def normal(self) -> str:
        """Dotted normal form, e.g. "v0.1.0" for "0.001"."""
        parts = list(self._key)
        while len(parts) < 3:
            parts.append(0)
        return "v" + ".".join(str(p) for p in parts)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key == other._key

    def __lt__(self, other: "Version") -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key < other._key

    def __hash__(self) -> int:
        return hash(self._key)

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"Version({self.text!r})"


def parse(value: Any) -> Version:
    """Parse a version literal. See Version.parse()."""
    return Version.parse(value)


def compare(a: Any, b: Any) -> int:
    """
    Compare two versions.

    Returns:
        -1 if a < b, 0 if a == b, 1 if a > b
    """
    va, vb = Version.parse(a), Version.parse(b)
    if va < vb:
        return -1
    if va > vb:
        return 1
    return 0


class VersionSet:
    """
    Deduplicated collection of discovered versions.

    Versions that compare equal are stored once; the first spelling seen is
    kept.
    """

    def __init__(self, versions: Iterable[Any] = ()) -> None:
        self._versions: dict[Version, Version] = {}
        for version in versions:
            self.add(version)

    def add(self, version: Any) -> Version:
        """Insert a version (idempotent) and return the stored instance."""
        parsed = Version.parse(version)
        return self._versions.setdefault(parsed, parsed)

    def update(self, versions: Iterable[Any]) -> None:
        for version in versions:
            self.add(version)

    def sorted(self) -> list[Version]:
        """Return the versions in ascending order."""
        return sorted(self._versions)

    def __contains__(self, version: object) -> bool:
        try:
            return Version.parse(version) in self._versions
        except InvalidVersionFormat:
            return False

    def __iter__(self) -> Iterator[Version]:
        return iter(self.sorted())

    def __len__(self) -> int:
        return len(self._versions)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VersionSet):
            return NotImplemented
        return set(self._versions) == set(other._versions)

    def __repr__(self) -> str:
        return f"VersionSet({[str(v) for v in self.sorted()]!r})"
