# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
"""Versions and version ranges.

A ``Version`` is a string like ``2013.02.12`` split into numeric and
alphabetic components, compared component by component. A handful of
branch names (``develop``, ``main``, ``master``, ``head``, ``trunk``) are
"infinity versions": newer than every numbered release.

A ``VersionRange`` is written ``lo:hi`` where either end may be omitted;
both ends are inclusive and ``hi`` matches as a prefix, so ``:2013`` contains
``2013.02.12``.
"""
import re
from functools import total_ordering
from typing import Optional, Tuple, Union

#: Branch names that sort above any numbered version, lowest first
infinity_versions = ["stable", "trunk", "head", "master", "main", "develop"]

COMPONENT_RE = re.compile(r"(?:(\d+)|([a-zA-Z]+))")


def _parse(string: str) -> Tuple:
    components = []
    for number, alpha in COMPONENT_RE.findall(string):
        components.append(int(number) if number else alpha)
    return tuple(components)


@total_ordering
class Version:
    """A single concrete version."""

    __slots__ = ["string", "version"]

    def __init__(self, string: Union[str, "Version"]) -> None:
        string = str(string).strip()
        if not string or not re.match(r"^[a-zA-Z0-9_.\-]+$", string):
            raise ValueError(f"Bad characters in version string: {string!r}")
        self.string = string
        self.version = _parse(string)

    @property
    def is_infinity(self) -> bool:
        return self.string in infinity_versions

    def _key(self):
        if self.is_infinity:
            return (1, infinity_versions.index(self.string), ())
        # alphabetic components sort before numeric ones in the same position
        return (0, 0, tuple((1, c) if isinstance(c, int) else (0, c) for c in self.version))

    def up_to(self, index: int) -> "Version":
        """The version truncated to its first ``index`` components."""
        return Version(".".join(str(c) for c in self.version[:index]))

    @property
    def dotted(self) -> str:
        return ".".join(str(c) for c in self.version)

    def __len__(self):
        return len(self.version)

    def __getitem__(self, idx):
        return self.version[idx]

    def __eq__(self, other):
        if not isinstance(other, Version):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other):
        if not isinstance(other, Version):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self):
        return hash(self._key())

    def __str__(self):
        return self.string

    def __repr__(self):
        return f"Version({self.string!r})"

    def satisfies(self, other: Union["Version", "VersionRange"]) -> bool:
        if isinstance(other, VersionRange):
            return other.contains(self)
        return self == other


class VersionRange:
    """An inclusive range of versions; ``None`` means unbounded."""

    def __init__(self, lo: Optional[Version], hi: Optional[Version]) -> None:
        self.lo = lo
        self.hi = hi

    def contains(self, version: Version) -> bool:
        if self.lo is not None and version < self.lo:
            return False
        if self.hi is not None and not (
            version <= self.hi
            or (not version.is_infinity and version.up_to(len(self.hi)) == self.hi)
        ):
            return False
        return True

    def __eq__(self, other):
        return isinstance(other, VersionRange) and (self.lo, self.hi) == (other.lo, other.hi)

    def __hash__(self):
        return hash((self.lo, self.hi))

    def __str__(self):
        return f"{self.lo or ''}:{self.hi or ''}"

    def __repr__(self):
        return f"VersionRange({self.lo!r}, {self.hi!r})"


def ver(string: str) -> Union[Version, VersionRange]:
    """Parse a version or a ``lo:hi`` range."""
    string = str(string).strip()
    if ":" in string:
        lo, hi = string.split(":", 1)
        return VersionRange(Version(lo) if lo else None, Version(hi) if hi else None)
    return Version(string)
