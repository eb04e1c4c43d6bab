# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
"""Specs describe one build of one package.

A spec string names a package, optionally a version and any number of
boolean variants::

    lammps@2013.02.12 +mpi +user-omp ~user-sph

``+name`` enables a variant, ``~name`` (or ``-name`` after whitespace)
disables it. Anonymous specs (no package name) are used as conditions,
e.g. ``when="+mpi"`` in recipe directives.

A spec becomes *concrete* once it is checked against its package: the
version is fixed, every declared variant has a value, and each dependency
that applies to the build has an install prefix.
"""
import enum
import re
from typing import Dict, List, NamedTuple, Optional, Union

import lmpkg.config
import lmpkg.error
import lmpkg.version as vn
from lmpkg.util.prefix import Prefix

#: Valid name for packages, variants and dependencies
NAME = r"[a-zA-Z_0-9][a-zA-Z_0-9\-]*"

#: Names of dependencies may also carry '+', e.g. voro++
DEPENDENCY_NAME = r"^[a-zA-Z_0-9][a-zA-Z_0-9\-+.]*$"


class SpecTokens(enum.Enum):
    """Enumeration of the different token kinds of a spec string; each value
    is the regex of the token.

    Order is significant: the first alternative that matches wins.
    """

    VERSION = rf"(?:@\s*[a-zA-Z0-9_.:\-]+)"
    BOOL_VARIANT = rf"(?:[~+-]\s*{NAME})"
    UNQUALIFIED_PACKAGE_NAME = rf"(?:{NAME})"
    WS = r"(?:\s+)"
    UNEXPECTED = r"(?:.[\s]*)"

    def __str__(self):
        return self.name


class Token(NamedTuple):
    """A token of a spec string, with its position in the string."""

    kind: SpecTokens
    value: str
    start: int
    end: int


_TOKEN_REGEX = re.compile("|".join(f"(?P<{kind.name}>{kind.value})" for kind in SpecTokens))


def tokenize(text: str) -> List[Token]:
    """Split a spec string into tokens, dropping whitespace."""
    tokens = []
    for m in _TOKEN_REGEX.finditer(text):
        kind = SpecTokens[m.lastgroup]
        if kind is not SpecTokens.WS:
            tokens.append(Token(kind, m.group(), m.start(), m.end()))
    return tokens


class SpecParseError(lmpkg.error.SpecSyntaxError):
    """Wrapper for ParseError for when we're parsing specs."""

    def __init__(self, message: str, string: str, pos: int) -> None:
        super().__init__(message, long_message=f"{string}\n    {' ' * pos}^")
        self.string = string
        self.pos = pos


def parse(text: str) -> "Spec":
    """Parse a single spec string into an abstract ``Spec``."""
    spec = Spec()
    previous: Optional[Token] = None
    for token in tokenize(text):
        if token.kind == SpecTokens.UNEXPECTED:
            raise SpecParseError("unexpected characters in the spec string", text, token.start)

        if token.kind == SpecTokens.UNQUALIFIED_PACKAGE_NAME:
            if spec.name is not None or previous is not None:
                raise SpecParseError("a spec names a single package", text, token.start)
            spec.name = token.value

        elif token.kind == SpecTokens.VERSION:
            if spec.versions is not None:
                raise SpecParseError("version given twice", text, token.start)
            try:
                spec.versions = vn.ver(token.value[1:])
            except ValueError as e:
                raise SpecParseError(str(e), text, token.start) from e

        elif token.kind == SpecTokens.BOOL_VARIANT:
            if token.value.startswith("-") and previous is not None and previous.end == token.start:
                raise SpecParseError(
                    "'-' negates a variant only after whitespace", text, token.start
                )
            name = token.value[1:].strip()
            value = token.value[0] == "+"
            if spec.variants.get(name, value) != value:
                raise SpecParseError(f"variant '{name}' is both on and off", text, token.start)
            spec.variants[name] = value

        previous = token
    return spec


class Spec:
    """One package build: name, version constraint and variant values."""

    def __init__(self, spec_like: Optional[Union[str, "Spec"]] = None) -> None:
        self.name: Optional[str] = None
        self.versions: Optional[Union[vn.Version, vn.VersionRange]] = None
        self.variants: Dict[str, bool] = {}
        self.dependencies: Dict[str, "Spec"] = {}
        self.prefix: Optional[Prefix] = None
        self._concrete = False

        if isinstance(spec_like, Spec):
            self._dup(spec_like)
        elif spec_like:
            self._dup(parse(spec_like))

    def _dup(self, other: "Spec") -> None:
        self.name = other.name
        self.versions = other.versions
        self.variants = dict(other.variants)
        self.dependencies = {name: dep.copy() for name, dep in other.dependencies.items()}
        self.prefix = other.prefix
        self._concrete = other._concrete

    def copy(self) -> "Spec":
        return Spec(self)

    @property
    def concrete(self) -> bool:
        return self._concrete

    @property
    def version(self) -> vn.Version:
        if not isinstance(self.versions, vn.Version):
            raise lmpkg.error.LmpkgError(f"spec '{self}' does not have a single version")
        return self.versions

    def satisfies(self, other: Union[str, "Spec"]) -> bool:
        """True if this spec meets every constraint of ``other``.

        Variants this spec does not mention never satisfy a constraint
        on them, so conditions are only meaningful on concrete specs.
        """
        other = other if isinstance(other, Spec) else Spec(other)

        if other.name and other.name != self.name:
            return False

        if other.versions is not None:
            if not isinstance(self.versions, vn.Version):
                return False
            if not self.versions.satisfies(other.versions):
                return False

        for name, value in other.variants.items():
            if self.variants.get(name) != value:
                return False

        return True

    def __contains__(self, other) -> bool:
        return self.satisfies(other)

    def __getitem__(self, name: str) -> "Spec":
        """Get the dependency named ``name``."""
        try:
            return self.dependencies[name]
        except KeyError:
            raise KeyError(f"no dependency named '{name}' in {self}") from None

    def format(self, fmt: str = "{name}{@version}") -> str:
        return (
            fmt.replace("{name}", self.name or "")
            .replace("{@version}", f"@{self.versions}" if self.versions is not None else "")
            .replace("{version}", str(self.versions or ""))
        )

    def __eq__(self, other):
        if not isinstance(other, Spec):
            return NotImplemented
        return (self.name, self.versions, self.variants) == (
            other.name,
            other.versions,
            other.variants,
        )

    def __hash__(self):
        return hash((self.name, self.versions, tuple(sorted(self.variants.items()))))

    def __str__(self):
        out = self.name or ""
        if self.versions is not None:
            out += f"@{self.versions}"
        for name, value in self.variants.items():
            out += ("+" if value else "~") + name
        return out

    def __repr__(self):
        return f"Spec({str(self)!r})"


def concretize(spec: Spec, pkg_cls, dependency_prefix=None) -> Spec:
    """Return a concrete copy of ``spec`` for the recipe ``pkg_cls``.

    Arguments:
        spec: abstract spec to concretize
        pkg_cls: recipe class whose directives constrain the spec
        dependency_prefix: callable mapping a dependency name to its install
            prefix; defaults to the configured external prefixes
    """
    if spec.name and spec.name != pkg_cls.name:
        raise lmpkg.error.LmpkgError(f"cannot concretize '{spec}' with package {pkg_cls.name}")

    concrete = spec.copy()
    concrete.name = pkg_cls.name

    unknown = [v for v in concrete.variants if v not in pkg_cls.variants]
    if unknown:
        raise lmpkg.error.UnknownVariantError(pkg_cls.name, unknown)

    # version: the requested one, else the newest release that is not a branch
    candidates = sorted(pkg_cls.versions, reverse=True)
    if concrete.versions is not None:
        candidates = [v for v in candidates if v.satisfies(concrete.versions)]
    else:
        releases = [v for v in candidates if not v.is_infinity]
        candidates = releases or candidates
    if not candidates:
        raise lmpkg.error.NoSuchVersionError(
            f"no version of {pkg_cls.name} satisfies '@{concrete.versions}'",
            long_message="known versions: "
            + ", ".join(str(v) for v in sorted(pkg_cls.versions, reverse=True)),
        )
    concrete.versions = candidates[0]

    # variant defaults, in declaration order
    variants = {}
    for name, variant in pkg_cls.variants.items():
        variants[name] = concrete.variants.get(name, variant.default)
    concrete.variants = variants

    if dependency_prefix is None:
        dependency_prefix = lmpkg.config.dependency_prefix

    concrete.dependencies = {}
    for dep_name, dependency in pkg_cls.dependencies.items():
        if dependency.when is not None and not concrete.satisfies(dependency.when):
            continue
        dep = Spec()
        dep.name = dep_name
        dep.prefix = Prefix(dependency_prefix(dep_name))
        dep._concrete = True
        concrete.dependencies[dep_name] = dep

    concrete._concrete = True
    return concrete
