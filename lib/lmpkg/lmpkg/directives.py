# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
"""This package contains directives that can be used within a package.

Directives are functions that can be called inside a package
definition to modify the package, for example:

    class Lammps(Package):
        version("2013.02.12", sha1="e4c1cc179e8159e7bd2dd958d3f5c8909a315af8")
        variant("mpi", default=False, description="Build lammps with MPI support")
        depends_on("mpi", when="+mpi")

``version``, ``variant``, ``depends_on`` etc. are lmpkg directives.

The available directives are:

  * ``license``
  * ``version``
  * ``variant``
  * ``depends_on``
  * ``patch``

"""
import functools
import re
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import lmpkg.error
import lmpkg.patch
import lmpkg.spec
import lmpkg.util.crypto
import lmpkg.version

__all__ = ["DirectiveError", "license", "version", "variant", "depends_on", "patch"]

#: Names of the dictionaries on package classes that directives fill in
directive_dict_names = ("licenses", "versions", "variants", "dependencies", "patches")


class DirectiveMeta(type):
    """Flushes the directives that were temporarily stored in the staging
    area into the package.
    """

    #: Directives called in the body of the class currently being defined
    _directives_to_be_executed: List[Callable[[Any], None]] = []

    def __new__(cls, name, bases, attr_dict):
        # Each recipe class gets fresh directive dictionaries, seeded with
        # copies of those of its bases so subclasses can extend a recipe
        for dict_name in directive_dict_names:
            merged: Dict = {}
            for base in reversed(bases):
                merged.update(getattr(base, dict_name, {}))
            attr_dict[dict_name] = merged
        return super().__new__(cls, name, bases, attr_dict)

    def __init__(cls, name, bases, attr_dict):
        # Execute all the directives that were staged in the class body
        for directive in DirectiveMeta._directives_to_be_executed:
            directive(cls)
        DirectiveMeta._directives_to_be_executed = []
        super().__init__(name, bases, attr_dict)

    @staticmethod
    def directive(fn):
        """Decorator for lmpkg directives.

        The decorated function returns a callable taking the package class;
        the call is deferred until the class object exists.
        """

        @functools.wraps(fn)
        def _wrapper(*args, **kwargs):
            result = fn(*args, **kwargs)
            DirectiveMeta._directives_to_be_executed.append(result)
            return result

        return _wrapper


directive = DirectiveMeta.directive


def _make_when_spec(value: Optional[str]) -> Optional[lmpkg.spec.Spec]:
    if value is None:
        return None
    when = lmpkg.spec.Spec(value)
    if when.name is not None:
        raise DirectiveError(f"'when' conditions must be anonymous, got '{value}'")
    return when


class Variant:
    """A boolean build option of a package."""

    def __init__(self, name: str, default: bool, description: str) -> None:
        self.name = name
        self.default = default
        self.description = description

    def __repr__(self):
        return f"Variant({self.name!r}, default={self.default!r})"


class Dependency:
    """Another package that must be present when building this one."""

    def __init__(
        self,
        name: str,
        when: Optional[lmpkg.spec.Spec] = None,
        type: Tuple[str, ...] = ("build", "link"),
    ) -> None:
        self.name = name
        self.when = when
        self.type = type

    def __repr__(self):
        return f"Dependency({self.name!r}, when={str(self.when) if self.when else None!r})"


@directive
def license(license_identifier: str):
    """Add a new license directive, to specify the SPDX identifier the software is
    distributed under.

    Args:
        license_identifier: SPDX identifier for the license
    """

    def _execute_license(pkg):
        pkg.licenses[license_identifier] = license_identifier

    return _execute_license


@directive
def version(ver: Union[str, int], checksum: Optional[str] = None, **kwargs):
    """Adds a version and, if appropriate, metadata for fetching its code.

    The ``version`` directives are aggregated into a ``versions`` dictionary
    attribute with ``Version`` keys and metadata values, where the metadata
    is stored as a dictionary of ``kwargs``.

    Keyword Arguments:
        url: download URL of this version, overriding ``url_for_version``
        md5, sha1, sha224, sha256, sha384, sha512: archive checksum
        git, branch, tag, commit: fetch from a git repository instead
        expand: whether to expand the downloaded archive
        extension: archive extension when the URL does not show it
        deprecated: whether the version should be avoided
    """
    kwargs = dict(kwargs)
    if checksum is not None:
        if not re.match(r"^[0-9a-fA-F]+$", checksum):
            raise DirectiveError(f"version {ver}: checksum is not a hex digest")
        kwargs[lmpkg.util.crypto.hash_algo_for_digest(checksum)] = checksum

    algos = [algo for algo in lmpkg.util.crypto.hashes if algo in kwargs]
    if len(algos) > 1:
        raise DirectiveError(f"version {ver}: only one checksum may be given, got {algos}")

    if not algos and not any(k in kwargs for k in ("git", "branch", "tag", "commit")):
        raise DirectiveError(f"version {ver}: needs a checksum or a git reference")

    def _execute_version(pkg):
        if "branch" in kwargs or "tag" in kwargs or "commit" in kwargs:
            kwargs.setdefault("git", getattr(pkg, "git", None))
            if not kwargs["git"]:
                raise DirectiveError(f"{pkg.name}: version {ver} needs a 'git' url")
        pkg.versions[lmpkg.version.Version(str(ver))] = kwargs

    return _execute_version


@directive
def variant(
    name: str,
    default: bool = False,
    description: str = "",
    when: Optional[str] = None,
):
    """Define a boolean variant for the package.

    Args:
        name: Name of the variant
        default: Default value for the variant
        description: Description of the purpose of the variant
        when: optional condition on the rest of the spec, unused for
            boolean variants but accepted for symmetry with ``depends_on``
    """
    if not re.match(lmpkg.spec.NAME + "$", name):
        raise DirectiveError(f"invalid variant name: '{name}'")
    if not isinstance(default, bool):
        raise DirectiveError(f"variant '{name}': the default must be True or False")
    _make_when_spec(when)

    def _execute_variant(pkg):
        pkg.variants[name] = Variant(name, default, description)

    return _execute_variant


@directive
def depends_on(spec: str, when: Optional[str] = None, type: Union[str, Tuple[str, ...]] = ("build", "link")):
    """Creates a dict of deps with specs defining when they apply.

    Args:
        spec: name of the dependency
        when: condition under which the package depends on it
        type: strings describing dependency relationship, as in
            "build", "link", "run"
    """
    if not re.match(lmpkg.spec.DEPENDENCY_NAME, spec):
        raise DirectiveError(f"invalid dependency name: '{spec}'")
    when_spec = _make_when_spec(when)
    deptypes = (type,) if isinstance(type, str) else tuple(type)

    def _execute_depends_on(pkg):
        pkg.dependencies[spec] = Dependency(spec, when_spec, deptypes)

    return _execute_depends_on


@directive
def patch(
    url_or_filename: str,
    sha256: Optional[str] = None,
    when: Optional[str] = None,
    level: int = 1,
    working_dir: str = ".",
):
    """Packages can declare patches to apply to source.  Patches are
    fetched from ``url_or_filename`` and applied with ``patch -p<level>`` in
    ``working_dir`` (relative to the source root) just after the source
    has been expanded.

    Args:
        url_or_filename: URL of the patch, any scheme ``urllib`` can open, or
            a file name relative to the package's directory
        sha256: checksum of the patch; patches published without one are
            applied with a warning
        when: condition on the spec for applying the patch
        level: patch level (as in the patch shell command)
        working_dir: path within the source directory where patch should be applied
    """
    when_spec = _make_when_spec(when)

    def _execute_patch(pkg):
        pkg.patches[url_or_filename] = lmpkg.patch.from_directive(
            pkg, url_or_filename, sha256=sha256, when=when_spec, level=level, working_dir=working_dir
        )

    return _execute_patch


class DirectiveError(lmpkg.error.LmpkgError):
    """This is raised when something is wrong with a package directive."""
