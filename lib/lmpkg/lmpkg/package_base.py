# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
"""This is where most of the action happens in lmpkg.

The lmpkg package class structure is based strongly on Homebrew
(http://brew.sh/), mainly because Homebrew makes it very easy to create
packages.

A package is a class that declares how to download, patch, build and
install one piece of software. Its class body holds directives (see
``lmpkg.directives``); its methods are the build phases.
"""
import hashlib
import inspect
import os
import sys
from typing import Any, Dict, List, Optional

import lmpkg.config
import lmpkg.error
import lmpkg.fetch_strategy as fs
import lmpkg.mirrors.layout
import lmpkg.stage
from lmpkg.directives import DirectiveMeta
from lmpkg.util.prefix import Prefix


class PackageMeta(DirectiveMeta):
    """Package metaclass; names the package before its directives run."""

    def __init__(cls, name, bases, attr_dict):
        if "name" not in attr_dict:
            cls.name = cls.__module__.split(".")[-1].replace("_", "-")
        super().__init__(name, bases, attr_dict)


class PackageBase(metaclass=PackageMeta):
    """This is the superclass for all lmpkg packages.

    ***The Package class***

    At its core, a package consists of a set of software to be installed.
    A package may focus on a piece of software and its associated software
    dependencies or it may simply be a set, or bundle, of software.  The
    former requires defining how to fetch, verify (via, e.g., sha256), build,
    and install that software and the packages it depends on, so that
    dependencies can be installed along with the package itself.

    Packages are written in pure Python.

    There are two main parts of a lmpkg package:

      1. **The package class**.  Classes contain ``directives``, which are
         special functions, that add metadata (versions, patches,
         dependencies, and other information) to packages (see
         ``directives.py``). Directives provide the constraints that are
         used as input to the concretizer.

      2. **Package instances**. Once instantiated, a package is
         essentially a *software installer*.  lmpkg calls methods like
         ``fetch()``, ``patch()`` and ``install()`` on the
         package object to build and install software.

    Phases run in the order given by ``phases``, each as
    ``phase(spec, prefix)`` from inside the expanded source directory.
    Methods whose name starts with ``test_`` are run after install when
    tests are requested, each in its own temporary directory.
    """

    #: By default, packages are not virtual
    homepage: Optional[str] = None
    url: Optional[str] = None
    git: Optional[str] = None

    #: Phases of the build, run in order
    phases: List[str] = []

    #: By default we build in parallel.  Subclasses can override this.
    parallel = True

    #: Whether the post-install test methods run
    run_tests = False

    #: Dictionaries filled in by directives
    licenses: Dict[str, str]
    versions: Dict[Any, Dict[str, Any]]
    variants: Dict[str, Any]
    dependencies: Dict[str, Any]
    patches: Dict[str, Any]

    def __init__(self, spec) -> None:
        if not spec.concrete:
            raise ValueError("Can only create packages with concrete specs")
        if spec.name != self.name:
            raise ValueError(f"spec '{spec}' does not match package {self.name}")

        self.spec = spec
        self._stage: Optional[lmpkg.stage.Stage] = None
        self._fetcher: Optional[fs.FetchStrategy] = None

        if spec.prefix is None:
            spec.prefix = Prefix(self.default_prefix())

    def default_prefix(self) -> str:
        """``<install_root>/<name>-<version>-<hash>``; the hash keeps variant builds apart."""
        root = lmpkg.config.path_option("config:install_tree:root")
        digest = hashlib.sha256(str(self.spec).encode("utf-8")).hexdigest()[:7]
        return os.path.join(root, f"{self.name}-{self.spec.version}-{digest}")

    @property
    def version(self):
        return self.spec.version

    @property
    def prefix(self) -> Prefix:
        """Get the prefix into which this package should be installed."""
        return self.spec.prefix

    @property
    def module(self):
        """Module object (not just the name) that this package is defined in."""
        return sys.modules[self.__class__.__module__]

    @property
    def package_dir(self) -> str:
        """Directory where the package.py file lives."""
        return os.path.abspath(os.path.dirname(inspect.getfile(self.__class__)))

    def url_for_version(self, version) -> str:
        """Returns a URL from which the specified version of this package
        may be downloaded.

        version: class Version
            The version for which a URL is sought.
        """
        if not self.url:
            raise NoURLError(self.__class__)
        return self.url

    @property
    def fetcher(self) -> fs.FetchStrategy:
        if self._fetcher is None:
            self._fetcher = fs.for_package_version(self)
        return self._fetcher

    @property
    def mirror_layout(self) -> Optional[lmpkg.mirrors.layout.MirrorLayout]:
        """Where the source of this version lives in a mirror; ``None`` if it cannot be mirrored."""
        if not isinstance(self.fetcher, fs.URLFetchStrategy):
            return None
        per_package_ref = os.path.join(self.name, f"{self.name}-{self.version}")
        return lmpkg.mirrors.layout.default_mirror_layout(self.fetcher, per_package_ref)

    @property
    def stage(self) -> lmpkg.stage.Stage:
        """Get the build staging area for this package.

        This automatically instantiates a ``Stage`` object if the package
        doesn't have one yet, but it does not create the Stage directory
        on the filesystem.
        """
        if self._stage is None:
            self._stage = lmpkg.stage.Stage(
                self.fetcher, name=f"{self.name}-{self.version}", mirror_layout=self.mirror_layout
            )
        return self._stage

    def do_fetch(self) -> None:
        """Creates a stage directory and downloads the tarball for this package.
        Working directory will be set to the stage directory.
        """
        self.stage.create()
        self.stage.fetch()
        self.stage.check()
        self.stage.cache_local()

    def do_stage(self) -> None:
        """Unpacks and expands the fetched tarball."""
        self.do_fetch()
        self.stage.expand_archive()

    def patches_to_apply(self) -> List[Any]:
        """Patches declared with the ``patch`` directive that apply to this spec."""
        return [p for p in self.patches.values() if p.applies_to(self.spec)]

    def do_patch(self) -> None:
        """Applies patches if they haven't been applied already."""
        for patch in self.patches_to_apply():
            patch.apply(self.stage)

        # the package's own patch() method runs in the source directory
        from lmpkg.util.filesystem import working_dir

        with working_dir(self.stage.source_path):
            self.patch()

    def patch(self) -> None:
        """Default patch implementation is a no-op."""
        pass

    def setup_build_environment(self, env) -> None:
        """Sets up the build environment for a package.

        This method will be called before the current package prefix exists in
        lmpkg's store.

        Args:
            env (lmpkg.build_environment.EnvironmentModifications): environment
                modifications to be applied when the package is built. Package authors
                can call methods on it to alter the build environment.
        """
        pass

    @property
    def caveats(self) -> Optional[str]:
        """Text shown to the user after a successful install."""
        return None

    def install_test_names(self) -> List[str]:
        """Names of the recipe's post-install ``test_*`` methods, in alphabetical order."""
        return sorted(
            name
            for name in dir(self.__class__)
            if name.startswith("test_")
            and not hasattr(PackageBase, name)
            and callable(getattr(self.__class__, name))
        )

    def __str__(self):
        return f"{self.name}@{self.version}"

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.spec}>"


class Package(PackageBase):
    """General purpose class with a single ``install`` phase that needs to be
    coded by packagers.
    """

    #: The one and only phase
    phases = ["install"]

    def install(self, spec, prefix):
        raise NotImplementedError(f"{self.name} does not implement install()")


class NoURLError(lmpkg.error.FetchError):
    """Raised when there is no url available for a package."""

    def __init__(self, cls):
        super().__init__("Package %s has no version with a URL." % cls.__name__)
