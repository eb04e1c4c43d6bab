# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
"""
This module contains all routines related to setting up the package
build environment.  All of this is set up by package.py just before
install() is called.

There are two parts to the build environment:

1. Python build environment (i.e. install() method)

   This is how things are set up when install() is called.  lmpkg
   takes advantage of each package being in its own module by adding a
   bunch of command-like functions (like make) to the package's module
   scope.  This allows package writers to call them all directly in
   Package.install() without writing 'self.' everywhere.

2. Build execution environment

   This is the set of environment variables, like CC, CXX, FC and the
   MPI wrapper variables, that the upstream build tools read. The
   configured compilers are exported first, then the package's own
   ``setup_build_environment`` adjusts them.
"""
import contextlib
import os
import sys
from typing import List, Optional, Tuple

import lmpkg.config
import lmpkg.tty as tty
from lmpkg.util.executable import Executable

#: Variables exported from the ``compilers`` config section
COMPILER_VARIABLES = (("CC", "cc"), ("CXX", "cxx"), ("FC", "fc"), ("F77", "f77"))

#: Variables exported from the ``mpi`` config section for builds depending on mpi
MPI_VARIABLES = (
    ("MPICC", "mpicc"),
    ("MPICXX", "mpicxx"),
    ("MPIF77", "mpif77"),
    ("MPIFC", "mpif90"),
)


class EnvironmentModifications:
    """Keeps track of requests to modify the current environment."""

    def __init__(self) -> None:
        self.env_modifications: List[Tuple[str, str, Optional[str], str]] = []

    def __iter__(self):
        return iter(self.env_modifications)

    def __len__(self):
        return len(self.env_modifications)

    def set(self, name: str, value: str) -> None:
        """Stores a request to set an environment variable.

        Args:
            name: name of the environment variable
            value: value of the environment variable
        """
        self.env_modifications.append(("set", name, str(value), ""))

    def unset(self, name: str) -> None:
        """Stores a request to unset an environment variable."""
        self.env_modifications.append(("unset", name, None, ""))

    def append_flags(self, name: str, value: str, sep: str = " ") -> None:
        """Stores a request to append flags to an environment variable.

        Args:
            name: name of the environment variable
            value: flags to be appended
            sep: separator for the flags (default: " ")
        """
        self.env_modifications.append(("append", name, str(value), sep))

    def append_path(self, name: str, path: str, separator: str = os.pathsep) -> None:
        """Stores a request to append a path to list of paths."""
        self.env_modifications.append(("append", name, str(path), separator))

    def prepend_path(self, name: str, path: str, separator: str = os.pathsep) -> None:
        """Stores a request to prepend a path to list of paths."""
        self.env_modifications.append(("prepend", name, str(path), separator))

    def apply_modifications(self, env=None) -> None:
        """Applies the modifications and clears the list.

        Args:
            env: environment to modify, defaults to ``os.environ``
        """
        env = os.environ if env is None else env
        for action, name, value, sep in self.env_modifications:
            tty.debug(f"ENV {action.upper()} {name} {value if value is not None else ''}", level=2)
            current = env.get(name)
            if action == "set":
                env[name] = value
            elif action == "unset":
                env.pop(name, None)
            elif action == "append":
                env[name] = value if not current else current + sep + value
            elif action == "prepend":
                env[name] = value if not current else value + sep + current
        self.env_modifications = []


@contextlib.contextmanager
def preserve_environment():
    """Restore ``os.environ`` to its current content on exit."""
    saved = os.environ.copy()
    try:
        yield
    finally:
        os.environ.clear()
        os.environ.update(saved)


class MakeExecutable(Executable):
    """Special callable executable object for make so the user can specify
    parallelism options on a per-invocation basis.  Specifying
    'parallel' to the call will override whatever the package's
    global setting is, so you can either default to true or false and
    override particular calls.
    """

    def __init__(self, name: str, jobs: int) -> None:
        super().__init__(name)
        self.jobs = jobs

    def __call__(self, *args, **kwargs):
        """parallel from kwargs is swallowed and used here;
        remaining arguments are passed through to the superclass.
        """
        parallel = kwargs.pop("parallel", True)
        jobs = self.jobs if parallel else 1
        if jobs > 1:
            args = ("-j{0}".format(jobs),) + args

        return super().__call__(*args, **kwargs)


def set_compiler_environment_variables(pkg, env: EnvironmentModifications) -> None:
    """Export the configured compilers, and the MPI wrappers if the build depends on mpi."""
    compilers = lmpkg.config.get("compilers")
    for var, key in COMPILER_VARIABLES:
        if compilers.get(key):
            env.set(var, compilers[key])

    if "mpi" in pkg.spec.dependencies:
        wrappers = lmpkg.config.get("mpi")
        for var, key in MPI_VARIABLES:
            if wrappers.get(key):
                env.set(var, wrappers[key])


def set_module_variables_for_package(pkg) -> None:
    """Populate the Python module of a package with some useful global names.
    This makes things easier for package writers.
    """
    module = pkg.module

    jobs = lmpkg.config.get("config:build_jobs", 1) if pkg.parallel else 1
    module.make_jobs = jobs
    module.make = MakeExecutable("make", jobs)
    module.python = Executable(lmpkg.config.get("config:python") or sys.executable)


def setup_package(pkg) -> EnvironmentModifications:
    """Execute all environment setup routines and apply them to ``os.environ``.

    Callers wrap this in ``preserve_environment()`` so that the changes do
    not outlive the build.
    """
    env = EnvironmentModifications()
    if not pkg.parallel:
        env.set("MAKEFLAGS", "-j1")
    set_compiler_environment_variables(pkg, env)
    pkg.setup_build_environment(env)

    applied = EnvironmentModifications()
    applied.env_modifications = list(env.env_modifications)
    env.apply_modifications()

    set_module_variables_for_package(pkg)
    return applied
