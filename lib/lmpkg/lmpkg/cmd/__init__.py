# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
import argparse
import importlib
from typing import List

import lmpkg.error
import lmpkg.repo
import lmpkg.spec

#: Names of the command modules, in the order lmpkg --help lists them
all_commands: List[str] = ["install", "fetch", "info", "test", "mirror", "config"]


def python_name(cmd_name: str) -> str:
    """Convert ``-`` to ``_`` in command name, to make a valid identifier."""
    return cmd_name.replace("-", "_")


def get_module(cmd_name: str):
    """Imports the module for a particular command name and returns it.

    Parameters:
        cmd_name: name of the command for which to get a module
            (contains ``-``, not ``_``).
    """
    module = importlib.import_module(f"{__name__}.{python_name(cmd_name)}")

    attr_setdefault(module, "description", "")
    attr_setdefault(module, "level", "short")

    if not hasattr(module, python_name(cmd_name)):
        raise lmpkg.error.LmpkgError(
            f"Command module {module.__name__} must define function '{python_name(cmd_name)}'."
        )
    return module


def get_command(cmd_name: str):
    """Imports the command function associated with cmd_name."""
    return getattr(get_module(cmd_name), python_name(cmd_name))


def attr_setdefault(obj, name, value):
    """Like dict.setdefault, but for objects."""
    if not hasattr(obj, name):
        setattr(obj, name, value)
    return getattr(obj, name)


def parse_specs(args) -> List[lmpkg.spec.Spec]:
    """Turn the positional spec arguments of a command into specs.

    The words of a command line are joined first so that
    ``lmpkg install lammps +mpi`` and ``lmpkg install "lammps +mpi"``
    mean the same thing; a new spec starts at every package name.
    """
    if isinstance(args, str):
        args = [args]
    specs: List[lmpkg.spec.Spec] = []
    current: List[str] = []
    for arg in " ".join(args).split():
        if current and arg[0] not in "+~-@":
            specs.append(lmpkg.spec.Spec(" ".join(current)))
            current = []
        current.append(arg)
    if current:
        specs.append(lmpkg.spec.Spec(" ".join(current)))
    return specs


def packages_from_args(args):
    """Concrete package objects for the specs on the command line."""
    specs = parse_specs(args)
    if not specs:
        raise lmpkg.error.LmpkgError("no package specs given")
    return [lmpkg.repo.get_package(spec) for spec in specs]


def add_spec_arguments(subparser) -> None:
    # everything after the first spec word belongs to the specs, so that
    # variants negated with "-" are not taken for options
    subparser.add_argument(
        "specs",
        nargs=argparse.REMAINDER,
        metavar="spec",
        help="package spec, e.g. 'lammps +mpi ~user-sph'",
    )
