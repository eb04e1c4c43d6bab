# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
"""lmpkg.package is a set of useful build tools and directives for packages.

Everything in this module is automatically imported into lmpkg package files.
"""
import os
from os import chdir, environ, getcwd, makedirs, mkdir, remove, removedirs
from shutil import move, rmtree

from lmpkg.build_environment import EnvironmentModifications, MakeExecutable
from lmpkg.directives import depends_on, license, patch, variant, version
from lmpkg.error import InstallError, LmpkgError, NoChecksumError
from lmpkg.package_base import Package, PackageBase
from lmpkg.util.executable import Executable, ProcessError, which
from lmpkg.util.filesystem import (
    FileFilter,
    FilterError,
    change_make_var,
    change_make_vars,
    filter_file,
    install,
    install_tree,
    join_path,
    mkdirp,
    rename,
    set_executable,
    touch,
    working_dir,
)
from lmpkg.util.prefix import Prefix
from lmpkg.version import Version, ver

#: The build environment, as seen by the package's commands
env = environ
