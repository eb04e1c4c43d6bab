# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
"""Utilities for turning paths from configuration files into real paths."""
import os
import tempfile
from typing import Optional

import lmpkg.paths


def path_replacements():
    return {
        "lmpkg": lambda: lmpkg.paths.prefix,
        "user": lambda: os.environ.get("USER", "user"),
        "tempdir": tempfile.gettempdir,
    }


def substitute_config_variables(path: str) -> str:
    """Substitute placeholders into paths.

    lmpkg allows paths in configs to have some placeholders, as follows:

    - $lmpkg      the root of the lmpkg checkout
    - $user       the current user's name
    - $tempdir    default temporary directory returned by tempfile.gettempdir()

    Both ``$var`` and ``${var}`` are accepted. Anything that is not one of
    the placeholders above is left for environment variable expansion.
    """
    for name, value in path_replacements().items():
        for token in ("${%s}" % name, "$%s" % name):
            if token in path:
                path = path.replace(token, value())
    return path


def canonicalize_path(path: str, default_wd: Optional[str] = None) -> str:
    """Same as substitute_path_variables, but also take absolute path.

    Relative paths are considered relative to ``default_wd`` or to the
    current working directory.
    """
    path = substitute_config_variables(path)
    path = os.path.expandvars(os.path.expanduser(path))
    if not os.path.isabs(path):
        path = os.path.join(default_wd or os.getcwd(), path)
    return os.path.normpath(path)
