# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
"""Single util module where lmpkg should get a git executable."""
import os
from typing import Optional

import lmpkg.util.executable as exe


def git(required: bool = False) -> Optional[exe.Executable]:
    """Get a git executable. Raises CommandNotFoundError if ``required``
    and git is not found."""
    return exe.which("git", required=required)


def exists(path: str) -> bool:
    return os.path.exists(path)
