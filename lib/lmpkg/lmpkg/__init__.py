# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
import re
from typing import Optional

#: PEP440 canonical <major>.<minor>.<micro>.<devN> string
__version__ = "0.1.0"
lmpkg_version = __version__


def __try_int(v):
    try:
        return int(v)
    except ValueError:
        return v


#: (major, minor, micro, dev release) tuple
lmpkg_version_info = tuple([__try_int(v) for v in __version__.split(".")])


def get_lmpkg_commit() -> Optional[str]:
    """Get the lmpkg git commit sha.

    Returns:
        (str or None) the commit sha if available, otherwise None
    """
    import lmpkg.paths
    import lmpkg.util.git

    git_path = lmpkg.paths.prefix + "/.git"
    if not lmpkg.util.git.exists(git_path):
        return None

    git = lmpkg.util.git.git()
    if not git:
        return None

    rev = git(
        "-C",
        lmpkg.paths.prefix,
        "rev-parse",
        "HEAD",
        output=str,
        error=str,
        fail_on_error=False,
    )
    if git.returncode != 0:
        return None

    match = re.match(r"[a-f\d]{7,}$", rev)
    if not match:
        return None

    return match.group(0)


def get_version() -> str:
    """Get a descriptive version of this instance of lmpkg.

    Outputs '<PEP440 version> (<git commit sha>)'.

    The commit sha is only added when available.
    """
    commit = get_lmpkg_commit()
    if commit:
        return f"{lmpkg_version} ({commit})"
    return lmpkg_version


__all__ = ["lmpkg_version_info", "lmpkg_version", "get_version", "get_lmpkg_commit"]
