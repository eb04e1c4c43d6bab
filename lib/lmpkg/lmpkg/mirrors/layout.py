# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
"""Where a source archive lives inside a mirror or the local source cache.

Archives with a checksum are stored once, under their digest::

    _source-cache/archive/e4/e4c1cc179e8159e7bd2dd958d3f5c8909a315af8.tar.gz

and are reachable from a readable alias next to it::

    lammps/lammps-2013.02.12.tar.gz -> ../_source-cache/archive/e4/...

Archives without a checksum are stored under the alias only.
"""
import os
from typing import Iterator, Optional

import lmpkg.fetch_strategy
from lmpkg.error import MirrorError
from lmpkg.util.filesystem import mkdirp

#: Top-level directory of digest addressed archives
SOURCE_CACHE_DIR = "_source-cache"


class MirrorLayout:
    """Relative paths of one archive in a mirror.

    Args:
        alias: readable ``<name>/<name>-<version>.<ext>`` path
        digest_path: digest addressed path, when the archive has a checksum
    """

    def __init__(self, alias: str, digest_path: Optional[str] = None) -> None:
        self.alias = alias
        self.digest_path = digest_path

    @property
    def path(self) -> str:
        """Where the archive itself is stored."""
        return self.digest_path or self.alias

    def __iter__(self) -> Iterator[str]:
        """Every path the archive may be found at, storage location first."""
        if self.digest_path:
            yield self.digest_path
        yield self.alias

    def make_alias(self, root: str) -> None:
        """Link the alias under ``root`` to the stored archive."""
        if not self.digest_path:
            return

        alias = os.path.join(root, self.alias)
        target = os.path.relpath(os.path.join(root, self.digest_path), os.path.dirname(alias))
        mkdirp(os.path.dirname(alias))

        # replace atomically, an existing alias may be in use
        tmp = f"{alias}.tmp"
        if os.path.lexists(tmp):
            os.unlink(tmp)
        os.symlink(target, tmp)
        os.replace(tmp, alias)

    def __repr__(self):
        return f"MirrorLayout({self.alias!r}, {self.digest_path!r})"


def _archive_extension(fetcher: "lmpkg.fetch_strategy.URLFetchStrategy") -> Optional[str]:
    if not fetcher.expand_archive:
        return None
    if not fetcher.extension:
        raise MirrorError(
            f"Unable to parse extension from {fetcher.url}",
            long_message="declare it in the recipe, e.g. "
            "version('1.2.3', sha256='...', extension='tar.gz')",
        )
    return fetcher.extension


def default_mirror_layout(
    fetcher: "lmpkg.fetch_strategy.URLFetchStrategy", per_package_ref: str
) -> MirrorLayout:
    """Layout of the archive downloaded by ``fetcher``.

    ``per_package_ref`` is the readable ``<name>/<name>-<version>`` part of
    the path; the archive extension is appended to it.
    """
    ext = _archive_extension(fetcher)
    suffix = f".{ext}" if ext else ""

    digest_path = None
    mirror_id = fetcher.mirror_id()
    if mirror_id:
        digest_path = os.path.join(SOURCE_CACHE_DIR, mirror_id) + suffix

    return MirrorLayout(per_package_ref + suffix, digest_path)
