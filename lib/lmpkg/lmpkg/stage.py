# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
import os
import shutil
from typing import Optional

import lmpkg.config
import lmpkg.fetch_strategy as fs
import lmpkg.mirrors.layout
import lmpkg.mirrors.mirror
import lmpkg.tty as tty
import lmpkg.util.url as url_util
from lmpkg.util.filesystem import mkdirp

#: Name of the directory the source is expanded into, inside a stage
_source_path_subdir = "lmpkg-src"


def get_stage_root() -> str:
    """Root directory under which every build stage is created."""
    return lmpkg.config.path_option("config:build_stage")


class Stage:
    """Manages a temporary stage directory for building.

    A Stage object is a context manager that handles a directory where
    some source code is downloaded and built before being installed.
    It handles fetching the source code, either as an archive to be
    expanded or by checking it out of a repository.  A stage's
    lifecycle looks like this::

        with Stage() as stage:      # Context manager creates and destroys the
                                    # stage directory
            stage.fetch()           # Fetch a source archive into the stage.
            stage.expand_archive()  # Expand the archive into source_path.
            <install>               # Build and install the archive.
                                    # (handled by user of Stage)

    When used as a context manager, the stage is automatically
    destroyed if no exception is raised by the context. If an
    exception is raised, the stage is left in the filesystem and NOT
    destroyed, for potential reuse later.
    """

    def __init__(
        self,
        fetcher: fs.FetchStrategy,
        *,
        name: str,
        mirror_layout: Optional[lmpkg.mirrors.layout.MirrorLayout] = None,
        keep: bool = False,
        path: Optional[str] = None,
    ) -> None:
        """Create a stage object.

        Parameters:
            fetcher: strategy used to retrieve the source
            name: name of the stage directory under the stage root
            mirror_layout: relative paths of the source in mirrors and in
                the source cache; ``None`` if the source cannot be mirrored
            keep: don't delete the stage directory on exit
            path: explicit stage directory, instead of one under the stage root
        """
        self.fetcher = fetcher
        self.name = name
        self.mirror_layout = mirror_layout
        self.keep = keep
        self.path = path or os.path.join(get_stage_root(), name)
        self.source_path = os.path.join(self.path, _source_path_subdir)
        self.fetcher.set_destination(self.path, self.source_path)

    def __enter__(self):
        """
        Entering a stage context will create the stage directory

        Returns:
            self
        """
        self.create()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """
        Exiting from a stage context will delete the stage directory unless:
        - it was explicitly requested not to do so
        - an exception has been raised

        Args:
            exc_type: exception type
            exc_val: exception value
            exc_tb: exception traceback

        Returns:
            Boolean
        """
        # Delete when there are no exceptions, unless asked to keep.
        if exc_type is None and not self.keep:
            self.destroy()

    @property
    def archive_file(self) -> Optional[str]:
        return getattr(self.fetcher, "archive_file", None)

    @property
    def expanded(self) -> bool:
        """Returns True if source path expanded; else False."""
        return os.path.exists(self.source_path)

    def create(self) -> None:
        """Ensures the top-level (config:build_stage) directory exists."""
        mkdirp(self.path)

    def _cached_archive(self) -> Optional[str]:
        if self.mirror_layout is None or not self.fetcher.cachable:
            return None
        cache_root = lmpkg.config.path_option("config:source_cache")
        for rel_path in self.mirror_layout:
            candidate = os.path.join(cache_root, rel_path)
            if os.path.isfile(candidate):
                return candidate
        return None

    def fetch(self) -> None:
        """Retrieves the code or archive.

        The local source cache is tried first, then every configured
        source mirror, then the fetcher's own URL.
        """
        cached = self._cached_archive()
        if cached and isinstance(self.fetcher, fs.URLFetchStrategy):
            tty.msg(f"Using cached archive: {cached}")
            mkdirp(self.path)
            shutil.copy(cached, self.fetcher.save_filename)
            self.fetcher.archive_file = self.fetcher.save_filename
            return

        if isinstance(self.fetcher, fs.URLFetchStrategy) and self.mirror_layout is not None:
            mirrors = lmpkg.mirrors.mirror.MirrorCollection(source=True).values()
            self.fetcher.mirrors = [
                url_util.join(mirror.fetch_url, rel_path)
                for mirror in mirrors
                for rel_path in self.mirror_layout
            ]

        self.fetcher.fetch()

    def check(self) -> None:
        """Check the downloaded archive against a checksum digest."""
        self.fetcher.check()

    def cache_local(self) -> None:
        """Store the verified archive in the local source cache."""
        if self.mirror_layout is None or not self.fetcher.cachable or not self.archive_file:
            return
        cache_root = lmpkg.config.path_option("config:source_cache")
        dest = os.path.join(cache_root, self.mirror_layout.path)
        if os.path.exists(dest):
            return
        tty.debug(f"Caching {self.archive_file} in {dest}")
        mkdirp(os.path.dirname(dest))
        shutil.copy(self.archive_file, dest)
        self.mirror_layout.make_alias(cache_root)

    def expand_archive(self) -> None:
        """Changes to the stage directory and attempt to expand the downloaded
        archive.  Fail if the stage is not set up or if the archive is not yet
        downloaded."""
        if not self.expanded:
            self.fetcher.expand()
            tty.debug(f"Created stage in {self.path}")
        else:
            tty.debug(f"Already staged {self.name} in {self.path}")

    def destroy(self) -> None:
        """Removes this stage directory."""
        if os.path.exists(self.path):
            shutil.rmtree(self.path)

    def __repr__(self):
        return f"<Stage {self.name} in {self.path}>"
