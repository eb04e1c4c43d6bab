# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
import hashlib
import inspect
import os
from typing import Optional

import lmpkg.error
import lmpkg.fetch_strategy
import lmpkg.tty as tty
import lmpkg.util.crypto
import lmpkg.util.executable
import lmpkg.util.filesystem as fs


def apply_patch(source_path: str, patch_path: str, level: int = 1, working_dir: str = ".") -> None:
    """Apply the patch at patch_path to code in the stage.

    Args:
        source_path: root of the expanded source
        patch_path: filesystem location for the patch to apply
        level: patch level (as in the patch shell command)
        working_dir: relative path *within* the stage to change to
    """
    patch = lmpkg.util.executable.which("patch", required=True)
    with fs.working_dir(os.path.join(source_path, working_dir)):
        patch("-s", "-p", str(level), "-i", patch_path)


class Patch:
    """Base class for patches.

    Arguments:
        pkg_name: name of the package this patch belongs to
        when: condition on the spec for applying the patch

    The ``when`` condition is evaluated by the installer against the
    concrete spec.
    """

    def __init__(self, pkg_name: str, when=None, level: int = 1, working_dir: str = ".") -> None:
        # validate level (must be an integer >= 0)
        if not isinstance(level, int) or not level >= 0:
            raise ValueError("Patch level needs to be a non-negative integer.")

        self.pkg_name = pkg_name
        self.when = when
        self.level = level
        self.working_dir = working_dir

    def applies_to(self, spec) -> bool:
        return self.when is None or spec.satisfies(self.when)

    def fetch(self, stage) -> str:
        """Fetch the patch into the stage and return its path."""
        raise NotImplementedError

    def apply(self, stage) -> None:
        """Apply a patch to source in a stage.

        Arguments:
            stage: stage where source code lives
        """
        path = self.fetch(stage)
        tty.msg(f"Applying patch {os.path.basename(path)}")
        apply_patch(stage.source_path, path, self.level, self.working_dir)


class UrlPatch(Patch):
    """Describes a patch that is retrieved from a URL.

    Arguments:
        pkg_name: name of the package this patch belongs to
        url: URL where the patch can be fetched
        sha256: sha256 sum of the patch, used to verify the patch
        when: condition on the spec for applying the patch
        level: patch level (as in the patch shell command)
        working_dir: path within the source directory where patch should be applied
    """

    def __init__(
        self,
        pkg_name: str,
        url: str,
        *,
        sha256: Optional[str] = None,
        when=None,
        level: int = 1,
        working_dir: str = ".",
    ) -> None:
        super().__init__(pkg_name, when=when, level=level, working_dir=working_dir)
        self.url = url
        self.sha256 = sha256

    def fetch(self, stage) -> str:
        fetcher = lmpkg.fetch_strategy.URLFetchStrategy(
            url=self.url, checksum=self.sha256, expand=False
        )
        # one directory per patch URL so that patches sharing a file name
        # do not overwrite each other
        url_hash = hashlib.sha256(self.url.encode("utf-8")).hexdigest()[:16]
        save_dir = os.path.join(stage.path, "patches", url_hash)
        fs.mkdirp(save_dir)
        fetcher.set_destination(save_dir, save_dir)
        fetcher.fetch()

        if self.sha256:
            fetcher.check()
        else:
            tty.warn(f"Applying patch {self.url} without a checksum: none was published")

        return fetcher.archive_file

    def __repr__(self):
        return f"UrlPatch({self.pkg_name!r}, {self.url!r})"


class FilePatch(Patch):
    """Describes a patch that is retrieved from a file in the repository.

    Arguments:
        pkg_name: name of the package this patch belongs to
        path: absolute path of the patch file, usually next to ``package.py``
        sha256: sha256 sum of the patch; checked when given
    """

    def __init__(
        self,
        pkg_name: str,
        path: str,
        *,
        sha256: Optional[str] = None,
        when=None,
        level: int = 1,
        working_dir: str = ".",
    ) -> None:
        super().__init__(pkg_name, when=when, level=level, working_dir=working_dir)
        self.path = path
        self.sha256 = sha256

    def fetch(self, stage) -> str:
        if not os.path.isfile(self.path):
            raise NoSuchPatchError(f"No such patch for package {self.pkg_name}: {self.path}")
        if self.sha256:
            checker = lmpkg.util.crypto.Checker(self.sha256)
            if not checker.check(self.path):
                raise lmpkg.error.ChecksumError(
                    f"sha256 checksum failed for {self.path}",
                    f"Expected {self.sha256} but got {checker.sum}",
                )
        return self.path

    def __repr__(self):
        return f"FilePatch({self.pkg_name!r}, {self.path!r})"


def from_directive(pkg, url_or_filename: str, **kwargs) -> Patch:
    """Patch object for a ``patch`` directive of the package class ``pkg``.

    Anything with a URL scheme is downloaded; other values are file names
    relative to the directory of the package's ``package.py``.
    """
    if "://" in url_or_filename:
        return UrlPatch(pkg.name, url_or_filename, **kwargs)

    path = url_or_filename
    if not os.path.isabs(path):
        path = os.path.join(os.path.dirname(inspect.getfile(pkg)), path)
    return FilePatch(pkg.name, path, **kwargs)


class NoSuchPatchError(lmpkg.error.LmpkgError):
    """Raised when a patch file doesn't exist."""
