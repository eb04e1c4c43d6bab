# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
"""
Fetch strategies are used to download source code into a staging area
in order to build it.  They need to define the following methods:

    * fetch()
        This should attempt to download/check out source from somewhere.
    * check()
        Apply a checksum to the downloaded source code, e.g. for an archive.
        May not do anything if the fetch method was safe to begin with.
    * expand()
        Expand (e.g., an archive) downloaded file to source, with the
        standard stage source path as the destination directory.

Each strategy works on a *destination*: the directory the archive is saved
into (and, for ``git``, checked out into) and the directory the source is
expanded to. The stage sets both with ``set_destination``.
"""
import os
import shutil
import ssl
import tarfile
import urllib.error
import urllib.request
import zipfile
from typing import List, Optional

import lmpkg.config
import lmpkg.tty as tty
import lmpkg.util.crypto as crypto
import lmpkg.util.git
import lmpkg.util.url as url_util
from lmpkg.error import ChecksumError, FetchError, NoChecksumError
from lmpkg.util.filesystem import mkdirp, working_dir

#: User-Agent used in Request objects
LMPKG_USER_AGENT = "Lmpkgbot/{0}"


def _user_agent():
    import lmpkg

    return LMPKG_USER_AGENT.format(lmpkg.lmpkg_version)


class FetchStrategy:
    """Superclass of all fetch strategies."""

    #: The URL attribute must be specified either at the package class
    #: level, or as a keyword argument to ``version()``.
    url_attr: Optional[str] = None

    def __init__(self) -> None:
        self.save_dir: Optional[str] = None
        self.source_path: Optional[str] = None

    def set_destination(self, save_dir: str, source_path: str) -> None:
        self.save_dir = save_dir
        self.source_path = source_path

    def fetch(self) -> None:
        raise NotImplementedError

    def check(self) -> None:
        pass

    def expand(self) -> None:
        pass

    @property
    def cachable(self) -> bool:
        """Whether the fetched artifact can be stored in a source cache."""
        return False

    def mirror_id(self) -> Optional[str]:
        return None

    def __str__(self):
        return "FetchStrategy.__str___"


class URLFetchStrategy(FetchStrategy):
    """URLFetchStrategy pulls source code from a URL for an archive, checks the
    archive against a checksum, and decompresses the archive.

    The destination for the resulting file(s) is the standard stage path.
    """

    url_attr = "url"

    def __init__(
        self,
        *,
        url: str,
        checksum: Optional[str] = None,
        expand: bool = True,
        extension: Optional[str] = None,
        mirrors: Optional[List[str]] = None,
    ) -> None:
        super().__init__()
        self.url = url
        self.mirrors = mirrors or []
        self.digest = checksum
        self.expand_archive = expand
        self.extension = extension or url_util.determine_url_file_extension(url)
        self.archive_file: Optional[str] = None

    @property
    def candidate_urls(self) -> List[str]:
        return [*self.mirrors, self.url]

    @property
    def cachable(self) -> bool:
        return bool(self.digest)

    def mirror_id(self) -> Optional[str]:
        if not self.digest:
            return None
        # The filename is the digest. A directory is also created based on
        # truncating the digest to avoid creating a directory with too many
        # entries
        return os.path.sep.join(["archive", self.digest[:2], self.digest])

    @property
    def save_filename(self) -> str:
        assert self.save_dir, "fetcher has no destination"
        return os.path.join(self.save_dir, url_util.filename(self.url))

    def fetch(self) -> None:
        if self.archive_file:
            tty.debug(f"Already downloaded {self.archive_file}")
            return

        errors = []
        for url in self.candidate_urls:
            try:
                self._fetch_urllib(url)
                return
            except FetchError as e:
                errors.append(str(e))
                tty.debug(f"Fetching from {url} failed: {e.message}")

        raise FetchError(f"All fetchers failed for {self.url}", "\n".join(errors))

    def _fetch_urllib(self, url: str) -> None:
        save_file = self.save_filename
        tty.msg(f"Fetching {url}")

        request = urllib.request.Request(url, headers={"User-Agent": _user_agent()})
        context = None
        if url.startswith("https") and not lmpkg.config.get("config:verify_ssl", True):
            context = ssl._create_unverified_context()
        timeout = lmpkg.config.get("config:connect_timeout", 10)

        mkdirp(self.save_dir)
        partial_file = save_file + ".part"
        try:
            with urllib.request.urlopen(request, timeout=timeout, context=context) as response:
                with open(partial_file, "wb") as f:
                    shutil.copyfileobj(response, f)
        except (urllib.error.URLError, OSError, ValueError) as e:
            if os.path.lexists(partial_file):
                os.remove(partial_file)
            raise FetchError(f"failed to fetch {url}", str(e)) from e

        os.replace(partial_file, save_file)
        self.archive_file = save_file

    def check(self) -> None:
        """Check the downloaded archive against a checksum digest.
        No-op if this stage checks code out of a repository."""
        if not self.archive_file:
            raise NoArchiveFileError("Cannot check archive. No archive file was downloaded.")

        if not self.digest:
            if lmpkg.config.get("config:checksum", True):
                raise NoChecksumError(
                    f"Missing checksum for {url_util.filename(self.url)}",
                    long_message="Add a checksum to the recipe or run with --no-checksum",
                )
            tty.warn(f"Fetched {url_util.filename(self.url)} without verifying a checksum")
            return

        checker = crypto.Checker(self.digest)
        if not checker.check(self.archive_file):
            raise ChecksumError(
                f"{checker.hash_name} checksum failed for {self.archive_file}",
                f"Expected {self.digest} but got {checker.sum}",
            )
        tty.debug(f"{checker.hash_name} checksum verified for {self.archive_file}")

    def expand(self) -> None:
        if not self.archive_file:
            raise NoArchiveFileError("Couldn't find archive file", "Failed on expand() method.")

        if not self.expand_archive:
            tty.debug(f"Staging unexpanded archive {self.archive_file} in {self.source_path}")
            mkdirp(self.source_path)
            shutil.copy(self.archive_file, self.source_path)
            return

        tty.debug(f"Staging archive: {self.archive_file}")

        # Expand next to the source path, then move the single top-level
        # directory (if there is one) into place
        expanded = self.source_path + ".expanding"
        if os.path.exists(expanded):
            shutil.rmtree(expanded)
        mkdirp(expanded)
        _decompress(self.archive_file, expanded)

        entries = os.listdir(expanded)
        if os.path.exists(self.source_path):
            shutil.rmtree(self.source_path)
        if len(entries) == 1 and os.path.isdir(os.path.join(expanded, entries[0])):
            os.rename(os.path.join(expanded, entries[0]), self.source_path)
            os.rmdir(expanded)
        else:
            os.rename(expanded, self.source_path)

    def __repr__(self):
        return f"{self.__class__.__name__}<{self.url}>"

    def __str__(self):
        return self.url


def _decompress(archive: str, dest: str) -> None:
    if zipfile.is_zipfile(archive):
        with zipfile.ZipFile(archive) as zf:
            zf.extractall(dest)
        return
    try:
        with tarfile.open(archive) as tar:
            if hasattr(tarfile, "data_filter"):
                tar.extractall(dest, filter="data")
            else:
                tar.extractall(dest)
    except tarfile.TarError as e:
        raise FetchError(f"Cannot expand {archive}", str(e)) from e


class GitFetchStrategy(FetchStrategy):
    """
    Fetch strategy that gets source code from a git repository.
    Use like this in a package:

        version("name", git="https://github.com/project/repo.git")

    Optionally, you can provide a branch, or commit to check out, e.g.:

        version("1.1", git="https://github.com/project/repo.git", tag="v1.1")
    """

    url_attr = "git"

    def __init__(
        self,
        *,
        git: str,
        branch: Optional[str] = None,
        tag: Optional[str] = None,
        commit: Optional[str] = None,
    ) -> None:
        super().__init__()
        self.url = git
        self.branch = branch
        self.tag = tag
        self.commit = commit

    def fetch(self) -> None:
        if self.source_path and os.path.isdir(os.path.join(self.source_path, ".git")):
            tty.debug(f"Already fetched {self.source_path}")
            return

        git = lmpkg.util.git.git(required=True)
        tty.msg(f"Cloning git repository: {self.url}")

        if self.commit:
            git("clone", "--quiet", self.url, self.source_path)
            with working_dir(self.source_path):
                git("checkout", "--quiet", self.commit)
        else:
            args = ["clone", "--quiet", "--depth", "1"]
            ref = self.tag or self.branch
            if ref:
                args.extend(["--branch", ref])
            git(*args, self.url, self.source_path)

    def check(self) -> None:
        tty.debug(f"No checksum needed when fetching with git: {self.url}")

    def expand(self) -> None:
        tty.debug(f"Source fetched with git is already expanded: {self.url}")

    def __str__(self):
        ref = self.commit or self.tag or self.branch
        return f"[git] {self.url}" + (f" on {ref}" if ref else "")


def for_package_version(pkg, version=None) -> FetchStrategy:
    """Determine a fetch strategy based on the arguments supplied to
    version() in the package description."""
    version = version if version is not None else pkg.version
    if version not in pkg.versions:
        raise InvalidArgsError(pkg, version)

    args = dict(pkg.versions[version])

    if "git" in args:
        return GitFetchStrategy(
            git=args["git"], branch=args.get("branch"), tag=args.get("tag"), commit=args.get("commit")
        )

    digest = None
    for algo in crypto.hashes:
        if algo in args:
            digest = args[algo]
            break

    url = args.get("url") or pkg.url_for_version(version)
    return URLFetchStrategy(
        url=url,
        checksum=digest,
        expand=args.get("expand", True),
        extension=args.get("extension"),
    )


class NoArchiveFileError(FetchError):
    """Raised when an archive file is expected but none exists."""


class InvalidArgsError(FetchError):
    """Raised when a version can't be deduced from a set of arguments."""

    def __init__(self, pkg=None, version=None, **args):
        msg = "Could not guess a fetch strategy"
        if pkg:
            msg += " for {pkg}".format(pkg=pkg.name)
            if version:
                msg += "@{version}".format(version=version)
        long_msg = "with arguments: {args}".format(args=args)
        super().__init__(msg, long_msg)
