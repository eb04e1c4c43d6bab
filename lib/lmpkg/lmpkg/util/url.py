# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
"""
Utility functions for parsing, formatting, and manipulating URLs.
"""
import os
import posixpath
import re
import urllib.parse
import urllib.request

#: Archive extensions lmpkg knows how to expand, longest first
ALLOWED_ARCHIVE_TYPES = ("tar.gz", "tar.bz2", "tar.xz", "tgz", "tbz2", "txz", "tar", "zip")


def path_to_file_url(path: str) -> str:
    if not os.path.isabs(path):
        path = os.path.abspath(path)
    return urllib.parse.urljoin("file:", urllib.request.pathname2url(path))


def local_file_path(url: str):
    """Get a local file path from a url.

    If url is a file:// URL, return the absolute path to the local
    file or directory referenced by it.  Otherwise, return None.
    """
    if isinstance(url, str):
        url = urllib.parse.urlparse(url)

    if url.scheme == "file":
        return urllib.request.url2pathname(url.path)

    return None


def join(base: str, *components: str) -> str:
    """Join URL path components onto a base URL with a single slash."""
    result = base.rstrip("/")
    for component in components:
        result = result + "/" + component.strip("/")
    return result


def filename(url: str) -> str:
    """Last path component of a URL, without query string or fragment."""
    return posixpath.basename(urllib.parse.urlparse(url).path)


def determine_url_file_extension(path: str):
    """This returns the type of archive a URL refers to.  This is
    sometimes confusing because of URLs like:

        (1) https://github.com/petdance/ack/tarball/1.93_02

    Where the URL doesn't actually contain the filename.  We need
    to know what type it is so that we can appropriately name files
    in mirrors.
    """
    match = re.search(r"github.com/.+/(zip|tar)ball/", path)
    if match:
        if match.group(1) == "zip":
            return "zip"
        elif match.group(1) == "tar":
            return "tar.gz"

    name = filename(path)
    for ext in ALLOWED_ARCHIVE_TYPES:
        if name.endswith("." + ext):
            return ext
    return None
