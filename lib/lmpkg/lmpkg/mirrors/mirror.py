# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
"""Mirrors are alternative places to download source archives from.

A mirror is configured in ``mirrors.yaml`` either as a bare URL (or local
path)::

    mirrors:
      site: https://example.com/lammps-mirror

or with separate fetch and push locations::

    mirrors:
      site:
        fetch: https://example.com/lammps-mirror
        push: file:///srv/lammps-mirror
"""
import collections.abc
import urllib.parse
from typing import Dict, Optional, Union

import lmpkg.config
import lmpkg.util.path
import lmpkg.util.url as url_util

#: What schemes do we support
supported_url_schemes = ("file", "http", "https", "ftp")


def _url_or_path_to_url(url_or_path: str) -> str:
    """Local, possibly relative, paths are allowed for mirrors: turn them into file:// URLs."""
    if urllib.parse.urlparse(url_or_path).scheme in supported_url_schemes:
        return url_or_path
    return url_util.path_to_file_url(lmpkg.util.path.canonicalize_path(url_or_path))


class Mirror:
    """A named location holding source archives, in the layout of
    ``lmpkg.mirrors.layout``.
    """

    def __init__(self, data: Union[str, dict], name: Optional[str] = None):
        self._data = data
        self._name = name

    @staticmethod
    def from_local_path(path: str) -> "Mirror":
        return Mirror(url_util.path_to_file_url(path))

    @staticmethod
    def from_url(url: str) -> "Mirror":
        """Create an anonymous mirror by URL. This method validates the URL."""
        if urllib.parse.urlparse(url).scheme not in supported_url_schemes:
            raise ValueError(
                f'"{url}" is not a valid mirror URL. '
                f"Scheme must be one of {supported_url_schemes}."
            )
        return Mirror(url)

    @property
    def name(self) -> str:
        return self._name or "<unnamed>"

    @property
    def source(self) -> bool:
        """Whether source archives are fetched from this mirror."""
        return isinstance(self._data, str) or self._data.get("source", True)

    @property
    def fetch_url(self) -> str:
        return self._url("fetch")

    @property
    def push_url(self) -> str:
        return self._url("push")

    def _url(self, direction: str) -> str:
        if isinstance(self._data, str):
            return _url_or_path_to_url(self._data)

        # a direction specific entry, as a string or as {url: ...}, wins over "url"
        url = self._data.get("url")
        specific = self._data.get(direction)
        if isinstance(specific, str):
            url = specific
        elif isinstance(specific, dict) and specific.get("url"):
            url = specific["url"]

        if not url:
            raise ValueError(f"Mirror {self.name} has no URL configured")
        return _url_or_path_to_url(url)

    def to_dict(self) -> Union[str, dict]:
        return self._data

    def display(self, max_len: int = 0) -> None:
        fetch, push = self.fetch_url, self.push_url
        url = fetch if fetch == push else f"fetch: {fetch} push: {push}"
        source = "s" if self.source else " "
        print(f"{self.name: <{max_len}} [{source}] {url}")

    def __eq__(self, other):
        if not isinstance(other, Mirror):
            return NotImplemented
        return self._data == other._data and self._name == other._name

    def __repr__(self):
        return f"Mirror(name={self._name!r}, data={self._data!r})"


class MirrorCollection(collections.abc.Mapping):
    """The configured mirrors, by name, in order of precedence.

    Args:
        mirrors: name-to-configuration mapping; read from the ``mirrors``
            configuration section when not given
        scope: configuration scope to read the mirrors from
        source: if given, keep only the mirrors whose ``source`` flag matches
    """

    def __init__(self, mirrors=None, scope=None, source: Optional[bool] = None):
        if mirrors is None:
            mirrors = lmpkg.config.get("mirrors", scope=scope)

        self._mirrors: Dict[str, Mirror] = {}
        for name, data in mirrors.items():
            mirror = Mirror(data, name=name)
            if source is None or mirror.source == source:
                self._mirrors[name] = mirror

    def display(self) -> None:
        max_len = max(len(name) for name in self._mirrors)
        for mirror in self._mirrors.values():
            mirror.display(max_len)

    def lookup(self, name_or_url: str) -> Mirror:
        """The mirror named ``name_or_url``, else an anonymous mirror at that URL."""
        return self.get(name_or_url) or Mirror(name_or_url)

    def __getitem__(self, item):
        return self._mirrors[item]

    def __iter__(self):
        return iter(self._mirrors)

    def __len__(self):
        return len(self._mirrors)
