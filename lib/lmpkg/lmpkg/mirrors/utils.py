# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
import os
import shutil
from typing import List, Tuple

import lmpkg.config
import lmpkg.error
import lmpkg.tty as tty
import lmpkg.util.lmpkg_yaml as syaml
from lmpkg.error import MirrorError
from lmpkg.mirrors.mirror import Mirror
from lmpkg.util.filesystem import mkdirp


def create(path: str, pkgs) -> Tuple[List, List, List]:
    """Create a directory to be used as a source mirror, and fill it with
    the archives of ``pkgs``.

    Arguments:
        path: directory the mirror is created in
        pkgs: concrete packages whose source archives are added

    Returns:
        three lists of specs: those already present in the mirror, those
        added to it, and those whose archive could not be fetched
    """
    try:
        mkdirp(path)
    except OSError as e:
        raise MirrorError(f"Cannot create directory '{path}':", str(e)) from e

    present: List = []
    mirrored: List = []
    error: List = []
    for pkg in pkgs:
        layout = pkg.mirror_layout
        if layout is None:
            tty.msg(f"Skipping {pkg.spec.format()}: its source cannot be mirrored")
            continue

        dest = os.path.join(path, layout.path)
        if os.path.exists(dest):
            tty.debug(f"{pkg.spec.format()} is already in the mirror")
            present.append(pkg.spec)
            continue

        tty.msg(f"Adding package {pkg.spec.format()} to mirror")
        try:
            with pkg.stage as stage:
                stage.fetch()
                stage.check()
                mkdirp(os.path.dirname(dest))
                shutil.copy(stage.archive_file, dest)
                layout.make_alias(path)
        except lmpkg.error.FetchError as e:
            tty.warn(f"Error while fetching {pkg.spec.format()}", e.message)
            error.append(pkg.spec)
        else:
            mirrored.append(pkg.spec)

    return present, mirrored, error


def add(mirror: Mirror, scope=None) -> None:
    """Add a named mirror in the given scope, ahead of the mirrors already there."""
    mirrors = lmpkg.config.get("mirrors", scope=scope) or syaml.syaml_dict()
    if mirror.name in mirrors:
        raise MirrorError(f"Mirror with name {mirror.name} already exists.")

    updated = syaml.syaml_dict([(mirror.name, mirror.to_dict())])
    updated.update(mirrors)
    lmpkg.config.set("mirrors", updated, scope=scope)


def remove(name: str, scope=None) -> None:
    """Remove the named mirror from the given scope."""
    mirrors = lmpkg.config.get("mirrors", scope=scope) or syaml.syaml_dict()
    if name not in mirrors:
        raise MirrorError(f"No mirror with name {name}")

    del mirrors[name]
    lmpkg.config.set("mirrors", mirrors, scope=scope)
    tty.msg(f"Removed mirror {name}.")
