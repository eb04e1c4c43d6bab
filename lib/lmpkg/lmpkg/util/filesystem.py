# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
import errno
import os
import re
import shutil
import stat
from contextlib import contextmanager
from typing import Dict, Optional

import lmpkg.error
import lmpkg.tty as tty

__all__ = [
    "FileFilter",
    "FilterError",
    "change_make_var",
    "change_make_vars",
    "filter_file",
    "install",
    "install_tree",
    "join_path",
    "mkdirp",
    "rename",
    "set_executable",
    "touch",
    "working_dir",
]


def join_path(prefix, *args) -> str:
    """Alias for os.path.join"""
    args = [str(a) for a in args]
    return os.path.join(prefix, *args)


@contextmanager
def working_dir(dirname: str, *, create: bool = False):
    if create:
        mkdirp(dirname)

    orig_dir = os.getcwd()
    os.chdir(dirname)
    try:
        yield
    finally:
        os.chdir(orig_dir)


def mkdirp(*paths: str, mode: Optional[int] = None) -> None:
    """Creates a directory, as well as parent directories if needed.

    Arguments:
        paths: paths to create with mkdirp
        mode: optional permissions to set on the created directory -- use OS default
            if not provided
    """
    for path in paths:
        if not os.path.exists(path):
            try:
                os.makedirs(path)
                if mode is not None:
                    os.chmod(path, mode)
            except OSError as e:
                if e.errno != errno.EEXIST or not os.path.isdir(path):
                    raise e
        elif not os.path.isdir(path):
            raise OSError(errno.EEXIST, "File already exists", path)


def touch(path: str) -> None:
    """Creates an empty file at the specified path."""
    with open(path, "a", encoding="utf-8"):
        os.utime(path, None)


def set_executable(path: str) -> None:
    mode = os.stat(path).st_mode
    if mode & stat.S_IRUSR:
        mode |= stat.S_IXUSR
    if mode & stat.S_IRGRP:
        mode |= stat.S_IXGRP
    if mode & stat.S_IROTH:
        mode |= stat.S_IXOTH
    os.chmod(path, mode)


def rename(src: str, dst: str) -> None:
    """Rename a file or directory, replacing a plain-file ``dst``."""
    tty.debug(f"Renaming {src} -> {dst}")
    os.replace(src, dst)


def install(src: str, dest: str) -> None:
    """Install the file(s) ``src`` to the file or directory ``dest``.

    Symbolic links are recreated rather than followed, so a library and the
    unversioned link pointing at it both survive the copy.

    Raises:
        OSError: if ``src`` does not exist
    """
    tty.debug(f"Installing {src} to {dest}")

    if os.path.isdir(dest):
        dest = os.path.join(dest, os.path.basename(src))

    if os.path.islink(src):
        target = os.readlink(src)
        if os.path.lexists(dest):
            os.remove(dest)
        os.symlink(target, dest)
        return

    if not os.path.exists(src):
        raise OSError(errno.ENOENT, "No such file", src)

    shutil.copy2(src, dest)


def install_tree(src: str, dest: str) -> None:
    """Recursively install an entire directory tree rooted at ``src``.

    Symbolic links are copied as links; existing directories under ``dest``
    are merged into.

    Raises:
        OSError: if ``src`` does not exist
    """
    tty.debug(f"Installing {src} to {dest}")
    if not os.path.isdir(src):
        raise OSError(errno.ENOENT, "No such directory", src)
    shutil.copytree(src, dest, symlinks=True, dirs_exist_ok=True)


class FilterError(lmpkg.error.LmpkgError):
    """Raised when a substitution into a file did not match anything."""


def filter_file(
    regex: str,
    repl,
    *filenames: str,
    string: bool = False,
    backup: bool = False,
    ignore_absent: bool = False,
    stop_at: Optional[str] = None,
    encoding: Optional[str] = "utf-8",
) -> None:
    r"""Like sed, but uses python regular expressions.

    Filters every line of each file through regex and replaces the file
    with a filtered version.  Preserves mode of filtered files.

    As with re.sub, ``repl`` can be either a string or a callable.
    If it is a callable, it is passed the match object and should
    return a suitable replacement string.  If it is a string, it
    can contain ``\1``, ``\2``, etc. to represent back-substitution
    as sed would allow.

    Args:
        regex: The regular expression to search for
        repl: The string to replace matches with
        *filenames: One or more files to search and replace
        string: Treat regex as a plain string. Default it False
        backup: Make backup file(s) suffixed with ``~``. Default is False
        ignore_absent: Ignore any files that don't exist.
            Default is False
        stop_at: Marker used to stop scanning the file further. If a text
            line matches this marker filtering is stopped and the rest
            of the file is copied verbatim. Default is to filter until
            the end of the file.
        encoding: The encoding to use when reading and writing the files.
    """
    # Allow strings to use \1, \2, etc. for replacement, like sed
    if not callable(repl):
        unescaped = repl.replace(r"\\", "\\")

        def replace_groups_with_groupid(m):
            def groupid_to_group(x):
                return m.group(int(x.group(1)))

            return re.sub(r"\\([1-9])", groupid_to_group, unescaped)

        repl = replace_groups_with_groupid

    if string:
        regex = re.escape(regex)
    regex_compiled = re.compile(regex)
    for filename in filenames:
        msg = 'FILTER FILE: {0} [replacing "{1}"]'
        tty.debug(msg.format(filename, regex))

        if ignore_absent and not os.path.exists(filename):
            msg = 'FILTER FILE: file "{0}" not found. Skipping to next file.'
            tty.debug(msg.format(filename))
            continue

        backup_filename = filename + "~"
        shutil.copy(filename, backup_filename)
        try:
            with open(backup_filename, mode="r", encoding=encoding) as input_file:
                with open(filename, mode="w", encoding=encoding) as output_file:
                    do_filtering = True
                    for line in input_file:
                        if do_filtering:
                            if stop_at and line.strip() == stop_at:
                                do_filtering = False
                            else:
                                line = re.sub(regex_compiled, repl, line)
                        output_file.write(line)
        except BaseException:
            # restore the original file
            os.rename(backup_filename, filename)
            raise
        finally:
            if not backup and os.path.exists(backup_filename):
                os.remove(backup_filename)


class FileFilter:
    """Convenience class for calling ``filter_file`` a lot."""

    def __init__(self, *filenames):
        self.filenames = filenames

    def filter(self, regex, repl, **kwargs):
        return filter_file(regex, repl, *self.filenames, **kwargs)


def _make_var_regex(key: str):
    # KEY = value, KEY := value, KEY ?= value, KEY += value, KEY \= value and
    # KEY $= value, including any backslash-continued lines of the value
    return re.compile(
        r"^" + re.escape(key) + r"[ \t]*[\\$+?:]?=[ \t]*((?:.*\\\n)*.*)$", re.MULTILINE
    )


def change_make_vars(filename: str, variables: Dict[str, str]) -> None:
    """Replace the whole value of Makefile variables in ``filename``.

    Each ``KEY`` in ``variables`` is rewritten to the single line
    ``KEY=value``, whatever assignment operator and continuation lines it
    had before.

    Raises:
        FilterError: if one of the variables is not assigned in the file
    """
    with open(filename, encoding="utf-8") as f:
        text = f.read()

    missing = []
    for key, value in variables.items():
        tty.debug(f"CHANGE MAKE VAR: {filename} [{key}={value}]")
        line = f"{key}={value}"
        text, count = _make_var_regex(key).subn(lambda m: line, text)
        if count == 0:
            missing.append(key)

    if missing:
        raise FilterError(
            f"{filename}: no assignment to {', '.join(missing)}",
            long_message="the upstream build file does not define the variable(s) being set",
        )

    with open(filename, "w", encoding="utf-8") as f:
        f.write(text)


def change_make_var(filename: str, key: str, value: str) -> None:
    """Replace the value of a single Makefile variable.

    See ``change_make_vars``.
    """
    change_make_vars(filename, {key: value})
