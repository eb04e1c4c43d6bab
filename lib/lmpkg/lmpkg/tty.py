# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
"""Terminal output for lmpkg.

Every user-facing message goes through the functions in this module so
that verbosity and debug output are controlled in one place.
"""
import sys
import textwrap
import traceback

_debug = 0
_verbose = False
_stacktrace = False
_msg_enabled = True
_warn_enabled = True
_error_enabled = True
indent = "  "


def debug_level():
    return _debug


def is_verbose():
    return _verbose


def is_debug(level=1):
    return _debug >= level


def set_debug(level=0):
    global _debug
    assert level >= 0, "Debug level must be a positive value"
    _debug = level


def set_verbose(flag=True):
    global _verbose
    _verbose = flag


def set_stacktrace(flag=True):
    global _stacktrace
    _stacktrace = flag


def set_msg_enabled(flag=True):
    global _msg_enabled
    _msg_enabled = flag


def msg_enabled():
    return _msg_enabled


def _is_tty(stream):
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def _color(code, text, stream):
    if not _is_tty(stream):
        return text
    return f"\033[{code}m{text}\033[0m"


def process_stacktrace(countback):
    """Gives file and line frame 'countback' frames from the bottom"""
    st = traceback.extract_stack()
    frame = st[-countback]
    return "%s:%i " % (frame[0], frame[1])


def info(message, *args, **kwargs):
    """Print an informational message with the ``==>`` prefix.

    Additional positional arguments are printed on their own lines,
    indented under the message.
    """
    fmt = kwargs.get("format", "*b")
    stream = kwargs.get("stream", sys.stdout)
    wrap = kwargs.get("wrap", False)
    break_long_words = kwargs.get("break_long_words", False)
    st_countback = kwargs.get("countback", 3)

    st_text = ""
    if _stacktrace:
        st_text = process_stacktrace(st_countback)
    arrow = _color("1;34" if fmt == "*b" else fmt, "==>", stream)
    stream.write(f"{arrow} {st_text}{message}\n")
    for arg in args:
        if wrap:
            lines = textwrap.wrap(
                str(arg),
                initial_indent=indent,
                subsequent_indent=indent,
                break_long_words=break_long_words,
            )
            for line in lines:
                stream.write(line + "\n")
        else:
            stream.write(indent + str(arg) + "\n")
    stream.flush()


def msg(message, *args, **kwargs):
    if not msg_enabled():
        return
    newline = kwargs.get("newline", True)
    st_text = ""
    if _stacktrace:
        st_text = process_stacktrace(2)
    arrow = _color("1;34", "==>", sys.stdout)
    if newline:
        print(f"{arrow} {st_text}{message}")
    else:
        print(f"{arrow} {st_text}{message}", end="")
    for arg in args:
        print(indent + str(arg))
    sys.stdout.flush()


def verbose(message, *args, **kwargs):
    if _verbose:
        kwargs.setdefault("format", "0;36")
        info(message, *args, **kwargs)


def debug(message, *args, **kwargs):
    level = kwargs.get("level", 1)
    if is_debug(level):
        kwargs.setdefault("format", "0;32")
        kwargs.setdefault("stream", sys.stderr)
        info(message, *args, **kwargs)


def error(message, *args, **kwargs):
    if not _error_enabled:
        return
    kwargs.setdefault("format", "0;31")
    kwargs.setdefault("stream", sys.stderr)
    info("Error: " + str(message), *args, **kwargs)


def warn(message, *args, **kwargs):
    if not _warn_enabled:
        return
    kwargs.setdefault("format", "0;33")
    kwargs.setdefault("stream", sys.stderr)
    info("Warning: " + str(message), *args, **kwargs)


def die(message, *args, **kwargs):
    kwargs.setdefault("countback", 4)
    error(message, *args, **kwargs)
    sys.exit(1)
