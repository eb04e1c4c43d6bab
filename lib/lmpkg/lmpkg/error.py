# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
import sys
from typing import Optional

import lmpkg.tty as tty

#: at what level we should write stack traces or short error messages
#: this is module-scoped because it needs to be set very early
debug = 0


class LmpkgError(Exception):
    """This is the superclass for all lmpkg errors.
    Subclasses can be found in the modules they have to do with.
    """

    def __init__(self, message: str, long_message: Optional[str] = None) -> None:
        super().__init__()
        self.message = message
        self._long_message = long_message

    @property
    def long_message(self):
        return self._long_message

    def print_context(self):
        """Print extended debug information about this exception."""
        sys.stdout.flush()
        tty.error(self.message)
        if self.long_message:
            sys.stderr.write(self.long_message)
            sys.stderr.write("\n")

    def die(self):
        self.print_context()
        sys.exit(1)

    def __str__(self):
        msg = self.message
        if self._long_message:
            msg += "\n    %s" % self._long_message
        return msg

    def __repr__(self):
        args = [repr(self.message), repr(self.long_message)]
        args = ",".join(args)
        qualified_name = type(self).__module__ + "." + type(self).__name__
        return qualified_name + "(" + args + ")"

    def __reduce__(self):
        return type(self), (self.message, self.long_message)


class ConfigError(LmpkgError):
    """Superclass for all lmpkg config related errors."""


class ConfigFormatError(ConfigError):
    """Raised when a configuration file does not conform to its schema."""

    def __init__(self, validation_error, filename: Optional[str] = None) -> None:
        location = filename or "<unknown file>"
        path = ":".join(str(p) for p in getattr(validation_error, "path", []))
        message = getattr(validation_error, "message", str(validation_error))
        if path:
            message = f"{path}: {message}"
        super().__init__(f"{location}: {message}")


class SpecSyntaxError(LmpkgError):
    """Raised when a spec string cannot be parsed."""


class UnknownVariantError(LmpkgError):
    """Raised when a spec names a variant its package does not declare."""

    def __init__(self, pkg_name: str, variants) -> None:
        super().__init__(
            f"package '{pkg_name}' has no variant {', '.join(repr(v) for v in variants)}",
            long_message=f"run `lmpkg info {pkg_name}` to list the available variants",
        )


class NoSuchVersionError(LmpkgError):
    """Raised when no declared version satisfies a spec."""


class NoSuchPackageError(LmpkgError):
    """Raised when a package cannot be found in any configured repository."""

    def __init__(self, name: str, long_message: Optional[str] = None) -> None:
        super().__init__(f"Package '{name}' not found.", long_message)
        self.name = name


class FetchError(LmpkgError):
    """Superclass for fetch-related errors."""


class NoChecksumError(FetchError):
    """Raised when an archive has no checksum to verify against."""


class ChecksumError(FetchError):
    """Raised when archive fails to checksum."""


class MirrorError(LmpkgError):
    """Superclass of all mirror-creation related errors."""


class InstallError(LmpkgError):
    """Raised when something goes wrong during install or uninstall."""

    def __init__(self, message, long_msg=None, pkg=None):
        super().__init__(message, long_msg)
        self.pkg = pkg


class TestFailure(LmpkgError):
    """Raised when one or more post-install tests of a package fail."""

    def __init__(self, failures) -> None:
        msg = "%d test(s) failed" % len(failures)
        long_message = "\n".join(f"{name}: {err}" for name, err in failures)
        super().__init__(msg, long_message)
        self.failures = failures
