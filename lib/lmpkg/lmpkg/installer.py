# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
"""
This module encapsulates package installation functionality.

The PackageInstaller coordinates the install of a single package:

    1. the source is staged (fetched, verified, cached and expanded);
    2. patches declared by the package are applied;
    3. the build environment is set up and every phase of the package
       runs in the source directory;
    4. when requested, the package's ``test_*`` methods run against the
       installed prefix;
    5. the package's caveats are shown.

If anything fails, the partial prefix is removed unless asked to keep it.
"""
import os
import shutil
import tempfile
import time
from typing import List, Optional, Tuple

import lmpkg.build_environment
import lmpkg.error
import lmpkg.tty as tty
from lmpkg.error import InstallError, TestFailure
from lmpkg.util.executable import ProcessError
from lmpkg.util.filesystem import mkdirp, working_dir


def _print_timer(pkg, elapsed: float) -> None:
    tty.msg(f"{pkg.name}: Successfully installed {pkg.spec}")
    tty.msg(f"  Total: {elapsed:.2f}s")
    tty.msg(f"{pkg.prefix}")


class PackageInstaller:
    """Class for managing the install process for a package.

    Args:
        pkg: concrete package to install
        keep_stage: don't remove the build stage once the install succeeds
        keep_prefix: don't remove the install prefix if the install fails
        run_tests: run the package's ``test_*`` methods after installing
        overwrite: install even if the prefix already exists
        restage: discard an existing stage and start from a fresh source tree
    """

    def __init__(
        self,
        pkg,
        *,
        keep_stage: bool = False,
        keep_prefix: bool = False,
        run_tests: bool = False,
        overwrite: bool = False,
        restage: bool = True,
    ) -> None:
        self.pkg = pkg
        self.keep_stage = keep_stage
        self.keep_prefix = keep_prefix
        self.run_tests = run_tests
        self.overwrite = overwrite
        self.restage = restage

    def install(self) -> None:
        """Install the package and, if requested, test it."""
        pkg = self.pkg
        start = time.time()

        if os.path.isdir(pkg.prefix) and os.listdir(pkg.prefix):
            if not self.overwrite:
                tty.msg(f"{pkg.spec} is already installed in {pkg.prefix}")
                return
            tty.warn(f"Overwriting existing installation of {pkg.spec}")
            shutil.rmtree(pkg.prefix)

        pkg.run_tests = self.run_tests
        stage = pkg.stage
        stage.keep = self.keep_stage
        if self.restage:
            stage.destroy()

        with stage:
            tty.msg(f"Installing {pkg.spec}")
            pkg.do_stage()
            pkg.do_patch()
            try:
                self._build(pkg)
            except BaseException:
                if not self.keep_prefix and os.path.isdir(pkg.prefix):
                    tty.debug(f"Removing partial install prefix {pkg.prefix}")
                    shutil.rmtree(pkg.prefix, ignore_errors=True)
                else:
                    tty.warn(f"Keeping install prefix in place despite error: {pkg.prefix}")
                tty.msg(f"Build stage kept in {stage.path}")
                raise

        _print_timer(pkg, time.time() - start)

        if self.run_tests:
            run_tests(pkg)

        if pkg.caveats:
            tty.msg("Caveats")
            print(pkg.caveats)

    def _build(self, pkg) -> None:
        with lmpkg.build_environment.preserve_environment():
            lmpkg.build_environment.setup_package(pkg)
            mkdirp(pkg.prefix)
            with working_dir(pkg.stage.source_path):
                for phase in pkg.phases:
                    tty.msg(f"{pkg.name}: Executing phase: '{phase}'")
                    phase_fn = getattr(pkg, phase)
                    try:
                        phase_fn(pkg.spec, pkg.prefix)
                    except (ProcessError, OSError) as e:
                        raise InstallError(
                            f"{pkg.name}: phase '{phase}' failed", str(e), pkg=pkg
                        ) from e


def run_tests(pkg, names: Optional[List[str]] = None) -> None:
    """Run the ``test_*`` methods of an installed package.

    Each test runs in its own temporary directory with the build
    environment of the package applied, so that whatever the tested
    programs write (logs, dumps) does not end up in the prefix.

    Raises:
        TestFailure: if any of the tests failed
    """
    if not os.path.isdir(pkg.prefix):
        raise InstallError(f"{pkg.spec} is not installed in {pkg.prefix}", pkg=pkg)

    names = names or pkg.install_test_names()
    failures: List[Tuple[str, Exception]] = []
    with lmpkg.build_environment.preserve_environment():
        lmpkg.build_environment.setup_package(pkg)
        for name in names:
            tty.msg(f"{pkg.name}: running {name}")
            test_dir = tempfile.mkdtemp(prefix=f"lmpkg-test-{pkg.name}-")
            try:
                with working_dir(test_dir):
                    getattr(pkg, name)()
            except (lmpkg.error.LmpkgError, AssertionError, OSError) as e:
                tty.error(f"{name} FAILED: {e}")
                failures.append((name, e))
            else:
                tty.msg(f"{name} PASSED")
            finally:
                shutil.rmtree(test_dir, ignore_errors=True)

    if failures:
        raise TestFailure(failures)
