# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
import lmpkg.cmd
import lmpkg.config
import lmpkg.installer

description = "build and install packages"
level = "short"


def setup_parser(subparser):
    subparser.add_argument(
        "--keep-prefix",
        action="store_true",
        help="don't remove the install prefix if installation fails",
    )
    subparser.add_argument(
        "--keep-stage",
        action="store_true",
        help="don't remove the build stage if installation succeeds",
    )
    subparser.add_argument(
        "--overwrite", action="store_true", help="reinstall an existing installation"
    )
    subparser.add_argument(
        "--test", action="store_true", help="run the package tests after installing"
    )
    subparser.add_argument(
        "-n",
        "--no-checksum",
        action="store_true",
        default=False,
        help="do not use checksums to verify downloaded files (unsafe)",
    )
    subparser.add_argument(
        "-j",
        "--jobs",
        type=int,
        default=None,
        help="explicitly set number of parallel jobs",
    )
    lmpkg.cmd.add_spec_arguments(subparser)


def install(parser, args):
    if args.no_checksum:
        lmpkg.config.set("config:checksum", False, scope="command_line")
    if args.jobs is not None:
        lmpkg.config.set("config:build_jobs", args.jobs, scope="command_line")

    for pkg in lmpkg.cmd.packages_from_args(args.specs):
        installer = lmpkg.installer.PackageInstaller(
            pkg,
            keep_stage=args.keep_stage,
            keep_prefix=args.keep_prefix,
            run_tests=args.test,
            overwrite=args.overwrite,
        )
        installer.install()
