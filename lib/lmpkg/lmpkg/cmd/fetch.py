# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
import lmpkg.cmd
import lmpkg.config
import lmpkg.tty as tty

description = "fetch archives for packages"
level = "long"


def setup_parser(subparser):
    subparser.add_argument(
        "-n",
        "--no-checksum",
        action="store_true",
        default=False,
        help="do not use checksums to verify downloaded files (unsafe)",
    )
    lmpkg.cmd.add_spec_arguments(subparser)


def fetch(parser, args):
    if args.no_checksum:
        lmpkg.config.set("config:checksum", False, scope="command_line")

    for pkg in lmpkg.cmd.packages_from_args(args.specs):
        pkg.do_fetch()
        tty.msg(f"Fetched {pkg.spec.format()} into {pkg.stage.path}")
