# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
import lmpkg.cmd
import lmpkg.installer

description = "run the post-install tests of installed packages"
level = "long"


def setup_parser(subparser):
    subparser.add_argument(
        "--list", action="store_true", help="list the tests of each package instead of running them"
    )
    lmpkg.cmd.add_spec_arguments(subparser)


def test(parser, args):
    for pkg in lmpkg.cmd.packages_from_args(args.specs):
        if args.list:
            print(f"{pkg.spec.format()}:")
            for name in pkg.install_test_names():
                print(f"    {name}")
            continue
        lmpkg.installer.run_tests(pkg)
