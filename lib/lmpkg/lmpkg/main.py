# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
"""This is the implementation of the lmpkg command line executable.

In a normal lmpkg installation, this is invoked from the ``lmpkg``
console script installed with the package.
"""
import argparse
import sys
from typing import List, Optional

import lmpkg
import lmpkg.cmd
import lmpkg.config
import lmpkg.error
import lmpkg.tty as tty
from lmpkg.config import add_command_line_scopes


class LmpkgArgumentParser(argparse.ArgumentParser):
    def add_command(self, subparsers, cmd_name: str) -> None:
        """Add one subcommand to this parser."""
        module = lmpkg.cmd.get_module(cmd_name)
        subparser = subparsers.add_parser(
            cmd_name, help=module.description, description=module.description
        )
        subparser.set_defaults(command=cmd_name)
        module.setup_parser(subparser)


def make_argument_parser(**kwargs) -> LmpkgArgumentParser:
    """Create an basic argument parser without any subcommands added."""
    parser = LmpkgArgumentParser(
        prog="lmpkg",
        description="A package build tool for the LAMMPS molecular dynamics simulator.",
        **kwargs,
    )

    parser.add_argument(
        "-C",
        "--config-scope",
        dest="config_scopes",
        action="append",
        metavar="DIR",
        help="add directory to configuration scopes; can be given more than once",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="count",
        default=0,
        help="write out debug messages\n\n(more d's for more debugging output)",
    )
    parser.add_argument(
        "--stacktrace", action="store_true", help="add stacktraces to all printed statements"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="print additional output")
    parser.add_argument(
        "-V", "--version", action="store_true", help="show version number and exit"
    )

    subparsers = parser.add_subparsers(metavar="COMMAND", dest="command")
    for cmd_name in lmpkg.cmd.all_commands:
        parser.add_command(subparsers, cmd_name)
    return parser


def setup_main_options(args) -> None:
    """Configure lmpkg globals based on the basic options."""
    # Set up environment based on args.
    tty.set_verbose(args.verbose)
    tty.set_debug(args.debug)
    tty.set_stacktrace(args.stacktrace)

    if args.debug:
        lmpkg.error.debug = args.debug
        lmpkg.config.set("config:debug", True, scope="command_line")


def _invoke_command(parser, args) -> int:
    """Run a lmpkg command *without* setting lmpkg global options."""
    command = lmpkg.cmd.get_command(args.command)
    return_val = command(parser, args)
    if return_val is True:
        return_val = 0
    elif return_val is False:
        return_val = 1
    return return_val or 0


def _main(argv: Optional[List[str]] = None) -> int:
    """Logic for the main entry point for the lmpkg command.

    ``main()`` calls ``_main()`` and catches any errors that emerge.
    ``_main()`` handles:

    1. Parsing arguments;
    2. Setting up configuration; and
    3. Finding and executing a lmpkg command.

    Args:
        argv: command line arguments, NOT including the executable name. If
            not supplied, defaults to ``sys.argv[1:]``.
    """
    parser = make_argument_parser()
    args = parser.parse_args(argv)

    # Just print help and exit if run with no arguments at all
    if argv is not None and len(argv) == 0:
        parser.print_help()
        return 1

    # version is special as it does not require a command or loading and additional infrastructure
    if args.version:
        print(lmpkg.get_version())
        return 0

    # Command line options and config scopes are pushed on top of the
    # configuration the rest of lmpkg sees.
    configuration = lmpkg.config._config()
    saved_scopes = dict(configuration.scopes)
    try:
        if args.config_scopes:
            add_command_line_scopes(configuration, args.config_scopes)
        configuration.push_scope(lmpkg.config.InternalConfigScope("command_line"))
        setup_main_options(args)

        if not args.command:
            parser.print_help()
            return 1

        return _invoke_command(parser, args)
    finally:
        configuration.scopes = saved_scopes


def main(argv: Optional[List[str]] = None) -> int:
    """This is the entry point for the lmpkg command.

    ``main()`` itself is just an error handler -- it handles errors for
    everything in lmpkg that makes it to the top level.

    The logic is all in ``_main()``.

    Args:
        argv: command line arguments, NOT including the executable name. If
            not supplied, defaults to ``sys.argv[1:]``.
    """
    try:
        return _main(argv)

    except lmpkg.error.LmpkgError as e:
        tty.debug(e)
        e.print_context()  # print the error message, with context, if any
        if tty.is_debug():
            raise
        return 1

    except KeyboardInterrupt:
        if tty.is_debug():
            raise
        sys.stderr.write("\n")
        tty.error("Keyboard interrupt.")
        return signal_interrupt_code

    except SystemExit as e:
        return e.code


#: exit code for an interrupted command
signal_interrupt_code = 130


if __name__ == "__main__":
    sys.exit(main())
