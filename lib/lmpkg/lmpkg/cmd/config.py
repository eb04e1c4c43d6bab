# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
import lmpkg.config
import lmpkg.util.lmpkg_yaml as syaml

description = "get and set configuration options"
level = "long"


def setup_parser(subparser):
    sp = subparser.add_subparsers(metavar="SUBCOMMAND", dest="config_command")

    get_parser = sp.add_parser("get", help="print configuration values")
    get_parser.add_argument(
        "section",
        help="configuration section to print",
        metavar="section",
        choices=list(lmpkg.config.SECTION_SCHEMAS),
    )
    get_parser.add_argument("--scope", default=None, help="configuration scope to read from")

    blame_parser = sp.add_parser("list", help="list configuration sections")
    blame_parser.set_defaults(scope=None)

    add_parser = sp.add_parser("add", help="add configuration parameters")
    add_parser.add_argument(
        "path", help="colon-separated path to config to be set, e.g. 'config:build_jobs:4'"
    )
    add_parser.add_argument("--scope", default="user", help="configuration scope to modify")


def config_get(args):
    """Print the configuration for a section, merged from every scope or
    from the one given with --scope.
    """
    if args.scope is None:
        lmpkg.config._config().print_section(args.section)
    else:
        data = {args.section: lmpkg.config._config().get_config(args.section, scope=args.scope)}
        print(syaml.dump(data), end="")


def config_list(args):
    """List the possible configuration sections."""
    print(" ".join(lmpkg.config.SECTION_SCHEMAS))


def config_add(args):
    """Add the given configuration to the specified config scope.

    The last component of the path is the value, parsed as YAML so that
    numbers and booleans keep their type.
    """
    components = lmpkg.config.process_config_path(args.path)
    if len(components) < 2:
        raise lmpkg.config.ConfigError(f"'{args.path}' does not give a value")
    path, value = ":".join(components[:-1]), syaml.load(components[-1])
    lmpkg.config.set(path, value, scope=args.scope)


def config(parser, args):
    action = {"get": config_get, "list": config_list, "add": config_add}
    if args.config_command is None:
        parser.print_help()
        return 1
    return action[args.config_command](args)
