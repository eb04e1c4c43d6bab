# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
import lmpkg.cmd
import lmpkg.mirrors.mirror
import lmpkg.mirrors.utils
import lmpkg.repo
import lmpkg.tty as tty
import lmpkg.util.path
from lmpkg.error import MirrorError

description = "manage mirrors (source)"
level = "long"


def setup_parser(subparser):
    sp = subparser.add_subparsers(metavar="SUBCOMMAND", dest="mirror_command")

    # Create
    create_parser = sp.add_parser("create", help=mirror_create.__doc__)
    create_parser.add_argument(
        "-d", "--directory", default=None, help="directory in which to create mirror"
    )
    create_parser.add_argument(
        "-a", "--all", action="store_true", help="mirror every version of every package"
    )
    lmpkg.cmd.add_spec_arguments(create_parser)

    # Add
    add_parser = sp.add_parser("add", help=mirror_add.__doc__)
    add_parser.add_argument("name", help="mnemonic name for mirror")
    add_parser.add_argument("url", help="url of mirror directory")
    add_parser.add_argument(
        "--scope", default="user", help="configuration scope to modify"
    )

    # Remove
    remove_parser = sp.add_parser("remove", aliases=["rm"], help=mirror_remove.__doc__)
    remove_parser.add_argument("name", help="mnemonic name for mirror")
    remove_parser.add_argument(
        "--scope", default="user", help="configuration scope to modify"
    )

    # List
    list_parser = sp.add_parser("list", help=mirror_list.__doc__)
    list_parser.add_argument("--scope", default=None, help="configuration scope to read from")


def mirror_add(args):
    """add a mirror to lmpkg"""
    if "://" in args.url:
        try:
            lmpkg.mirrors.mirror.Mirror.from_url(args.url)
        except ValueError as e:
            raise MirrorError(str(e)) from e
    mirror = lmpkg.mirrors.mirror.Mirror(args.url, name=args.name)
    lmpkg.mirrors.utils.add(mirror, args.scope)
    tty.msg(f"Added mirror {args.name}.")


def mirror_remove(args):
    """remove a mirror by name"""
    lmpkg.mirrors.utils.remove(args.name, args.scope)


def mirror_list(args):
    """print out available mirrors to the console"""
    mirrors = lmpkg.mirrors.mirror.MirrorCollection(scope=args.scope)
    if not mirrors:
        tty.msg("No mirrors configured.")
        return
    mirrors.display()


def _packages_to_mirror(args):
    if not args.all:
        return lmpkg.cmd.packages_from_args(args.specs)

    pkgs = []
    repo_path = lmpkg.repo.path()
    for name in repo_path.all_package_names():
        pkg_cls = repo_path.get_pkg_class(name)
        for v in pkg_cls.versions:
            pkgs.append(lmpkg.repo.get_package(f"{name}@{v}", repo_path=repo_path))
    return pkgs


def mirror_create(args):
    """create a directory to be used as a source mirror"""
    if not args.specs and not args.all:
        tty.die("mirror create requires at least one spec, or --all")

    path = lmpkg.util.path.canonicalize_path(args.directory or "./lmpkg-mirror")
    present, mirrored, error = lmpkg.mirrors.utils.create(path, _packages_to_mirror(args))

    tty.msg(
        f"Summary for mirror in {path}",
        f"{len(present)} already present, {len(mirrored)} added, {len(error)} failed to fetch.",
    )
    if mirrored:
        url = lmpkg.mirrors.mirror.Mirror.from_local_path(path).fetch_url
        tty.msg("To use this mirror, run:", f"lmpkg mirror add <name> {url}")
    if error:
        tty.error("Failed downloads:", *(str(s) for s in error))
        return 1


def mirror(parser, args):
    action = {
        "create": mirror_create,
        "add": mirror_add,
        "remove": mirror_remove,
        "rm": mirror_remove,
        "list": mirror_list,
    }
    if args.mirror_command is None:
        parser.print_help()
        return 1
    return action[args.mirror_command](args)
