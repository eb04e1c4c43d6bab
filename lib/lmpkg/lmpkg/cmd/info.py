# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
import textwrap

import lmpkg.repo

description = "get detailed information on a particular package"
level = "short"

header_fmt = "{0}:"


def setup_parser(subparser):
    subparser.add_argument("package", help="name of package to get info for")


def section_title(s):
    return header_fmt.format(s)


def print_text_info(pkg_cls):
    """Print out a plain text description of a package class."""
    print(f"Package:   {pkg_cls.name}")
    print()
    print(section_title("Description"))
    doc = (pkg_cls.__doc__ or "None").strip()
    print(textwrap.indent(textwrap.fill(" ".join(doc.split()), 76), "    "))
    print()
    print(section_title("Homepage"), pkg_cls.homepage or "None")


def print_versions(pkg_cls):
    print()
    print(section_title("Versions"))
    if not pkg_cls.versions:
        print("    None")
        return
    for v in sorted(pkg_cls.versions, reverse=True):
        args = pkg_cls.versions[v]
        if "git" in args:
            where = args["git"]
        else:
            where = args.get("url") or pkg_cls.url or ""
        print(f"    {str(v):<16}{where}")


def print_variants(pkg_cls):
    print()
    print(section_title("Variants"))
    if not pkg_cls.variants:
        print("    None")
        return
    width = max(len(name) for name in pkg_cls.variants) + 2
    for name, variant in pkg_cls.variants.items():
        default = "on" if variant.default else "off"
        print(f"    {name:<{width}}[{default}]  {variant.description}")


def print_dependencies(pkg_cls):
    print()
    print(section_title("Dependencies"))
    if not pkg_cls.dependencies:
        print("    None")
        return
    for name, dep in pkg_cls.dependencies.items():
        when = f" when {dep.when}" if dep.when is not None else ""
        print(f"    {name} ({', '.join(dep.type)}){when}")


def print_patches(pkg_cls):
    if not pkg_cls.patches:
        return
    print()
    print(section_title("Patches"))
    for url, p in pkg_cls.patches.items():
        when = f" when {p.when}" if p.when is not None else ""
        print(f"    {url}{when}")


def info(parser, args):
    pkg_cls = lmpkg.repo.path().get_pkg_class(args.package)
    print_text_info(pkg_cls)
    print_versions(pkg_cls)
    print_variants(pkg_cls)
    print_dependencies(pkg_cls)
    print_patches(pkg_cls)
