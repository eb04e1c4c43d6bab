# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
"""Package repositories.

A repository is a directory holding ``packages/<name>/package.py`` files.
Each ``package.py`` is imported as ``lmpkg.pkg.<namespace>.<name>`` and
must define a class named after the package (``lammps`` -> ``Lammps``).
"""
import importlib.util
import os
import re
import sys
from typing import List, Optional, Union

import lmpkg.config
import lmpkg.error
import lmpkg.spec
import lmpkg.tty as tty
import lmpkg.util.path

#: Package modules are imported as ROOT_PYTHON_NAMESPACE.<namespace>.<pkg-name>
ROOT_PYTHON_NAMESPACE = "lmpkg.pkg"

packages_dir_name = "packages"
package_file_name = "package.py"


def python_package_for_repo(namespace: str) -> str:
    """Returns the full namespace of a repository, given its relative one"""
    return "{0}.{1}".format(ROOT_PYTHON_NAMESPACE, namespace)


def mod_to_class(mod_name: str) -> str:
    """Convert a name from module style to class name style.  lmpkg mostly
    follows `PEP-8 <http://legacy.python.org/dev/peps/pep-0008/>`_:

       * Module and package names use lowercase_with_underscores.
       * Class names use the CapWords convention.

    Regular source code follows these convetions.  lmpkg is a bit
    more liberal with its Package names and Compiler names:

       * They can contain '-' as well as '_', but cannot start with '-'.
       * They can start with numbers, e.g. "3proxy".

    This function converts from the module convention to the class
    convention by removing _ and - and converting surrounding
    lowercase text to CapWords.  If mod_name starts with a number,
    the class name returned will be prepended with '_' to make a
    valid Python identifier.
    """
    class_name = re.sub(r"[-_]+", "-", mod_name)
    class_name = string_capitalized = "".join(
        part.capitalize() for part in class_name.split("-")
    )
    if re.match(r"^[0-9]", string_capitalized):
        class_name = "_%s" % class_name
    return class_name


def python_module_name(pkg_name: str) -> str:
    """Name of the Python module a package file is imported as."""
    name = pkg_name.replace("-", "_")
    if re.match(r"^[0-9]", name):
        name = "num" + name
    return name


class Repo:
    """Class representing a package repository in the filesystem."""

    def __init__(self, root: str) -> None:
        self.root = lmpkg.util.path.canonicalize_path(root)
        self.namespace = os.path.basename(self.root)
        self.full_namespace = python_package_for_repo(self.namespace)
        self.packages_path = os.path.join(self.root, packages_dir_name)

        if not os.path.isdir(self.packages_path):
            raise BadRepoError(f"No directory named '{packages_dir_name}' in {self.root}")

    def filename_for_package_name(self, pkg_name: str) -> str:
        """Get the filename for the module we should load for a particular
        package.  Packages for a Repo live in
        ``$root/<package_name>/package.py``
        """
        return os.path.join(self.packages_path, pkg_name, package_file_name)

    def exists(self, pkg_name: str) -> bool:
        """Whether a package with the supplied name exists."""
        return os.path.isfile(self.filename_for_package_name(pkg_name))

    def all_package_names(self) -> List[str]:
        """Returns a sorted list of all package names in the Repo."""
        return sorted(
            name for name in os.listdir(self.packages_path) if self.exists(name)
        )

    def _get_pkg_module(self, pkg_name: str):
        fullname = f"{self.full_namespace}.{python_module_name(pkg_name)}"
        if fullname in sys.modules:
            return sys.modules[fullname]

        filename = self.filename_for_package_name(pkg_name)
        tty.debug(f"Loading package {pkg_name} from {filename}", level=2)
        module_spec = importlib.util.spec_from_file_location(fullname, filename)
        module = importlib.util.module_from_spec(module_spec)
        sys.modules[fullname] = module
        try:
            module_spec.loader.exec_module(module)
        except Exception as e:
            del sys.modules[fullname]
            raise RepoError(f"Error loading package '{pkg_name}' from {filename}", str(e)) from e
        return module

    def get_pkg_class(self, pkg_name: str):
        """Get the class for the package out of its module.

        First loads (or fetches from cache) a module for the
        package. Then extracts the package class from the module
        according to lmpkg's naming convention.
        """
        if not self.exists(pkg_name):
            raise lmpkg.error.NoSuchPackageError(pkg_name)

        module = self._get_pkg_module(pkg_name)
        class_name = mod_to_class(pkg_name)
        cls = getattr(module, class_name, None)
        if not isinstance(cls, type):
            raise RepoError(f"{module.__file__} must define a class named '{class_name}'")
        cls.name = pkg_name
        return cls

    def __repr__(self):
        return f"Repo({self.root!r})"


class RepoPath:
    """A RepoPath is a list of repos that function as one.

    It functions exactly like a Repo, but it operates on the combined
    results of the Repos in its list instead of on a single package
    repository.

    Args:
        repos: list Repo objects or paths to put in this RepoPath
    """

    def __init__(self, *repos: Union[str, Repo]) -> None:
        self.repos: List[Repo] = []
        for repo in repos:
            self.repos.append(repo if isinstance(repo, Repo) else Repo(repo))

    def repo_for_pkg(self, pkg_name: str) -> Repo:
        for repo in self.repos:
            if repo.exists(pkg_name):
                return repo
        raise lmpkg.error.NoSuchPackageError(
            pkg_name, long_message="searched: " + ", ".join(r.root for r in self.repos)
        )

    def exists(self, pkg_name: str) -> bool:
        return any(repo.exists(pkg_name) for repo in self.repos)

    def all_package_names(self) -> List[str]:
        names = set()
        for repo in self.repos:
            names.update(repo.all_package_names())
        return sorted(names)

    def get_pkg_class(self, pkg_name: str):
        """Find a class for the spec's package and return the class object."""
        return self.repo_for_pkg(pkg_name).get_pkg_class(pkg_name)


def path() -> RepoPath:
    """The repositories listed in the ``repos`` configuration section."""
    return RepoPath(*lmpkg.config.get("repos"))


def get_package(spec_like: Union[str, "lmpkg.spec.Spec"], repo_path: Optional[RepoPath] = None):
    """Concretize a spec against its recipe and return the package object.

    Variants set in ``packages:<name>:variants`` are defaults that the spec
    itself overrides.
    """
    spec = lmpkg.spec.Spec(spec_like)
    if not spec.name:
        raise lmpkg.error.SpecSyntaxError(f"'{spec_like}' does not name a package")

    pkg_cls = (repo_path or path()).get_pkg_class(spec.name)

    configured = lmpkg.config.get(f"packages:{spec.name}:variants")
    if configured:
        defaults = lmpkg.spec.Spec(configured)
        for name, value in defaults.variants.items():
            spec.variants.setdefault(name, value)

    concrete = lmpkg.spec.concretize(spec, pkg_cls)
    return pkg_cls(concrete)


class RepoError(lmpkg.error.LmpkgError):
    """Superclass for repository-related errors."""


class BadRepoError(RepoError):
    """Raised when repo layout is invalid."""
