# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
"""This module implements lmpkg's configuration file handling.

This implements lmpkg's configuration system, which handles merging
multiple scopes with different levels of precedence.  See the
documentation on :ref:`configuration-scopes` for details on how lmpkg's
configuration system behaves.  The scopes are:

  #. ``defaults``
  #. ``user``
  #. ``command_line`` (one per ``-C`` directory)

Important functions in this module are:

* :func:`~lmpkg.config.Configuration.get_config`
* :func:`~lmpkg.config.Configuration.update_config`

``get_config`` reads in YAML data for a particular scope and returns
it. Callers can then modify the data and write it back with
``update_config``.

When read in, lmpkg validates configurations with jsonschemas.  The
schemas are in submodules of :py:mod:`lmpkg.schema`.

"""
import contextlib
import copy
import os
from typing import Any, Dict, List, Optional, Union

import lmpkg.paths
import lmpkg.schema
import lmpkg.schema.compilers
import lmpkg.schema.config
import lmpkg.schema.mirrors
import lmpkg.schema.packages
import lmpkg.schema.repos
import lmpkg.tty as tty
import lmpkg.util.lmpkg_yaml as syaml
import lmpkg.util.path
from lmpkg.error import ConfigError, ConfigFormatError
from lmpkg.util.filesystem import mkdirp

#: Dict from section names -> schema for that section
SECTION_SCHEMAS: Dict[str, Any] = {
    "compilers": lmpkg.schema.compilers.schema,
    "config": lmpkg.schema.config.schema,
    "mirrors": lmpkg.schema.mirrors.schema,
    "mpi": lmpkg.schema.compilers.schema,
    "packages": lmpkg.schema.packages.schema,
    "repos": lmpkg.schema.repos.schema,
}

#: Hard-coded default values for some key configuration options.
#: They form the lowest precedence scope, below any configuration file.
CONFIG_DEFAULTS = {
    "config": {
        "install_tree": {"root": lmpkg.paths.default_install_root},
        "build_stage": os.path.join("$tempdir", "$user", "lmpkg-stage"),
        "source_cache": lmpkg.paths.default_source_cache,
        "dependency_root": "/usr/local",
        "build_jobs": min(16, os.cpu_count() or 1),
        "checksum": True,
        "verify_ssl": True,
        "connect_timeout": 10,
        "debug": False,
    },
    "compilers": {"cc": "cc", "cxx": "c++", "fc": "gfortran", "f77": "gfortran"},
    "mpi": {"mpicc": "mpicc", "mpicxx": "mpicxx", "mpif77": "mpif77", "mpif90": "mpif90"},
    "packages": {},
    "mirrors": {},
    "repos": [lmpkg.paths.packages_path],
}


def _validate(data: Dict[str, Any], schema: Dict[str, Any], filename: Optional[str] = None):
    """Validate data read in from a lmpkg YAML file.

    Arguments:
        data: data read from a lmpkg YAML file
        schema: jsonschema to validate data
        filename: file the data came from, for error messages
    """
    import jsonschema

    try:
        lmpkg.schema.Validator(schema).validate(data)
    except jsonschema.ValidationError as e:
        raise ConfigFormatError(e, filename) from e


class ConfigScope:
    """This class represents a configuration scope.

    A scope is one directory containing named configuration files.
    Each file is a config "section" (e.g., mirrors, compilers, etc.).
    """

    def __init__(self, name: str, path: str) -> None:
        self.name = name  # scope name.
        self.path = path  # path to directory containing configs.
        self.sections: Dict[str, Any] = {}  # sections read from config files.
        self.writable = True

    def get_section_filename(self, section: str) -> str:
        _validate_section_name(section)
        return os.path.join(self.path, "%s.yaml" % section)

    def get_section(self, section: str) -> Optional[Dict[str, Any]]:
        if section not in self.sections:
            path = self.get_section_filename(section)
            data = None
            if os.path.exists(path):
                tty.debug(f"Reading config from file {path}", level=2)
                with open(path, encoding="utf-8") as f:
                    data = syaml.load(f)
                if data is not None:
                    _validate(data, SECTION_SCHEMAS[section], path)
            self.sections[section] = data
        return self.sections[section]

    def _write_section(self, section: str) -> None:
        data = self.get_section(section)
        if data is None:
            return

        _validate(data, SECTION_SCHEMAS[section], self.name)
        filename = self.get_section_filename(section)
        try:
            mkdirp(self.path)
            with open(filename, "w", encoding="utf-8") as f:
                syaml.dump(data, stream=f)
        except OSError as e:
            raise ConfigFileError(f"cannot write to config file {filename}", str(e)) from e

    def clear(self) -> None:
        """Empty cached config information."""
        self.sections = {}

    def __repr__(self):
        return f"<ConfigScope: {self.name}: {self.path}>"


class InternalConfigScope(ConfigScope):
    """An internal configuration scope that is not persisted to a file.

    This is for lmpkg internal use so that command-line options and
    config file settings are accessed the same way, and Python code can
    use the same configuration machinery.
    """

    def __init__(self, name: str, data: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(name, None)  # type: ignore[arg-type]
        self.sections = {}
        self.writable = True
        if data:
            for section in data:
                dsec = {section: data[section]}
                _validate(dsec, SECTION_SCHEMAS[section], name)
                self.sections[section] = copy.deepcopy(dsec)

    def get_section_filename(self, section: str) -> str:
        raise NotImplementedError("Cannot get filename for InternalConfigScope.")

    def get_section(self, section: str) -> Optional[Dict[str, Any]]:
        _validate_section_name(section)
        return self.sections.get(section)

    def _write_section(self, section: str) -> None:
        """This only validates, as the data is already in memory."""
        data = self.get_section(section)
        if data is not None:
            _validate(data, SECTION_SCHEMAS[section], self.name)

    def clear(self) -> None:
        # no cache to clear here.
        pass

    def __repr__(self):
        return f"<InternalConfigScope: {self.name}>"


class Configuration:
    """A full lmpkg configuration, from a hierarchy of config files.

    This class makes it easy to add a new scope on top of an existing one.
    """

    def __init__(self, *scopes: ConfigScope) -> None:
        """Initialize a configuration with an initial list of scopes.

        Args:
            scopes: list of scopes to add to this
                Configuration, ordered from lowest to highest precedence
        """
        self.scopes: Dict[str, ConfigScope] = {}
        for scope in scopes:
            self.push_scope(scope)

    def push_scope(self, scope: ConfigScope) -> None:
        """Add a higher precedence scope to the Configuration."""
        tty.debug(f"[CONFIGURATION: PUSH SCOPE]: {str(scope)}", level=2)
        self.scopes[scope.name] = scope

    def remove_scope(self, scope_name: str) -> Optional[ConfigScope]:
        """Remove scope by name; has no effect when ``scope_name`` does not exist"""
        scope = self.scopes.pop(scope_name, None)
        tty.debug(f"[CONFIGURATION: REMOVE SCOPE]: {str(scope)}", level=2)
        return scope

    @property
    def writable_scopes(self) -> List[ConfigScope]:
        """List of writable scopes with an associated file."""
        return [s for s in self.scopes.values() if s.writable]

    def highest_precedence_scope(self) -> ConfigScope:
        """Non-internal scope with highest precedence."""
        return next(reversed(self.scopes.values()))

    def _validate_scope(self, scope: Optional[str]) -> ConfigScope:
        """Ensure that scope is valid in this configuration.

        This should be used by routines in ``config.py`` to validate
        scope name arguments, and to determine a default scope where no
        scope is specified.

        Raises:
            ValueError: if ``scope`` is not valid

        Returns:
            ConfigScope: a valid ConfigScope if ``scope`` is ``None`` or valid
        """
        if scope is None:
            # default to the scope with highest precedence.
            return self.highest_precedence_scope()

        elif scope in self.scopes:
            return self.scopes[scope]

        else:
            raise ValueError(
                "Invalid config scope: '%s'.  Must be one of %s" % (scope, list(self.scopes))
            )

    def get_config(self, section: str, scope: Optional[str] = None) -> Any:
        """Get configuration settings for a section.

        If ``scope`` is ``None`` or not provided, return the merged contents
        of all of lmpkg's configuration scopes.  If ``scope`` is provided,
        return only the configuration as specified in that scope.

        This off the top-level name from the YAML section.  That is, for a
        YAML config file that looks like this::

           config:
             install_tree:
               root: $lmpkg/opt/lmpkg
             build_stage:
             - $tempdir/$user/lmpkg-stage

        ``get_config('config')`` will return::

           { 'install_tree': {
                 'root': '$lmpkg/opt/lmpkg',
             }
             'build_stage': ['$tempdir/$user/lmpkg-stage']
           }

        """
        _validate_section_name(section)

        if scope is None:
            scopes = list(self.scopes.values())
        else:
            scopes = [self._validate_scope(scope)]

        merged_section: Any = None
        for scope in scopes:
            # read potentially cached data from the scope.
            data = scope.get_section(section)
            if not data or section not in data:
                continue
            value = copy.deepcopy(data[section])
            merged_section = value if merged_section is None else lmpkg.schema.merge_yaml(
                merged_section, value
            )

        # no config files -- empty config.
        if merged_section is None:
            return [] if section == "repos" else {}
        return merged_section

    def get(self, path: str, default: Optional[Any] = None, scope: Optional[str] = None) -> Any:
        """Get a config section or a single value from one.

        Accepts a path syntax that allows us to grab nested config map
        entries.  Getting the 'config' section would look like::

            lmpkg.config.get('config')

        and the ``install_tree`` value would be::

            lmpkg.config.get('config:install_tree')

        We use ``:`` as the separator, like YAML objects.
        """
        parts = process_config_path(path)
        section = parts.pop(0)

        value = self.get_config(section, scope=scope)

        while parts:
            key = parts.pop(0)
            if not isinstance(value, dict) or key not in value:
                return default
            value = value[key]

        return value

    def set(self, path: str, value: Any, scope: Optional[str] = None) -> None:
        """Convenience function for setting single values in config files.

        Accepts the path syntax described in ``get()``.
        """
        if ":" not in path:
            # handle bare section name as path
            self.update_config(path, value, scope=scope)
            return

        parts = process_config_path(path)
        section = parts.pop(0)

        section_data = self.get_config(section, scope=scope)

        data = section_data
        while len(parts) > 1:
            key = parts.pop(0)
            new = data.setdefault(key, {})
            if not isinstance(new, dict):
                raise ConfigError(f"cannot set {path}: '{key}' is not a mapping")
            data = new

        data[parts[0]] = value

        self.update_config(section, section_data, scope=scope)

    def update_config(self, section: str, update_data: Any, scope: Optional[str] = None) -> None:
        """Update the configuration file for a particular scope.

        Overwrites contents of a section in a scope with update_data,
        then writes out the config file.

        Args:
            section: section of the configuration to be updated
            update_data: data to be used for the update
            scope: scope to be updated
        """
        _validate_section_name(section)  # validate section name
        scope_obj = self._validate_scope(scope)  # get ConfigScope object

        data = {section: update_data}
        _validate(data, SECTION_SCHEMAS[section], scope_obj.name)
        scope_obj.sections[section] = data
        scope_obj._write_section(section)

    def clear_caches(self) -> None:
        """Clears the caches for configuration files,

        This will cause files to be re-read upon the next request."""
        for scope in self.scopes.values():
            scope.clear()

    def print_section(self, section: str) -> None:
        """Print a configuration to stdout."""
        data = {section: self.get_config(section)}
        print(syaml.dump(data), end="")


def _validate_section_name(section: str) -> None:
    """Exit if the section is not a valid section."""
    if section not in SECTION_SCHEMAS:
        raise ConfigSectionError(
            "Invalid config section: '%s'. Options are: %s"
            % (section, " ".join(SECTION_SCHEMAS.keys()))
        )


def process_config_path(path: str) -> List[str]:
    """Split a ``section:key:subkey`` path into its components."""
    parts = [p for p in path.split(":") if p]
    if not parts:
        raise ConfigError(f"invalid config path: '{path}'")
    return parts


def add_command_line_scopes(cfg: Configuration, command_line_scopes: List[str]) -> None:
    """Add additional scopes from the --config-scope argument, either envs or dirs.

    Args:
        cfg: configuration instance
        command_line_scopes: list of configuration scopes paths

    Raises:
        ConfigError: if the path is an invalid configuration scope
    """
    for i, path in enumerate(command_line_scopes):
        path = lmpkg.util.path.canonicalize_path(path)
        if not os.path.isdir(path):
            raise ConfigError(f"Invalid configuration scope: {path} is not a directory")
        name = f"cmd_scope_{i}"
        cfg.push_scope(ConfigScope(name, path))


def create() -> Configuration:
    """Singleton Configuration instance.

    This constructs one instance associated with this module and returns
    it. It is bundled inside a function so that configuration can be
    initialized lazily.
    """
    cfg = Configuration()
    cfg.push_scope(InternalConfigScope("defaults", CONFIG_DEFAULTS))
    cfg.push_scope(ConfigScope("user", lmpkg.paths.user_config_path))
    return cfg


#: This is the singleton configuration instance for lmpkg.
CONFIG: Optional[Configuration] = None


def _config() -> Configuration:
    global CONFIG
    if CONFIG is None:
        CONFIG = create()
    return CONFIG


def get(path: str, default: Optional[Any] = None, scope: Optional[str] = None) -> Any:
    """Module-level wrapper for ``Configuration.get()``."""
    return _config().get(path, default, scope)


def set(path: str, value: Any, scope: Optional[str] = None) -> None:
    """Convenience function for setting single values in config files.

    Accepts the path syntax described in ``get()``.
    """
    return _config().set(path, value, scope)


@contextlib.contextmanager
def use_configuration(configuration: Union[Configuration, ConfigScope]):
    """Use the configuration scopes passed as arguments within the
    context manager.

    Args:
        configuration: either a Configuration object or a single scope,
            pushed on top of the hard-coded defaults

    Returns:
        Configuration object associated with the scopes passed as arguments
    """
    global CONFIG

    if isinstance(configuration, ConfigScope):
        configuration = Configuration(
            InternalConfigScope("defaults", CONFIG_DEFAULTS), configuration
        )

    saved_config, CONFIG = CONFIG, configuration
    try:
        yield configuration
    finally:
        CONFIG = saved_config


def path_option(path: str) -> str:
    """A configured path with placeholders substituted, as an absolute path."""
    value = get(path)
    if value is None:
        raise ConfigError(f"no value configured for '{path}'")
    return lmpkg.util.path.canonicalize_path(value)


def dependency_prefix(name: str) -> str:
    """Install prefix of the dependency ``name``.

    An explicit ``packages:<name>:prefix`` wins; otherwise every dependency
    lives under ``config:dependency_root``.
    """
    prefix = get(f"packages:{name}:prefix")
    if prefix:
        return lmpkg.util.path.canonicalize_path(prefix)
    return path_option("config:dependency_root")


class ConfigSectionError(ConfigError):
    """Error for referring to a bad config section name in a configuration."""


class ConfigFileError(ConfigError):
    """Issue reading or accessing a configuration file."""
