# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
"""Defines paths that are part of lmpkg's directory structure.

Do not import other ``lmpkg`` modules here. This module is used
throughout lmpkg and should bring in a minimal number of external
dependencies.
"""
import os
from pathlib import PurePath

#: This file lives in $prefix/lib/lmpkg/lmpkg/__file__
prefix = str(PurePath(__file__).parent.parent.parent.parent)

#: synonym for prefix
lmpkg_root = prefix

#: lib directory
lib_path = os.path.join(prefix, "lib", "lmpkg")
module_path = os.path.join(lib_path, "lmpkg")
test_path = os.path.join(module_path, "test")

#: var directory and the builtin recipe repository under it
var_path = os.path.join(prefix, "var", "lmpkg")
repos_path = os.path.join(var_path, "repos")
packages_path = os.path.join(repos_path, "builtin")

#: User configuration location
user_root = os.path.expanduser(os.path.join("~", ".lmpkg"))
user_config_path = os.environ.get("LMPKG_USER_CONFIG_PATH", user_root)

#: Default locations for install prefixes and downloaded archives
default_install_root = os.path.join(user_root, "opt")
default_source_cache = os.path.join(user_root, "cache", "source")
