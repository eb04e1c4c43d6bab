# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
"""Schema for packages.yaml configuration files.

.. literalinclude:: _lmpkg_root/lib/lmpkg/lmpkg/schema/packages.py
   :lines: 14-
"""
from typing import Any, Dict

#: Properties for inclusion in other schemas
properties: Dict[str, Any] = {
    "packages": {
        "type": "object",
        "default": {},
        "additionalProperties": False,
        "patternProperties": {
            r"^[\w][\w\-+.]*$": {
                "type": "object",
                "default": {},
                "additionalProperties": False,
                "properties": {
                    # install prefix of an external dependency
                    "prefix": {"type": "string"},
                    # default variants, e.g. "+mpi ~user-sph"
                    "variants": {"type": "string", "validate_spec": True},
                },
            }
        },
    }
}

#: Full schema with metadata
schema = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "lmpkg package configuration file schema",
    "type": "object",
    "additionalProperties": False,
    "properties": properties,
}
