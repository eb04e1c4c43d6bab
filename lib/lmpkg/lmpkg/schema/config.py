# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
"""Schema for config.yaml configuration file.

.. literalinclude:: _lmpkg_root/lib/lmpkg/lmpkg/schema/config.py
   :lines: 12-
"""
from typing import Any, Dict

#: Properties for inclusion in other schemas
properties: Dict[str, Any] = {
    "config": {
        "type": "object",
        "default": {},
        "additionalProperties": False,
        "properties": {
            "install_tree": {
                "type": "object",
                "additionalProperties": False,
                "properties": {"root": {"type": "string"}},
            },
            "build_stage": {"type": "string"},
            "source_cache": {"type": "string"},
            "dependency_root": {"type": "string"},
            "build_jobs": {"type": "integer", "minimum": 1},
            "checksum": {"type": "boolean"},
            "verify_ssl": {"type": "boolean"},
            "connect_timeout": {"type": "integer", "minimum": 0},
            "debug": {"type": "boolean"},
            "python": {"type": "string"},
        },
    }
}


#: Full schema with metadata
schema = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "lmpkg core configuration file schema",
    "type": "object",
    "additionalProperties": False,
    "properties": properties,
}
