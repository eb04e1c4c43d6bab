# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
"""Schema for mirrors.yaml configuration file.

.. literalinclude:: _lmpkg_root/lib/lmpkg/lmpkg/schema/mirrors.py
   :lines: 12-
"""
from typing import Any, Dict

#: Mirror connection: either a bare URL or a dict with a url
connection = {"type": "object", "additionalProperties": False, "properties": {"url": {"type": "string"}}}

#: A mirror entry: a URL, or a dict with fetch/push URLs
mirror_entry = {
    "type": "object",
    "additionalProperties": False,
    "anyOf": [{"required": ["url"]}, {"required": ["fetch"]}, {"required": ["push"]}],
    "properties": {
        "url": {"type": "string"},
        "source": {"type": "boolean"},
        "fetch": {"anyOf": [{"type": "string"}, connection]},
        "push": {"anyOf": [{"type": "string"}, connection]},
    },
}

#: Properties for inclusion in other schemas
properties: Dict[str, Any] = {
    "mirrors": {
        "type": "object",
        "default": {},
        "additionalProperties": False,
        "patternProperties": {r"\w[\w-]*": {"anyOf": [{"type": "string"}, mirror_entry]}},
    }
}


#: Full schema with metadata
schema = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "lmpkg mirror configuration file schema",
    "type": "object",
    "additionalProperties": False,
    "properties": properties,
}
