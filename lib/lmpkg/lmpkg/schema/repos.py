# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
"""Schema for repos.yaml configuration file.

.. literalinclude:: _lmpkg_root/lib/lmpkg/lmpkg/schema/repos.py
   :lines: 12-
"""
from typing import Any, Dict

#: Properties for inclusion in other schemas
properties: Dict[str, Any] = {
    "repos": {"type": "array", "default": [], "items": {"type": "string"}}
}


#: Full schema with metadata
schema = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "lmpkg repository configuration file schema",
    "type": "object",
    "additionalProperties": False,
    "properties": properties,
}
