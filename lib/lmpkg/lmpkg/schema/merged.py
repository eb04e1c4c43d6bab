# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
"""Schema for configuration merged into one file.

.. literalinclude:: _lmpkg_root/lib/lmpkg/lmpkg/schema/merged.py
   :lines: 32-
"""
from typing import Any, Dict

import lmpkg.schema.compilers
import lmpkg.schema.config
import lmpkg.schema.mirrors
import lmpkg.schema.packages
import lmpkg.schema.repos

#: Properties for inclusion in other schemas
properties: Dict[str, Any] = {
    **lmpkg.schema.compilers.properties,
    **lmpkg.schema.config.properties,
    **lmpkg.schema.mirrors.properties,
    **lmpkg.schema.packages.properties,
    **lmpkg.schema.repos.properties,
}


#: Full schema with metadata
schema = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "lmpkg merged configuration file schema",
    "type": "object",
    "additionalProperties": False,
    "properties": properties,
}
