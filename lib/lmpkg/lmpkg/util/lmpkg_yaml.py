# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
"""Enhanced YAML parsing for lmpkg.

- ``load()`` reads configuration files into plain ordered dictionaries.
- ``dump()`` writes block-style YAML, preserving key order.

All configuration files go through these two functions so that the YAML
flavor is chosen in exactly one place.
"""
import io
from typing import IO, Any, Optional

from ruamel.yaml import YAML
from ruamel.yaml.error import MarkedYAMLError

import lmpkg.error

__all__ = ["load", "dump", "syaml_dict", "LmpkgYAMLError"]

#: Configuration mappings are plain dicts; insertion order is significant
syaml_dict = dict


def _yaml(typ: str = "safe") -> YAML:
    yaml = YAML(typ=typ, pure=True)
    yaml.default_flow_style = False
    # mirrors and repos are listed in order of precedence
    yaml.sort_base_mapping_type_on_output = False
    return yaml


def load(stream: Any) -> Any:
    """Load YAML from a stream or a string into plain Python objects."""
    try:
        return _yaml().load(stream)
    except MarkedYAMLError as e:
        raise LmpkgYAMLError("error parsing YAML:", str(e)) from e


def dump(data: Any, stream: Optional[IO[str]] = None) -> Optional[str]:
    """Dump YAML to a stream, or return it as a string if no stream is given."""
    if stream is not None:
        _yaml().dump(data, stream)
        return None
    string_stream = io.StringIO()
    _yaml().dump(data, string_stream)
    return string_stream.getvalue()


class LmpkgYAMLError(lmpkg.error.LmpkgError):
    """Raised when there are issues with YAML parsing."""
