# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
"""Schema for compilers.yaml and mpi.yaml configuration files.

``compilers`` names the serial compilers exported as CC, CXX, FC and F77;
``mpi`` names the MPI compiler wrappers exported as MPICC, MPICXX, MPIF77
and MPIFC (from ``mpif90``) for builds that depend on mpi.
"""
from typing import Any, Dict

_command = {"type": "string", "minLength": 1}

#: Properties for inclusion in other schemas
properties: Dict[str, Any] = {
    "compilers": {
        "type": "object",
        "additionalProperties": False,
        "properties": {"cc": _command, "cxx": _command, "fc": _command, "f77": _command},
    },
    "mpi": {
        "type": "object",
        "additionalProperties": False,
        "properties": {
            "mpicc": _command,
            "mpicxx": _command,
            "mpif77": _command,
            "mpif90": _command,
        },
    },
}

#: Full schema with metadata
schema = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "lmpkg compiler configuration file schema",
    "type": "object",
    "additionalProperties": False,
    "properties": properties,
}
