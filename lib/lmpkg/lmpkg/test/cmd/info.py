# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
import pytest

from lmpkg.main import main


def test_info_lammps(mutable_config, capsys):
    assert main(["info", "lammps"]) == 0
    out = capsys.readouterr().out

    assert "Package:   lammps" in out
    assert "Homepage: http://lammps.sandia.gov" in out
    # newest first
    assert out.index("develop") < out.index("2013.02.12")
    assert "http://git.icms.temple.edu/lammps-ro.git" in out
    assert "Build lammps with the 'user-colvars' package" in out
    assert "mpi (build, link) when +mpi" in out
    assert "gfortran (build)" in out
    assert "user-omp_bsd.patch when +user-omp" in out


@pytest.mark.parametrize("section", ["Description", "Versions", "Variants", "Dependencies"])
def test_info_sections(mutable_config, capsys, section):
    main(["info", "lammps"])
    assert f"{section}:" in capsys.readouterr().out
