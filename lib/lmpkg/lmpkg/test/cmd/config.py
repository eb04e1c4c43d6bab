# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
import lmpkg.config
from lmpkg.main import main


def test_config_list(mutable_config, capsys):
    assert main(["config", "list"]) == 0
    sections = capsys.readouterr().out.split()
    assert {"config", "compilers", "mpi", "packages", "mirrors", "repos"} <= set(sections)


def test_config_get_merged(mutable_config, capsys):
    assert main(["config", "get", "compilers"]) == 0
    out = capsys.readouterr().out
    assert "compilers:" in out
    assert "fc: gfortran" in out


def test_config_add_keeps_types(mutable_config, tmp_path, capsys):
    assert main(["config", "add", "config:build_jobs:4", "--scope", "site"]) == 0
    assert main(["config", "add", "config:checksum:false", "--scope", "site"]) == 0

    assert lmpkg.config.get("config:build_jobs") == 4
    assert lmpkg.config.get("config:checksum") is False
    assert "build_jobs: 4" in (tmp_path / "site" / "config.yaml").read_text()

    assert main(["config", "get", "config", "--scope", "site"]) == 0
    out = capsys.readouterr().out
    assert "build_jobs: 4" in out
    assert "dependency_root" not in out


def test_config_add_package_prefix(mutable_config):
    assert main(["config", "add", "packages:fftw:prefix:/opt/fftw", "--scope", "site"]) == 0
    assert lmpkg.config.dependency_prefix("fftw") == "/opt/fftw"


def test_config_add_invalid_value(mutable_config, capsys):
    assert main(["config", "add", "config:build_jobs:many", "--scope", "site"]) == 1
    assert "build_jobs" in capsys.readouterr().err
    assert lmpkg.config.get("config:build_jobs") == 1


def test_config_add_without_value(mutable_config, capsys):
    assert main(["config", "add", "config", "--scope", "site"]) == 1
    assert "does not give a value" in capsys.readouterr().err
