# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
import os

import pytest

import lmpkg.config
import lmpkg.error
import lmpkg.paths
import lmpkg.util.path


def write_scope(path, section, text):
    path.mkdir(parents=True, exist_ok=True)
    (path / f"{section}.yaml").write_text(text)


def test_defaults_are_available(tmp_path, monkeypatch):
    monkeypatch.setattr(lmpkg.paths, "user_config_path", str(tmp_path))
    cfg = lmpkg.config.create()
    assert cfg.get("config:checksum") is True
    assert cfg.get("config:dependency_root") == "/usr/local"
    assert cfg.get("compilers:fc") == "gfortran"
    assert cfg.get("repos") == [lmpkg.paths.packages_path]


def test_higher_scopes_override(mutable_config, tmp_path):
    write_scope(
        tmp_path / "site",
        "config",
        "config:\n  build_jobs: 3\n  install_tree:\n    root: /opt/lammps\n",
    )
    mutable_config.clear_caches()

    assert lmpkg.config.get("config:build_jobs") == 3
    assert lmpkg.config.get("config:install_tree:root") == "/opt/lammps"
    # values from lower scopes survive the merge
    assert lmpkg.config.get("config:checksum") is True


def test_get_missing_returns_default(mutable_config):
    assert lmpkg.config.get("config:nothing:here", default="x") == "x"
    assert lmpkg.config.get("packages:fftw:prefix") is None


def test_set_writes_to_scope(mutable_config, tmp_path):
    lmpkg.config.set("packages:fftw:prefix", "/opt/fftw", scope="site")

    assert "/opt/fftw" in (tmp_path / "site" / "packages.yaml").read_text()
    mutable_config.clear_caches()
    assert lmpkg.config.get("packages:fftw:prefix") == "/opt/fftw"


def test_set_validates(mutable_config):
    with pytest.raises(lmpkg.error.ConfigFormatError):
        lmpkg.config.set("config:build_jobs", "many", scope="site")


def test_mpi_wrappers_from_yaml(mutable_config, tmp_path):
    write_scope(
        tmp_path / "site",
        "mpi",
        "mpi:\n  mpicc: /opt/mpi/bin/mpicc\n  mpicxx: /opt/mpi/bin/mpicxx\n"
        "  mpif90: /opt/mpi/bin/mpif90\n",
    )
    mutable_config.clear_caches()

    assert lmpkg.config.get("mpi:mpif90") == "/opt/mpi/bin/mpif90"
    # unset keys keep their defaults
    assert lmpkg.config.get("mpi:mpif77") == "mpif77"

    lmpkg.config.set("mpi:mpif90", "mpifort", scope="site")
    assert lmpkg.config.get("mpi:mpif90") == "mpifort"

    with pytest.raises(lmpkg.error.ConfigFormatError, match="mpifc"):
        lmpkg.config.set("mpi:mpifc", "mpifort", scope="site")


def test_bad_yaml_is_reported_with_file(mutable_config, tmp_path):
    write_scope(tmp_path / "site", "config", "config:\n  checksum: 12\n")
    mutable_config.clear_caches()

    with pytest.raises(lmpkg.error.ConfigFormatError, match="config.yaml"):
        lmpkg.config.get("config:checksum")


def test_invalid_section(mutable_config):
    with pytest.raises(lmpkg.config.ConfigSectionError):
        lmpkg.config.get("modules:tcl")


def test_invalid_scope(mutable_config):
    with pytest.raises(ValueError, match="Invalid config scope"):
        lmpkg.config.get("config", scope="nope")


def test_dependency_prefix(mutable_config, tmp_path):
    assert lmpkg.config.dependency_prefix("jpeg") == str(tmp_path / "deps")

    lmpkg.config.set("packages:jpeg:prefix", "/opt/jpeg", scope="site")
    assert lmpkg.config.dependency_prefix("jpeg") == "/opt/jpeg"


def test_path_option_substitutes_variables(mutable_config):
    lmpkg.config.set("config:build_stage", "$tempdir/lmpkg-test-stage", scope="site")
    path = lmpkg.config.path_option("config:build_stage")
    assert os.path.isabs(path)
    assert path.endswith("lmpkg-test-stage")
    assert "$" not in path


def test_canonicalize_path_relative(tmp_path):
    assert lmpkg.util.path.canonicalize_path("cache", default_wd=str(tmp_path)) == str(
        tmp_path / "cache"
    )


def test_use_configuration_restores_previous():
    before = lmpkg.config.CONFIG
    scope = lmpkg.config.InternalConfigScope("test", {"config": {"build_jobs": 2}})
    with lmpkg.config.use_configuration(scope) as cfg:
        assert lmpkg.config.get("config:build_jobs") == 2
        assert cfg.get("config:checksum") is True
    assert lmpkg.config.CONFIG is before
