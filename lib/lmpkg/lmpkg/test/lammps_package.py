# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
"""Build the lammps recipe against a miniature source tree and a fake make."""
import os
import sys

import pytest

import lmpkg.config
import lmpkg.installer
import lmpkg.repo
from lmpkg.build_environment import EnvironmentModifications
from lmpkg.error import InstallError, TestFailure
from lmpkg.util.filesystem import working_dir
from lmpkg.version import Version

SERIAL_MAKE_LOG = [
    "reax -f Makefile.gfortran",
    "meam -f Makefile.gfortran",
    "poems -f Makefile.g++",
    "src yes-standard",
    "src no-gpu",
    "src no-kim",
    "STUBS",
    "src mac",
    "src makeshlib",
    "src -f Makefile.shlib mac",
]


@pytest.fixture
def lammps(mutable_config, builtin_repo, fake_lammps_source, monkeypatch):
    """Factory of concrete lammps packages whose release points at the fake tarball."""
    url, sha1 = fake_lammps_source
    cls = builtin_repo.get_pkg_class("lammps")
    monkeypatch.setitem(cls.versions, Version("2013.02.12"), {"sha1": sha1, "url": url})
    for var in ("CFLAGS", "LDFLAGS", "CXX", "FC", "MPICXX", "MAKEFLAGS"):
        monkeypatch.delenv(var, raising=False)

    def _factory(spec_str="lammps"):
        return lmpkg.repo.get_package(spec_str, repo_path=builtin_repo)

    return _factory


def read_make_vars(path):
    values = {}
    with open(path) as f:
        for line in f:
            if "=" in line and not line[0].isspace():
                key, value = line.split("=", 1)
                values[key.strip()] = value.strip()
    return values


def make_log(log):
    return [line.strip() for line in log.read_text().splitlines()]


def test_lammps_metadata(builtin_repo):
    cls = builtin_repo.get_pkg_class("lammps")
    assert cls.name == "lammps"
    assert cls.homepage == "http://lammps.sandia.gov"
    assert sorted(cls.versions, reverse=True) == [Version("develop"), Version("2013.02.12")]
    assert cls.versions[Version("develop")] == {
        "branch": "master",
        "git": "http://git.icms.temple.edu/lammps-ro.git",
    }

    user_pkgs = [name for name in cls.variants if name.startswith("user-")]
    assert user_pkgs[-1] == "user-omp"
    assert "user-atc" not in cls.variants
    assert "user-cuda" not in cls.variants
    assert not any(v.default for v in cls.variants.values())

    assert set(cls.dependencies) == {"fftw", "jpeg", "voro++", "gfortran", "mpi", "gcc"}
    assert str(cls.dependencies["mpi"].when) == "+mpi"


def test_lammps_install_test_names(lammps):
    # framework helpers are not install tests, even when named test_*
    assert lammps().install_test_names() == ["test_bench_lj", "test_python_module"]


def test_lammps_url_for_version(lammps):
    pkg = lammps()
    assert pkg.url_for_version(Version("2013.02.12")).endswith("/tars/lammps-12Feb13.tar.gz")
    assert pkg.url_for_version(Version("2013.10.1")).endswith("/tars/lammps-1Oct13.tar.gz")


def test_lammps_concretize_defaults(lammps):
    pkg = lammps()
    assert pkg.version == Version("2013.02.12")
    assert not pkg.spec.satisfies("+mpi")
    assert set(pkg.spec.dependencies) == {"fftw", "jpeg", "voro++", "gfortran"}
    assert pkg.patches_to_apply() == []


def test_lammps_configured_variants(lammps, mutable_config):
    lmpkg.config.set("packages:lammps:variants", "+mpi +user-sph", scope="site")
    pkg = lammps()
    assert pkg.spec.satisfies("+mpi +user-sph")
    assert "mpi" in pkg.spec.dependencies

    # the command line wins over the configuration
    assert not lammps("lammps ~mpi").spec.satisfies("+mpi")


def test_lammps_variant_builds_get_their_own_prefix(lammps):
    assert lammps().prefix != lammps("lammps +mpi").prefix


def test_lammps_user_omp_environment(lammps):
    pkg = lammps("lammps +user-omp")
    gcc = lmpkg.config.dependency_prefix("gcc")

    env = EnvironmentModifications()
    pkg.setup_build_environment(env)
    result = {}
    env.apply_modifications(result)

    assert result["CXX"] == os.path.join(gcc, "bin", "g++")
    assert result["OMPI_MPICXX"] == result["CXX"]
    assert result["CFLAGS"] == "-O -fopenmp"
    assert result["LDFLAGS"] == f"-O -L{gcc}/gcc/lib -lgomp"

    patches = pkg.patches_to_apply()
    assert len(patches) == 1
    assert patches[0].url.endswith("user-omp_bsd.patch")


@pytest.mark.parametrize("spec_str,missing", [("lammps", "FC"), ("lammps +mpi", "MPIFC")])
def test_lammps_build_lib_without_compiler(lammps, tmp_path, spec_str, missing):
    pkg = lammps(spec_str)
    with working_dir(str(tmp_path)):
        with pytest.raises(InstallError, match=f"{missing} is not set"):
            pkg.build_lib("FC", "reax")


def test_lammps_serial_install(lammps, mock_make, capsys):
    pkg = lammps()
    lmpkg.installer.PackageInstaller(pkg, keep_stage=True, run_tests=True).install()
    prefix = pkg.prefix

    assert make_log(mock_make) == SERIAL_MAKE_LOG

    # executable and shared library, the latter still a link
    assert os.access(os.path.join(prefix.bin, "lammps"), os.X_OK)
    assert os.path.isfile(os.path.join(prefix.lib, "liblammps_mac.so"))
    assert os.path.islink(os.path.join(prefix.lib, "liblammps.so"))

    # python module loads the library from the prefix
    site_packages = pkg.python_site_packages()
    assert site_packages.startswith(prefix.lib)
    assert f"python{sys.version_info[0]}.{sys.version_info[1]}" in site_packages
    module = open(os.path.join(site_packages, "lammps.py")).read()
    assert f'CDLL("{prefix.lib}/liblammps.so",RTLD_GLOBAL)' in module
    assert f'CDLL("{prefix.lib}/liblammps_%s.so" % name,RTLD_GLOBAL)' in module

    for dirname in ("doc", "potentials", "tools", "bench", "python-examples"):
        assert os.path.isdir(os.path.join(prefix.share.lammps, dirname))
    assert os.path.isfile(os.path.join(prefix.share.lammps.bench, "in.lj"))

    # tests ran outside of the prefix
    assert not os.path.exists(os.path.join(prefix.share.lammps.bench, "lammps.out"))

    out = capsys.readouterr().out
    assert "test_bench_lj PASSED" in out
    assert "test_python_module PASSED" in out
    assert "mpiexec -n 2 lammps -in in.lj" in out
    assert f"export PYTHONPATH={site_packages}:$PYTHONPATH" in out


def test_lammps_serial_makefiles(lammps, mock_make):
    pkg = lammps()
    lmpkg.installer.PackageInstaller(pkg, keep_stage=True).install()
    source = pkg.stage.source_path
    deps = lmpkg.config.dependency_prefix("fftw")

    mac = read_make_vars(os.path.join(source, "src", "MAKE", "Makefile.mac"))
    assert mac["CC"] == mac["LINK"] == "c++"
    assert mac["FFT_INC"] == f"-DFFT_FFTW3 -I{deps}/include"
    assert mac["FFT_PATH"] == f"-L{deps}/lib"
    assert mac["FFT_LIB"] == "-lfftw3"
    assert mac["JPG_INC"] == f"-DLAMMPS_JPEG -I{deps}/include"
    assert mac["JPG_LIB"] == "-ljpeg"
    assert mac["CCFLAGS"] == "-O"
    assert mac["LIB"] == f"-O -L{deps}/gfortran/lib -lgfortran"
    # the stub MPI library settings are left alone
    assert mac["MPI_INC"] == "-I../STUBS"

    voronoi = read_make_vars(os.path.join(source, "src", "VORONOI", "Makefile.lammps"))
    assert voronoi["voronoi_SYSINC"] == f"-I{deps}/include/voro++"

    reax = read_make_vars(os.path.join(source, "lib", "reax", "Makefile.gfortran"))
    assert reax["F90"] == "gfortran"
    reax_lammps = read_make_vars(os.path.join(source, "lib", "reax", "Makefile.lammps"))
    assert reax_lammps == {"reax_SYSINC": "", "reax_SYSLIB": "", "reax_SYSPATH": ""}

    poems = read_make_vars(os.path.join(source, "lib", "poems", "Makefile.g++"))
    assert poems["CC"] == "c++"

    # the build environment does not leak out of the install
    assert "MAKEFLAGS" not in os.environ


def test_lammps_mpi_install(lammps, mock_make):
    pkg = lammps("lammps +mpi +user-sph +user-awpmd +user-colvars")
    lmpkg.installer.PackageInstaller(pkg, keep_stage=True).install()
    source = pkg.stage.source_path

    log = make_log(mock_make)
    assert "STUBS" not in log
    assert log[:5] == [
        "reax -f Makefile.gfortran",
        "meam -f Makefile.gfortran",
        "poems -f Makefile.g++",
        "colvars -f Makefile.g++",
        "awpmd -f Makefile.openmpi",
    ]
    # user packages are enabled in declaration order
    enabled = [line for line in log if line.startswith("src yes-user")]
    assert enabled == ["src yes-user-awpmd", "src yes-user-colvars", "src yes-user-sph"]

    mac = read_make_vars(os.path.join(source, "src", "MAKE", "Makefile.mac"))
    assert mac["CC"] == mac["LINK"] == "mpicxx"
    assert mac["MPI_INC"] == "-DOMPI_SKIP_MPICXX"
    assert mac["MPI_PATH"] == mac["MPI_LIB"] == ""
    assert "-lblas -llapack" in mac["LIB"]

    reax = read_make_vars(os.path.join(source, "lib", "reax", "Makefile.gfortran"))
    assert reax["F90"] == "mpif90"
    colvars = read_make_vars(os.path.join(source, "lib", "colvars", "Makefile.g++"))
    assert colvars["CXX"] == "mpicxx"
    awpmd = read_make_vars(os.path.join(source, "lib", "awpmd", "Makefile.openmpi"))
    assert awpmd["CC"] == "mpicxx"
    awpmd_lammps = read_make_vars(os.path.join(source, "lib", "awpmd", "Makefile.lammps"))
    assert awpmd_lammps["user-awpmd_SYSLIB"] == ""


def test_lammps_mpi_wrappers_from_config(lammps, mock_make, mutable_config):
    lmpkg.config.set("mpi:mpicxx", "/opt/mpi/bin/mpic++", scope="site")
    lmpkg.config.set("mpi:mpif90", "/opt/mpi/bin/mpifort", scope="site")
    pkg = lammps("lammps +mpi")
    lmpkg.installer.PackageInstaller(pkg, keep_stage=True).install()

    source = pkg.stage.source_path
    mac = read_make_vars(os.path.join(source, "src", "MAKE", "Makefile.mac"))
    assert mac["CC"] == "/opt/mpi/bin/mpic++"
    reax = read_make_vars(os.path.join(source, "lib", "reax", "Makefile.gfortran"))
    assert reax["F90"] == "/opt/mpi/bin/mpifort"


def test_lammps_install_is_skipped_when_present(lammps, mock_make, capsys):
    pkg = lammps()
    lmpkg.installer.PackageInstaller(pkg).install()
    mock_make.unlink()

    lmpkg.installer.PackageInstaller(lammps()).install()
    assert not mock_make.exists()
    assert "is already installed" in capsys.readouterr().out


@pytest.mark.parametrize("keep_prefix", [True, False])
def test_lammps_failed_build(lammps, mock_executable, monkeypatch, keep_prefix):
    make = mock_executable("make", "exit 2", subdir=("broken-bin",))
    monkeypatch.setenv("PATH", f"{make.parent}{os.pathsep}{os.environ['PATH']}")

    pkg = lammps()
    installer = lmpkg.installer.PackageInstaller(pkg, keep_prefix=keep_prefix)
    with pytest.raises(InstallError, match="phase 'build' failed"):
        installer.install()

    assert os.path.isdir(pkg.prefix) is keep_prefix
    # the stage is kept to look at what went wrong
    assert os.path.isdir(pkg.stage.source_path)


def test_lammps_failing_test(lammps, mock_make):
    pkg = lammps()
    lmpkg.installer.PackageInstaller(pkg).install()
    os.remove(os.path.join(pkg.prefix.bin, "lammps"))

    with pytest.raises(TestFailure) as exc_info:
        lmpkg.installer.run_tests(pkg)
    assert [name for name, _ in exc_info.value.failures] == ["test_bench_lj"]

    # a single test can be selected
    lmpkg.installer.run_tests(pkg, names=["test_python_module"])


def test_lammps_tests_with_space_in_install_root(lammps, mock_make, tmp_path):
    lmpkg.config.set("config:install_tree:root", str(tmp_path / "my opt"), scope="site")
    pkg = lammps()
    assert " " in pkg.prefix

    lmpkg.installer.PackageInstaller(pkg, run_tests=True).install()
    assert os.access(os.path.join(pkg.prefix.bin, "lammps"), os.X_OK)


def test_lammps_tests_need_an_install(lammps):
    with pytest.raises(InstallError, match="is not installed"):
        lmpkg.installer.run_tests(lammps())
