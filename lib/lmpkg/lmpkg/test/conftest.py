# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
import os
import tarfile

import pytest

import lmpkg.config
import lmpkg.paths
import lmpkg.repo
import lmpkg.util.crypto as crypto
import lmpkg.util.url as url_util
from lmpkg.util.filesystem import mkdirp, set_executable


@pytest.fixture
def working_env():
    saved_env = os.environ.copy()
    yield
    # os.environ = saved_env doesn't work
    # it causes module_parsing::test_module_function to fail
    # when it's run after any test using this fixutre
    os.environ.clear()
    os.environ.update(saved_env)


@pytest.fixture
def mutable_config(tmp_path, working_env):
    """Configuration with every writable location redirected into a
    temporary directory, and a writable "site" scope on top.
    """
    site = tmp_path / "site"
    site.mkdir()
    defaults = {
        "config": {
            "install_tree": {"root": str(tmp_path / "opt")},
            "build_stage": str(tmp_path / "stage"),
            "source_cache": str(tmp_path / "cache"),
            "dependency_root": str(tmp_path / "deps"),
            "build_jobs": 1,
            "checksum": True,
            "verify_ssl": True,
            "connect_timeout": 10,
            "debug": False,
        }
    }
    cfg = lmpkg.config.Configuration(
        lmpkg.config.InternalConfigScope("defaults", lmpkg.config.CONFIG_DEFAULTS),
        lmpkg.config.InternalConfigScope("tests", defaults),
        lmpkg.config.ConfigScope("site", str(site)),
    )
    with lmpkg.config.use_configuration(cfg):
        yield cfg


@pytest.fixture
def mock_executable(tmp_path):
    """Factory to create a mock executable in a temporary directory that
    output a custom string when run.
    """
    shebang = "#!/bin/sh\n"

    def _factory(name, output, subdir=("bin",)):
        executable_dir = tmp_path.joinpath(*subdir)
        mkdirp(str(executable_dir))
        executable_path = executable_dir / name
        executable_path.write_text(f"{shebang}{output}\n", encoding="utf-8")
        set_executable(str(executable_path))
        return executable_path

    return _factory


@pytest.fixture
def builtin_repo():
    return lmpkg.repo.RepoPath(lmpkg.paths.packages_path)


#: Files of a miniature LAMMPS source tree, just enough for the recipe to run
FAKE_LAMMPS_FILES = {
    "lib/reax/Makefile.gfortran": "F90 =\tgfortran\nF90FLAGS = -O\n",
    "lib/reax/Makefile.lammps": "reax_SYSINC =\nreax_SYSLIB = -lgfortran\nreax_SYSPATH =\n",
    "lib/meam/Makefile.gfortran": "F90 = gfortran\n",
    "lib/meam/Makefile.lammps": "meam_SYSINC =\nmeam_SYSLIB = -lgfortran\nmeam_SYSPATH =\n",
    "lib/poems/Makefile.g++": "CC = g++\nCCFLAGS = -O\n",
    "lib/colvars/Makefile.g++": "CXX = g++\n",
    "lib/colvars/Makefile.lammps": "colvars_SYSINC =\ncolvars_SYSLIB =\ncolvars_SYSPATH =\n",
    "lib/awpmd/Makefile.openmpi": "CC = mpic++\n",
    "lib/awpmd/Makefile.lammps": (
        "user-awpmd_SYSINC =\nuser-awpmd_SYSLIB = -lblas -llapack\nuser-awpmd_SYSPATH =\n"
    ),
    "src/MAKE/Makefile.mac": (
        "CC =\t\tc++\n"
        "CCFLAGS =\t-O\n"
        "LINK =\t\tc++\n"
        "LIB =\n"
        "MPI_INC =       -I../STUBS\n"
        "MPI_PATH =      -L../STUBS\n"
        "MPI_LIB =\t-lmpi_stubs\n"
        "FFT_INC =       -DFFT_FFTW \\\n"
        "                -I/usr/local/include\n"
        "FFT_PATH =\n"
        "FFT_LIB =\t-lfftw\n"
        "JPG_INC =\n"
        "JPG_PATH =\n"
        "JPG_LIB =\n"
    ),
    "src/VORONOI/Makefile.lammps": "voronoi_SYSINC = -I/usr/include\nvoronoi_SYSLIB = -lvoro++\n",
    "src/STUBS/Makefile": "all:\n",
    "python/lammps.py": (
        "RTLD_GLOBAL = 0\n"
        "\n"
        "\n"
        "def CDLL(path, mode):\n"
        "    return path\n"
        "\n"
        "\n"
        "class lammps:\n"
        "    def __init__(self, name=''):\n"
        '        if not name: self.lib = CDLL("liblammps.so",RTLD_GLOBAL)\n'
        '        else: self.lib = CDLL("liblammps_%s.so" % name,RTLD_GLOBAL)\n'
        "\n"
        "    def file(self, path):\n"
        "        with open(path) as f:\n"
        "            return f.read()\n"
    ),
    "python/install.py": "import shutil\nimport sys\n\nshutil.copy('lammps.py', sys.argv[2])\n",
    "python/examples/simple.py": "from lammps import lammps\n",
    "doc/Manual.html": "<html></html>\n",
    "potentials/Si.sw": "Si Si Si 2.1683\n",
    "tools/README": "tools\n",
    "bench/in.lj": "units lj\n",
}


@pytest.fixture
def fake_lammps_source(tmp_path):
    """Tarball of a miniature LAMMPS source tree.

    Returns:
        (url, sha1) of the archive
    """
    root = tmp_path / "src-tree" / "lammps-12Feb13"
    for relpath, content in FAKE_LAMMPS_FILES.items():
        path = root / relpath
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

    archive = tmp_path / "lammps-12Feb13.tar.gz"
    with tarfile.open(str(archive), "w:gz") as tar:
        tar.add(str(root), arcname="lammps-12Feb13")

    sha1 = crypto.checksum(crypto.hash_fun_for_algo("sha1"), str(archive))
    return url_util.path_to_file_url(str(archive)), sha1


#: A fake make: logs its invocations and produces the files the real build would
FAKE_MAKE = r"""
echo "$(basename "$PWD") $*" >> "$LMPKG_TEST_MAKE_LOG"
case "$*" in
  mac)
    printf '#!/bin/sh\necho "$@" > lammps.out\n' > lmp_mac
    chmod +x lmp_mac
    ;;
  "-f Makefile.shlib mac")
    touch liblammps_mac.so
    ln -sf liblammps_mac.so liblammps.so
    ;;
esac
"""


@pytest.fixture
def mock_make(mock_executable, tmp_path, monkeypatch):
    """Put a fake make first in PATH; returns the path of its log."""
    log = tmp_path / "make.log"
    make = mock_executable("make", FAKE_MAKE, subdir=("fake-bin",))
    monkeypatch.setenv("PATH", f"{make.parent}{os.pathsep}{os.environ.get('PATH', '')}")
    monkeypatch.setenv("LMPKG_TEST_MAKE_LOG", str(log))
    return log
