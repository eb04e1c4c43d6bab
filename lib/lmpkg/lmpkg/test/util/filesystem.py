# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
"""Tests for lmpkg.util.filesystem"""
import os

import pytest

import lmpkg.util.filesystem as fs

MAKEFILE = """CC =\t\tc++
CCFLAGS =\t-O -g
LINK ?= c++
LIB += -lm
FFT_INC =       -DFFT_FFTW \\
                -I/usr/local/include
FFT_PATH :=
CCACHE = ccache
"""


@pytest.fixture
def makefile(tmp_path):
    path = tmp_path / "Makefile.mac"
    path.write_text(MAKEFILE)
    return path


def test_change_make_var_replaces_whole_value(makefile):
    fs.change_make_var(str(makefile), "CC", "mpicxx")
    lines = makefile.read_text().splitlines()
    assert "CC=mpicxx" in lines
    # similarly named variables are untouched
    assert "CCFLAGS =\t-O -g" in lines
    assert "CCACHE = ccache" in lines


@pytest.mark.parametrize("key", ["LINK", "LIB", "FFT_PATH"])
def test_change_make_var_any_assignment_operator(makefile, key):
    fs.change_make_var(str(makefile), key, "value")
    assert f"{key}=value" in makefile.read_text().splitlines()


def test_change_make_var_continuation_lines(makefile):
    fs.change_make_var(str(makefile), "FFT_INC", "-DFFT_FFTW3 -I/opt/fftw/include")
    text = makefile.read_text()
    assert "FFT_INC=-DFFT_FFTW3 -I/opt/fftw/include\nFFT_PATH :=" in text
    assert "/usr/local/include" not in text


def test_change_make_var_empty_value(makefile):
    fs.change_make_vars(str(makefile), {"CCFLAGS": "", "LIB": ""})
    lines = makefile.read_text().splitlines()
    assert "CCFLAGS=" in lines
    assert "LIB=" in lines


def test_change_make_var_missing_key(makefile):
    with pytest.raises(fs.FilterError, match="MPI_INC"):
        fs.change_make_vars(str(makefile), {"CC": "mpicxx", "MPI_INC": ""})
    # nothing is written when one of the variables is missing
    assert makefile.read_text() == MAKEFILE


def test_filter_file(tmp_path):
    path = tmp_path / "lammps.py"
    path.write_text('lib = CDLL("liblammps.so",RTLD_GLOBAL)\n')

    fs.filter_file(r'CDLL\("liblammps', 'CDLL("/opt/lammps/lib/liblammps', str(path))

    assert path.read_text() == 'lib = CDLL("/opt/lammps/lib/liblammps.so",RTLD_GLOBAL)\n'
    assert not os.path.exists(str(path) + "~")


def test_filter_file_backup_and_groups(tmp_path):
    path = tmp_path / "conf"
    path.write_text("prefix=/usr\n")

    fs.filter_file(r"prefix=(.*)", r"prefix=/opt\1", str(path), backup=True)

    assert path.read_text() == "prefix=/opt/usr\n"
    assert (tmp_path / "conf~").read_text() == "prefix=/usr\n"


def test_filter_file_ignore_absent(tmp_path):
    fs.filter_file("a", "b", str(tmp_path / "missing"), ignore_absent=True)
    with pytest.raises(OSError):
        fs.filter_file("a", "b", str(tmp_path / "missing"))


def test_install_keeps_symlinks(tmp_path):
    src = tmp_path / "src"
    dest = tmp_path / "dest"
    src.mkdir()
    dest.mkdir()
    (src / "liblammps_mac.so").write_text("")
    os.symlink("liblammps_mac.so", str(src / "liblammps.so"))

    fs.install(str(src / "liblammps_mac.so"), str(dest))
    fs.install(str(src / "liblammps.so"), str(dest))

    assert os.path.isfile(str(dest / "liblammps_mac.so"))
    assert os.path.islink(str(dest / "liblammps.so"))
    assert os.readlink(str(dest / "liblammps.so")) == "liblammps_mac.so"


def test_install_missing_source(tmp_path):
    with pytest.raises(OSError):
        fs.install(str(tmp_path / "lammps"), str(tmp_path))


def test_install_tree(tmp_path):
    src = tmp_path / "doc"
    (src / "html").mkdir(parents=True)
    (src / "html" / "Manual.html").write_text("<html/>")

    fs.install_tree(str(src), str(tmp_path / "share" / "doc"))
    assert (tmp_path / "share" / "doc" / "html" / "Manual.html").read_text() == "<html/>"


def test_working_dir(tmp_path):
    start = os.getcwd()
    with fs.working_dir(str(tmp_path / "new"), create=True):
        assert os.path.realpath(os.getcwd()) == os.path.realpath(str(tmp_path / "new"))
    assert os.getcwd() == start
