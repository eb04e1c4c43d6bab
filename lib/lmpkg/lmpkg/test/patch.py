# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
import hashlib
import os

import pytest

import lmpkg.error
import lmpkg.patch
import lmpkg.spec
import lmpkg.util.url as url_util
from lmpkg.util.executable import which

pytestmark = pytest.mark.skipif(not which("patch"), reason="requires the patch command")

ORIGINAL = "first line\nsecond line\n"

PATCH = """--- a/file.txt
+++ b/file.txt
@@ -1,2 +1,2 @@
 first line
-second line
+patched line
"""


class FakeStage:
    def __init__(self, path):
        self.path = str(path)
        self.source_path = os.path.join(self.path, "lmpkg-src")


@pytest.fixture
def stage(tmp_path):
    stage = FakeStage(tmp_path / "stage")
    os.makedirs(stage.source_path)
    with open(os.path.join(stage.source_path, "file.txt"), "w") as f:
        f.write(ORIGINAL)
    return stage


@pytest.fixture
def patch_file(tmp_path):
    path = tmp_path / "fix.patch"
    path.write_text(PATCH)
    return path


def patched_contents(stage):
    with open(os.path.join(stage.source_path, "file.txt")) as f:
        return f.read()


def test_file_patch(stage, patch_file):
    digest = hashlib.sha256(PATCH.encode()).hexdigest()
    lmpkg.patch.FilePatch("tool", str(patch_file), sha256=digest).apply(stage)
    assert patched_contents(stage) == "first line\npatched line\n"


def test_file_patch_bad_checksum(stage, patch_file):
    patch = lmpkg.patch.FilePatch("tool", str(patch_file), sha256="0" * 64)
    with pytest.raises(lmpkg.error.ChecksumError):
        patch.apply(stage)
    assert patched_contents(stage) == ORIGINAL


def test_missing_file_patch(stage, tmp_path):
    patch = lmpkg.patch.FilePatch("tool", str(tmp_path / "missing.patch"))
    with pytest.raises(lmpkg.patch.NoSuchPatchError):
        patch.apply(stage)


def test_url_patch_without_checksum(mutable_config, stage, patch_file, capsys):
    url = url_util.path_to_file_url(str(patch_file))
    lmpkg.patch.UrlPatch("tool", url).apply(stage)

    assert patched_contents(stage) == "first line\npatched line\n"
    assert "without a checksum" in capsys.readouterr().err


def test_url_patch_checksum_verified(mutable_config, stage, patch_file):
    url = url_util.path_to_file_url(str(patch_file))
    patch = lmpkg.patch.UrlPatch("tool", url, sha256="0" * 64)
    with pytest.raises(lmpkg.error.ChecksumError):
        patch.apply(stage)


def test_patch_in_working_dir(stage, tmp_path):
    os.makedirs(os.path.join(stage.source_path, "src"))
    os.rename(
        os.path.join(stage.source_path, "file.txt"),
        os.path.join(stage.source_path, "src", "file.txt"),
    )
    path = tmp_path / "src.patch"
    path.write_text(PATCH)

    lmpkg.patch.FilePatch("tool", str(path), working_dir="src").apply(stage)
    with open(os.path.join(stage.source_path, "src", "file.txt")) as f:
        assert f.read() == "first line\npatched line\n"


def test_applies_to():
    patch = lmpkg.patch.FilePatch("tool", "fix.patch", when=lmpkg.spec.Spec("+user-omp"))
    assert patch.applies_to(lmpkg.spec.Spec("lammps@2013.02.12+user-omp"))
    assert not patch.applies_to(lmpkg.spec.Spec("lammps@2013.02.12~user-omp"))


def test_bad_level():
    with pytest.raises(ValueError, match="non-negative"):
        lmpkg.patch.FilePatch("tool", "fix.patch", level=-1)
