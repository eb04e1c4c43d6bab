# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
"""Test that the Stage class works correctly."""
import os
import shutil
import tarfile

import pytest

import lmpkg.config
import lmpkg.error
import lmpkg.fetch_strategy as fs
import lmpkg.mirrors.layout
import lmpkg.util.crypto as crypto
import lmpkg.util.url as url_util
from lmpkg.stage import Stage

_readme_contents = "hello world!\n"


@pytest.fixture
def archive(tmp_path):
    """A tarball with a single top-level directory, and its sha256."""
    root = tmp_path / "archive-src" / "tool-1.0"
    (root / "src").mkdir(parents=True)
    (root / "README").write_text(_readme_contents)
    (root / "src" / "main.c").write_text("int main() { return 0; }\n")

    path = tmp_path / "tool-1.0.tar.gz"
    with tarfile.open(str(path), "w:gz") as tar:
        tar.add(str(root), arcname="tool-1.0")
    return path, crypto.checksum(crypto.hash_fun_for_algo("sha256"), str(path))


def make_stage(url, checksum, name="tool-1.0"):
    fetcher = fs.URLFetchStrategy(url=url, checksum=checksum)
    layout = lmpkg.mirrors.layout.default_mirror_layout(fetcher, f"tool/{name}")
    return Stage(fetcher, name=name, mirror_layout=layout)


def check_expanded(stage):
    assert stage.expanded
    with open(os.path.join(stage.source_path, "README")) as f:
        assert f.read() == _readme_contents
    assert os.path.isfile(os.path.join(stage.source_path, "src", "main.c"))


def test_fetch_check_expand(mutable_config, archive, tmp_path):
    path, digest = archive
    stage = make_stage(url_util.path_to_file_url(str(path)), digest)

    with stage:
        stage.fetch()
        stage.check()
        stage.expand_archive()
        check_expanded(stage)
        assert stage.path.startswith(str(tmp_path / "stage"))

    # destroyed on a clean exit
    assert not os.path.exists(stage.path)


def test_stage_kept_on_error(mutable_config, archive):
    path, digest = archive
    stage = make_stage(url_util.path_to_file_url(str(path)), digest)

    with pytest.raises(RuntimeError):
        with stage:
            stage.fetch()
            raise RuntimeError("build failed")

    assert os.path.isfile(stage.archive_file)
    stage.destroy()


def test_bad_checksum(mutable_config, archive):
    path, _ = archive
    stage = make_stage(url_util.path_to_file_url(str(path)), "0" * 64)

    with stage:
        stage.fetch()
        with pytest.raises(lmpkg.error.ChecksumError, match="sha256 checksum failed"):
            stage.check()


def test_missing_checksum_is_an_error_by_default(mutable_config, archive):
    path, _ = archive
    fetcher = fs.URLFetchStrategy(url=url_util.path_to_file_url(str(path)))
    stage = Stage(fetcher, name="tool-1.0")

    with stage:
        stage.fetch()
        with pytest.raises(lmpkg.error.NoChecksumError):
            stage.check()

        lmpkg.config.set("config:checksum", False, scope="site")
        stage.check()


def test_fetch_failure(mutable_config, tmp_path):
    stage = make_stage(url_util.path_to_file_url(str(tmp_path / "nope.tar.gz")), "0" * 64)
    with stage:
        with pytest.raises(lmpkg.error.FetchError, match="All fetchers failed"):
            stage.fetch()


def test_source_cache(mutable_config, archive, tmp_path):
    path, digest = archive
    url = url_util.path_to_file_url(str(path))

    with make_stage(url, digest) as stage:
        stage.fetch()
        stage.check()
        stage.cache_local()

    cache = tmp_path / "cache"
    assert (cache / "_source-cache" / "archive" / digest[:2] / f"{digest}.tar.gz").is_file()
    assert (cache / "tool" / "tool-1.0.tar.gz").is_symlink()

    # the original location is gone: the cached copy is used
    os.remove(str(path))
    with make_stage(url, digest) as stage:
        stage.fetch()
        stage.check()
        stage.expand_archive()
        check_expanded(stage)


def test_fetch_from_mirror(mutable_config, archive, tmp_path):
    path, digest = archive
    mirror = tmp_path / "mirror"
    (mirror / "tool").mkdir(parents=True)
    shutil.copy(str(path), str(mirror / "tool" / "tool-1.0.tar.gz"))
    lmpkg.config.set("mirrors", {"local": str(mirror)}, scope="site")

    # the upstream URL does not exist
    stage = make_stage("file:///does/not/exist/tool-1.0.tar.gz", digest)
    with stage:
        stage.fetch()
        stage.check()
        stage.expand_archive()
        check_expanded(stage)


def test_archive_without_top_level_dir(mutable_config, tmp_path):
    files = tmp_path / "flat"
    files.mkdir()
    (files / "a.txt").write_text("a")
    (files / "b.txt").write_text("b")
    path = tmp_path / "flat.tar"
    with tarfile.open(str(path), "w") as tar:
        tar.add(str(files / "a.txt"), arcname="a.txt")
        tar.add(str(files / "b.txt"), arcname="b.txt")
    digest = crypto.checksum(crypto.hash_fun_for_algo("md5"), str(path))

    with make_stage(url_util.path_to_file_url(str(path)), digest, name="flat") as stage:
        stage.fetch()
        stage.check()
        stage.expand_archive()
        assert sorted(os.listdir(stage.source_path)) == ["a.txt", "b.txt"]
