import os

import pytest

from sftpdeploy.exceptions import SourceNotFoundError
from sftpdeploy.models import ManifestEntry
from sftpdeploy.services import FileEnumerator, TransferScriptBuilder


def make_tree(root, files, dirs=()):
    for name in dirs:
        (root / name).mkdir(parents=True)
    for name in files:
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(name)
    return root


class TestFlatEnumeration:
    def test_one_entry_per_regular_file(self, tmp_path):
        make_tree(tmp_path, ["b.txt", "a.txt", "c.css"])

        manifest = FileEnumerator().enumerate(tmp_path)

        assert manifest.entries == [
            ManifestEntry(tmp_path / "a.txt", "a.txt"),
            ManifestEntry(tmp_path / "b.txt", "b.txt"),
            ManifestEntry(tmp_path / "c.css", "c.css"),
        ]
        assert manifest.file_count == len(manifest) == 3

    def test_directories_are_skipped_not_recursed(self, tmp_path):
        make_tree(tmp_path, ["index.html", "assets/app.js"], dirs=["empty"])

        manifest = FileEnumerator().enumerate(tmp_path)

        assert [entry.remote_name for entry in manifest] == ["index.html"]
        assert manifest.remote_dirs == []

    def test_order_is_stable(self, tmp_path):
        make_tree(tmp_path, ["z", "m", "a", "file with space.txt"])

        first = FileEnumerator().enumerate(tmp_path)
        second = FileEnumerator().enumerate(tmp_path)

        assert first.entries == second.entries
        assert [entry.remote_name for entry in first] == ["a", "file with space.txt", "m", "z"]

    def test_empty_directory(self, tmp_path):
        manifest = FileEnumerator().enumerate(tmp_path)
        assert manifest.is_empty
        assert manifest.file_count == 0

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
    def test_dangling_symlink_is_skipped(self, tmp_path):
        make_tree(tmp_path, ["real.txt"])
        os.symlink(tmp_path / "missing", tmp_path / "broken")

        manifest = FileEnumerator().enumerate(tmp_path)

        assert [entry.remote_name for entry in manifest] == ["real.txt"]

    def test_logs_file_count(self, tmp_path, logger, output):
        make_tree(tmp_path, ["a", "b"])
        FileEnumerator(logger).enumerate(tmp_path)
        assert "Found 2 files to upload" in output()

    @pytest.mark.skipif(os.name == "nt", reason="POSIX file names")
    def test_names_with_line_breaks_are_skipped(self, tmp_path, logger, output):
        make_tree(tmp_path, ["a.txt", "a.txt\nrm important.db", "b.txt\rx"])

        manifest = FileEnumerator(logger).enumerate(tmp_path)
        script = TransferScriptBuilder(tmp_path / "work").render("/r", manifest)

        assert [entry.remote_name for entry in manifest] == ["a.txt"]
        assert len(script.splitlines()) == 3
        assert "file names with line breaks cannot be uploaded" in output()


class TestSourceChecks:
    def test_require_source_missing(self, tmp_path):
        with pytest.raises(SourceNotFoundError, match="does not exist"):
            FileEnumerator().require_source(tmp_path / "nope")

    def test_require_source_is_a_file(self, tmp_path):
        target = tmp_path / "file"
        target.write_text("x")
        with pytest.raises(SourceNotFoundError, match="not a directory"):
            FileEnumerator().require_source(target)

    def test_enumerate_missing_directory(self, tmp_path):
        with pytest.raises(SourceNotFoundError):
            FileEnumerator().enumerate(tmp_path / "nope")


class TestRecursiveEnumeration:
    def test_walks_subdirectories_depth_first(self, tmp_path):
        make_tree(tmp_path, ["index.html", "assets/css/site.css", "assets/app.js", "z.txt"])

        manifest = FileEnumerator(recursive=True).enumerate(tmp_path)

        assert manifest.remote_dirs == ["assets", "assets/css"]
        assert [entry.remote_name for entry in manifest] == [
            "assets/app.js",
            "assets/css/site.css",
            "index.html",
            "z.txt",
        ]

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
    def test_symlink_loop_is_not_followed(self, tmp_path):
        make_tree(tmp_path, ["sub/file.txt"])
        os.symlink(tmp_path, tmp_path / "sub" / "loop")

        manifest = FileEnumerator(recursive=True).enumerate(tmp_path)

        assert manifest.remote_dirs == ["sub"]
        assert [entry.remote_name for entry in manifest] == ["sub/file.txt"]
