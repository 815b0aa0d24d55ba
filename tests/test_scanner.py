"""Tests for the scanner module."""

import os
from pathlib import Path

import pytest

from genqrc.scanner import ResourceScanner, build_exclude_spec, scan_resources, walk_resources


@pytest.fixture
def resource_tree(tmp_path, monkeypatch):
    """Create a resource tree and make it the working directory."""
    root = tmp_path
    monkeypatch.chdir(root)

    (root / "code").mkdir()
    (root / "code" / "widgets").mkdir()
    (root / "images").mkdir()
    (root / "images" / "icons").mkdir()

    (root / "code" / "a.qml").write_text("import QtQuick 2.0\nItem {}\n")
    (root / "code" / "b.qml").write_text("Rectangle {}\n")
    (root / "code" / "widgets" / "Button.qml").write_text("Button {}\n")
    (root / "images" / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n\x00\x00")
    (root / "images" / "icons" / "close.svg").write_text("<svg/>")

    yield root


class TestWalkResources:
    """Tests for walk_resources."""

    def test_yields_files_only(self, resource_tree):
        """Test that directories themselves are skipped."""
        paths = list(walk_resources("code"))

        assert all(not os.path.isdir(p) for p in paths)
        assert len(paths) == 3

    def test_lexical_order(self, resource_tree):
        """Test that entries are visited in lexical order, depth-first."""
        (resource_tree / "code" / "c.qml").write_text("c")
        paths = [Path(p).as_posix() for p in walk_resources("code")]

        assert paths == [
            "code/a.qml",
            "code/b.qml",
            "code/c.qml",
            "code/widgets/Button.qml",
        ]

    def test_missing_root_raises(self, resource_tree):
        """Test that a missing root propagates the OS error."""
        with pytest.raises(FileNotFoundError):
            list(walk_resources("missing"))

    def test_file_root(self, resource_tree):
        """Test that a root which is a file yields itself."""
        assert list(walk_resources("code/a.qml")) == ["code/a.qml"]


class TestResourceScanner:
    """Tests for ResourceScanner."""

    def test_every_file_included_once(self, resource_tree):
        """Test that each regular file appears exactly once."""
        scanner = ResourceScanner(["code", "images"])
        entries = list(scanner.scan())

        paths = [e.virtual_path for e in entries]
        assert sorted(paths) == sorted(set(paths))
        assert set(paths) == {
            "code/a.qml",
            "code/b.qml",
            "code/widgets/Button.qml",
            "images/logo.png",
            "images/icons/close.svg",
        }

    def test_reads_content(self, resource_tree):
        """Test that file content is read fully as bytes."""
        entries = {e.virtual_path: e for e in ResourceScanner(["images"]).scan()}

        logo = entries["images/logo.png"]
        assert logo.data == b"\x89PNG\r\n\x1a\n\x00\x00"
        assert logo.size_bytes == 10

    def test_paths_are_slash_normalized(self, resource_tree):
        """Test that virtual paths use forward slashes and no dot segments."""
        entries = list(ResourceScanner(["./code/"]).scan())

        for entry in entries:
            assert "\\" not in entry.virtual_path
            assert entry.virtual_path.startswith("code/")

    def test_overlapping_roots_packed_once(self, resource_tree):
        """Test that a file under two given roots is included once."""
        scanner = ResourceScanner(["code", "code/widgets"])
        entries = list(scanner.scan())

        paths = [e.virtual_path for e in entries]
        assert paths.count("code/widgets/Button.qml") == 1
        assert scanner.stats.duplicates_skipped == 1

    def test_exclude_globs(self, resource_tree):
        """Test that exclude patterns drop matching files."""
        scanner = ResourceScanner(["code", "images"], exclude_globs=["*.svg", "code/widgets/"])
        paths = {e.virtual_path for e in scanner.scan()}

        assert "images/icons/close.svg" not in paths
        assert "code/widgets/Button.qml" not in paths
        assert "code/a.qml" in paths
        assert scanner.stats.files_excluded == 2

    def test_unreadable_file_raises(self, resource_tree):
        """Test that a file which cannot be read aborts the scan."""
        os.symlink(resource_tree / "does-not-exist", resource_tree / "code" / "broken.qml")

        with pytest.raises(OSError):
            list(ResourceScanner(["code"]).scan())

    def test_directory_symlink_not_followed(self, resource_tree):
        """Test that a symlink to a directory fails like an unreadable file."""
        os.symlink(resource_tree / "images", resource_tree / "code" / "linked")

        with pytest.raises(OSError):
            list(ResourceScanner(["code"]).scan())

    def test_symlinked_root_followed(self, resource_tree):
        """Test that a root which is a symlink to a directory is walked."""
        os.symlink(resource_tree / "code", resource_tree / "linked")

        paths = [e.virtual_path for e in ResourceScanner(["linked"]).scan()]

        assert paths == ["linked/a.qml", "linked/b.qml", "linked/widgets/Button.qml"]

    @pytest.mark.skipif(os.sep != "/", reason="backslash is a separator on this host")
    def test_backslash_file_name_kept_distinct(self, resource_tree):
        """Test that a file named with a backslash does not shadow a nested file."""
        (resource_tree / "code" / "a").mkdir()
        (resource_tree / "code" / "a" / "b").write_bytes(b"real")
        (resource_tree / "code" / "a\\b").write_bytes(b"backslash")

        scanner = ResourceScanner(["code"])
        entries = {e.virtual_path: e.data for e in scanner.scan()}

        assert entries["code/a/b"] == b"real"
        assert entries["code/a\\b"] == b"backslash"
        assert scanner.stats.duplicates_skipped == 0

    def test_excluded_duplicate_counted_once(self, resource_tree):
        """Test that an excluded file under two roots is counted as excluded once."""
        (resource_tree / "code" / "widgets" / "x.tmp").write_text("tmp")

        scanner = ResourceScanner(["code", "code/widgets"], exclude_globs=["*.tmp"])
        paths = [e.virtual_path for e in scanner.scan()]

        assert "code/widgets/x.tmp" not in paths
        assert scanner.stats.files_excluded == 1
        assert scanner.stats.duplicates_skipped == 2

    def test_statistics(self, resource_tree):
        """Test that scan statistics are collected."""
        scanner = ResourceScanner(["code", "images"])
        list(scanner.scan())

        assert scanner.stats.files_scanned == 5
        assert scanner.stats.files_packed == 5
        assert scanner.stats.total_bytes > 0


class TestBuildExcludeSpec:
    """Tests for build_exclude_spec."""

    def test_no_patterns(self):
        assert build_exclude_spec(None) is None
        assert build_exclude_spec(["", "  "]) is None

    def test_gitignore_semantics(self):
        spec = build_exclude_spec(["*.tmp", "build/"])

        assert spec.match_file("code/x.tmp")
        assert spec.match_file("build/out.bin")
        assert not spec.match_file("code/x.qml")


class TestScanResources:
    """Tests for scan_resources convenience function."""

    def test_returns_entries_and_stats(self, resource_tree):
        """Test that scan_resources returns both entries and stats."""
        entries, stats = scan_resources(["code", "images"])

        assert isinstance(entries, list)
        assert len(entries) == 5
        assert stats.files_packed == 5
        assert stats.processing_time_seconds >= 0
