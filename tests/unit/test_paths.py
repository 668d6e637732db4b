"""
Unit tests for repository path helpers.
"""

import pytest

from content_repository.paths import (
    basename,
    dirname,
    join_path,
    normalize_path,
    split_namespace,
    split_property_path,
)


class TestNormalizePath:
    """Tests for normalize_path."""

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("/", "/"),
            ("", "/"),
            ("foo", "/foo"),
            ("/a//b/../c", "/a/c"),
            ("//docs/./", "/docs"),
            ("/../..", "/"),
        ],
    )
    def test_normalize(self, path, expected):
        assert normalize_path(path) == expected

    def test_child(self):
        assert normalize_path("/a", "b") == "/a/b"
        assert normalize_path("/", "b") == "/b"
        assert normalize_path("/a/b", "..") == "/a"


class TestSegments:
    """Tests for dirname, basename and join_path."""

    def test_root_is_its_own_parent(self):
        assert dirname("/") == "/"
        assert basename("/") == "/"

    def test_dirname_and_basename(self):
        assert dirname("/baz/qux") == "/baz"
        assert dirname("/foo") == "/"
        assert basename("/baz/qux/") == "qux"

    def test_join_path(self):
        assert join_path("baz", "qux") == "/baz/qux"
        assert join_path("/", "foo", "..", "bar") == "/bar"


class TestPropertyPaths:
    """Tests for property path and name helpers."""

    def test_split_property_path(self):
        assert split_property_path("/foo/fs:content") == ("/foo", "fs:content")
        assert split_property_path("/fs:mode") == ("/", "fs:mode")

    def test_split_namespace(self):
        assert split_namespace("fs:content") == ("fs", "content")
        assert split_namespace("plain") == ("", "plain")
