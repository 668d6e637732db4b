"""
Unit tests for the repository entry point.

Tests cover:
- Attaching engines by name, alias and class name
- Engine load failures
- Construction from settings
- Type lookups
"""

import pytest

from content_repository import Repository, RepositorySettings, attach
from content_repository.engine import (
    FileSystemEngine,
    MemoryEngine,
    load_engine,
    registered_engines,
)
from content_repository.errors import ConfigError, EngineLoadError, NotFoundError


@pytest.fixture
def content_root(tmp_path):
    (tmp_path / "foo").write_text("hi")
    (tmp_path / "baz").mkdir()
    return tmp_path


class TestEngineLoading:
    """Tests for engine name resolution."""

    @pytest.mark.parametrize("name", ["filesystem", "FileSystem", "fs"])
    def test_filesystem_names(self, name):
        assert load_engine(name) is FileSystemEngine

    def test_qualified_class_name(self):
        """Engines resolve by their fully qualified class name."""
        assert load_engine("content_repository.engine.memory.MemoryEngine") is MemoryEngine

    def test_registered_engines(self):
        names = registered_engines()
        assert "filesystem" in names
        assert "memory" in names

    def test_malformed_name(self):
        """Names with illegal characters are rejected outright."""
        with pytest.raises(EngineLoadError, match="does not appear to be an engine name") as exc_info:
            load_engine("no such/engine")
        assert exc_info.value.engine == "no such/engine"

    def test_empty_name(self):
        with pytest.raises(EngineLoadError):
            load_engine("")

    def test_unknown_name(self):
        with pytest.raises(EngineLoadError, match="Failed to load engine 'nosql'"):
            load_engine("nosql")


class TestAttach:
    """Tests for attach."""

    def test_attach_filesystem(self, content_root):
        repository = attach("filesystem", root=str(content_root))

        assert isinstance(repository, Repository)
        assert isinstance(repository.engine, FileSystemEngine)
        assert repository.root_node().type().name == "fs:directory"
        assert "fs" in repository.namespaces

    def test_attach_memory(self):
        repository = attach("memory")
        assert repository.root_node().type().name == "mem:folder"

    def test_engine_errors_propagate(self, tmp_path):
        """Constructor failures surface unchanged."""
        with pytest.raises(ConfigError, match="does not exist"):
            attach("filesystem", root=str(tmp_path / "missing"))

    def test_unknown_engine(self):
        with pytest.raises(EngineLoadError):
            attach("nosql")

    def test_unknown_option(self, content_root):
        """Options the engine does not take are configuration errors."""
        with pytest.raises(ConfigError, match="does not accept option\\(s\\): bogus") as exc_info:
            attach("filesystem", root=str(content_root), bogus=1)
        assert exc_info.value.details["options"] == ["bogus"]


class TestFromSettings:
    """Tests for Repository.from_settings."""

    def test_explicit_settings(self, content_root):
        settings = RepositorySettings(root=str(content_root))

        repository = Repository.from_settings(settings)

        assert [node.name for node in repository.root_node().nodes()] == ["baz", "foo"]

    def test_environment(self, content_root, monkeypatch):
        """Settings are read from CONTENT_REPOSITORY_* variables."""
        monkeypatch.setenv("CONTENT_REPOSITORY_ENGINE", "fs")
        monkeypatch.setenv("CONTENT_REPOSITORY_ROOT", str(content_root))

        repository = Repository.from_settings()

        assert repository.node("/foo").type().name == "fs:file"

    def test_engine_without_settings_hook(self):
        repository = Repository.from_settings(RepositorySettings(engine="memory"))
        assert isinstance(repository.engine, MemoryEngine)


class TestLookups:
    """Tests for repository lookups."""

    def test_type_lookups(self, content_root):
        repository = attach("filesystem", root=str(content_root))

        assert repository.node_type("fs:file").name == "fs:file"
        assert repository.property_type("fs:handle").name == "fs:handle"
        assert repository.node_type("fs:nope") is None

    def test_empty_type_name(self, content_root):
        repository = attach("filesystem", root=str(content_root))

        with pytest.raises(ValueError, match="no type name given"):
            repository.node_type("")
        with pytest.raises(ValueError):
            repository.property_type("")

    def test_node_and_property(self, content_root):
        repository = attach("filesystem", root=str(content_root))

        assert repository.node("baz/").path == "/baz"
        assert repository.property("/foo/fs:content").value().get() == "hi"
        with pytest.raises(NotFoundError):
            repository.node("/nope")
        with pytest.raises(NotFoundError):
            repository.property("/baz/fs:content")
