"""
Unit tests for the command line browser.
"""

import json
import logging

import pytest

from content_repository.cli import RepositoryCLI, main, setup_logging
from content_repository.config import RepositorySettings
from content_repository.repository import attach


@pytest.fixture
def content_root(tmp_path):
    (tmp_path / "foo").write_text("hi")
    (tmp_path / "baz").mkdir()
    (tmp_path / "baz" / "qux").write_text("")
    return tmp_path


class TestCommands:
    """Tests for main() and its subcommands."""

    def test_tree(self, content_root, capsys):
        exit_code = main(["--root", str(content_root), "tree"])

        assert exit_code == 0
        assert capsys.readouterr().out.splitlines() == [
            "/ : fs:directory",
            "  baz : fs:directory",
            "    qux : fs:file",
            "  foo : fs:file",
        ]

    def test_tree_depth(self, content_root, capsys):
        main(["--root", str(content_root), "tree", "/", "--depth", "1"])

        assert "qux" not in capsys.readouterr().out

    def test_cat(self, content_root, capsys):
        assert main(["--root", str(content_root), "cat", "/foo/fs:content"]) == 0
        assert capsys.readouterr().out == "hi\n"

    def test_types(self, content_root, capsys):
        main(["--root", str(content_root), "types"])

        out = capsys.readouterr().out
        assert "fs:object (abstract)" in out
        assert "fs:file < fs:object" in out
        assert " * fs:content : fs:handle [RO] [REQ]" in out
        assert " + * : fs:object" in out

    def test_types_json(self, content_root, capsys):
        main(["--root", str(content_root), "types", "--json"])

        schema = json.loads(capsys.readouterr().out)
        assert {t["name"] for t in schema["node_types"]} == {"fs:object", "fs:file", "fs:directory"}

    def test_memory_engine(self, capsys):
        assert main(["--engine", "memory", "tree"]) == 0
        assert capsys.readouterr().out.splitlines() == ["/ : mem:folder"]

    def test_missing_path(self, content_root, capsys):
        """Repository errors exit with status 1 and a message on stderr."""
        exit_code = main(["--root", str(content_root), "cat", "/nope/fs:content"])

        captured = capsys.readouterr()
        assert exit_code == 1
        assert captured.out == ""
        assert "error: " in captured.err

    def test_unknown_engine(self, capsys):
        assert main(["--engine", "nosql", "tree"]) == 1
        assert "Failed to load engine" in capsys.readouterr().err


class TestRepositoryCLI:
    """Tests for the renderer."""

    def test_describe_type(self):
        cli = RepositoryCLI(attach("memory"))
        description = cli.describe_type(cli.repository.node_type("mem:document"))

        assert description.splitlines() == [
            "mem:document < mem:node",
            " * mem:body : mem:text",
            " * mem:title : mem:label [REQ]",
        ]


@pytest.fixture(autouse=True)
def root_logger():
    """Root logger, restored after the test."""
    logger = logging.getLogger()
    handlers, level = logger.handlers[:], logger.level
    yield logger
    logger.handlers = handlers
    logger.setLevel(level)


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_json_format(self, root_logger, capsys):
        """JSON records stay valid with quotes and backslashes in the message."""
        setup_logging(RepositorySettings(log_format="json"))

        logging.getLogger("content_repository.test").warning('root "/srv" is \\ odd')

        record = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert record["message"] == 'root "/srv" is \\ odd'

    def test_text_format(self, root_logger, capsys):
        setup_logging(RepositorySettings(log_format="text"))

        logging.getLogger("content_repository.test").warning("plain message")

        line = capsys.readouterr().err.strip().splitlines()[-1]
        assert line.endswith(" - content_repository.test - WARNING - plain message")

    def test_log_level(self, root_logger, capsys):
        """Records below the configured level are dropped."""
        setup_logging(RepositorySettings(log_level="warning"))

        logging.getLogger("content_repository.test").info("hidden")

        assert root_logger.level == logging.WARNING
        assert "hidden" not in capsys.readouterr().err

    def test_unknown_level_falls_back_to_info(self, root_logger):
        setup_logging(RepositorySettings(log_level="chatty"))
        assert root_logger.level == logging.INFO

    def test_log_level_option(self, root_logger, capsys):
        assert main(["--log-level", "DEBUG", "--engine", "memory", "tree"]) == 0
        assert root_logger.level == logging.DEBUG
