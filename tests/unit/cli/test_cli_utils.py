"""Unit tests for CLI utilities."""

import logging

import pytest

from protoforge.cli_utils import LOG_FORMAT, ErrorFormatter, PathValidator, setup_logging
from protoforge.errors import BuildFailure, CodeGenFailure


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    root.handlers = handlers
    root.setLevel(level)


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_verbose_logs_info(self, restore_root_logger):
        """Test verbose mode lowers the level to INFO."""
        setup_logging(verbose=True)
        assert restore_root_logger.level == logging.INFO

    def test_quiet_logs_warnings(self, restore_root_logger):
        """Test the default level is WARNING."""
        setup_logging()
        assert restore_root_logger.level == logging.WARNING

    def test_handler_format(self, restore_root_logger):
        """Test the handler uses the shared log format."""
        setup_logging(verbose=True)
        handler = restore_root_logger.handlers[-1]
        assert handler.formatter._fmt == LOG_FORMAT


class TestErrorFormatter:
    """Tests for ErrorFormatter."""

    def test_orchestration_error_names_stage(self, capsys):
        """Test a failed stage is reported and exits with status 1."""
        with pytest.raises(SystemExit) as exc_info:
            ErrorFormatter.handle_orchestration_error(BuildFailure("CMake build failed"))

        assert exc_info.value.code == 1
        out = capsys.readouterr().out
        assert "Build stage failed" in out
        assert "CMake build failed" in out

    def test_codegen_diagnostics_printed(self, capsys):
        """Test protoc diagnostics are shown with the error."""
        error = CodeGenFailure("failed to compile conformance", diagnostics="line 3: syntax error")
        with pytest.raises(SystemExit):
            ErrorFormatter.handle_orchestration_error(error)

        out = capsys.readouterr().out
        assert "Codegen stage failed" in out
        assert "line 3: syntax error" in out

    def test_keyboard_interrupt(self, capsys):
        """Test an interrupt exits with the SIGINT status."""
        with pytest.raises(SystemExit) as exc_info:
            ErrorFormatter.handle_keyboard_interrupt()

        assert exc_info.value.code == 130
        assert "interrupted" in capsys.readouterr().out

    def test_unexpected_error(self, capsys):
        """Test unexpected errors print their type."""
        with pytest.raises(SystemExit) as exc_info:
            ErrorFormatter.handle_unexpected_error(ValueError("boom"))

        assert exc_info.value.code == 1
        out = capsys.readouterr().out
        assert "ValueError: boom" in out
        assert "Traceback" not in out


class TestPathValidator:
    """Tests for PathValidator."""

    def test_none_is_accepted(self):
        """Test no explicit path defers to OUT_DIR."""
        PathValidator.validate_out_dir(None)

    def test_missing_path_is_accepted(self, tmp_path):
        """Test a path that does not exist yet is fine."""
        PathValidator.validate_out_dir(tmp_path / "new")

    def test_file_is_rejected(self, tmp_path, capsys):
        """Test a file path exits with status 2."""
        target = tmp_path / "file"
        target.write_text("x")

        with pytest.raises(SystemExit) as exc_info:
            PathValidator.validate_out_dir(target)

        assert exc_info.value.code == 2
        assert "not a directory" in capsys.readouterr().out
