"""Tests for logging utilities."""

import logging

from common.logger import error, get_logger, notice, setup_logging, success


class TestGetLogger:
    """Tests for get_logger function."""

    def test_logger_name(self):
        """Test that logger has correct name."""
        logger = get_logger("thesis_lint_test.module")
        assert logger.name == "thesis_lint_test.module"

    def test_custom_level(self):
        """Test that custom logging level can be set."""
        logger = get_logger("thesis_lint_test.custom", level="DEBUG")
        assert logger.level == logging.DEBUG

    def test_reuses_existing_logger(self):
        """Test that get_logger does not stack handlers."""
        logger1 = get_logger("thesis_lint_test.reuse")
        logger2 = get_logger("thesis_lint_test.reuse")
        assert logger1 is logger2
        assert len(logger1.handlers) == 1

    def test_propagates_to_caplog(self, caplog):
        """Test that records reach pytest's caplog."""
        logger = get_logger("thesis_lint_test.output")

        with caplog.at_level(logging.INFO):
            logger.info("Logic checks finished")

        assert "Logic checks finished" in caplog.text


class TestSetupLogging:
    """Tests for root logger configuration."""

    def test_writes_log_file(self, tmp_path, monkeypatch):
        """Test that setup_logging adds a file handler."""
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        log_file = tmp_path / "lint.log"
        root = logging.getLogger()
        saved = list(root.handlers)
        try:
            setup_logging(level="INFO", log_file=str(log_file))
            logging.getLogger("thesis_lint_test.file").info("written to file")
            for handler in root.handlers:
                handler.flush()
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers[:] = saved

        assert "written to file" in log_file.read_text()


class TestConsoleHelpers:
    """Tests for user-facing console helpers."""

    def test_success_goes_to_stdout(self, capsys):
        success("Analysis complete")
        assert "Analysis complete" in capsys.readouterr().out

    def test_notice_goes_to_stdout(self, capsys):
        notice("Analysis did not complete")
        assert "Analysis did not complete" in capsys.readouterr().out

    def test_error_goes_to_stderr(self, capsys):
        error("Workspace does not exist")
        captured = capsys.readouterr()
        assert "Workspace does not exist" in captured.err
        assert "Workspace does not exist" not in captured.out
