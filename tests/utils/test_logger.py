"""Tests for the package logger configuration."""

import logging

from methodfinder.utils.logger import LOGGER_NAME, configure_logging, log


class TestConfigureLogging:

    def test_shared_logger(self):
        assert log is logging.getLogger(LOGGER_NAME)
        assert log.propagate is False

    def test_level_from_argument(self):
        configure_logging("DEBUG")
        assert log.level == logging.DEBUG

        configure_logging("warning")
        assert log.level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self, monkeypatch):
        monkeypatch.delenv("METHODFINDER_LOG_LEVEL", raising=False)

        configure_logging("CHATTY")

        assert log.level == logging.INFO

    def test_level_from_env(self, monkeypatch):
        monkeypatch.setenv("METHODFINDER_LOG_LEVEL", "ERROR")

        configure_logging()

        assert log.level == logging.ERROR

    def test_file_handler_attached_once(self, tmp_path):
        log_file = tmp_path / "logs" / "methodfinder.log"
        try:
            configure_logging("INFO", str(log_file))
            configure_logging("INFO", str(log_file))

            file_handlers = [h for h in log.handlers if isinstance(h, logging.FileHandler)]
            assert len(file_handlers) == 1

            log.info("catalog loaded")
            file_handlers[0].flush()
            assert "catalog loaded" in log_file.read_text(encoding="utf-8")
        finally:
            for handler in [h for h in log.handlers if isinstance(h, logging.FileHandler)]:
                log.removeHandler(handler)
                handler.close()
            configure_logging("INFO")
