"""Tests for logging setup."""

import logging

from loguru import logger

from src.relying_party.api.utils.app_startup import InterceptHandler, configure_logging
from src.relying_party.runtime.config.config_data import ConfigData
from src.relying_party.runtime.context import with_context


class TestConfigureLogging:
    def teardown_method(self):
        configure_logging()

    def test_stdlib_logging_is_intercepted(self):
        configure_logging()

        assert any(isinstance(h, InterceptHandler) for h in logging.root.handlers)
        assert logging.getLogger("openid").level == logging.WARNING
        assert logging.getLogger("uvicorn.access").level == logging.CRITICAL

    def test_stdlib_records_reach_loguru(self):
        configure_logging()
        messages = []
        sink_id = logger.add(messages.append, format="{message}")
        try:
            logging.getLogger("some.library").warning("from stdlib")
        finally:
            logger.remove(sink_id)

        assert any("from stdlib" in m for m in messages)

    def test_file_sink(self, tmp_path):
        log_file = tmp_path / "logs" / "app.log"
        override = ConfigData()
        override.logging.file = str(log_file)
        override.logging.format = "plain"

        with with_context(override):
            configure_logging()
            logger.info("written to file")
            logger.complete()
            logger.remove()

        assert "written to file" in log_file.read_text()
