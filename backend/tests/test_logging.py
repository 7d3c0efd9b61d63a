"""Tests for log file setup."""

import logging

import pytest

from wingman.utils.logging import setup_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    providers = logging.getLogger("wingman.llm")
    saved = (list(root.handlers), root.level, list(providers.handlers))
    yield
    for logger in (root, providers):
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            if isinstance(handler, logging.FileHandler):
                handler.close()
    root.handlers[:] = saved[0]
    root.setLevel(saved[1])
    providers.handlers[:] = saved[2]


class TestSetupLogging:
    def test_creates_log_files(self, tmp_path, restore_logging):
        setup_logging(level="DEBUG", log_dir=str(tmp_path))

        logging.getLogger("wingman.llm.router").info("[Router] Using gemini")
        logging.getLogger("wingman.services.assistant").error("[LLM] failed")
        for handler in logging.getLogger().handlers + logging.getLogger("wingman.llm").handlers:
            handler.flush()

        assert "[Router] Using gemini" in (tmp_path / "providers.log").read_text()
        assert "[LLM] failed" in (tmp_path / "error.log").read_text()
        assert "[LLM] failed" not in (tmp_path / "providers.log").read_text()
        assert "[Router] Using gemini" in (tmp_path / "app.log").read_text()

    def test_repeated_setup_keeps_one_provider_handler(self, tmp_path, restore_logging):
        setup_logging(log_dir=str(tmp_path))
        setup_logging(log_dir=str(tmp_path))

        assert len(logging.getLogger("wingman.llm").handlers) == 1
