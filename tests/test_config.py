import logging

import pytest

from todo_api.config import Settings
from todo_api.logging_setup import setup_logging


def test_settings_defaults(monkeypatch):
    monkeypatch.delenv("TODO_API_PORT", raising=False)
    settings = Settings(_env_file=None)
    assert settings.app_name == "Todo API"
    assert settings.port == 8000
    assert settings.log_dir is None


def test_settings_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("TODO_API_PORT", "9001")
    monkeypatch.setenv("TODO_API_LOG_DIR", str(tmp_path))
    settings = Settings(_env_file=None)
    assert settings.port == 9001
    assert settings.log_dir == tmp_path


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)
    logging.captureWarnings(False)


def test_setup_logging_writes_file(restore_root_logger, tmp_path):
    setup_logging("debug", tmp_path / "logs")
    logging.getLogger("todo_api.crud").debug("hello from the repository")

    for h in restore_root_logger.handlers:
        h.flush()
    assert "hello from the repository" in (tmp_path / "logs" / "todo_api.log").read_text(encoding="utf-8")
    assert restore_root_logger.level == logging.DEBUG
