import logging

from chefbot.logging_config import setup_logging


def test_level_resolution(monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    root = logging.getLogger()
    before = root.level
    try:
        assert setup_logging("debug") == "DEBUG"
        assert logging.getLogger("sqlalchemy.engine").level == logging.DEBUG
        assert setup_logging("loud") == "INFO"
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

        monkeypatch.setenv("LOG_LEVEL", "error")
        assert setup_logging() == "ERROR"
        assert logging.getLogger("chefbot").level == logging.ERROR
    finally:
        root.setLevel(before)
        logging.getLogger("chefbot").setLevel(logging.NOTSET)
