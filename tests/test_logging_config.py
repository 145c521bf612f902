import logging

from van_nav.logging_config import setup_logging


def test_configured_root_logger_is_left_alone(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    root = logging.getLogger()
    level = root.level
    marker = logging.NullHandler()
    root.addHandler(marker)
    before = list(root.handlers)
    try:
        setup_logging("DEBUG")
        setup_logging("DEBUG")

        assert root.handlers == before
        assert root.level == logging.DEBUG
    finally:
        root.removeHandler(marker)
        root.setLevel(level)
