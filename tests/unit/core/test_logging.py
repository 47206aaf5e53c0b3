"""
core/logging.py 테스트
"""

import logging
from pathlib import Path

import pytest

from core.logging import NOISY_LOGGERS, get_log_file_path, setup_logging


@pytest.fixture
def restore_root_handlers():
    root = logging.getLogger()
    saved = list(root.handlers)
    saved_level = root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = saved
    root.setLevel(saved_level)


class TestSetupLogging:
    """로깅 초기화"""

    def test_creates_log_file(self, temp_dir: Path, restore_root_handlers) -> None:
        root = setup_logging("cli", log_dir=temp_dir)

        logging.getLogger("core.ledger.balance").info("잔액 반영 테스트")
        for handler in root.handlers:
            handler.flush()

        log_file = temp_dir / "cli.log"
        assert log_file.exists()
        assert "잔액 반영 테스트" in log_file.read_text(encoding="utf-8")

    def test_handlers_not_duplicated(self, temp_dir: Path, restore_root_handlers) -> None:
        setup_logging("cli", log_dir=temp_dir)
        root = setup_logging("cli", log_dir=temp_dir)

        assert len(root.handlers) == 2

    def test_noisy_loggers_lowered(self, temp_dir: Path, restore_root_handlers) -> None:
        setup_logging("web", log_dir=temp_dir)

        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING

    def test_log_file_path(self) -> None:
        assert get_log_file_path("web").name == "web.log"
        assert get_log_file_path("web").parent.name == "web"
