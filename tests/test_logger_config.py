import sys

from loguru import logger

from config.config_manager import DEFAULT_CONFIG
from log.logger_config import setup_logger


def test_setup_logger_writes_file_and_warning_file(tmp_path) -> None:
    log_file = tmp_path / "history.log"
    warn_file = tmp_path / "history_warning.log"
    config = {"logging": dict(DEFAULT_CONFIG["logging"], log_file=str(log_file), warning_log_file=str(warn_file), log_level="debug")}

    try:
        setup_logger(config)
        logger.debug("fetching BA123")
        logger.warning("Skipping record #3")
        logger.complete()

        assert "fetching BA123" in log_file.read_text(encoding="utf-8")
        warnings = warn_file.read_text(encoding="utf-8")
        assert "Skipping record #3" in warnings
        assert "fetching BA123" not in warnings
    finally:
        logger.remove()
        logger.add(sys.stderr)
