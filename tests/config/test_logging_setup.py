import logging
from logging.handlers import RotatingFileHandler

from core.logging import APP_LOGGER_NAME, setup_logging
from schemas.config import AppConfig


def make_config(**sections) -> AppConfig:
    data = {"whitelist": {"token": "t", "nginx_conf": "/tmp/wl.geo", "nginx_exe": "/usr/sbin/nginx"}}
    data.update(sections)
    return AppConfig.model_validate(data)


def test_file_handler_created(tmp_path):
    log_file = tmp_path / "logs" / "ipgate.log"
    logger = setup_logging(make_config(server={"log_level": "debug"}, logging={"file": {"path": str(log_file)}}))
    try:
        assert logger.name == APP_LOGGER_NAME
        assert logger.level == logging.DEBUG
        assert any(isinstance(h, RotatingFileHandler) for h in logger.handlers)
        logging.getLogger(f"{APP_LOGGER_NAME}.core.whitelist").info("child record")
        for handler in logger.handlers:
            handler.flush()
        assert "child record" in log_file.read_text(encoding="utf-8")
    finally:
        setup_logging(make_config(logging={"file": {"path": None}}))


def test_repeated_setup_does_not_stack_handlers():
    config = make_config(logging={"file": {"path": None}})
    setup_logging(config)
    logger = setup_logging(config)
    assert len(logger.handlers) == 1
    assert logger.level == logging.INFO
