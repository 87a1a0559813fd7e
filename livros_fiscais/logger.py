import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

_LOG_DIR_PADRAO = Path(__file__).resolve().parents[1] / "logs"
_LOG_FILE_NOME = "livros_fiscais.log"


def _resolver_log_dir() -> Path:
    configurado = os.getenv("LIVROS_FISCAIS_LOG_DIR")
    return Path(configurado) if configurado else _LOG_DIR_PADRAO


def setup_logging(name: str) -> logging.Logger:
    """Configura e retorna um logger padronizado."""

    log_dir = _resolver_log_dir()
    log_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)

    if logger.hasHandlers():
        return logger

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    # File Handler (Rotating)
    file_handler = RotatingFileHandler(
        log_dir / _LOG_FILE_NOME, maxBytes=5*1024*1024, backupCount=3, encoding="utf-8"
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    # Console Handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    return logger
