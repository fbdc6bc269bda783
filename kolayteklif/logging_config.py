import logging
import os
from logging.handlers import RotatingFileHandler

from kolayteklif.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _log_file_path() -> str:
    """LOG_FILE bossa proje kokundeki logs/kolayteklif.log."""
    if settings.LOG_FILE:
        return settings.LOG_FILE
    project_root = os.path.dirname(os.path.dirname(__file__))
    return os.path.join(project_root, "logs", "kolayteklif.log")


def setup_logging() -> None:
    """
    Teklif servisinin loglarini terminale ve dosyaya yazar.

    Durum gecisleri, versiyon kayitlari ve firsat servisi uyarilari
    kolayteklif.* logger'larindan gelir. Dosya 5MB'da dondurulur, 3 yedek.
    main.py icinde bir kez cagrilir.
    """
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # uvicorn --reload ikinci kez cagirabilir
    if root_logger.handlers:
        return

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    log_file = _log_file_path()
    os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    # Firsat servisine giden her istek loglanmasin
    logging.getLogger("httpx").setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        "KolayTeklif loglari: seviye %s, dosya %s", settings.LOG_LEVEL.upper(), log_file
    )
