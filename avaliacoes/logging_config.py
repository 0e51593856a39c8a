# -*- coding: utf-8 -*-
"""
Configuração centralizada de logs.

- desenvolvimento: texto simples no console
- produção: JSON por linha, em arquivo rotativo e no console
- teste: silencioso
"""

import json
import logging
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path

from avaliacoes.config import Settings

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
MAX_BYTES = 5 * 1024 * 1024
BACKUP_COUNT = 5

# Campos padrão de um LogRecord, para separar o que veio em `extra`
_RESERVED = set(logging.LogRecord("", 0, "", 0, "", None, None).__dict__) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """Formata cada registro como uma linha JSON (melhor para agregadores de logs)"""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.utcfromtimestamp(record.created).isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED and not key.startswith("_"):
                entry[key] = value
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str, ensure_ascii=False)


def configure_logging(settings: Settings) -> None:
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    if settings.is_test:
        root.setLevel(logging.CRITICAL)
        root.addHandler(logging.NullHandler())
        return

    if settings.is_production:
        logs_dir = Path("logs")
        logs_dir.mkdir(exist_ok=True)
        formatter = JSONFormatter()

        error_handler = RotatingFileHandler(
            logs_dir / "error.log", maxBytes=MAX_BYTES, backupCount=BACKUP_COUNT, encoding="utf-8"
        )
        error_handler.setLevel(logging.ERROR)
        combined_handler = RotatingFileHandler(
            logs_dir / "combined.log", maxBytes=MAX_BYTES, backupCount=BACKUP_COUNT, encoding="utf-8"
        )
        console_handler = logging.StreamHandler(sys.stdout)
        for handler in (error_handler, combined_handler, console_handler):
            handler.setFormatter(formatter)
            root.addHandler(handler)
        root.setLevel(logging.INFO)
    else:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(TEXT_FORMAT))
        root.addHandler(console_handler)
        root.setLevel(logging.DEBUG)

    # SQLAlchemy é muito verboso em DEBUG
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
