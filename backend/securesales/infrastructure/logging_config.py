"""
Configuración de logging para la aplicación
Crea archivos de log por día en la carpeta de logs configurada
"""
import logging
from logging.handlers import RotatingFileHandler
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..config import settings


def setup_logging(log_dir: Optional[Path] = None, level: int = logging.INFO):
    """Configura el sistema de logging con archivos diarios"""

    log_dir = Path(log_dir) if log_dir is not None else settings.log_path
    log_dir.mkdir(parents=True, exist_ok=True)

    # Nombre del archivo de log con fecha actual (YYYY-MM-DD)
    today = datetime.now().strftime("%Y-%m-%d")
    log_file = log_dir / f"securesales_{today}.log"

    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Eliminar handlers existentes para evitar duplicados
    root_logger.handlers.clear()

    # maxBytes=10MB, backupCount=5
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding='utf-8'
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(log_format, date_format))

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(log_format, date_format))

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    # Servicios del núcleo: en debug se registra todo
    logging.getLogger("securesales").setLevel(logging.DEBUG if settings.debug else level)

    # Logger para base de datos (SQLAlchemy)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)

    # Logger para uvicorn
    logging.getLogger("uvicorn").setLevel(logging.INFO)

    logging.info(f"Sistema de logging configurado. Archivo: {log_file}")

    return root_logger
