# config/logger.py
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from config.config import settings

LOG_FORMAT = "%(asctime)s — %(name)s — %(levelname)s — %(message)s"
LOG_LEVEL = getattr(logging, settings.log_level.upper(), logging.INFO)
LOG_FILE = settings.log_file

formatter = logging.Formatter(LOG_FORMAT)

logger = logging.getLogger(settings.app_name)
logger.setLevel(LOG_LEVEL)

# Handler pour console/terminal
console_handler = logging.StreamHandler()
console_handler.setFormatter(formatter)
logger.addHandler(console_handler)

# Handler pour fichier (désactivé si LOG_FILE est vide)
if LOG_FILE:
    Path(LOG_FILE).parent.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(LOG_FILE, maxBytes=10*1024*1024, backupCount=5)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)
