import os
from pathlib import Path

from .constants import DATA_DIR, DB_FILE_NAME, LOG_DIR

BASE_DIR = Path(__file__).resolve().parent
DATA_PATH = BASE_DIR / DATA_DIR

# KHATA_DB_PATH / KHATA_LOG_DIR let deployments keep state outside the package
DB_PATH = Path(os.getenv("KHATA_DB_PATH") or DATA_PATH / DB_FILE_NAME).expanduser()
LOG_PATH = Path(os.getenv("KHATA_LOG_DIR") or LOG_DIR).expanduser()
LOG_LEVEL = os.getenv("KHATA_LOG_LEVEL", "INFO").upper()
