import logging
import os
from typing import Optional


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


# -----------------
# Processing service
# -----------------
API_BASE_URL = os.environ.get("PICKNPREDICT_API_URL", "http://localhost:8000/api")
REQUEST_TIMEOUT = _env_float("PICKNPREDICT_TIMEOUT", None)  # None = wait forever

# -----------------
# Wizard behaviour
# -----------------
AUTO_APPLY_DELAY = _env_float("PICKNPREDICT_AUTO_APPLY_MS", 300.0) / 1000.0
ALLOWED_EXTENSIONS = (".csv", ".xls", ".xlsx")

TRAIN_RATIO_MIN = 50
TRAIN_RATIO_MAX = 90
TRAIN_RATIO_STEP = 5
TRAIN_RATIO_DEFAULT = 80

LOG_LEVEL = os.environ.get("PICKNPREDICT_LOG_LEVEL", "INFO").upper()


def configure_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(
        level=level or LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
