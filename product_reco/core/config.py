from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")

_BUNDLED_CATALOG = Path(__file__).resolve().parent.parent / "data" / "products.json"


@dataclass(frozen=True)
class AppConfig:
    catalog_path: Path = Path(os.getenv("CATALOG_PATH", str(_BUNDLED_CATALOG)))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    default_count: int = 5
    max_count: int = 50


DEFAULT_APP_CONFIG = AppConfig()
