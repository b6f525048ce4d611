from __future__ import annotations
import logging
import logging.config
from pathlib import Path
import yaml

DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(config_path: str = "configs/logging.yaml", level: str = "INFO") -> None:
    """Setup logging from a YAML dictConfig file, falling back to basicConfig."""
    path = Path(config_path)
    if not path.exists():
        # Safe fallback
        logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=DEFAULT_FORMAT)
        return

    with path.open("r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f)
    logging.config.dictConfig(cfg)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)
