from loguru import logger
from pathlib import Path
from typing import Optional
import sys


def setup_logging(log_dir: Optional[str] = None, level: str = "INFO"):
    """Configure loguru sinks: stderr always, a rotating file when log_dir is given."""
    logger.remove()
    logger.add(sys.stderr, level=level)
    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        logger.add(Path(log_dir) / "seqcluster.log", level=level, rotation="5 MB", retention=10)
    return logger
