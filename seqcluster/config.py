import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

load_dotenv()

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / 'config' / 'clustering.yaml'
DEFAULT_EMBEDDING_URL = "http://localhost:8080/predict"
DEFAULT_EMBEDDING_TIMEOUT = 60.0


@dataclass
class EmbeddingServiceSettings:
    url: str = DEFAULT_EMBEDDING_URL
    timeout: float = DEFAULT_EMBEDDING_TIMEOUT


def load_config(config_path: Optional[str | Path] = None) -> dict:
    """Load service configuration from YAML file.

    Resolution order: explicit path, then ``SEQCLUSTER_CONFIG``, then the
    bundled ``config/clustering.yaml``. A missing default file yields an
    empty config so the service still starts on built-in defaults.
    """
    if config_path is None:
        config_path = os.getenv('SEQCLUSTER_CONFIG')
        if config_path is None:
            if not DEFAULT_CONFIG_PATH.exists():
                return {}
            config_path = DEFAULT_CONFIG_PATH

    with open(config_path, 'r') as f:
        return yaml.safe_load(f) or {}


def get_embedding_service_settings(cfg: Optional[dict] = None) -> EmbeddingServiceSettings:
    """Embedding service URL and timeout; DNABERT_URL / DNABERT_TIMEOUT win over the file."""
    if cfg is None:
        cfg = load_config()
    service_cfg = cfg.get('embedding_service', {}) or {}

    url = os.getenv('DNABERT_URL') or service_cfg.get('url', DEFAULT_EMBEDDING_URL)
    timeout = os.getenv('DNABERT_TIMEOUT') or service_cfg.get('timeout', DEFAULT_EMBEDDING_TIMEOUT)
    return EmbeddingServiceSettings(url=url, timeout=float(timeout))


def get_log_settings(cfg: Optional[dict] = None) -> tuple[Optional[str], str]:
    """Return (logs_dir, level) for setup_logging."""
    if cfg is None:
        cfg = load_config()
    level = os.getenv('LOG_LEVEL') or cfg.get('logging', {}).get('level', 'INFO')
    logs_dir = cfg.get('paths', {}).get('logs_dir')
    return logs_dir, level
