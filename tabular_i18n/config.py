import json
import os
from pathlib import Path
from typing import Dict, Any, Optional

from tabular_i18n.logger import get_logger

logger = get_logger(__name__)

# Remote service constants
DEFAULT_API_ENDPOINT = "http://localhost:1188"
STANDARD_TRANSLATE_PATH = "/translate"
PRO_TRANSLATE_PATH = "/v1/translate"

# Retry configuration constants (seconds)
MAX_RETRIES = 10
RETRY_DELAYS = {
    429: 5.0,   # Rate limit
    500: 10.0,  # Server error (also used for transport failures)
    400: 3.0,   # Bad request
}
DEFAULT_RETRY_DELAY = 5.0
MAX_JITTER = 1.0

# Pacing between consecutive requests (seconds)
DEFAULT_REQUEST_DELAY = 0.7
PRO_REQUEST_DELAY = 0.3

# Batch configuration constants
DEFAULT_BATCH_SIZE = 30
DEFAULT_BATCH_MAX_TEXT_LENGTH = 100
BATCH_FAILURE_POLICIES = ("fallback", "abort")

LOG_MODES = ("off", "info", "debug")

CONFIG_ENV_VAR = "TABULAR_I18N_CONFIG"
API_ENV_VAR = "TABULAR_I18N_API"

# Configuration lives next to the working directory, like the project data
CONFIG_DIR = Path.cwd() / "config"
CONFIG_FILE = CONFIG_DIR / "config.json"

DEFAULT_CONFIG = {
    "api_endpoint": DEFAULT_API_ENDPOINT,
    "pro": False,
    "timeout": 60,
    "max_retries": MAX_RETRIES,
    "retry_delays": {str(status): delay for status, delay in RETRY_DELAYS.items()},
    "default_retry_delay": DEFAULT_RETRY_DELAY,
    "request_delay": DEFAULT_REQUEST_DELAY,
    "pro_request_delay": PRO_REQUEST_DELAY,
    "max_jitter": MAX_JITTER,
    "batch_size": DEFAULT_BATCH_SIZE,
    "batch_max_text_length": DEFAULT_BATCH_MAX_TEXT_LENGTH,
    "batch_failure_policy": "fallback",
    "projects_dir": str(Path("data") / "projects"),
    "shutdown_grace_seconds": 2.0,
    "log_mode": "info"
}


def get_config_path(path: Optional[Path] = None) -> Path:
    """Resolve the config file: explicit path, then env var, then default."""
    if path:
        return Path(path)
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return CONFIG_FILE


def create_default_config(path: Optional[Path] = None) -> Path:
    """Create the default config.json file."""
    config_path = get_config_path(path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, 'w', encoding='utf-8') as f:
        json.dump(DEFAULT_CONFIG, f, indent=4, ensure_ascii=False)
    logger.info(f"Created default config file: {config_path}")
    return config_path


def load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load the configuration, merged over DEFAULT_CONFIG.

    A missing file yields the defaults. A file that cannot be parsed is
    logged and ignored, so a broken config never blocks a resume.
    """
    config = json.loads(json.dumps(DEFAULT_CONFIG))
    config_path = get_config_path(path)

    if config_path.exists():
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                user_config = json.load(f)
            if isinstance(user_config, dict):
                config.update(user_config)
                logger.debug(f"Configuration loaded from {config_path}")
            else:
                logger.error(f"Config file {config_path} must contain a JSON object, using defaults")
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load config from {config_path}: {e}")
            logger.warning("Using default configuration")
    else:
        logger.debug(f"No config file at {config_path}, using defaults")

    api_override = os.environ.get(API_ENV_VAR)
    if api_override:
        config["api_endpoint"] = api_override

    return config


def save_config(config: Dict[str, Any], path: Optional[Path] = None):
    """Save the configuration to the config file."""
    config_path = get_config_path(path)
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, 'w', encoding='utf-8') as f:
            json.dump(config, f, indent=4, ensure_ascii=False)
        logger.info(f"Configuration saved to {config_path}")
    except OSError as e:
        logger.error(f"Failed to save config to {config_path}: {e}")
        raise


def get_retry_delays(config: Dict[str, Any]) -> Dict[int, float]:
    """Return the retry delay table with integer status keys."""
    delays = config.get("retry_delays") or {}
    return {int(status): float(delay) for status, delay in delays.items()}
