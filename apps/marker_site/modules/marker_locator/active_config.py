import logging
import threading
from typing import Optional
from .schemas import DetectionConfig, ValidationFailure
from .config_codec import default_config
from .validation import validate_config

logger = logging.getLogger(__name__)

# Process-wide configuration used when a caller does not pass one.
# Configs are frozen, so handing out the current object is handing out a copy.
_lock = threading.Lock()
_active = default_config()

def get_active_config() -> DetectionConfig:
    with _lock:
        return _active

def set_active_config(cfg: DetectionConfig) -> Optional[ValidationFailure]:
    """
    Replace the active configuration if it validates.

    Returns:
        None on success, otherwise the validation failure (active config unchanged)
    """
    global _active
    failure = validate_config(cfg)
    if failure is not None:
        logger.warning("Rejected active config: %s", failure.message)
        return failure
    with _lock:
        _active = cfg
    logger.info("Active detection config replaced")
    return None

def reset_active_config() -> DetectionConfig:
    global _active
    cfg = default_config()
    with _lock:
        _active = cfg
    logger.info("Active detection config reset to default")
    return cfg
