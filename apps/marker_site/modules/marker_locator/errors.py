from enum import IntEnum
from typing import Optional
from .schemas import ValidationFailure

class StatusCode(IntEnum):
    OK = 0
    INVALID_ARGUMENT = 1
    CONFIG_ERROR = 2
    RUNTIME_ERROR = 3
    BUFFER_TOO_SMALL = 4

class MarkerLocatorError(Exception):
    status = StatusCode.RUNTIME_ERROR

class InvalidInputError(MarkerLocatorError, ValueError):
    """Empty or malformed frame; raised before any pixel processing."""
    status = StatusCode.INVALID_ARGUMENT

class ConfigInvalidError(MarkerLocatorError, ValueError):
    """Configuration rejected by validation. `failure` names the rule."""
    status = StatusCode.CONFIG_ERROR

    def __init__(self, failure: ValidationFailure):
        super().__init__(failure.message)
        self.failure = failure

    @property
    def field(self) -> Optional[str]:
        return self.failure.field

class RuntimeFailureError(MarkerLocatorError, RuntimeError):
    """Unexpected failure inside the pipeline. Not retryable, no partial result."""
    status = StatusCode.RUNTIME_ERROR
