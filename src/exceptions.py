"""
Exception hierarchy for the pull progression engine

Every error carries the user key, the operation and a request id, logs
itself when created (at the class's log_level), and offers a
user-facing message for display layers.

None of these escape the public engine API: the persistence seam
(src/storage/records.py) and the engine modules translate them into
safe defaults or boolean failure results.
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)


class PracticeError(Exception):
    """
    Base exception for all engine errors

    Subclasses set `log_level` and a default `user_message`; the creation
    time is recorded in UTC.

    Example:
        raise PracticeError(
            message="Failed to save pull ledger",
            user_key="0xabc",
            operation="record_pull",
            context={"date": "2024-01-01"}
        )
    """

    log_level = logging.ERROR

    def __init__(
        self,
        message: str,
        user_key: Optional[str] = None,
        request_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.user_key = user_key
        self.request_id = request_id or str(uuid4())
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        self.user_message = user_message or "Something went wrong. Please try again."
        self.timestamp = datetime.now(timezone.utc)

        # Auto-log on creation
        self._log_error()

    def _log_error(self) -> None:
        """Log error with full context"""
        log_data = {
            "error_type": self.__class__.__name__,
            "error_message": self.message,  # Avoid conflict with logging's 'message' field
            "request_id": self.request_id,
            "user_key": self.user_key,
            "operation": self.operation,
            "error_context": self.context,  # Avoid conflict with logging's 'context'
            "timestamp": self.timestamp.isoformat()
        }

        if self.cause:
            log_data["cause"] = str(self.cause)
            logger.log(
                self.log_level,
                f"{self.__class__.__name__}: {self.message}",
                extra=log_data,
                exc_info=self.cause
            )
        else:
            logger.log(self.log_level, f"{self.__class__.__name__}: {self.message}", extra=log_data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for display layers"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "user_message": self.user_message,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat()
        }


# ==========================================
# Validation Errors (Caller Input)
# ==========================================

class ValidationError(PracticeError):
    """
    Raised when caller input fails validation

    Examples:
    - Missing user key
    - Missing or unknown pack id
    - Non-positive XP amount
    """

    log_level = logging.WARNING

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs
    ):
        self.field = field
        self.value = value
        super().__init__(
            message=message,
            user_message=f"Invalid {field}: {message}" if field else message,
            context={"field": field, "value": value},
            **kwargs
        )


# ==========================================
# Storage Errors
# ==========================================

class StorageError(PracticeError):
    """
    Base class for persistence-related errors
    """
    pass


class StorageUnavailableError(StorageError):
    """Key-value backend could not be read or written"""

    def __init__(
        self,
        message: str = "Storage backend unavailable",
        key: Optional[str] = None,
        backend: Optional[str] = None,
        **kwargs
    ):
        self.key = key
        self.backend = backend
        super().__init__(
            message=message,
            user_message="Your progress could not be saved right now. Please try again in a moment.",
            context={"key": key, "backend": backend},
            **kwargs
        )


class CorruptRecordError(StorageError):
    """Stored record could not be parsed or failed validation"""

    log_level = logging.WARNING

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        **kwargs
    ):
        self.key = key
        super().__init__(
            message=message,
            user_message="Some saved progress was unreadable and has been reset.",
            context={"key": key},
            **kwargs
        )


# ==========================================
# Configuration Errors
# ==========================================

class ConfigurationError(PracticeError):
    """System configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        self.config_key = config_key
        super().__init__(
            message=message,
            user_message="The engine is not properly configured. Please contact support.",
            context={"config_key": config_key},
            **kwargs
        )
