"""Export error types."""
from enum import Enum
from typing import Any, Optional


class ExportErrorCode(str, Enum):
    """Machine readable export failure codes."""
    CONVERSION_FAILED = "CONVERSION_FAILED"
    INVALID_FORMAT = "INVALID_FORMAT"
    EMPTY_CONTENTS = "EMPTY_CONTENTS"
    FILE_SYSTEM_ERROR = "FILE_SYSTEM_ERROR"
    TEMPLATE_ERROR = "TEMPLATE_ERROR"
    PROCESS_ERROR = "PROCESS_ERROR"


class ExportError(Exception):
    """Raised when an export job cannot produce its artifact."""

    def __init__(self, code: ExportErrorCode, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details

    @property
    def is_client_error(self) -> bool:
        """Whether the failure was caused by the request rather than the exporter."""
        return self.code in (ExportErrorCode.INVALID_FORMAT, ExportErrorCode.EMPTY_CONTENTS)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message
