"""Base class for export converters."""
from __future__ import annotations

import io
import logging
import time
import zipfile
from abc import ABC, abstractmethod
from typing import Dict, Optional

from ..models.export import ExportFormat, ExportJob
from .errors import ExportError, ExportErrorCode
from .templates import TemplateService

logger = logging.getLogger(__name__)


def current_timestamp() -> int:
    """Milliseconds since the epoch, used to prefix bundle file names."""
    return int(time.time() * 1000)


def build_zip(files: Dict[str, str]) -> bytes:
    """Pack text files into a deflated ZIP archive, in insertion order."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, text in files.items():
            archive.writestr(name, text.encode("utf-8"))
    return buffer.getvalue()


class BaseConverter(ABC):
    """Converts an :class:`ExportJob` into a single binary artifact."""

    format: ExportFormat

    def __init__(self, template_service: Optional[TemplateService] = None):
        self.template_service = template_service or TemplateService()

    @staticmethod
    def validate(job: ExportJob) -> None:
        """Reject jobs that cannot produce an artifact.

        Raises:
            ExportError: If the job has no contents.
        """
        if not job.contents:
            raise ExportError(ExportErrorCode.EMPTY_CONTENTS, "No contents provided")

    async def convert(self, job: ExportJob) -> bytes:
        """Validate the job and produce the artifact.

        Raises:
            ExportError: On invalid input or any conversion failure.
        """
        self.validate(job)
        logger.info(f"Exporting '{job.title}' as {self.format.value} ({len(job.contents)} articles)")
        try:
            return await self._convert(job)
        except ExportError:
            raise
        except Exception as e:
            return self.handle_error(e, ExportErrorCode.CONVERSION_FAILED, f"{self.format.value.upper()} conversion failed")

    @abstractmethod
    async def _convert(self, job: ExportJob) -> bytes:
        """Produce the artifact for a validated job."""

    def handle_error(self, error: Exception, code: ExportErrorCode, message: str):
        logger.error(f"Export error: {message}: {error}", exc_info=True)
        if isinstance(error, ExportError):
            raise error
        raise ExportError(code, message, str(error)) from error
