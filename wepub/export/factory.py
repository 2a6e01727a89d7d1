"""Converter lookup by export format."""
from __future__ import annotations

from typing import Dict, Type, Union

from ..models.export import ExportFormat
from .base import BaseConverter
from .epub import EPUBConverter
from .errors import ExportError, ExportErrorCode
from .html import HTMLConverter
from .markdown import MarkdownConverter
from .pdf import PDFConverter


class ExportFactory:
    """Creates the converter for a requested format."""

    converters: Dict[ExportFormat, Type[BaseConverter]] = {
        ExportFormat.HTML: HTMLConverter,
        ExportFormat.MARKDOWN: MarkdownConverter,
        ExportFormat.EPUB: EPUBConverter,
        ExportFormat.PDF: PDFConverter,
    }

    @classmethod
    def parse_format(cls, value: Union[str, ExportFormat, None]) -> ExportFormat:
        """Resolve a format name.

        Raises:
            ExportError: If the format is missing or unknown.
        """
        try:
            return ExportFormat(value)
        except ValueError as e:
            raise ExportError(
                ExportErrorCode.INVALID_FORMAT,
                f"Unsupported format: {value}",
                f"Use one of: {', '.join(f.value for f in ExportFormat)}",
            ) from e

    @classmethod
    def create_converter(cls, format: Union[str, ExportFormat]) -> BaseConverter:
        export_format = cls.parse_format(format)
        return cls.converters[export_format]()
