"""Export of article collections to HTML, Markdown, EPUB and PDF."""

from .base import BaseConverter
from .epub import EPUBConverter
from .errors import ExportError, ExportErrorCode
from .factory import ExportFactory
from .html import HTMLConverter
from .markdown import MarkdownConverter
from .pdf import PDFConverter
from .sanitizer import ContentSanitizer, Formula, FormulaHandler
from .templates import TemplateService

__all__ = [
    "BaseConverter",
    "ContentSanitizer",
    "EPUBConverter",
    "ExportError",
    "ExportErrorCode",
    "ExportFactory",
    "Formula",
    "FormulaHandler",
    "HTMLConverter",
    "MarkdownConverter",
    "PDFConverter",
    "TemplateService",
]
