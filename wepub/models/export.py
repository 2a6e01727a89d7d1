"""Models for article exports."""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class ExportFormat(str, Enum):
    """Supported export formats."""
    HTML = "html"
    PDF = "pdf"
    EPUB = "epub"
    MARKDOWN = "md"

    @property
    def media_type(self) -> str:
        """MIME type of the produced artifact."""
        return _MEDIA_TYPES[self]

    @property
    def file_extension(self) -> str:
        """Extension of the produced artifact; bundles are always zipped."""
        if self in (ExportFormat.HTML, ExportFormat.MARKDOWN):
            return "zip"
        return self.value


_MEDIA_TYPES = {
    ExportFormat.HTML: "application/zip",
    ExportFormat.MARKDOWN: "application/zip",
    ExportFormat.PDF: "application/pdf",
    ExportFormat.EPUB: "application/epub+zip",
}


class ExportContent(BaseModel):
    """One article to export."""
    url: str = Field(..., description="Source URL of the article")
    title: str = Field(..., description="Article title")
    content: str = Field(..., description="Article body as HTML")


class ExportJob(BaseModel):
    """A single export invocation."""
    title: str = Field(..., description="Title of the exported collection")
    author: Optional[str] = Field(None, description="Author of the collection")
    description: Optional[str] = Field(None, description="Description of the collection")
    format: ExportFormat = Field(..., description="Target format")
    contents: List[ExportContent] = Field(
        default_factory=list,
        description="Articles in reading order",
    )


class ExportRequest(BaseModel):
    """Export request as received over HTTP.

    Validation of the contents, title and format is done by the endpoint so
    that every rejection uses the same error envelope.
    """
    contents: Optional[List[ExportContent]] = None
    title: Optional[str] = None
    format: Optional[str] = None
    author: Optional[str] = None
    description: Optional[str] = None
