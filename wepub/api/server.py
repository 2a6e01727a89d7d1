"""FastAPI server for WePub."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional
from urllib.parse import quote

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from .. import __version__
from ..config import get_settings
from ..crawler import Crawler, CrawlError, FeedCrawler, Fetcher
from ..export import ExportError, ExportErrorCode, ExportFactory
from ..models.crawl import (
    CrawlRequest,
    CrawlResponse,
    ErrorResponse,
    FeedInfo,
    FeedRequest,
    FeedResponse,
    ParseRequest,
)
from ..models.export import ExportJob, ExportRequest

logger = logging.getLogger(__name__)

# Global application state
app_state: Dict[str, Any] = {}

API_VERSION = __version__


def error_response(
    status_code: int,
    error: str,
    detail: Optional[str] = None,
    errors: Optional[list] = None,
) -> JSONResponse:
    """Build a response with the ``{error, errorDetail}`` envelope."""
    body = ErrorResponse(error=error, error_detail=detail, errors=errors)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", by_alias=True, exclude_none=True),
    )


def get_fetcher() -> Fetcher:
    """Get the shared fetcher instance.

    Returns:
        Fetcher instance.
    """
    if "fetcher" not in app_state:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Fetcher not initialized",
        )
    return app_state["fetcher"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager.

    Args:
        app: FastAPI application instance.
    """
    settings = get_settings()
    logger.info("Initializing fetcher...")
    app_state["fetcher"] = Fetcher(timeout=settings.fetch_timeout, user_agent=settings.user_agent)
    try:
        yield
    finally:
        logger.info("Shutting down fetcher...")
        fetcher = app_state.pop("fetcher", None)
        if fetcher is not None:
            await fetcher.close()


app = FastAPI(
    title="WePub",
    description="Crawl websites and feeds into readable articles and export them as HTML, Markdown, EPUB or PDF",
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions.

    Args:
        request: The request that caused the exception.
        exc: The HTTP exception.

    Returns:
        JSON response with error details.
    """
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies as 400 with the error envelope."""
    messages = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return error_response(status.HTTP_400_BAD_REQUEST, "Invalid request", "; ".join(messages) or None)


@app.exception_handler(ExportError)
async def export_exception_handler(request: Request, exc: ExportError) -> JSONResponse:
    """Handle export failures."""
    status_code = status.HTTP_400_BAD_REQUEST if exc.is_client_error else status.HTTP_500_INTERNAL_SERVER_ERROR
    logger.error(f"Export failed ({exc.code.value}): {exc}")
    details = str(exc.details) if exc.details is not None else None
    return error_response(status_code, exc.message, details)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all other exceptions.

    Args:
        request: The request that caused the exception.
        exc: The exception.

    Returns:
        JSON response with error details.
    """
    logger.exception("Unhandled exception")
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal server error",
        "If the problem persists, try again later.",
    )


@app.get("/health")
async def health_check() -> Dict[str, str]:
    """Health check endpoint.

    Returns:
        Status message.
    """
    return {"status": "ok"}


@app.get("/version")
async def get_version() -> Dict[str, str]:
    """Get the API version.

    Returns:
        API version information.
    """
    return {"version": API_VERSION}


@app.post("/parse")
async def parse_article(request: ParseRequest, fetcher: Fetcher = Depends(get_fetcher)):
    """Extract the article of a single page."""
    crawler = Crawler(fetcher=fetcher)
    try:
        article = await crawler.fetch_article(request.url)
    except CrawlError as e:
        logger.warning(f"[{request.url}] parse failed: {e.error}")
        return error_response(status.HTTP_400_BAD_REQUEST, e.error, e.detail)
    return {"article": article.model_dump(mode="json", by_alias=True)}


@app.post("/crawl", response_model=CrawlResponse, response_model_by_alias=True)
async def crawl_site(request: CrawlRequest, fetcher: Fetcher = Depends(get_fetcher)):
    """Crawl a site from a root URL.

    Returns 200 when at least one page was extracted, with failed pages in
    ``errors``. A crawl that produced nothing is answered with 400.
    """
    crawler = Crawler(fetcher=fetcher, link_policy=request.link_policy)
    report = await crawler.crawl(request.url, request.to_budget())

    if report.success_count == 0:
        return error_response(
            status.HTTP_400_BAD_REQUEST,
            "Crawl failed",
            "No pages could be extracted. Check that the URL points to an article page.",
            errors=report.errors,
        )

    return CrawlResponse(
        results=report.results,
        total_processed=report.total_processed,
        success_count=report.success_count,
        errors=report.errors,
    )


@app.post("/rss", response_model=FeedResponse, response_model_by_alias=True)
async def crawl_feed(request: FeedRequest, fetcher: Fetcher = Depends(get_fetcher)):
    """Turn every item of an RSS or Atom feed into an article."""
    settings = get_settings()
    feed_crawler = FeedCrawler(
        Crawler(fetcher=fetcher, settings=settings),
        concurrency_limit=settings.clamp_concurrency(request.concurrency_limit),
    )
    try:
        feed, report = await feed_crawler.crawl(
            request.url,
            max_pages=request.max_pages,
            parse_content=request.parse_content,
        )
    except CrawlError as e:
        logger.warning(f"[{request.url}] feed failed: {e.error}")
        return error_response(status.HTTP_400_BAD_REQUEST, e.error, e.detail)

    return FeedResponse(
        feed=FeedInfo(title=feed.title, description=feed.description),
        results=report.results,
        total_processed=report.total_processed,
        success_count=len(report.results) - len(report.errors),
        errors=report.errors,
    )


def content_disposition(filename: str) -> str:
    """``attachment`` header value with an ASCII fallback and an RFC 5987 name."""
    ascii_name = filename.encode("ascii", "replace").decode("ascii").replace('"', "'")
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename)}"


@app.post("/export")
async def export_articles(request: ExportRequest) -> Response:
    """Export articles as a single downloadable file.

    Raises:
        ExportError: If the request is invalid or the conversion fails.
    """
    if not request.contents:
        raise ExportError(ExportErrorCode.EMPTY_CONTENTS, "No contents provided")
    if not request.title or not request.title.strip():
        return error_response(status.HTTP_400_BAD_REQUEST, "Title is required")
    export_format = ExportFactory.parse_format(request.format)

    job = ExportJob(
        title=request.title.strip(),
        author=request.author,
        description=request.description,
        format=export_format,
        contents=request.contents,
    )
    converter = ExportFactory.create_converter(export_format)
    data = await converter.convert(job)

    filename = f"{job.title}.{export_format.file_extension}"
    return Response(
        content=data,
        media_type=export_format.media_type,
        headers={"Content-Disposition": content_disposition(filename)},
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("wepub.api.server:app", host="0.0.0.0", port=8000, reload=True)
