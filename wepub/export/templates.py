"""HTML page templates shared by the converters."""
from __future__ import annotations

from datetime import datetime
from html import escape
from typing import Callable, List, Optional

from ..models.export import ExportContent, ExportJob
from .styles import ARTICLE_STYLES, COVER_STYLES, TOC_STYLES

LinkBuilder = Callable[[int], str]


def article_filename(timestamp: int, index: int, extension: str = "html") -> str:
    """File name of the ``index``-th article in a bundle."""
    return f"{timestamp}_article_{index}.{extension}"


def export_time() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


class TemplateService:
    """Renders cover, table of contents and article pages.

    Every title, author and URL is escaped; article bodies are inserted as
    the HTML they already are.
    """

    def prepare_navigation(self, contents: List[ExportContent], current_index: int, timestamp: int) -> str:
        prev_link = ""
        if current_index > 0:
            prev_link = (
                f'<a href="{article_filename(timestamp, current_index - 1)}">'
                f"Previous: {escape(contents[current_index - 1].title)}</a>"
            )
        next_link = ""
        if current_index < len(contents) - 1:
            next_link = (
                f'<a href="{article_filename(timestamp, current_index + 1)}">'
                f"Next: {escape(contents[current_index + 1].title)}</a>"
            )

        return f"""<div class="navigation">
      <div class="prev">{prev_link}</div>
      <div class="index"><a href="index.html">Back to index</a></div>
      <div class="next">{next_link}</div>
    </div>"""

    def generate_article_html(
        self,
        article: ExportContent,
        contents: List[ExportContent],
        index: int,
        timestamp: int,
        navigation: bool = True,
        anchor: Optional[str] = None,
    ) -> str:
        nav = self.prepare_navigation(contents, index, timestamp) if navigation else ""
        anchor_attr = f' id="{anchor}"' if anchor else ""
        url = escape(article.url, quote=True)
        return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <title>{escape(article.title)}</title>
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <style>{ARTICLE_STYLES}</style>
</head>
<body>
  {nav}
  <article{anchor_attr}>
    <h1>{escape(article.title)}</h1>
    {article.content}
  </article>
  <div class="source-link">
    <p>Source: <a href="{url}" target="_blank">{escape(article.url)}</a></p>
  </div>
  {nav}
</body>
</html>"""

    def generate_cover_html(self, job: ExportJob) -> str:
        author = f'<div class="author">{escape(job.author)}</div>' if job.author else ""
        author_meta = f'<meta name="author" content="{escape(job.author, quote=True)}">' if job.author else ""
        description = f"<p>{escape(job.description)}</p>" if job.description else ""
        return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <title>{escape(job.title)}</title>
  {author_meta}
  <style>{COVER_STYLES}</style>
</head>
<body>
  <div class="cover">
    <h1>{escape(job.title)}</h1>
    {author}
    <div class="divider"></div>
    <div class="meta-info">
      {description}
      <p class="stats">Articles: {len(job.contents)}</p>
      <p class="stats">Exported: {export_time()}</p>
    </div>
  </div>
</body>
</html>"""

    def generate_toc_html(
        self,
        job: ExportJob,
        timestamp: int,
        link_for: Optional[LinkBuilder] = None,
    ) -> str:
        """Render the table of contents.

        Args:
            job: Export job.
            timestamp: Prefix of the article file names.
            link_for: Maps an article index to its href. Defaults to the
                bundle file name.
        """
        link_for = link_for or (lambda index: article_filename(timestamp, index))
        toc = "\n".join(
            f"""    <li>
      <a href="{link_for(index)}">{escape(article.title)}</a>
      <div class="article-url">{escape(article.url)}</div>
    </li>"""
            for index, article in enumerate(job.contents)
        )
        author = f'<p class="author">Author: {escape(job.author)}</p>' if job.author else ""
        description = f'<p class="description">{escape(job.description)}</p>' if job.description else ""

        return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <title>{escape(job.title)}</title>
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <style>{TOC_STYLES}</style>
</head>
<body>
  <h1>{escape(job.title)}</h1>
  <div class="meta-info">
    {author}
    {description}
    <p>Exported: {export_time()}</p>
    <p>{len(job.contents)} articles</p>
  </div>
  <ul class="toc">
{toc}
  </ul>
</body>
</html>"""
