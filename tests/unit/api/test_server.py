"""Tests for the HTTP API."""
import io
import zipfile
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from wepub import __version__
from wepub.api.server import app, get_fetcher
from wepub.config import Settings
from wepub.crawler import FeedCrawler

ROOT = "https://example.com/blog"
FEED_URL = "https://example.com/feed.xml"

SAMPLE_RSS = """<rss version="2.0"><channel>
  <title>Example Blog</title><description>Posts</description>
  <item><title>One</title><link>https://example.com/blog/one</link><description>First</description></item>
  <item><title>Two</title><link>https://example.com/blog/two</link><description>Second</description></item>
</channel></rss>"""


@pytest.fixture
def pages():
    """Pages served by the fake fetcher, keyed by URL."""
    return {}


@pytest.fixture
def client(pages, fetcher_factory):
    fetcher = fetcher_factory(pages)
    app.dependency_overrides[get_fetcher] = lambda: fetcher
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_version(client):
    assert client.get("/version").json() == {"version": __version__}


class TestParse:
    """Tests for the /parse endpoint."""

    def test_parse_article(self, client, pages, make_page):
        pages[ROOT] = make_page("Hello World")

        response = client.post("/parse", json={"url": ROOT})

        assert response.status_code == 200
        article = response.json()["article"]
        assert article["title"] == "Hello World"
        assert "textContent" in article

    def test_parse_failure_uses_error_envelope(self, client):
        response = client.post("/parse", json={"url": f"{ROOT}/missing"})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "HTTP request failed: 404 Not Found"
        assert body["errorDetail"]


class TestCrawl:
    """Tests for the /crawl endpoint."""

    def test_crawl_success(self, client, pages, make_page):
        pages[ROOT] = make_page("Blog home")

        response = client.post("/crawl", json={"url": ROOT, "maxDepth": 1})

        assert response.status_code == 200
        body = response.json()
        assert body["successCount"] == 1
        assert body["totalProcessed"] == 1
        assert body["results"][0]["url"] == ROOT
        assert body["results"][0]["success"] is True
        assert body["errors"] == []

    def test_crawl_with_no_successes_is_400(self, client):
        response = client.post("/crawl", json={"url": ROOT})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Crawl failed"
        assert body["errorDetail"]
        assert body["errors"][0]["url"] == ROOT
        assert body["errors"][0]["success"] is False

    @pytest.mark.parametrize("url", ["ftp://example.com", "not a url", ""])
    def test_invalid_url_is_rejected(self, client, url):
        response = client.post("/crawl", json={"url": url})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"

    def test_invalid_link_policy_is_rejected(self, client):
        response = client.post("/crawl", json={"url": ROOT, "linkPolicy": "everything"})

        assert response.status_code == 400


class TestFeed:
    """Tests for the /rss endpoint."""

    def test_feed_without_content_parsing(self, client, pages):
        pages[FEED_URL] = SAMPLE_RSS

        response = client.post("/rss", json={"url": FEED_URL, "parseContent": False})

        assert response.status_code == 200
        body = response.json()
        assert body["feed"] == {"title": "Example Blog", "description": "Posts"}
        assert [r["url"] for r in body["results"]] == [
            "https://example.com/blog/one",
            "https://example.com/blog/two",
        ]
        assert body["successCount"] == 2
        assert body["totalProcessed"] == 2

    def test_feed_fallbacks_are_reported(self, client, pages):
        pages[FEED_URL] = SAMPLE_RSS

        response = client.post("/rss", json={"url": FEED_URL, "maxPages": 1})

        body = response.json()
        assert response.status_code == 200
        assert len(body["results"]) == 1
        assert body["successCount"] == 0
        assert body["errors"][0]["url"] == "https://example.com/blog/one"

    @pytest.mark.parametrize("body, expected", [({}, 1), ({"concurrencyLimit": 3}, 3), ({"concurrencyLimit": 20}, 8)])
    def test_feed_concurrency_limit(self, client, pages, body, expected):
        pages[FEED_URL] = SAMPLE_RSS

        with patch("wepub.api.server.FeedCrawler", wraps=FeedCrawler) as feed_crawler:
            response = client.post("/rss", json={"url": FEED_URL, "parseContent": False, **body})

        assert response.status_code == 200
        assert feed_crawler.call_args.kwargs["concurrency_limit"] == expected

    def test_feed_concurrency_is_capped_by_settings(self, client, pages):
        pages[FEED_URL] = SAMPLE_RSS

        with patch("wepub.api.server.get_settings", return_value=Settings(max_concurrency=2)), \
                patch("wepub.api.server.FeedCrawler", wraps=FeedCrawler) as feed_crawler:
            response = client.post("/rss", json={"url": FEED_URL, "parseContent": False, "concurrencyLimit": 5})

        assert response.status_code == 200
        assert feed_crawler.call_args.kwargs["concurrency_limit"] == 2

    def test_feed_in_legacy_encoding(self, client, pages):
        pages[FEED_URL] = (
            '<?xml version="1.0" encoding="GB2312"?>'
            "<rss version=\"2.0\"><channel><title>\u4e2d\u6587\u535a\u5ba2</title>"
            "<item><title>\u7b2c\u4e00\u7bc7</title><link>https://example.com/blog/one</link></item>"
            "</channel></rss>"
        ).encode("gb2312")

        response = client.post("/rss", json={"url": FEED_URL, "parseContent": False})

        assert response.status_code == 200
        body = response.json()
        assert body["feed"]["title"] == "\u4e2d\u6587\u535a\u5ba2"
        assert body["results"][0]["article"]["title"] == "\u7b2c\u4e00\u7bc7"

    def test_invalid_feed(self, client, pages):
        pages[FEED_URL] = "definitely not xml"

        response = client.post("/rss", json={"url": FEED_URL})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid feed"


class TestExport:
    """Tests for the /export endpoint."""

    @pytest.fixture
    def payload(self):
        return {
            "title": "My Blog",
            "format": "html",
            "contents": [
                {"url": "https://example.com/blog/a", "title": "A", "content": "<p>a</p>"},
                {"url": "https://example.com/blog/b", "title": "B", "content": "<p>b</p>"},
            ],
        }

    def test_export_html_bundle(self, client, payload):
        response = client.post("/export", json=payload)

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/zip"
        assert 'filename="My Blog.zip"' in response.headers["content-disposition"]
        assert response.headers["content-disposition"].startswith("attachment")
        archive = zipfile.ZipFile(io.BytesIO(response.content))
        assert len(archive.namelist()) == 3

    def test_export_epub(self, client, payload):
        payload["format"] = "epub"

        response = client.post("/export", json=payload)

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/epub+zip"
        assert 'filename="My Blog.epub"' in response.headers["content-disposition"]

    def test_empty_contents(self, client, payload):
        payload["contents"] = []

        response = client.post("/export", json=payload)

        assert response.status_code == 400
        assert response.json()["error"] == "No contents provided"

    def test_missing_title(self, client, payload):
        del payload["title"]

        response = client.post("/export", json=payload)

        assert response.status_code == 400
        assert response.json()["error"] == "Title is required"

    def test_unknown_format(self, client, payload):
        payload["format"] = "docx"

        response = client.post("/export", json=payload)

        assert response.status_code == 400
        assert response.json()["error"] == "Unsupported format: docx"

    def test_unexpected_errors_are_500(self, client, payload):
        with patch("wepub.api.server.ExportFactory.create_converter", side_effect=RuntimeError("boom")):
            response = client.post("/export", json=payload)

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Internal server error"
        assert "boom" not in response.text
