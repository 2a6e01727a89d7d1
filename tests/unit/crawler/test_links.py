"""Unit tests for link discovery."""
import pytest

from wepub.crawler.links import LinkExtractor, is_sub_link, normalize_url, trim_trailing_slash
from wepub.models.crawl import SubLinkPolicy

ROOT = "https://example.com/blog"

PAGE = """<html><body>
  <a href="/blog/post1">Post 1</a>
  <a href="https://example.com/blog/post2?ref=x#top">Post 2</a>
  <a href="/about">About</a>
  <a href="https://other.com/blog/post3">Elsewhere</a>
  <a href="/blog/">Blog index</a>
  <a href="/blog2/post">Other blog</a>
  <a href="#comments">Comments</a>
  <a href="mailto:me@example.com">Mail</a>
  <a href="javascript:void(0)">Script</a>
  <map><area href="/blog/post4" alt="Area"></map>
</body></html>"""


def test_normalize_url_strips_query_fragment_and_slash():
    assert normalize_url("https://example.com/blog/post/?a=1#x") == "https://example.com/blog/post"
    assert normalize_url("https://example.com/blog") == "https://example.com/blog"


def test_trim_trailing_slash_removes_one_slash():
    assert trim_trailing_slash("https://example.com/blog/") == "https://example.com/blog"
    assert trim_trailing_slash("https://example.com/blog") == "https://example.com/blog"


def test_extract_links_keeps_only_sub_links():
    links = LinkExtractor().extract_links(PAGE, ROOT)

    assert links == {
        "https://example.com/blog/post1",
        "https://example.com/blog/post2",
        "https://example.com/blog/post4",
    }


def test_extract_links_resolves_against_current_page():
    html = '<a href="post5">Relative</a><a href="../post6">Up</a>'
    links = LinkExtractor().extract_links(html, ROOT, base_url="https://example.com/blog/2024/")

    assert links == {
        "https://example.com/blog/2024/post5",
        "https://example.com/blog/post6",
    }


def test_extract_links_first_segment_policy():
    root = "https://example.com/docs/guide"
    html = """
      <a href="/docs/reference">Reference</a>
      <a href="/docs/guide/intro">Intro</a>
      <a href="/blog/news">News</a>
    """
    links = LinkExtractor(SubLinkPolicy.FIRST_SEGMENT).extract_links(html, root)

    assert links == {
        "https://example.com/docs/reference",
        "https://example.com/docs/guide/intro",
    }


@pytest.mark.parametrize(
    "candidate, expected",
    [
        ("https://example.com/blog/post", True),
        ("https://example.com/blog/", False),
        ("https://example.com/blog2", False),
        ("https://sub.example.com/blog/post", False),
        ("not a url", False),
    ],
)
def test_is_sub_link_prefix(candidate, expected):
    assert is_sub_link(ROOT, candidate) is expected


def test_is_sub_link_first_segment_with_bare_host_root():
    assert is_sub_link("https://example.com", "https://example.com/anything", SubLinkPolicy.FIRST_SEGMENT)
    assert not is_sub_link("https://example.com/", "https://example.com", SubLinkPolicy.FIRST_SEGMENT)
