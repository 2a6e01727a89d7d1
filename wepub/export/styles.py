"""Stylesheets embedded in exported documents."""

COVER_STYLES = """
body {
  font-family: "Noto Serif", "Source Han Serif", Georgia, serif;
  line-height: 1.6;
  margin: 0;
  padding: 0;
  background: #f5f7fa;
}
.cover {
  text-align: center;
  padding: 4em 2em;
  margin: 2em;
}
.cover h1 {
  font-size: 2.5em;
  margin: 0 0 0.5em;
  color: #2d3748;
  line-height: 1.3;
}
.author {
  font-size: 1.4em;
  color: #718096;
  font-style: italic;
  margin: 1em 0;
}
.divider {
  width: 50px;
  height: 3px;
  background: #4a5568;
  margin: 2em auto;
}
.meta-info {
  margin: 2em auto;
  max-width: 40em;
  color: #4a5568;
}
.stats {
  color: #718096;
  margin-top: 2em;
}
"""

ARTICLE_STYLES = """
body {
  font-family: "Noto Serif", "Source Han Serif", Georgia, serif;
  line-height: 1.8;
  max-width: 48em;
  margin: 0 auto;
  padding: 2em 1em;
  color: #2d3748;
}
article img {
  max-width: 100%;
  height: auto;
}
pre {
  background: #f7fafc;
  padding: 1em;
  overflow-x: auto;
  font-size: 0.9em;
}
code {
  font-family: Menlo, Consolas, monospace;
}
blockquote {
  border-left: 4px solid #cbd5e0;
  margin: 1em 0;
  padding-left: 1em;
  color: #4a5568;
}
.navigation {
  display: flex;
  justify-content: space-between;
  margin: 2em 0;
  padding: 1em 0;
  border-top: 1px solid #e2e8f0;
  border-bottom: 1px solid #e2e8f0;
}
.navigation a {
  color: #4299e1;
  text-decoration: none;
}
.source-link {
  margin-top: 2em;
  font-size: 0.9em;
  color: #718096;
}
.math {
  font-family: "Latin Modern Math", "STIX Two Math", serif;
}
.math.display {
  display: block;
  text-align: center;
  margin: 1em 0;
}
"""

TOC_STYLES = """
body {
  font-family: "Noto Serif", "Source Han Serif", Georgia, serif;
  line-height: 1.6;
  max-width: 48em;
  margin: 0 auto;
  padding: 2em 1em;
  color: #2d3748;
}
.meta-info {
  color: #4a5568;
  margin-bottom: 2em;
}
.toc {
  list-style: none;
  padding: 0;
}
.toc li {
  margin: 1em 0;
}
.toc a {
  color: #2b6cb0;
  font-size: 1.1em;
  text-decoration: none;
}
.article-url {
  font-size: 0.8em;
  color: #a0aec0;
  word-break: break-all;
}
"""

EPUB_STYLES = ARTICLE_STYLES + """
nav ol {
  list-style: none;
  padding: 0;
}
.title-page {
  text-align: center;
  margin-top: 20%;
}
"""

# xhtml2pdf understands a limited subset of CSS.
PDF_STYLES = """
@page {
  size: a4 portrait;
  margin: 2cm;
}
body {
  font-size: 11pt;
  line-height: 1.5;
  color: #2d3748;
}
h1 { font-size: 20pt; }
h2 { font-size: 16pt; }
pre {
  background-color: #f7fafc;
  padding: 6pt;
  font-size: 9pt;
}
.cover { text-align: center; padding-top: 6cm; }
.author { font-style: italic; color: #718096; }
.article-url { font-size: 8pt; color: #a0aec0; }
.source-link { font-size: 9pt; color: #718096; }
"""
