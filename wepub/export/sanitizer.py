"""Content transforms applied to article bodies before packaging.

Formulas are normalized by an ordered list of handlers. Each handler can
``detect`` an element it understands and ``convert`` it into plain TeX
markup; the first handler that detects an element wins.
"""
from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence

from bs4 import BeautifulSoup, NavigableString, Tag

logger = logging.getLogger(__name__)

FRAGMENT_PARSER = "html.parser"

# Elements that must not end up in an EPUB chapter.
STRIPPED_TAGS = ("script", "style", "noscript", "iframe", "form", "object", "embed")

# Rendered formula output whose TeX source is kept elsewhere in the page.
RENDERED_MATH_SELECTOR = ".MathJax_Preview, .MathJax, .MathJax_Display, .MathJax_SVG, mjx-assistive-mml"

_LANGUAGE_CLASS = re.compile(r"^(?:language|lang)-(.+)$")
# Attribute names an XML parser accepts; framework bindings such as @click or :title are not.
_XML_ATTRIBUTE_NAME = re.compile(r"^(?:xml:)?[A-Za-z_][A-Za-z0-9_.\-]*$")


def _is_attached(element: Tag, soup: BeautifulSoup) -> bool:
    """Whether an element is still part of the document tree."""
    return any(parent is soup for parent in element.parents)


@dataclass
class Formula:
    """A formula in TeX notation."""

    tex: str
    display: bool = False


class FormulaHandler(ABC):
    """Detects and converts one kind of formula markup."""

    name: str

    @abstractmethod
    def detect(self, element: Tag) -> bool:
        """Whether ``element`` is a formula this handler understands."""

    @abstractmethod
    def convert(self, element: Tag) -> Optional[Formula]:
        """Extract the formula, or None if the markup is unusable."""


class KatexHandler(FormulaHandler):
    """KaTeX output, whose TeX source sits in a MathML annotation."""

    name = "katex"

    def detect(self, element: Tag) -> bool:
        classes = element.get("class") or []
        return "katex" in classes or "katex-display" in classes

    def convert(self, element: Tag) -> Optional[Formula]:
        annotation = element.find("annotation", attrs={"encoding": "application/x-tex"})
        if annotation is None:
            return None
        return Formula(
            tex=annotation.get_text().strip(),
            display="katex-display" in (element.get("class") or []),
        )


class MathJaxHandler(FormulaHandler):
    """MathJax v2 source scripts (``<script type="math/tex">``)."""

    name = "mathjax"

    def detect(self, element: Tag) -> bool:
        return element.name == "script" and (element.get("type") or "").startswith("math/tex")

    def convert(self, element: Tag) -> Optional[Formula]:
        tex = (element.string or "").strip()
        if not tex:
            return None
        return Formula(tex=tex, display="mode=display" in (element.get("type") or ""))


class LatexImageHandler(FormulaHandler):
    """Formulas rendered as images with the TeX source in ``alt``."""

    name = "latex"

    def detect(self, element: Tag) -> bool:
        if element.name != "img" or not element.get("alt"):
            return False
        classes = " ".join(element.get("class") or [])
        src = element.get("src") or ""
        return "latex" in classes or "tex" in classes.split() or "latex" in src or "codecogs" in src

    def convert(self, element: Tag) -> Optional[Formula]:
        return Formula(tex=element["alt"].strip())


DEFAULT_FORMULA_HANDLERS: Sequence[FormulaHandler] = (
    KatexHandler(),
    MathJaxHandler(),
    LatexImageHandler(),
)


class ContentSanitizer:
    """Turns article HTML into a well-formed XHTML fragment."""

    def __init__(self, formula_handlers: Optional[Sequence[FormulaHandler]] = None):
        self.formula_handlers: List[FormulaHandler] = list(
            DEFAULT_FORMULA_HANDLERS if formula_handlers is None else formula_handlers
        )

    def sanitize(self, html: str) -> str:
        """Return the XHTML serialization of ``html`` after all transforms."""
        soup = BeautifulSoup(html or "", FRAGMENT_PARSER)
        self.normalize_formulas(soup)
        for tag in soup.find_all(STRIPPED_TAGS):
            tag.decompose()
        self.normalize_code_blocks(soup)
        self.clean_images(soup)
        self.strip_invalid_attributes(soup)
        return soup.decode(formatter="minimal")

    def _handler_for(self, element: Tag) -> Optional[FormulaHandler]:
        for handler in self.formula_handlers:
            if handler.detect(element):
                return handler
        return None

    def normalize_formulas(self, soup: BeautifulSoup) -> None:
        for rendered in soup.select(RENDERED_MATH_SELECTOR):
            rendered.decompose()

        for element in soup.find_all(True):
            if not _is_attached(element, soup):
                continue
            handler = self._handler_for(element)
            if handler is None:
                continue
            formula = handler.convert(element)
            if formula is None:
                logger.debug(f"{handler.name} formula without usable source, leaving it as is")
                continue
            element.replace_with(self._render_formula(soup, formula))

    @staticmethod
    def _render_formula(soup: BeautifulSoup, formula: Formula) -> Tag:
        if formula.display:
            tag = soup.new_tag("div", attrs={"class": "math display"})
            tag.string = f"\\[{formula.tex}\\]"
        else:
            tag = soup.new_tag("span", attrs={"class": "math inline"})
            tag.string = f"\\({formula.tex}\\)"
        return tag

    @staticmethod
    def normalize_code_blocks(soup: BeautifulSoup) -> None:
        """Reduce highlighted ``<pre>`` blocks to escaped plain code."""
        for pre in soup.find_all("pre"):
            language = None
            code = pre.find("code")
            for candidate in (code, pre):
                if candidate is None:
                    continue
                for cls in candidate.get("class") or []:
                    match = _LANGUAGE_CLASS.match(cls)
                    if match:
                        language = match.group(1)
                        break
                if language:
                    break

            text = pre.get_text()
            pre.clear()
            new_code = soup.new_tag("code")
            if language:
                new_code["class"] = f"language-{language}"
            new_code.append(NavigableString(text))
            pre.append(new_code)

    @staticmethod
    def strip_invalid_attributes(soup: BeautifulSoup) -> None:
        """Drop attributes whose names are not valid in XHTML."""
        for element in soup.find_all(True):
            for name in [n for n in element.attrs if not _XML_ATTRIBUTE_NAME.match(n)]:
                del element[name]

    @staticmethod
    def clean_images(soup: BeautifulSoup) -> None:
        for img in soup.find_all("img"):
            if not img.get("src"):
                img.decompose()
                continue
            for attr in ("srcset", "sizes", "loading", "decoding"):
                if attr in img.attrs:
                    del img[attr]
            if "alt" not in img.attrs:
                img["alt"] = ""
