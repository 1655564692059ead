"""Turn a solved page's HTML into markdown with CSS selector hints.

Links and buttons get ``<!-- selector: ... -->`` appended to their text and
inputs get it appended to their placeholder, so a model reading the
markdown can name the element in a follow-up click/type action.
"""
from __future__ import annotations

import logging
from typing import Any

from bs4 import BeautifulSoup, Tag
from markdownify import ATX, MarkdownConverter

log = logging.getLogger(__name__)

# Dropped before conversion; their text is never page content
_STRIP_TAGS = ("script", "style")


def extract_html(raw: Any) -> str | None:
    """Return the solved page HTML (solution.response) or None if absent."""
    if not isinstance(raw, dict):
        return None
    solution = raw.get("solution")
    if not isinstance(solution, dict):
        return None
    html = solution.get("response")
    if isinstance(html, str) and html.strip():
        return html
    return None


def css_selector(tag: Tag) -> str:
    """Best-effort selector: #id, then .class.list, then tag[name="..."].

    Not guaranteed unique. Elements sharing classes and lacking an id
    produce the same selector.
    """
    element_id = tag.get("id")
    if element_id:
        return f"#{element_id}"

    classes = tag.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()
    classes = [c for c in classes if c]
    if classes:
        return "." + ".".join(classes)

    selector = tag.name.lower()
    if tag.has_attr("name"):
        selector += f'[name="{tag["name"]}"]'
    return selector


def _hint(selector: str) -> str:
    return f"<!-- selector: {selector} -->"


def annotate_soup(soup: BeautifulSoup) -> BeautifulSoup:
    """Embed selector hints into a, button and input elements, in place."""
    for link in soup.find_all("a"):
        link.string = f"{link.get_text()} {_hint(css_selector(link))}"
    for button in soup.find_all("button"):
        button.string = f"{button.get_text()} {_hint(css_selector(button))}"
    for field in soup.find_all("input"):
        field["placeholder"] = f"{field.get('placeholder', '')} {_hint(css_selector(field))}"
    return soup


def _converter() -> MarkdownConverter:
    # Escaping is off so selectors like #main_nav survive verbatim.
    return MarkdownConverter(
        heading_style=ATX,
        bullets="-",
        escape_asterisks=False,
        escape_underscores=False,
        escape_misc=False,
    )


def annotate(html: str | None) -> str:
    """Annotate *html* and convert it to markdown.

    Returns "" for empty input or when parsing/conversion fails; never raises.
    """
    if not html or not html.strip():
        return ""
    try:
        soup = BeautifulSoup(html, "html.parser")
        for element in soup(list(_STRIP_TAGS)):
            element.decompose()
        annotate_soup(soup)
        return _converter().convert_soup(soup).strip()
    except Exception as exc:
        log.warning("HTML annotation failed, returning empty markdown: %s", exc)
        return ""


def render(raw: Any) -> dict[str, str]:
    """Build the {"markdown": ...} reply for a request-shaped backend result."""
    return {"markdown": annotate(extract_html(raw))}
