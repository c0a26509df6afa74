# services/html_normalizer.py
from __future__ import annotations

from typing import Iterable, List

from bs4 import BeautifulSoup, Comment

# Elements that never carry article text but cost a lot of tokens: code,
# vector paths and embedded players. <noscript> stays, some publishers put
# the whole body there for readers without JavaScript.
_NON_CONTENT_TAGS = ("script", "style", "svg", "iframe")


def _soup(html: str) -> BeautifulSoup:
    # html.parser is lenient: unbalanced or truncated markup still parses
    return BeautifulSoup(html or "", "html.parser")


def strip_attributes(html: str) -> str:
    """
    Remove every attribute from every element, plus scripts, styles and
    comments, to minimize the tokens sent to the model. Structure and text stay.
    """
    soup = _soup(html)
    for tag in soup.find_all(_NON_CONTENT_TAGS):
        tag.decompose()
    for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()
    for tag in soup.find_all(True):
        tag.attrs = {}
    return str(soup)


def remove_elements(html: str, selectors: Iterable[str]) -> str:
    soup = _soup(html)
    for selector in selectors:
        for tag in soup.select(selector):
            tag.decompose()
    return str(soup)


def extract_container(html: str, selector: str) -> str:
    """Inner HTML of the first element matching ``selector``; "" when absent."""
    node = _soup(html).select_one(selector)
    if node is None:
        return ""
    return node.decode_contents()


def extract_text(html: str, selector: str) -> str:
    node = _soup(html).select_one(selector)
    if node is None:
        return ""
    return node.get_text()


def select_texts(html: str, selector: str) -> List[str]:
    return [node.get_text().strip() for node in _soup(html).select(selector)]
