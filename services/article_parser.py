# services/article_parser.py
from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Protocol

from dateutil import parser as date_parser
from dateutil import tz

from app.core.errors import AnalysisFailedError, ArticleParseError, EmptyArticleContentError
from app.core.logging import get_logger
from app.models.article import ArticleData, MergedParse, ParseFragment
from services.content_chunker import CHUNK_TOKEN_BUDGET, ContentChunks
from services.html_normalizer import (
    extract_text,
    remove_elements,
    select_texts,
    strip_attributes,
)
from services.llm_gateway import LLMGateway
from services.parse_merger import merge_fragments
from services.prompts import build_html_parsing_prompt
from services.text_cleaner import clean_article_text
from services.url_utils import get_hostname, parse_date_string

logger = get_logger().bind(module="article_parser")

HTML_PARSE_PROPERTY = "html_parse"


class ArticleParser(Protocol):
    name: str

    async def parse(self, url: str, html: str) -> ArticleData:
        ...


class SmartArticleParser:
    """
    LLM-driven parser used for every publication by default.

    Chunking -> concurrent per-chunk parse -> merge -> date normalization ->
    text cleanup. A single failed chunk fails the whole article.
    """

    name = "smart"

    def __init__(self, gateway: LLMGateway, *, token_budget: int = CHUNK_TOKEN_BUDGET) -> None:
        self._gateway = gateway
        self._token_budget = token_budget

    async def _parse_chunk(self, chunk: str) -> ParseFragment:
        return await self._gateway.invoke(
            build_html_parsing_prompt(chunk),
            ParseFragment,
            HTML_PARSE_PROPERTY,
        )

    async def parse_fragments(self, html: str) -> List[ParseFragment]:
        chunks = ContentChunks(strip_attributes(html), token_budget=self._token_budget)
        logger.info("article_chunks_prepared", chunk_count=len(chunks), chars=sum(len(c) for c in chunks))
        # join-all, first failure wins; calls already in flight are not cancelled
        return list(await asyncio.gather(*(self._parse_chunk(chunk) for chunk in chunks)))

    async def parse(self, url: str, html: str) -> ArticleData:
        hostname = get_hostname(url)
        logger.info("article_parse_started", parser=self.name, hostname=hostname, html_chars=len(html or ""))

        try:
            fragments = await self.parse_fragments(html)
        except AnalysisFailedError as exc:
            logger.warning("article_parse_failed", hostname=hostname, error=str(exc))
            raise ArticleParseError(f"could not parse article at {url}: {exc}") from exc

        merged = merge_fragments(fragments)
        return build_article_data(merged, url=url, hostname=hostname)


def build_article_data(merged: MergedParse, *, url: str, hostname: str) -> ArticleData:
    """Date normalization and text cleanup for a merged parse."""
    text = clean_article_text(merged.content)
    if not text:
        logger.warning("article_content_empty", hostname=hostname)
        raise EmptyArticleContentError(f"no article text could be extracted from {url}")

    date_published = parse_date_string(merged.date_published)
    if date_published is None:
        logger.info("article_date_published_defaulted", hostname=hostname, raw=merged.date_published[:64])
        date_published = datetime.now(timezone.utc)

    article = ArticleData(
        title=merged.title.strip(),
        authors=list(merged.authors),
        date_published=date_published,
        date_updated=parse_date_string(merged.date_updated),
        hostname=hostname,
        url=url,
        text=text,
    )
    logger.info(
        "article_parse_finished",
        hostname=hostname,
        author_count=len(article.authors),
        text_chars=len(article.text),
        has_title=bool(article.title),
    )
    return article


# -------- Rule-based parsers (legacy) ----------------------------------------

_US_EASTERN = tz.gettz("America/New_York")
_US_TZINFOS = {"EDT": _US_EASTERN, "EST": _US_EASTERN, "ET": _US_EASTERN}


class CNNArticleParser:
    """Selector-based parser for www.cnn.com pages, no model calls."""

    name = "cnn"

    _NOISE_SELECTORS = (
        ".ad-feedback__moda",
        ".ad-slot-header__wrapper",
        ".ad-feedback-link",
        ".ad-slot__feedback",
        ".ad-feedback-link-container",
        ".source__location",
        ".source__text",
    )

    def _title(self, html: str) -> str:
        # "<headline> | CNN Politics"
        return extract_text(html, "title").split("|")[0].strip()

    def _authors(self, html: str) -> List[str]:
        names = select_texts(html, ".byline__name")
        if not names:
            # a single byline such as "By CNN Staff"
            names = [n.replace("By ", "", 1).strip() for n in select_texts(html, ".byline__names")]
        return list(dict.fromkeys(n for n in names if n))

    def _date(self, html: str) -> Optional[datetime]:
        # e.g. "Updated 8:59 PM EDT, Mon July 1, 2024"
        raw = extract_text(html, ".headline__byline-sub-text .timestamp").strip()
        if not raw:
            return None
        cleaned = raw.replace("Updated", "").replace("Published", "").strip()
        try:
            parsed = date_parser.parse(cleaned, tzinfos=_US_TZINFOS)
        except (ValueError, OverflowError):
            logger.debug("cnn_date_parse_failed", raw=raw[:64])
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=_US_EASTERN)
        return parsed.astimezone(timezone.utc)

    async def parse(self, url: str, html: str) -> ArticleData:
        hostname = get_hostname(url)
        logger.info("article_parse_started", parser=self.name, hostname=hostname, html_chars=len(html or ""))
        cleaned_html = remove_elements(html, self._NOISE_SELECTORS)
        text = clean_article_text(extract_text(cleaned_html, ".article__content-container"))
        if not text:
            raise EmptyArticleContentError(f"no article text could be extracted from {url}")
        return ArticleData(
            title=self._title(cleaned_html),
            authors=self._authors(cleaned_html),
            date_published=self._date(cleaned_html) or datetime.now(timezone.utc),
            date_updated=None,
            hostname=hostname,
            url=url,
            text=text,
        )


_RULE_BASED_PARSERS: Dict[str, Callable[[], ArticleParser]] = {
    "www.cnn.com": CNNArticleParser,
}


def select_parser(url: str, gateway: LLMGateway, *, rule_based_enabled: bool = False) -> ArticleParser:
    """
    Pick the parser for ``url``: a hostname-specific rule-based parser when those
    are enabled and one is registered, otherwise the LLM parser.
    """
    if rule_based_enabled:
        factory = _RULE_BASED_PARSERS.get(get_hostname(url))
        if factory is not None:
            return factory()
    return SmartArticleParser(gateway)
