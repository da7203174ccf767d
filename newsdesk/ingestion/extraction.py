"""Heuristic article extraction from raw HTML.

News sites share no schema, so the title and body are found by scoring every
plausible element and keeping the best one. The weights below are tunable,
but their shape matters: length bands, keyword bonuses on class/id names,
paragraph density, and penalties for container-heavy or link-heavy blocks
that are really navigation or ads.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple
from urllib.parse import urljoin

import trafilatura
from bs4 import BeautifulSoup, Comment, Tag

from .text import collapse_whitespace

logger = logging.getLogger(__name__)

# Title scoring
TITLE_META_MIN_LENGTH = 10
TITLE_MIN_LENGTH = 10
TITLE_IDEAL_LENGTH = (20, 150)
TITLE_IDEAL_LENGTH_BONUS = 10
TITLE_ACCEPTABLE_LENGTH = (10, 200)
TITLE_ACCEPTABLE_LENGTH_BONUS = 5
TITLE_POSITION_FRACTION = 1 / 3
TITLE_POSITION_BONUS = 5
TITLE_KEYWORDS = ("title", "baslik", "başlık", "headline", "haber")
TITLE_KEYWORD_BONUS = 15
TITLE_PARENT_KEYWORDS = ("header", "title", "content")
TITLE_PARENT_BONUS = 5
TITLE_SUFFIX_SEPARATORS = (" - ", " | ")

# Body scoring
BODY_CANDIDATE_TAGS = ["div", "article", "section", "main"]
BODY_MIN_TEXT_LENGTH = 200
BODY_LENGTH_TIERS = ((500, 10), (1000, 10), (2000, 5))
BODY_KEYWORDS = ("content", "article", "post", "entry", "text", "body", "haber", "detay")
BODY_KEYWORD_BONUS = 20
BODY_PARAGRAPH_TIERS = ((3, 10), (5, 5))
BODY_CHILD_DENSITY_LIMIT = 5.0  # descendant divs per 1000 chars
BODY_CHILD_DENSITY_PENALTY = 10
BODY_LINK_DENSITY_LIMIT = 3.0  # links per 1000 chars
BODY_LINK_DENSITY_PENALTY = 5
PARAGRAPH_MIN_LENGTH = 20
BLOCK_MIN_LENGTH = 50
PARAGRAPH_SEPARATOR = "\n\n"

BOILERPLATE_TAGS = ["script", "style", "noscript", "iframe", "nav", "aside", "footer", "header", "form"]
BOILERPLATE_TOKEN = re.compile(
    r"^(?:ads?|advert\w*|banner\w*|sponsor\w*|social\w*|share\w*|related\w*|comments?"
    r"|sidebar|navigation|breadcrumbs?|tags|categories|author-box|bio|newsletter"
    r"|subscription|widget|popup|modal|overlay)$"
    r"|^(?:ad|ads|banner|share|social|comment|comments|related|sidebar|newsletter)[-_]"
    r"|[-_](?:ad|ads|banner)$"
)

AUTHOR_SELECTORS = ".author, .byline, .post-author, .article-author, .writer"
DATE_SELECTORS = ".publish-date, .post-date, .article-date"
HERO_IMAGE_SELECTORS = (
    ".featured-image img, .post-thumbnail img, .article-image img, .hero-image img, .main-image img"
)
INLINE_IMAGE_SELECTORS = "article img, .content img"


@dataclass
class BodyCandidate:
    """A scored block-level container."""

    element: Tag
    score: int
    text_length: int


def parse_html(html: str) -> BeautifulSoup:
    """Parse an HTML document."""
    return BeautifulSoup(html, "lxml")


def _meta_content(soup: BeautifulSoup, **attrs: str) -> str:
    tag = soup.find("meta", attrs=attrs)
    if tag is None:
        return ""
    content = tag.get("content") or ""
    return content.strip() if isinstance(content, str) else ""


def _class_and_id(element: Tag) -> str:
    classes = element.get("class") or []
    if isinstance(classes, str):
        classes = [classes]
    element_id = element.get("id") or ""
    return f"{' '.join(classes)} {element_id}".lower()


def _first_meta(soup: BeautifulSoup, *lookups: Tuple[str, str]) -> str:
    for attr, value in lookups:
        content = _meta_content(soup, **{attr: value})
        if content:
            return content
    return ""


def score_title_candidate(text: str, element: Tag, position_fraction: float) -> int:
    """Score an ``<h1>`` as the article headline."""
    score = 0
    length = len(text)

    low, high = TITLE_IDEAL_LENGTH
    if low <= length <= high:
        score += TITLE_IDEAL_LENGTH_BONUS
    elif TITLE_ACCEPTABLE_LENGTH[0] <= length <= TITLE_ACCEPTABLE_LENGTH[1]:
        score += TITLE_ACCEPTABLE_LENGTH_BONUS

    if position_fraction < TITLE_POSITION_FRACTION:
        score += TITLE_POSITION_BONUS

    names = _class_and_id(element)
    if any(keyword in names for keyword in TITLE_KEYWORDS):
        score += TITLE_KEYWORD_BONUS

    parent = element.parent
    if isinstance(parent, Tag):
        parent_classes = " ".join(parent.get("class") or []).lower()
        if any(keyword in parent_classes for keyword in TITLE_PARENT_KEYWORDS):
            score += TITLE_PARENT_BONUS

    return score


def strip_site_suffix(title: str) -> str:
    """Drop a trailing " - Site" or " | Site" from a page title."""
    for separator in TITLE_SUFFIX_SEPARATORS:
        title = title.split(separator)[0]
    return title.strip()


def extract_title(soup: BeautifulSoup) -> str:
    """Find the article headline: metadata, then scored ``<h1>``s, then ``<title>``."""
    title = _first_meta(soup, ("property", "og:title"), ("name", "twitter:title"), ("name", "title"))
    if len(title) > TITLE_META_MIN_LENGTH:
        return collapse_whitespace(title)

    elements = soup.find_all(True)
    positions = {id(element): index for index, element in enumerate(elements)}
    total = max(len(elements), 1)

    best_title = ""
    best_score = 0
    for heading in soup.find_all("h1"):
        text = collapse_whitespace(heading.get_text(" "))
        if len(text) < TITLE_MIN_LENGTH:
            continue
        position = positions.get(id(heading), total) / total
        score = score_title_candidate(text, heading, position)
        if score > best_score:
            best_score = score
            best_title = text

    if best_title:
        return best_title

    if soup.title and soup.title.string:
        return collapse_whitespace(strip_site_suffix(soup.title.get_text()))

    return ""


def _is_boilerplate(element: Tag) -> bool:
    classes = element.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()
    tokens = [c.lower() for c in classes]
    element_id = element.get("id")
    if element_id:
        tokens.append(element_id.lower())
    return any(BOILERPLATE_TOKEN.search(token) for token in tokens)


def remove_boilerplate(soup: BeautifulSoup) -> None:
    """Remove scripts, navigation, ads, comments and social widgets in place."""
    for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()

    doomed: List[Tag] = list(soup.find_all(BOILERPLATE_TAGS))
    doomed.extend(
        element
        for element in soup.find_all(True)
        if element.name not in ("html", "body") and _is_boilerplate(element)
    )
    for element in doomed:
        if not element.decomposed:
            element.decompose()


def score_body_candidate(element: Tag, text: str) -> int:
    """Score a block-level container as the article body."""
    score = 0
    length = len(text)

    for threshold, bonus in BODY_LENGTH_TIERS:
        if length > threshold:
            score += bonus

    if any(keyword in _class_and_id(element) for keyword in BODY_KEYWORDS):
        score += BODY_KEYWORD_BONUS

    paragraphs = len(element.find_all("p"))
    for threshold, bonus in BODY_PARAGRAPH_TIERS:
        if paragraphs > threshold:
            score += bonus

    if length:
        child_divs = len(element.find_all("div"))
        if child_divs / length * 1000 > BODY_CHILD_DENSITY_LIMIT:
            score -= BODY_CHILD_DENSITY_PENALTY

        links = len(element.find_all("a"))
        if links / length * 1000 > BODY_LINK_DENSITY_LIMIT:
            score -= BODY_LINK_DENSITY_PENALTY

    return score


def rank_body_candidates(soup: BeautifulSoup) -> List[BodyCandidate]:
    """Score every large enough container, best first (document order on ties)."""
    candidates = []
    for element in soup.find_all(BODY_CANDIDATE_TAGS):
        text = collapse_whitespace(element.get_text(" "))
        if len(text) < BODY_MIN_TEXT_LENGTH:
            continue
        candidates.append(BodyCandidate(element, score_body_candidate(element, text), len(text)))

    candidates.sort(key=lambda c: c.score, reverse=True)
    return candidates


def text_from_container(element: Tag) -> str:
    """Paragraphs first, then leaf blocks, then the raw text."""
    blocks = [collapse_whitespace(p.get_text(" ")) for p in element.find_all("p")]
    blocks = [b for b in blocks if len(b) > PARAGRAPH_MIN_LENGTH]

    if not blocks:
        blocks = [
            collapse_whitespace(div.get_text(" "))
            for div in element.find_all("div")
            if div.find("div") is None
        ]
        blocks = [b for b in blocks if len(b) > BLOCK_MIN_LENGTH]

    if not blocks:
        return collapse_whitespace(element.get_text(" "))

    return PARAGRAPH_SEPARATOR.join(blocks)


def extract_body(soup: BeautifulSoup, html: Optional[str] = None) -> Tuple[str, int]:
    """
    Extract the article body.

    Mutates ``soup`` (boilerplate is removed), so run it after the other
    extractors.

    Returns:
        Tuple of (body text, score of the winning container)
    """
    remove_boilerplate(soup)
    candidates = rank_body_candidates(soup)

    if candidates:
        best = candidates[0]
        logger.debug("Best body container: score %s, %s chars", best.score, best.text_length)
        return text_from_container(best.element), best.score

    if html:
        extracted = trafilatura.extract(
            html,
            include_comments=False,
            include_tables=False,
            favor_precision=True,
        )
        if extracted:
            lines = [line.strip() for line in extracted.splitlines() if line.strip()]
            return PARAGRAPH_SEPARATOR.join(lines), 0

    return "", 0


def extract_summary(soup: BeautifulSoup) -> str:
    """Meta description, then Open Graph, then Twitter card."""
    return _first_meta(
        soup,
        ("name", "description"),
        ("property", "og:description"),
        ("name", "twitter:description"),
    )


def extract_author(soup: BeautifulSoup) -> str:
    """Meta author, then byline classes."""
    author = _first_meta(soup, ("name", "author"), ("property", "article:author"))
    if author:
        return author
    element = soup.select_one(AUTHOR_SELECTORS)
    return collapse_whitespace(element.get_text(" ")) if element else ""


def extract_published_raw(soup: BeautifulSoup) -> str:
    """Publication date string as found on the page."""
    date = _first_meta(soup, ("property", "article:published_time"), ("name", "publish_date"))
    if date:
        return date

    time_tag = soup.find("time", attrs={"datetime": True})
    if time_tag and time_tag.get("datetime", "").strip():
        return time_tag["datetime"].strip()

    time_tag = soup.find("time")
    if time_tag:
        text = collapse_whitespace(time_tag.get_text(" "))
        if text:
            return text

    element = soup.select_one(DATE_SELECTORS)
    return collapse_whitespace(element.get_text(" ")) if element else ""


def normalize_image_url(image_url: str, base_url: str) -> str:
    """Resolve an image URL against the page URL."""
    if not image_url:
        return ""
    try:
        return urljoin(base_url, image_url.strip())
    except ValueError:
        return image_url


def extract_image_url(soup: BeautifulSoup, base_url: str) -> str:
    """Hero image: Open Graph, Twitter card, featured image classes, first inline image."""
    image_url = _first_meta(soup, ("property", "og:image"), ("name", "twitter:image"))

    if not image_url:
        for selectors in (HERO_IMAGE_SELECTORS, INLINE_IMAGE_SELECTORS):
            image = soup.select_one(selectors)
            if image is not None and image.get("src"):
                image_url = image["src"]
                break

    return normalize_image_url(image_url, base_url)
