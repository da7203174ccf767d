"""RSS ingestion and article scraping."""

from .dates import normalize_date, normalize_date_or_now
from .models import Enclosure, FeedItem, FeedResult, ScrapedContent, ScrapingResult
from .rss_fetcher import RSSFetcher
from .scraper import ContentScraper

__all__ = [
    "RSSFetcher",
    "ContentScraper",
    "Enclosure",
    "FeedItem",
    "FeedResult",
    "ScrapedContent",
    "ScrapingResult",
    "normalize_date",
    "normalize_date_or_now",
]
