"""RSS Feed Processing module for History Slackbot."""

import gzip
import re
import zlib

import feedparser
import requests
from dateutil import parser as date_parser

from .errors import FeedFetchError, FeedParseError
from .logging_config import create_execution_logger
from .models import HistoricalEvent, Holiday

# Browser headers; some history sites answer 403 to unknown clients
BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "application/xml,text/xml,application/rss+xml,text/html;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Connection": "keep-alive",
    "Cache-Control": "max-age=0",
}

GZIP_MAGIC = b"\x1f\x8b"

_LINE_BREAK_TAGS = ("<br>", "<br/>", "<br />", "<p>", "</p>")
_TAG = re.compile(r"<[^>]*>")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")


def clean_html_content(content: str | None) -> str:
    """Strip basic HTML tags from feed text.

    Line-break and paragraph tags become newlines, every other ``<...>`` span
    is removed, and runs of three or more newlines collapse to two.

    Args:
        content: Raw content that may contain HTML

    Returns:
        Clean text content without HTML tags
    """
    if not content:
        return ""

    for tag in _LINE_BREAK_TAGS:
        content = content.replace(tag, "\n")

    content = _TAG.sub("", content)
    content = content.strip()
    return _EXCESS_NEWLINES.sub("\n\n", content)


def split_title(title: str) -> tuple[str, str]:
    """Split "1969: Apollo 11 lands" into ("1969", "Apollo 11 lands").

    Titles without a colon give an empty year and the title unchanged.
    """
    year, sep, rest = title.partition(":")
    if not sep:
        return "", title
    return year.strip(), rest.strip()


class FeedProcessor:
    """Downloads RSS feeds and maps their items to domain records."""

    def __init__(self, timeout: int = 30, execution_id: str | None = None):
        """Initialize FeedProcessor with configuration.

        Args:
            timeout: HTTP request timeout in seconds
            execution_id: Execution ID for logging context
        """
        self.timeout = timeout
        self.logger = create_execution_logger("feed_processor", execution_id)
        self.session = requests.Session()
        self.session.headers.update(BROWSER_HEADERS)

        self.logger.debug("FeedProcessor initialized", timeout=timeout)

    def fetch_feeds(self, feed_urls: list[str]) -> list[HistoricalEvent]:
        """Fetch and parse multiple RSS feeds.

        Failing feeds are logged and skipped.

        Args:
            feed_urls: List of RSS feed URLs to process

        Returns:
            List of HistoricalEvent objects from all feeds

        Raises:
            FeedFetchError: If no events were fetched from any feed
        """
        self.logger.log_execution_start(feed_count=len(feed_urls))
        all_events = []
        failed_feeds = 0

        for feed_url in feed_urls:
            try:
                events = self.fetch_events(feed_url)
            except FeedFetchError as e:
                failed_feeds += 1
                self.logger.warning(
                    f"Failed to fetch feed {feed_url}: {e}",
                    feed_url=feed_url,
                    error=str(e),
                )
                continue

            all_events.extend(events)
            self.logger.log_feed_processing(feed_url, len(events))

        if not all_events:
            self.logger.log_execution_end(success=False, failed_feeds=failed_feeds)
            raise FeedFetchError("no events fetched from any feed")

        self.logger.log_execution_end(
            success=True, total_events=len(all_events), failed_feeds=failed_feeds
        )
        return all_events

    def fetch_events(self, feed_url: str) -> list[HistoricalEvent]:
        """Fetch a single feed and map its items to HistoricalEvent records.

        Raises:
            FeedFetchError: If the feed cannot be downloaded or parsed
        """
        feed = self.parse_feed(self.download_feed(feed_url), feed_url)
        return [self.normalize_item(entry, feed_url) for entry in feed.entries]

    def fetch_holidays(self, feed_url: str) -> list[Holiday]:
        """Fetch holidays from a holiday RSS feed.

        Titles are kept whole; no year is split off.

        Raises:
            FeedFetchError: If the feed cannot be downloaded or parsed
        """
        feed = self.parse_feed(self.download_feed(feed_url), feed_url)
        holidays = [
            Holiday(
                title=entry.get("title", ""),
                description=clean_html_content(_entry_description(entry)),
                link=entry.get("link", ""),
            )
            for entry in feed.entries
        ]
        self.logger.info(
            f"Fetched {len(holidays)} holidays", feed_url=feed_url, items_count=len(holidays)
        )
        return holidays

    def download_feed(self, feed_url: str) -> bytes:
        """Download a feed body, decompressing gzip when the server says so.

        Raises:
            FeedFetchError: On transport errors, non-200 status or a corrupt body
        """
        self.logger.debug("Downloading feed content", feed_url=feed_url)
        try:
            response = self.session.get(feed_url, timeout=self.timeout)
        except requests.RequestException as e:
            raise FeedFetchError(f"failed to fetch RSS feed {feed_url}: {e}") from e

        if response.status_code != 200:
            raise FeedFetchError(
                f"unexpected status code {response.status_code} from {feed_url}"
            )

        content = response.content
        encoding = response.headers.get("Content-Encoding", "").lower()
        # requests normally inflates gzip itself; some servers compress twice
        if "gzip" in encoding and content[:2] == GZIP_MAGIC:
            try:
                content = gzip.decompress(content)
            except (OSError, EOFError, zlib.error) as e:
                raise FeedFetchError(
                    f"failed to decompress gzip body from {feed_url}: {e}"
                ) from e

        self.logger.debug(
            "Feed downloaded successfully",
            feed_url=feed_url,
            status_code=response.status_code,
            content_length=len(content),
        )
        return content

    def parse_feed(self, content: bytes, feed_url: str) -> feedparser.FeedParserDict:
        """Parse a downloaded RSS body with feedparser.

        Raises:
            FeedParseError: If the body is not a usable RSS document
        """
        feed = feedparser.parse(content)

        if feed.bozo:
            bozo_exception = feed.get("bozo_exception")
            if not feed.entries and not feed.feed:
                raise FeedParseError(
                    f"failed to parse XML from {feed_url}: {bozo_exception}"
                )
            self.logger.warning(
                f"Feed parsing warning for {feed_url}: {bozo_exception}",
                feed_url=feed_url,
                bozo_exception=str(bozo_exception),
            )

        return feed

    def normalize_item(self, entry: dict, feed_url: str) -> HistoricalEvent:
        """Map a feedparser entry to a HistoricalEvent.

        Args:
            entry: Raw feed entry from feedparser
            feed_url: Source feed URL

        Returns:
            HistoricalEvent with the year split from the title
        """
        year, title = split_title(entry.get("title", ""))

        tags = entry.get("tags") or []
        category = (tags[0].get("term") or "") if tags else ""

        return HistoricalEvent(
            year=year,
            title=title,
            description=clean_html_content(_entry_description(entry)),
            category=category,
            link=entry.get("link", ""),
            published=self._parse_published(entry.get("published"), feed_url),
        )

    def _parse_published(self, published: str | None, feed_url: str):
        if not published:
            return None
        try:
            return date_parser.parse(published)
        except (ValueError, OverflowError) as e:
            self.logger.debug(
                f"Unparseable publish date {published!r}",
                feed_url=feed_url,
                error=str(e),
            )
            return None


def _entry_description(entry: dict) -> str:
    # feedparser exposes <description> as "summary"
    return entry.get("summary") or entry.get("description") or ""
