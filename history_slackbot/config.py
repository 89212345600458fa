"""Configuration management for History Slackbot."""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from .errors import ConfigurationError

DEFAULT_FEED_URL = "https://www.onthisday.com/rss/today-in-history.xml"

DEFAULT_EVENT_SELECTION_PROMPT = """You are analyzing historical events that happened on this day. Your task is to select the most interesting, rare, or significant events from the list provided.

Criteria for selection:
- Events that are historically significant or impactful
- Unusual, rare, or surprising events
- Events that would be interesting to a general audience
- Avoid overly common or mundane events
- Prefer events from different time periods and categories for variety

Select exactly %d events from the list and format them for posting to Slack. For each event, provide:
1. The year and a brief, engaging description (2-3 sentences max)
2. Why this event is interesting or significant

Format your response as JSON with the following structure:
{
  "events": [
    {
      "year": "YYYY",
      "title": "Brief event title",
      "description": "Engaging 2-3 sentence description with context and significance",
      "category": "Category of event (e.g., Politics, Science, Arts, etc.)"
    }
  ]
}"""

_TRUE_VALUES = {"1", "t", "true", "yes", "on"}
_FALSE_VALUES = {"0", "f", "false", "no", "off"}


@dataclass(frozen=True)
class SlackConfig:
    """Configuration for the Slack incoming webhook."""

    webhook_url: str
    timeout: int = 30


@dataclass(frozen=True)
class ClaudeConfig:
    """Configuration for the Anthropic Messages API."""

    api_key: str
    model: str = "claude-sonnet-4-5"
    max_tokens: int = 2048
    timeout: int = 60
    api_url: str = "https://api.anthropic.com/v1/messages"
    api_version: str = "2023-06-01"


@dataclass(frozen=True)
class Settings:
    """Immutable snapshot of the environment-derived settings."""

    slack: SlackConfig
    claude: ClaudeConfig
    feed_urls: tuple[str, ...] = (DEFAULT_FEED_URL,)
    holiday_feed_url: str = ""
    schedule_cron: str = "0 9 * * *"
    run_once: bool = False
    max_events: int = 2
    max_holidays: int = 3
    event_selection_prompt: str = field(default=DEFAULT_EVENT_SELECTION_PROMPT, repr=False)

    def describe(self) -> dict:
        """Loggable view of the settings, without secrets."""
        return {
            "model": self.claude.model,
            "feed_urls": list(self.feed_urls),
            "holiday_feed_url": self.holiday_feed_url,
            "schedule_cron": self.schedule_cron,
            "run_once": self.run_once,
            "max_events": self.max_events,
            "max_holidays": self.max_holidays,
        }


def _get_str(environ: Mapping[str, str], key: str, default: str = "") -> str:
    value = environ.get(key, "")
    return value if value else default


def _get_bool(environ: Mapping[str, str], key: str, default: bool) -> bool:
    value = environ.get(key, "").strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    return default


def _get_int(environ: Mapping[str, str], key: str, default: int) -> int:
    value = environ.get(key, "")
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def get_feed_urls(environ: Mapping[str, str]) -> tuple[str, ...]:
    """Get RSS feed URLs from RSS_FEED_URLS, falling back to RSS_FEED_URL."""
    feed_urls = environ.get("RSS_FEED_URLS")
    if feed_urls is not None:
        urls = tuple(url.strip() for url in feed_urls.split(",") if url.strip())
        if urls:
            return urls

    return (_get_str(environ, "RSS_FEED_URL", DEFAULT_FEED_URL).strip(),)


def check_prompt_template(template: str) -> str:
    """Ensure the prompt template takes exactly one integer placeholder.

    Raises:
        ConfigurationError: If substituting a number into the template fails
    """
    try:
        template % 0
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"EVENT_SELECTION_PROMPT must contain one %d placeholder: {e}"
        ) from e
    return template


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Load settings from environment variables.

    Args:
        environ: Mapping to read instead of ``os.environ``

    Returns:
        Frozen Settings snapshot

    Raises:
        ConfigurationError: If SLACK_WEBHOOK_URL or CLAUDE_API_KEY is missing,
            or EVENT_SELECTION_PROMPT is not a valid template
    """
    if environ is None:
        environ = os.environ

    webhook_url = environ.get("SLACK_WEBHOOK_URL", "").strip()
    api_key = environ.get("CLAUDE_API_KEY", "").strip()

    if not webhook_url:
        raise ConfigurationError("SLACK_WEBHOOK_URL is required")
    if not api_key:
        raise ConfigurationError("CLAUDE_API_KEY is required")

    prompt = check_prompt_template(
        _get_str(environ, "EVENT_SELECTION_PROMPT", DEFAULT_EVENT_SELECTION_PROMPT)
    )

    return Settings(
        slack=SlackConfig(webhook_url=webhook_url),
        claude=ClaudeConfig(
            api_key=api_key,
            model=_get_str(environ, "CLAUDE_MODEL", "claude-sonnet-4-5"),
        ),
        feed_urls=get_feed_urls(environ),
        holiday_feed_url=environ.get("HOLIDAY_FEED_URL", "").strip(),
        schedule_cron=_get_str(environ, "SCHEDULE_CRON", "0 9 * * *"),
        run_once=_get_bool(environ, "RUN_ONCE", False),
        max_events=_get_int(environ, "MAX_EVENTS", 2),
        max_holidays=_get_int(environ, "MAX_HOLIDAYS", 3),
        event_selection_prompt=prompt,
    )
