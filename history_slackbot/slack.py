"""Slack webhook publisher for History Slackbot."""

import json
import urllib.error
import urllib.request
from datetime import datetime

from .config import SlackConfig
from .errors import PostError
from .logging_config import create_execution_logger
from .models import Holiday, SelectedEvent

FOOTER_TEXT = "_Curated by AI from today's historical events_"


def _header_date(now: datetime) -> str:
    # "Monday, January 2" without a zero-padded day
    return f"{now:%A, %B} {now.day}"


def _divider() -> dict:
    return {"type": "divider"}


def _section(text: str) -> dict:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


def format_events_as_text(
    events: list[SelectedEvent],
    now: datetime | None = None,
    holidays: list[Holiday] | None = None,
) -> str:
    """Format events, and optionally holidays, as plain text for previews."""
    now = now or datetime.now()
    lines = [f"📅 On This Day in History - {_header_date(now)}, {now.year}", ""]

    if holidays:
        lines.append("🎉 Today's Fun Holidays")
        lines.extend(f"• {holiday.title}" for holiday in holidays)
        lines.append("")

    for i, event in enumerate(events, start=1):
        lines.append(f"{i}. {event.year} - {event.title}")
        lines.append(f"   Category: {event.category}")
        lines.append(f"   {event.description}")
        if i < len(events):
            lines.append("")

    return "\n".join(lines) + "\n"


class SlackPoster:
    """Handles posting messages to a Slack incoming webhook."""

    def __init__(self, config: SlackConfig, execution_id: str | None = None):
        """Initialize Slack poster with configuration."""
        self.config = config
        self.logger = create_execution_logger("slack_poster", execution_id)

    def post_events(self, events: list[SelectedEvent]) -> None:
        """Post selected events without a holidays section."""
        self.post_events_with_holidays(events, [])

    def post_events_with_holidays(
        self, events: list[SelectedEvent], holidays: list[Holiday] | None = None
    ) -> None:
        """Post selected events and holidays to Slack.

        Raises:
            PostError: If there is nothing to post or the webhook call fails
        """
        holidays = holidays or []
        if not events and not holidays:
            raise PostError("no events or holidays to post")

        message = self.format_message(events, holidays)
        self.logger.info(
            "Posting message to Slack",
            event_count=len(events),
            holiday_count=len(holidays),
            block_count=len(message["blocks"]),
        )
        self._post(message)

    def post_simple_message(self, text: str) -> None:
        """Post a plain text message to Slack.

        Raises:
            PostError: If the webhook call fails
        """
        self._post({"text": text})

    def format_message(
        self,
        events: list[SelectedEvent],
        holidays: list[Holiday] | None = None,
        now: datetime | None = None,
    ) -> dict:
        """Format events and holidays into a Slack Block Kit message.

        Args:
            events: Events to render, one section each, in order
            holidays: Holidays for the optional "fun holidays" section
            now: Date stamped in the header (defaults to today)

        Returns:
            Message payload with a ``blocks`` list
        """
        now = now or datetime.now()

        blocks = [
            {
                "type": "header",
                "text": {
                    "type": "plain_text",
                    "text": f"📅 On This Day in History - {_header_date(now)}",
                },
            },
            _divider(),
        ]

        if holidays:
            blocks.append(_section("*🎉 Today's Fun Holidays*"))
            blocks.append(_section("\n".join(f"• {holiday.title}" for holiday in holidays)))
            blocks.append(_divider())

        for i, event in enumerate(events):
            header = f"*{event.year}* • {event.category}"
            title = f"*{event.title}*"
            blocks.append(_section(f"{header}\n\n{title}\n\n{event.description}"))

            if i < len(events) - 1:
                blocks.append(_divider())

        blocks.append(
            {
                "type": "context",
                "elements": [{"type": "mrkdwn", "text": FOOTER_TEXT}],
            }
        )

        return {"blocks": blocks}

    def _post(self, message: dict) -> None:
        """POST a JSON payload to the webhook.

        Raises:
            PostError: On any non-200 status or transport error
        """
        req = urllib.request.Request(
            self.config.webhook_url,
            data=json.dumps(message).encode("utf-8"),
            headers={"Content-Type": "application/json"},
            method="POST",
        )

        try:
            with urllib.request.urlopen(req, timeout=self.config.timeout) as response:
                body = response.read().decode("utf-8", errors="replace")
                if response.status != 200:
                    raise PostError(
                        f"Slack API request failed with status {response.status}: {body}"
                    )
        except urllib.error.HTTPError as e:
            body = e.read().decode("utf-8", errors="replace") if e.fp else ""
            raise PostError(
                f"Slack API request failed with status {e.code}: {body}"
            ) from e
        except urllib.error.URLError as e:
            raise PostError(f"failed to make request: {e.reason}") from e
        except OSError as e:
            raise PostError(f"failed to make request: {e}") from e

        self.logger.info("Message posted to Slack", status_code=200)
