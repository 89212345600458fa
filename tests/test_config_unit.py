"""Unit tests for configuration management."""

import dataclasses

import pytest

from history_slackbot.config import (
    DEFAULT_EVENT_SELECTION_PROMPT,
    DEFAULT_FEED_URL,
    load_settings,
)
from history_slackbot.errors import ConfigurationError

REQUIRED = {
    "SLACK_WEBHOOK_URL": "https://hooks.slack.com/services/T000/B000/XXXX",
    "CLAUDE_API_KEY": "sk-ant-test",
}


class TestConfigUnit:
    """Unit tests for load_settings."""

    def test_defaults(self):
        settings = load_settings(dict(REQUIRED))

        assert settings.slack.webhook_url == REQUIRED["SLACK_WEBHOOK_URL"]
        assert settings.slack.timeout == 30
        assert settings.claude.api_key == "sk-ant-test"
        assert settings.claude.model == "claude-sonnet-4-5"
        assert settings.claude.timeout == 60
        assert settings.feed_urls == (DEFAULT_FEED_URL,)
        assert settings.holiday_feed_url == ""
        assert settings.schedule_cron == "0 9 * * *"
        assert settings.run_once is False
        assert settings.max_events == 2
        assert settings.max_holidays == 3
        assert settings.event_selection_prompt == DEFAULT_EVENT_SELECTION_PROMPT

    def test_missing_webhook_url_is_fatal(self):
        with pytest.raises(ConfigurationError, match="SLACK_WEBHOOK_URL"):
            load_settings({"CLAUDE_API_KEY": "sk-ant-test"})

    def test_missing_api_key_is_fatal(self):
        with pytest.raises(ConfigurationError, match="CLAUDE_API_KEY"):
            load_settings({"SLACK_WEBHOOK_URL": "https://hooks.slack.com/x"})

    def test_blank_required_values_are_fatal(self):
        with pytest.raises(ConfigurationError):
            load_settings({"SLACK_WEBHOOK_URL": "   ", "CLAUDE_API_KEY": "key"})

    def test_overrides(self):
        env = dict(
            REQUIRED,
            CLAUDE_MODEL="claude-haiku-4-5",
            RSS_FEED_URL="https://example.com/history.xml",
            HOLIDAY_FEED_URL="https://example.com/holidays.xml",
            SCHEDULE_CRON="30 7 * * *",
            RUN_ONCE="true",
            MAX_EVENTS="4",
            MAX_HOLIDAYS="1",
            EVENT_SELECTION_PROMPT="Pick %d events.",
        )

        settings = load_settings(env)

        assert settings.claude.model == "claude-haiku-4-5"
        assert settings.feed_urls == ("https://example.com/history.xml",)
        assert settings.holiday_feed_url == "https://example.com/holidays.xml"
        assert settings.schedule_cron == "30 7 * * *"
        assert settings.run_once is True
        assert settings.max_events == 4
        assert settings.max_holidays == 1
        assert settings.event_selection_prompt == "Pick %d events."

    def test_multiple_feed_urls(self):
        env = dict(
            REQUIRED,
            RSS_FEED_URLS="https://a.example.com/rss, ,https://b.example.com/rss",
            RSS_FEED_URL="https://ignored.example.com/rss",
        )

        settings = load_settings(env)

        assert settings.feed_urls == (
            "https://a.example.com/rss",
            "https://b.example.com/rss",
        )

    def test_invalid_numbers_and_booleans_fall_back_to_defaults(self):
        env = dict(REQUIRED, MAX_EVENTS="many", MAX_HOLIDAYS="", RUN_ONCE="maybe")

        settings = load_settings(env)

        assert settings.max_events == 2
        assert settings.max_holidays == 3
        assert settings.run_once is False

    def test_settings_are_immutable(self):
        settings = load_settings(dict(REQUIRED))

        with pytest.raises(dataclasses.FrozenInstanceError):
            settings.max_events = 10

    def test_describe_hides_secrets(self):
        settings = load_settings(dict(REQUIRED))

        description = str(settings.describe())

        assert "sk-ant-test" not in description
        assert "hooks.slack.com" not in description
        assert "claude-sonnet-4-5" in description

    def test_default_prompt_has_single_integer_placeholder(self):
        assert "Select exactly 5 events" in DEFAULT_EVENT_SELECTION_PROMPT % 5

    @pytest.mark.parametrize(
        "template",
        [
            "Pick the 100% best events as JSON",
            "Pick some events as JSON",
            "Pick %d events from %d candidates",
        ],
    )
    def test_invalid_prompt_override_is_fatal(self, template):
        with pytest.raises(ConfigurationError, match="EVENT_SELECTION_PROMPT"):
            load_settings(dict(REQUIRED, EVENT_SELECTION_PROMPT=template))

    def test_escaped_percent_in_prompt_override_is_accepted(self):
        settings = load_settings(
            dict(REQUIRED, EVENT_SELECTION_PROMPT="Pick the 100%% best %d events")
        )

        assert settings.event_selection_prompt % 2 == "Pick the 100% best 2 events"
