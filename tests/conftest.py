"""Shared fixtures for History Slackbot tests."""

import pytest

from history_slackbot.config import ClaudeConfig, Settings, SlackConfig


@pytest.fixture
def settings():
    return Settings(
        slack=SlackConfig(webhook_url="https://hooks.slack.com/services/T000/B000/XXXX"),
        claude=ClaudeConfig(api_key="sk-ant-test"),
        feed_urls=("https://feeds.example.com/history.xml",),
        max_events=2,
        max_holidays=2,
    )
