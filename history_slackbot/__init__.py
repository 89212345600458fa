"""History Slackbot: posts curated "on this day" events to Slack."""

__version__ = "1.0.0"
