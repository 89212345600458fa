"""Error types for History Slackbot."""


class HistoryBotError(Exception):
    """Base class for all bot errors."""


class ConfigurationError(HistoryBotError):
    """Required configuration is missing or invalid."""


class InvalidScheduleError(HistoryBotError):
    """Schedule expression could not be parsed."""


class FeedFetchError(HistoryBotError):
    """A feed could not be downloaded or no events were obtained."""


class FeedParseError(FeedFetchError):
    """A downloaded feed body is not a usable RSS document."""


class SelectionError(HistoryBotError):
    """The LLM call failed or its answer could not be used."""


class PostError(HistoryBotError):
    """The Slack webhook rejected the message or could not be reached."""
