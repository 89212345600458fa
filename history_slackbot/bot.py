"""Orchestration and process entry point for History Slackbot."""

import argparse
import os
import signal
import threading

from .config import Settings, load_settings
from .errors import ConfigurationError, FeedFetchError, InvalidScheduleError
from .logging_config import (
    create_execution_logger,
    new_execution_id,
    setup_structured_logging,
)
from .models import Holiday, SelectedEvent
from .rss import FeedProcessor
from .scheduler import Scheduler, daily_interval, next_run_time
from .selector import EventSelector
from .slack import SlackPoster, format_events_as_text

# Holidays whose titles contain any of these are considered too serious to post
SERIOUS_HOLIDAY_KEYWORDS = (
    "International",
    "World",
    "National Awareness",
    "Day for",
    "Memorial",
    "Remembrance",
    "Victims",
    "Prevention",
    "Human Rights",
    "Peace",
    "Conflict",
    "War",
    "Violence",
    "Exploitation",
    "Poverty",
    "Hunger",
    "Disease",
    "Awareness Week",
    "Awareness Month",
    "Solidarity",
    "Against",
    "United Nations",
    "Commemoration",
)


def filter_fun_holidays(holidays: list[Holiday]) -> list[Holiday]:
    """Drop serious or political holidays, keeping only the fun ones."""
    keywords = [keyword.lower() for keyword in SERIOUS_HOLIDAY_KEYWORDS]
    return [
        holiday
        for holiday in holidays
        if not any(keyword in holiday.title.lower() for keyword in keywords)
    ]


class HistoryBot:
    """Runs the fetch, select, format and post pipeline."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def run(self) -> None:
        """Execute one job run; raises on the first failing stage."""
        execution_id = new_execution_id("job")
        logger = create_execution_logger("main", execution_id)
        logger.log_execution_start(feed_count=len(self.settings.feed_urls))

        metrics = {"events_fetched": 0, "events_selected": 0, "holidays_posted": 0}
        try:
            selected, holidays = self.collect(execution_id, metrics)

            poster = SlackPoster(self.settings.slack, execution_id=execution_id)
            poster.post_events_with_holidays(selected, holidays)
        except Exception as e:
            logger.log_metrics(metrics)
            logger.log_execution_end(success=False, error=str(e))
            raise

        logger.log_metrics(metrics)
        logger.log_execution_end(success=True)

    def preview(self) -> str:
        """Fetch and select events and holidays, returning a plain-text rendering."""
        execution_id = new_execution_id("preview")
        selected, holidays = self.collect(execution_id, {})
        return format_events_as_text(selected, holidays=holidays)

    def collect(
        self, execution_id: str, metrics: dict
    ) -> tuple[list[SelectedEvent], list[Holiday]]:
        """Fetch feeds, select events and gather holidays."""
        logger = create_execution_logger("main", execution_id)
        feed_processor = FeedProcessor(execution_id=execution_id)

        events = feed_processor.fetch_feeds(list(self.settings.feed_urls))
        metrics["events_fetched"] = len(events)
        logger.info(f"Fetched {len(events)} events", total_events=len(events))

        selector = EventSelector(
            self.settings.claude,
            max_events=self.settings.max_events,
            prompt_template=self.settings.event_selection_prompt,
            execution_id=execution_id,
        )
        selected = selector.select_events(events)
        metrics["events_selected"] = len(selected)

        holidays = self.collect_holidays(feed_processor, logger)
        metrics["holidays_posted"] = len(holidays)

        return selected, holidays

    def collect_holidays(self, feed_processor: FeedProcessor, logger) -> list[Holiday]:
        """Fetch, filter and truncate holidays; failures yield none."""
        url = self.settings.holiday_feed_url
        if not url:
            return []

        try:
            holidays = feed_processor.fetch_holidays(url)
        except FeedFetchError as e:
            logger.warning(
                f"Failed to fetch holidays: {e}", feed_url=url, error=str(e)
            )
            return []

        fun_holidays = filter_fun_holidays(holidays)
        selected = fun_holidays[: max(self.settings.max_holidays, 0)]
        logger.info(
            f"Selected {len(selected)} holidays to display",
            fetched=len(holidays),
            fun=len(fun_holidays),
            selected=len(selected),
        )
        return selected


def install_signal_handlers(stop_event: threading.Event, logger) -> None:
    """Set ``stop_event`` on SIGINT/SIGTERM."""

    def handle_shutdown(signum, frame):
        logger.info(f"Received signal: {signal.Signals(signum).name}", signal=signum)
        stop_event.set()

    signal.signal(signal.SIGINT, handle_shutdown)
    signal.signal(signal.SIGTERM, handle_shutdown)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="history-slackbot",
        description="Post curated 'on this day' events to Slack.",
    )
    parser.add_argument(
        "--once", action="store_true", help="run the job once and exit (overrides RUN_ONCE)"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="fetch and select events, print them instead of posting",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Process entry point.

    Returns:
        Exit code: 0 on success or clean shutdown, 1 on startup or run-once failure
    """
    args = parse_args(argv)
    setup_structured_logging(os.getenv("LOG_LEVEL", "INFO"))
    logger = create_execution_logger("main", new_execution_id("process"))
    logger.info("Starting History Slackbot")

    try:
        settings = load_settings()
    except ConfigurationError as e:
        logger.error(f"Failed to load configuration: {e}", error=str(e))
        return 1

    run_once = settings.run_once or args.once
    logger.info("Configuration loaded", settings=settings.describe(), run_once=run_once)

    bot = HistoryBot(settings)

    if args.dry_run:
        try:
            print(bot.preview())
        except Exception as e:
            logger.exception(f"Dry run failed: {e}", error=str(e))
            return 1
        return 0

    stop_event = threading.Event()

    if run_once:
        install_signal_handlers(stop_event, logger)
        scheduler = Scheduler(bot.run, run_once=True, stop_event=stop_event)
        result = scheduler.start()
        logger.info("History Slackbot stopped")
        return 0 if result.success else 1

    try:
        first_run = next_run_time(settings.schedule_cron)
    except InvalidScheduleError as e:
        logger.error(f"Failed to parse cron expression: {e}", error=str(e))
        return 1

    logger.info(f"Next scheduled run: {first_run.isoformat()}", next_run=first_run.isoformat())

    install_signal_handlers(stop_event, logger)
    scheduler = Scheduler(bot.run, interval=daily_interval(), stop_event=stop_event)
    scheduler.start_at(first_run)

    logger.info("History Slackbot stopped")
    return 0
