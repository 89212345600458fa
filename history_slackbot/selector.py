"""Event selection module using the Anthropic Messages API."""

import json
import time

import requests

from .config import DEFAULT_EVENT_SELECTION_PROMPT, ClaudeConfig
from .errors import SelectionError
from .logging_config import create_execution_logger
from .models import HistoricalEvent, SelectedEvent

JSON_FENCE = "```json"
FENCE = "```"


def extract_json(text: str) -> str:
    """Extract the JSON payload from a markdown code block if present.

    Prefers a ```json fence, then a bare ``` fence. Text without a complete
    fence is returned unchanged.
    """
    for opening in (JSON_FENCE, FENCE):
        start = text.find(opening)
        if start == -1:
            continue
        start += len(opening)
        end = text.find(FENCE, start)
        if end != -1:
            return text[start:end]

    return text


def format_events_for_prompt(events: list[HistoricalEvent]) -> str:
    """Format events into a numbered, human-readable listing."""
    lines = []

    for i, event in enumerate(events, start=1):
        entry = f"{i}. "
        if event.year:
            entry += f"[{event.year}] "
        entry += event.title
        if event.description:
            entry += f"\n   {event.description}"
        if event.category:
            entry += f"\n   Category: {event.category}"
        lines.append(entry + "\n\n")

    return "".join(lines)


class EventSelector:
    """Asks Claude to pick the most interesting of today's events."""

    def __init__(
        self,
        config: ClaudeConfig,
        max_events: int = 2,
        prompt_template: str = DEFAULT_EVENT_SELECTION_PROMPT,
        execution_id: str | None = None,
    ):
        """Initialize the selector.

        Args:
            config: Claude API configuration
            max_events: Number of events the model is asked to select
            prompt_template: Prompt with one ``%d`` placeholder for max_events
            execution_id: Execution ID for logging context
        """
        self.config = config
        self.max_events = max_events
        self.prompt_template = prompt_template
        self.logger = create_execution_logger("event_selector", execution_id)

    def select_events(self, events: list[HistoricalEvent]) -> list[SelectedEvent]:
        """Select the most interesting events using Claude.

        Raises:
            SelectionError: If there is nothing to select from, the API call
                fails or the answer cannot be parsed
        """
        if not events:
            raise SelectionError("no events to select from")

        prompt = self.build_prompt(events)
        self.logger.info(
            "Selecting events",
            candidate_count=len(events),
            max_events=self.max_events,
            prompt_length=len(prompt),
        )

        try:
            response_text = self.call_claude_api(prompt)
        except SelectionError as e:
            raise SelectionError(f"failed to call Claude API: {e}") from e

        try:
            selected = self.parse_selection(response_text)
        except SelectionError as e:
            raise SelectionError(f"failed to parse selection: {e}") from e

        if len(selected) > self.max_events:
            self.logger.warning(
                f"Model returned {len(selected)} events, asked for {self.max_events}",
                selected_count=len(selected),
                max_events=self.max_events,
            )

        self.logger.info(
            f"Selected {len(selected)} events",
            selected_count=len(selected),
            event_titles=[event.title for event in selected],
        )
        return selected

    def build_prompt(self, events: list[HistoricalEvent]) -> str:
        """Build the selection prompt for the given events.

        Raises:
            SelectionError: If the template does not take one integer placeholder
        """
        try:
            prompt = self.prompt_template % self.max_events
        except (TypeError, ValueError) as e:
            raise SelectionError(f"invalid prompt template: {e}") from e

        return prompt + "\n\nHere are today's historical events:\n\n" + format_events_for_prompt(events)

    def call_claude_api(self, prompt: str) -> str:
        """Send the prompt to the Messages API.

        Returns:
            Text of the first content block

        Raises:
            SelectionError: On network failure, non-200 status, an undecodable
                body or an empty content list
        """
        request_body = {
            "model": self.config.model,
            "max_tokens": self.config.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        headers = {
            "Content-Type": "application/json",
            "x-api-key": self.config.api_key,
            "anthropic-version": self.config.api_version,
        }

        self.logger.info("Calling Claude API", model=self.config.model)
        start_time = time.time()

        try:
            response = requests.post(
                self.config.api_url,
                json=request_body,
                headers=headers,
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            raise SelectionError(f"failed to make request: {e}") from e

        response_time_ms = int((time.time() - start_time) * 1000)

        if response.status_code != 200:
            raise SelectionError(
                f"API request failed with status {response.status_code}: {response.text}"
            )

        try:
            response_body = response.json()
        except ValueError as e:
            raise SelectionError(f"failed to unmarshal response: {e}") from e

        content = response_body.get("content") if isinstance(response_body, dict) else None
        if not content:
            raise SelectionError("no content in response")

        usage = response_body.get("usage") or {}
        self.logger.info(
            "Claude response received",
            model=response_body.get("model", self.config.model),
            input_tokens=usage.get("input_tokens"),
            output_tokens=usage.get("output_tokens"),
            response_time_ms=response_time_ms,
        )

        first_block = content[0]
        if not isinstance(first_block, dict):
            raise SelectionError(f"unexpected content block: {first_block!r}")

        return first_block.get("text") or ""

    def parse_selection(self, response_text: str) -> list[SelectedEvent]:
        """Parse the model's answer into SelectedEvent records.

        Raises:
            SelectionError: If the answer is not a JSON object with a
                non-empty "events" array
        """
        payload = extract_json(response_text)

        try:
            selection = json.loads(payload)
        except json.JSONDecodeError as e:
            raise SelectionError(
                f"failed to unmarshal selection: {e} (response: {payload})"
            ) from e

        if not isinstance(selection, dict):
            raise SelectionError(f"selection is not a JSON object (response: {payload})")

        raw_events = selection.get("events") or []
        if not isinstance(raw_events, list):
            raise SelectionError(f"selection events is not a list (response: {payload})")
        if not raw_events:
            raise SelectionError("no events in selection")

        return [self._to_selected_event(raw) for raw in raw_events]

    @staticmethod
    def _to_selected_event(raw) -> SelectedEvent:
        if not isinstance(raw, dict):
            raise SelectionError(f"selected event is not an object: {raw!r}")

        def text(key: str) -> str:
            value = raw.get(key)
            return "" if value is None else str(value)

        return SelectedEvent(
            year=text("year"),
            title=text("title"),
            description=text("description"),
            category=text("category"),
        )
