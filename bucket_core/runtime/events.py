"""
Outcome events for display-facing consumers.

Operations return their result directly. In addition, each call publishes
exactly one OutcomeEvent on an OutcomeChannel, keyed by the call id, so a
UI layer can show a human-readable message for it.

ResponseNotifierBridge forwards events to an older single-slot notifier
(record_success / record_error / set_last_call_succeeded). That notifier
keeps only the latest outcome, so concurrent calls overwrite each other
there: last writer wins. Use the channel history when the per-call
outcome matters.
"""

from __future__ import annotations

from collections import OrderedDict
from datetime import datetime, timezone
from typing import Callable, Protocol, runtime_checkable

from loguru import logger
from pydantic import BaseModel, Field

SEVERITY_SUCCESS = "success"
SEVERITY_ERROR = "error"


class OutcomeEvent(BaseModel):
    """Human-readable outcome of a single storage call."""

    call_id: str
    operation: str
    succeeded: bool
    message: str
    severity: str
    visible: bool = True
    key: str | None = None
    emitted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = {"frozen": True}


@runtime_checkable
class ResponseNotifier(Protocol):
    """Single-slot message sink consumed by display layers."""

    def record_success(self, message: str, severity: str, visible: bool) -> None:
        ...

    def record_error(self, message: str, severity: str, visible: bool) -> None:
        ...

    def set_last_call_succeeded(self, succeeded: bool) -> None:
        ...


EventHandler = Callable[[OutcomeEvent], None]


class OutcomeChannel:
    """
    Publish/subscribe channel for outcome events.

    Keeps a bounded per-call history so the outcome of a given call can be
    looked up by its id after the fact.

    Usage:
        channel = OutcomeChannel()
        channel.subscribe(print)
        channel.publish(event)
        channel.history(event.call_id)
    """

    def __init__(self, max_history: int = 1000):
        self._handlers: list[EventHandler] = []
        self._history: OrderedDict[str, list[OutcomeEvent]] = OrderedDict()
        self._max_history = max_history

    def subscribe(self, handler: EventHandler) -> Callable[[], None]:
        """
        Register a handler for every published event.

        Returns:
            A callable that removes the handler again.
        """
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def publish(self, event: OutcomeEvent) -> None:
        """Record the event and hand it to every subscriber."""
        self._history.setdefault(event.call_id, []).append(event)
        self._history.move_to_end(event.call_id)
        while len(self._history) > self._max_history:
            self._history.popitem(last=False)

        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception as e:
                # A broken display sink must not change the operation result
                logger.warning(f"Outcome handler {handler!r} failed for call {event.call_id}: {e}")

    def history(self, call_id: str) -> list[OutcomeEvent]:
        """Events published for the given call, oldest first."""
        return list(self._history.get(call_id, []))


class ResponseNotifierBridge:
    """Forwards outcome events to a single-slot ResponseNotifier."""

    def __init__(self, notifier: ResponseNotifier):
        self.notifier = notifier

    def __call__(self, event: OutcomeEvent) -> None:
        if event.succeeded:
            self.notifier.record_success(event.message, event.severity, event.visible)
        else:
            self.notifier.record_error(event.message, event.severity, event.visible)
        self.notifier.set_last_call_succeeded(event.succeeded)


class InMemoryResponseNotifier:
    """ResponseNotifier that keeps messages in lists."""

    def __init__(self):
        self.success_messages: list[dict] = []
        self.error_messages: list[dict] = []
        self.last_call_succeeded: bool | None = None

    def record_success(self, message: str, severity: str, visible: bool) -> None:
        self.success_messages.append({"message": message, "type": severity, "show": visible})

    def record_error(self, message: str, severity: str, visible: bool) -> None:
        self.error_messages.append({"message": message, "type": severity, "show": visible})

    def set_last_call_succeeded(self, succeeded: bool) -> None:
        self.last_call_succeeded = succeeded
