"""Progress notifications published by the orchestrator.

Listeners receive every event synchronously, in publish order. A failing
listener is logged and never interrupts a run.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum

from docpipe.logging.logger import Log


class PipelineEventType(StrEnum):
    STAGE_STARTED = "stage_started"
    STAGE_COMPLETED = "stage_completed"
    STAGE_FAILED = "stage_failed"
    PIPELINE_COMPLETED = "pipeline_completed"
    PIPELINE_FAILED = "pipeline_failed"
    ACTION_COMPLETED = "action_completed"
    ACTION_FAILED = "action_failed"


@dataclass(frozen=True)
class PipelineEvent:
    type: PipelineEventType
    panel_id: str
    pipeline_id: str | None = None
    stage_index: int | None = None
    stage_id: str | None = None
    message: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


Listener = Callable[[PipelineEvent], None]


class EventBus:
    """Fan-out of pipeline events to subscribed callbacks."""

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener*; the returned callable unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, event: PipelineEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as exc:
                Log.warning(f"Event listener failed on {event.type}: {exc}")
