"""Fire-and-forget analytics event emission.

The tracker queues every event and hands it to an optional sink. A failing
sink is logged; it never propagates into the experiment code that emitted
the event.
"""

import logging
from collections.abc import Callable
from typing import Any

from copylab.collector.schemas import Event, EventType

logger = logging.getLogger(__name__)

EventSink = Callable[[Event], None]


class AnalyticsTracker:
    def __init__(self, sink: EventSink | None = None):
        self.sink = sink
        self._queue: list[Event] = []

    def track_event(self, event_type: EventType, properties: dict[str, Any]) -> Event:
        event = Event(event_type=event_type, properties=properties)
        self._queue.append(event)
        if self.sink is not None:
            try:
                self.sink(event)
            except Exception:
                logger.exception("Analytics sink failed for %s", event.event_type.value)
        return event

    def track_copy_variant(self, experiment_id: str, variant: str) -> Event:
        return self.track_event(
            EventType.COPY_VARIANT_VIEW,
            {"experimentId": experiment_id, "variant": variant},
        )

    def track_conversion(self, experiment_id: str, variant: str | None) -> Event:
        return self.track_event(
            EventType.AB_TEST_CONVERSION,
            {"experimentId": experiment_id, "variant": variant},
        )

    def get_event_queue(self) -> list[Event]:
        return list(self._queue)

    def clear_event_queue(self) -> None:
        self._queue.clear()
