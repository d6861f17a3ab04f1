"""Typed engine events and their fan-out to listeners or a polling queue."""

from __future__ import annotations

import logging
import queue
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Union

if TYPE_CHECKING:
    from neurogait.analysis.anomalies import GaitAnomaly
    from neurogait.analysis.metrics import GaitMetrics
    from neurogait.analysis.risk_analysis.fog import FreezingEpisode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StepDetected:
    timestamp: float
    step_count: int


@dataclass(frozen=True)
class MetricsUpdated:
    metrics: GaitMetrics


@dataclass(frozen=True)
class FreezingDetected:
    episode: FreezingEpisode


@dataclass(frozen=True)
class AnomalyDetected:
    anomaly: GaitAnomaly


GaitEvent = Union[StepDetected, MetricsUpdated, FreezingDetected, AnomalyDetected]
Listener = Callable[[GaitEvent], None]


class EventBus:
    """
    Synchronous publish/subscribe for engine events.

    Listeners are called on the ingestion thread. Consumers that prefer to
    poll can pass ``queue_size`` and call ``drain()``; when the queue is full
    the oldest event is dropped.
    """

    def __init__(self, queue_size: int | None = None):
        self._listeners: list[Listener] = []
        self._queue: queue.Queue[GaitEvent] | None = (
            queue.Queue(maxsize=queue_size) if queue_size else None
        )

    def subscribe(self, listener: Listener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def publish(self, event: GaitEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Listener %r failed on %s", listener, type(event).__name__)

        if self._queue is not None:
            self._enqueue(event)

    def _enqueue(self, event: GaitEvent) -> None:
        assert self._queue is not None
        while True:
            try:
                self._queue.put_nowait(event)
                return
            except queue.Full:
                try:
                    self._queue.get_nowait()
                except queue.Empty:
                    pass

    def drain(self) -> list[GaitEvent]:
        """Pop every queued event (empty when no queue is configured)."""
        events: list[GaitEvent] = []
        if self._queue is None:
            return events
        while True:
            try:
                events.append(self._queue.get_nowait())
            except queue.Empty:
                return events
