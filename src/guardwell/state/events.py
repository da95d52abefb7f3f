"""Engine notification events and the bus that delivers them.

Components publish these instead of calling each other or the presentation
layer directly.  :class:`DeviceMarkedSafe` is the outbound side effect that
collaborators (notification fan-out, audit log) subscribe to.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from enum import StrEnum
from typing import TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from guardwell.models.alert import Alert
from guardwell.models.incident import Incident, IncidentDraft

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SosSource(StrEnum):
    BUTTON = "button"
    VOICE = "voice"


class TransientIndicator(StrEnum):
    MARKED_SAFE = "marked_safe"
    NUDGE_SENT = "nudge_sent"


class EngineEvent(BaseModel):
    """Base for everything published on the :class:`EventBus`."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=_utcnow)

    @field_validator("timestamp")
    @classmethod
    def _ensure_tz_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


class TelemetryUpdated(EngineEvent):
    device_id: str


class SosRaised(EngineEvent):
    """Emitted once per rising edge of a device's emergency signal."""

    device_id: str
    source: SosSource


class DeviceMarkedSafe(EngineEvent):
    """An operator cleared a device's SOS flag."""

    device_id: str
    worker_id: str | None = None
    operator: str


class TransientExpired(EngineEvent):
    device_id: str
    indicator: TransientIndicator


class NudgeSent(EngineEvent):
    device_id: str
    message: str


class AlertsReloaded(EngineEvent):
    count: int


class AlertMerged(EngineEvent):
    alert: Alert


class AlertAcknowledged(EngineEvent):
    """An acknowledge commit succeeded.

    ``batch`` is set when the alert was part of a batch acknowledge.
    """

    alert: Alert
    batch: bool = False


class AlertResolved(EngineEvent):
    alert: Alert


class IncidentProposed(EngineEvent):
    alert_id: str
    draft: IncidentDraft


class IncidentCreated(EngineEvent):
    alert_id: str
    incident: Incident


TEvent = TypeVar("TEvent", bound=EngineEvent)
Subscriber = Callable[[EngineEvent], None]


class EventBus:
    """Synchronous in-process publish/subscribe.

    Subscribers run in registration order on the publishing call.  A failing
    subscriber is logged and does not prevent delivery to the others.
    """

    def __init__(self) -> None:
        self._subscribers: list[tuple[type[EngineEvent], Subscriber]] = []

    def subscribe(
        self,
        callback: Callable[[TEvent], None],
        event_type: type[TEvent] | None = None,
    ) -> Callable[[], None]:
        """Register *callback* for *event_type* (all events when omitted).

        Returns a zero-argument function that removes the subscription.
        """
        entry: tuple[type[EngineEvent], Subscriber] = (event_type or EngineEvent, callback)  # type: ignore[assignment]
        self._subscribers.append(entry)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._subscribers.remove(entry)

        return _unsubscribe

    def publish(self, event: EngineEvent) -> None:
        for event_type, callback in list(self._subscribers):
            if not isinstance(event, event_type):
                continue
            try:
                callback(event)
            except Exception:
                _logger.debug("Subscriber failed for %s", type(event).__name__, exc_info=True)
