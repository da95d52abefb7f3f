"""Sticky per-device SOS flag.

The flag is raised on the rising edge of a device's emergency signal
(button or voice) and stays raised until an operator marks the device
safe.  It is deliberately independent of telemetry continuity: a device
that stops reporting keeps its SOS.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from guardwell.state.events import DeviceMarkedSafe, EngineEvent, SosRaised, SosSource

_logger = logging.getLogger(__name__)


class SosTracker:
    """Owns the SOS flag set.

    ``publish`` receives :class:`SosRaised` and :class:`DeviceMarkedSafe`
    notifications; it is typically :meth:`EventBus.publish`.
    """

    def __init__(self, *, publish: Callable[[EngineEvent], None] | None = None) -> None:
        self._publish = publish
        self._active: set[str] = set()

    def _emit(self, event: EngineEvent) -> None:
        if self._publish is not None:
            self._publish(event)

    def on_reading(
        self,
        device_id: str,
        emergency_button: bool,
        voice_emergency: bool,
        *,
        timestamp: datetime | None = None,
    ) -> bool:
        """Feed one reading's emergency signals.

        Returns ``True`` only when this call raised the flag.  Re-observing
        the signal while the flag is already set is a no-op (edge-triggered);
        a reading without the signal never clears it.
        """
        if not (emergency_button or voice_emergency):
            return False
        if device_id in self._active:
            return False

        self._active.add(device_id)
        source = SosSource.BUTTON if emergency_button else SosSource.VOICE
        _logger.info("SOS raised for device=%s source=%s", device_id, source)
        if timestamp is None:
            self._emit(SosRaised(device_id=device_id, source=source))
        else:
            self._emit(SosRaised(device_id=device_id, source=source, timestamp=timestamp))
        return True

    def mark_safe(
        self,
        device_id: str,
        *,
        operator: str,
        timestamp: datetime,
        worker_id: str | None = None,
    ) -> DeviceMarkedSafe:
        """Clear the flag unconditionally and emit :class:`DeviceMarkedSafe`.

        Emits even when the flag was not set or the device has no telemetry.
        """
        was_active = device_id in self._active
        self._active.discard(device_id)
        _logger.info("Device %s marked safe by %s (was_active=%s)", device_id, operator, was_active)
        event = DeviceMarkedSafe(
            device_id=device_id,
            worker_id=worker_id,
            operator=operator,
            timestamp=timestamp,
        )
        self._emit(event)
        return event

    def is_active(self, device_id: str) -> bool:
        return device_id in self._active

    def active_devices(self) -> frozenset[str]:
        return frozenset(self._active)
