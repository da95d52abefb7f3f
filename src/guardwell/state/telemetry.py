"""Latest-reading telemetry store.

This is the only component allowed to hold :class:`DeviceTelemetry`
records.  Merge policy is last-write-wins on the whole record: an upsert
replaces everything known about the device, with no field-level merge and
no timestamp reconciliation (per-device delivery is assumed in order).
"""

from __future__ import annotations

from datetime import datetime

from guardwell.models.telemetry import DeviceTelemetry


class TelemetryStore:
    """In-memory latest reading per device for the current session."""

    def __init__(self) -> None:
        self._readings: dict[str, DeviceTelemetry] = {}

    def upsert(
        self,
        device_id: str,
        reading: DeviceTelemetry,
        received_at: datetime | None = None,
    ) -> DeviceTelemetry:
        """Replace the full record for *device_id*.

        The stored record is keyed and stamped by the arguments, not by the
        ids/timestamps inside *reading*, so callers cannot file a reading
        under another device by accident.
        """
        stamped = reading.model_copy(
            update={
                "device_id": device_id,
                "received_at": received_at or reading.received_at,
            }
        )
        self._readings[device_id] = stamped
        return stamped

    def get(self, device_id: str) -> DeviceTelemetry | None:
        """Latest reading, or ``None`` if nothing arrived this session."""
        return self._readings.get(device_id)

    def has_live_data(self, device_id: str) -> bool:
        return device_id in self._readings

    def device_ids(self) -> list[str]:
        """Ids of devices with at least one reading, in first-seen order."""
        return list(self._readings)

    def clear(self) -> None:
        """Forget every reading (end of session)."""
        self._readings.clear()
