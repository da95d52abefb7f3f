"""Device list snapshot model."""

from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar

from pydantic import field_validator, model_validator

from guardwell.ingestion.normalize import parse_timestamp, safe_float, safe_str
from guardwell.models._base import GuardwellBaseModel


class Device(GuardwellBaseModel):
    """A wearable device as registered with the backend.

    Parameters
    ----------
    device_id : str
        Device identifier used as the telemetry key (e.g. ``"DEV-001"``).
    serial_number : str or None
        Hardware serial number.
    type : str or None
        Hardware model.
    worker_id : str or None
        Assigned worker.
    worker_name : str or None
        Assigned worker's full name, taken from the nested ``worker``
        object when the backend includes it.
    status : str or None
        Backend-side registration status (e.g. ``"Active"``).  This is not
        the derived safety status.
    battery : float or None
        Last battery level the backend stored.
    last_communication : datetime or None
        Last time the backend heard from the device.
    """

    _KEY_ALIASES: ClassVar[dict[str, str]] = {"device_id": "deviceId"}

    device_id: str
    serial_number: str | None = None
    type: str | None = None
    worker_id: str | None = None
    worker_name: str | None = None
    status: str | None = None
    battery: float | None = None
    last_communication: datetime | None = None

    @model_validator(mode="before")
    @classmethod
    def _flatten_worker(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        worker = values.get("worker")
        if not isinstance(worker, dict):
            return values
        merged = dict(values)
        if merged.get("workerName") is None and merged.get("worker_name") is None:
            merged["workerName"] = worker.get("fullName") or worker.get("name")
        if merged.get("workerId") is None and merged.get("worker_id") is None:
            merged["workerId"] = worker.get("id")
        merged.setdefault("raw", values)
        return merged

    @field_validator("device_id", mode="before")
    @classmethod
    def _coerce_device_id(cls, value: Any) -> Any:
        text = safe_str(value)
        return text if text is not None else value

    @field_validator("serial_number", "type", "worker_id", "worker_name", "status", mode="before")
    @classmethod
    def _coerce_str(cls, value: Any) -> str | None:
        return safe_str(value)

    @field_validator("battery", mode="before")
    @classmethod
    def _coerce_float(cls, value: Any) -> float | None:
        return safe_float(value)

    @field_validator("last_communication", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value: Any) -> datetime | None:
        return parse_timestamp(value)
