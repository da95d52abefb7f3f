"""Device list snapshot parsing."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from guardwell.ingestion.normalize import unwrap_list
from guardwell.models.device import Device

_logger = logging.getLogger(__name__)


def parse_device_list(payload: Any) -> list[Device]:
    """Parse a ``GET /devices`` response, skipping rows without a device id."""
    devices: list[Device] = []
    for item in unwrap_list(payload):
        try:
            devices.append(Device.model_validate(item))
        except ValidationError:
            _logger.debug("Skipping malformed device in snapshot", exc_info=True)
    return devices
