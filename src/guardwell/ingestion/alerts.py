"""Alert push and snapshot parsing.

Push events and snapshot items share the :class:`~guardwell.models.alert.Alert`
schema.  A single pushed alert that cannot be validated is an error; a bad
item inside a snapshot list is skipped so one corrupt row does not hide the
rest of the queue.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from guardwell.exceptions import PayloadValidationError
from guardwell.ingestion.normalize import unwrap_list
from guardwell.models.alert import Alert

_logger = logging.getLogger(__name__)


def parse_alert_event(payload: Mapping[str, Any]) -> Alert:
    """Validate one pushed alert.

    Raises
    ------
    PayloadValidationError
        If the payload lacks an id, device, type or creation time.
    """
    if isinstance(payload, Alert):
        return payload
    if not isinstance(payload, Mapping):
        raise PayloadValidationError(f"alert payload must be a mapping, got {type(payload).__name__}")
    try:
        return Alert.model_validate(dict(payload))
    except ValidationError as exc:
        raise PayloadValidationError(f"alert payload rejected: {exc.error_count()} error(s)") from exc


def parse_alert_list(payload: Any) -> list[Alert]:
    """Parse a snapshot response (bare list or ``{"data": [...]}`` envelope)."""
    alerts: list[Alert] = []
    for item in unwrap_list(payload):
        try:
            alerts.append(parse_alert_event(item))
        except PayloadValidationError:
            _logger.debug("Skipping malformed alert in snapshot", exc_info=True)
    return alerts

