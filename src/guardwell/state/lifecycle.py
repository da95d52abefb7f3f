"""Alert lifecycle state machine.

Legal transitions::

    Pending --acknowledge--> Acknowledged --resolve--> Resolved

Every transition is commit-then-update: the backend command is awaited
first and the queue is only touched once it returned.  A failed commit
leaves every local record as it was and the backend's exception
propagates unchanged.

At most one transition per alert id can be in flight.  The claim is taken
before the first ``await``, so a second request for the same id issued
while the first is suspended fails immediately with
:class:`~guardwell.exceptions.AlertBusyError`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from datetime import UTC, datetime

from guardwell.backend import SafetyBackend
from guardwell.exceptions import AlertBusyError, AlertNotFoundError, AlertTransitionError
from guardwell.models.alert import Alert, AlertStatus, response_time_ms
from guardwell.state.events import AlertAcknowledged, AlertResolved, EngineEvent
from guardwell.state.queue import AlertQueue

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def acknowledged_copy(alert: Alert, *, actor: str, at: datetime, note: str | None = None) -> Alert:
    """Return *alert* as it looks after a committed acknowledge."""
    return alert.model_copy(
        update={
            "status": AlertStatus.ACKNOWLEDGED,
            "acknowledged_by": actor,
            "acknowledged_at": at,
            "notes": note if note is not None else alert.notes,
            "response_time_ms": response_time_ms(alert.created_at, at),
        }
    )


def resolved_copy(alert: Alert, *, at: datetime, notes: str | None = None) -> Alert:
    """Return *alert* as it looks after a committed resolve."""
    return alert.model_copy(
        update={
            "status": AlertStatus.RESOLVED,
            "resolved_at": at,
            "notes": notes if notes is not None else alert.notes,
        }
    )


class AlertLifecycle:
    """Drives alert transitions against a :class:`SafetyBackend`."""

    def __init__(
        self,
        queue: AlertQueue,
        backend: SafetyBackend,
        *,
        clock: Callable[[], datetime] = _utcnow,
        publish: Callable[[EngineEvent], None] | None = None,
    ) -> None:
        self._queue = queue
        self._backend = backend
        self._clock = clock
        self._publish = publish
        self._in_flight: set[str] = set()

    def in_flight(self, alert_id: str) -> bool:
        return alert_id in self._in_flight

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _emit(self, event: EngineEvent) -> None:
        if self._publish is not None:
            self._publish(event)

    def _require(self, alert_id: str) -> Alert:
        alert = self._queue.get(alert_id)
        if alert is None:
            raise AlertNotFoundError(f"Unknown alert {alert_id!r}", alert_id=alert_id)
        return alert

    def _claim(self, alert_ids: Sequence[str]) -> None:
        busy = [alert_id for alert_id in alert_ids if alert_id in self._in_flight]
        if busy:
            _logger.warning("Rejected transition; alert(s) already in flight: %s", ", ".join(busy))
            raise AlertBusyError(
                f"Alert {busy[0]!r} has a transition in flight",
                alert_id=busy[0],
            )
        self._in_flight.update(alert_ids)

    def _release(self, alert_ids: Iterable[str]) -> None:
        self._in_flight.difference_update(alert_ids)

    @staticmethod
    def _reject(alert: Alert, action: str) -> AlertTransitionError:
        _logger.warning("Rejected %s of alert %s in status %s", action, alert.id, alert.status)
        return AlertTransitionError(
            f"Cannot {action} alert {alert.id!r} in status {alert.status}",
            alert_id=alert.id,
            current=str(alert.status),
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def acknowledge(self, alert_id: str, actor: str, note: str | None = None) -> Alert:
        """Acknowledge a Pending alert.

        Raises
        ------
        AlertNotFoundError
            If the id is not in the queue.
        AlertBusyError
            If another transition for the id is in flight.
        AlertTransitionError
            If the alert is not Pending.
        """
        self._require(alert_id)
        self._claim([alert_id])
        try:
            alert = self._require(alert_id)
            if alert.status != AlertStatus.PENDING:
                raise self._reject(alert, "acknowledge")
            try:
                await self._backend.acknowledge_alert(alert_id, actor, note)
            except Exception:
                _logger.warning("Acknowledge commit failed for alert %s", alert_id, exc_info=True)
                raise
            current = self._queue.get(alert_id) or alert
            committed = acknowledged_copy(current, actor=actor, at=self._clock(), note=note)
            self._queue.apply_commit([committed])
        finally:
            self._release([alert_id])

        _logger.debug("Alert %s acknowledged by %s", alert_id, actor)
        self._emit(AlertAcknowledged(alert=committed))
        return committed

    async def batch_acknowledge(self, alert_ids: Iterable[str], actor: str) -> list[Alert]:
        """Acknowledge several Pending alerts as one unit.

        Every id must be known and Pending before the commit is attempted;
        otherwise nothing is sent and nothing changes.  Repeated ids count
        once.  A successful commit clears the queue selection.
        """
        ids = list(dict.fromkeys(alert_ids))
        if not ids:
            return []
        for alert_id in ids:
            self._require(alert_id)
        self._claim(ids)
        try:
            alerts = [self._require(alert_id) for alert_id in ids]
            for alert in alerts:
                if alert.status != AlertStatus.PENDING:
                    raise self._reject(alert, "batch-acknowledge")
            try:
                await self._backend.batch_acknowledge_alerts(ids, actor)
            except Exception:
                _logger.warning("Batch acknowledge commit failed for %d alert(s)", len(ids), exc_info=True)
                raise
            now = self._clock()
            committed = [
                acknowledged_copy(self._queue.get(alert.id) or alert, actor=actor, at=now) for alert in alerts
            ]
            self._queue.apply_commit(committed)
            self._queue.clear_selection()
        finally:
            self._release(ids)

        _logger.debug("Batch acknowledged %d alert(s) by %s", len(committed), actor)
        for alert in committed:
            self._emit(AlertAcknowledged(alert=alert, batch=True))
        return committed

    async def batch_acknowledge_selected(self, actor: str) -> list[Alert]:
        """Batch-acknowledge the queue's current selection."""
        return await self.batch_acknowledge(sorted(self._queue.selection), actor)

    async def resolve(self, alert_id: str, notes: str | None = None) -> Alert:
        """Resolve an Acknowledged alert.

        A Pending alert must be acknowledged first; resolving it directly
        raises :class:`AlertTransitionError`.
        """
        self._require(alert_id)
        self._claim([alert_id])
        try:
            alert = self._require(alert_id)
            if alert.status != AlertStatus.ACKNOWLEDGED:
                raise self._reject(alert, "resolve")
            try:
                await self._backend.resolve_alert(alert_id, notes)
            except Exception:
                _logger.warning("Resolve commit failed for alert %s", alert_id, exc_info=True)
                raise
            current = self._queue.get(alert_id) or alert
            committed = resolved_copy(current, at=self._clock(), notes=notes)
            self._queue.apply_commit([committed])
        finally:
            self._release([alert_id])

        _logger.debug("Alert %s resolved", alert_id)
        self._emit(AlertResolved(alert=committed))
        return committed
