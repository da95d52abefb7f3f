"""Emergency queue reconciliation.

The queue owns the alert collection.  Two inputs feed it:

- a REST snapshot (:meth:`AlertQueue.load_snapshot`), which replaces the
  base collection wholesale;
- push events (:meth:`AlertQueue.merge_incoming`), which only ever add
  alerts whose id is not yet known.

A pushed alert never overwrites a known one, even when its fields differ.
The only path that changes an existing alert is
:meth:`AlertQueue.apply_commit`, used after a successful backend commit.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import StrEnum

from guardwell.models.alert import Alert, AlertStatus

_logger = logging.getLogger(__name__)

_STATUS_RANK: dict[AlertStatus, int] = {
    AlertStatus.PENDING: 0,
    AlertStatus.ACKNOWLEDGED: 1,
}


class AlertSort(StrEnum):
    CREATED_DESC = "created_desc"
    CREATED_ASC = "created_asc"
    STATUS_PRIORITY = "status_priority"
    PRIORITY_VALUE = "priority_value"
    ESCALATED_FIRST = "escalated_first"


class AlertFilter(StrEnum):
    ALL = "all"
    PENDING = "pending"
    ACKNOWLEDGED = "acknowledged"


def _sorted(alerts: list[Alert], sort: AlertSort) -> list[Alert]:
    # list.sort is stable, so ties keep insertion order.
    if sort == AlertSort.CREATED_DESC:
        return sorted(alerts, key=lambda a: a.created_at, reverse=True)
    if sort == AlertSort.CREATED_ASC:
        return sorted(alerts, key=lambda a: a.created_at)
    if sort == AlertSort.STATUS_PRIORITY:
        return sorted(alerts, key=lambda a: _STATUS_RANK.get(a.status, len(_STATUS_RANK)))
    if sort == AlertSort.PRIORITY_VALUE:
        return sorted(alerts, key=lambda a: (a.priority is None, a.priority or 0))
    if sort == AlertSort.ESCALATED_FIRST:
        return sorted(alerts, key=lambda a: not a.escalated)
    raise ValueError(f"Unknown sort: {sort!r}")


def _matches(alert: Alert, filter_: AlertFilter) -> bool:
    if filter_ == AlertFilter.PENDING:
        return alert.status == AlertStatus.PENDING
    if filter_ == AlertFilter.ACKNOWLEDGED:
        return alert.status == AlertStatus.ACKNOWLEDGED
    return True


class AlertQueue:
    """Deduplicated alert collection plus operator selection.

    Insertion order is snapshot order, with pushed alerts prepended as
    they arrive.  The selection is a plain set of ids; it is not pruned
    when alerts change or disappear.
    """

    def __init__(self) -> None:
        self._alerts: dict[str, Alert] = {}
        self._order: list[str] = []
        self._selection: set[str] = set()

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    def load_snapshot(self, alerts: Iterable[Alert]) -> int:
        """Replace the collection with *alerts*.

        Duplicate ids inside one snapshot keep their first occurrence.
        Returns the number of alerts kept.
        """
        fresh: dict[str, Alert] = {}
        order: list[str] = []
        for alert in alerts:
            if alert.id in fresh:
                _logger.debug("Duplicate alert %s in snapshot ignored", alert.id)
                continue
            fresh[alert.id] = alert
            order.append(alert.id)
        self._alerts = fresh
        self._order = order
        return len(order)

    def merge_incoming(self, alert: Alert) -> bool:
        """Prepend a pushed alert unless its id is already known.

        Returns ``True`` if the alert was added.
        """
        if alert.id in self._alerts:
            _logger.debug("Pushed alert %s already known; keeping existing record", alert.id)
            return False
        self._alerts[alert.id] = alert
        self._order.insert(0, alert.id)
        return True

    def apply_commit(self, alerts: Iterable[Alert]) -> None:
        """Overwrite known alerts with committed versions.

        Ids that are no longer in the collection are skipped.
        """
        for alert in alerts:
            if alert.id not in self._alerts:
                _logger.debug("Committed alert %s no longer in queue", alert.id)
                continue
            self._alerts[alert.id] = alert

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def project(
        self,
        sort: AlertSort = AlertSort.CREATED_DESC,
        filter_: AlertFilter = AlertFilter.ALL,
    ) -> list[Alert]:
        """Active (non-Resolved) alerts, filtered then sorted."""
        active = [a for a in self._iter_ordered() if a.is_active and _matches(a, filter_)]
        return _sorted(active, AlertSort(sort))

    def history(self) -> list[Alert]:
        """Every alert in insertion order, Resolved ones included."""
        return list(self._iter_ordered())

    def get(self, alert_id: str) -> Alert | None:
        return self._alerts.get(alert_id)

    def __contains__(self, alert_id: object) -> bool:
        return alert_id in self._alerts

    def __len__(self) -> int:
        return len(self._alerts)

    @property
    def pending_count(self) -> int:
        return sum(1 for a in self._alerts.values() if a.status == AlertStatus.PENDING)

    @property
    def active_count(self) -> int:
        return sum(1 for a in self._alerts.values() if a.is_active)

    def _iter_ordered(self) -> Iterable[Alert]:
        return (self._alerts[alert_id] for alert_id in self._order)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    @property
    def selection(self) -> frozenset[str]:
        return frozenset(self._selection)

    def select(self, alert_id: str) -> None:
        self._selection.add(alert_id)

    def deselect(self, alert_id: str) -> None:
        self._selection.discard(alert_id)

    def toggle_select(self, alert_id: str) -> bool:
        """Flip selection of *alert_id*; returns the new state."""
        if alert_id in self._selection:
            self._selection.discard(alert_id)
            return False
        self._selection.add(alert_id)
        return True

    def select_all_pending(self) -> frozenset[str]:
        """Set the selection to exactly the currently Pending ids."""
        self._selection = {a.id for a in self._alerts.values() if a.status == AlertStatus.PENDING}
        return self.selection

    def clear_selection(self) -> None:
        self._selection.clear()
