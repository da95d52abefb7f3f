"""Keyed, cancellable expiry flags.

Each flag is an ``asyncio`` task named ``"<name>:<key>"`` that sleeps for
the configured lifetime and then clears itself.  Setting a flag that is
already set replaces the pending task, so the lifetime restarts.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable

_logger = logging.getLogger(__name__)


class ExpiringFlags:
    """A set of keys that drop out after ``ttl`` seconds.

    ``on_expire`` is called with the key when a flag times out.  It is not
    called for flags removed through :meth:`cancel` or :meth:`aclose`.
    Must be used from inside a running event loop.
    """

    def __init__(
        self,
        name: str,
        ttl: float,
        *,
        on_expire: Callable[[str], None] | None = None,
    ) -> None:
        self._name = name
        self._ttl = ttl
        self._on_expire = on_expire
        self._tasks: dict[str, asyncio.Task[None]] = {}

    @property
    def name(self) -> str:
        return self._name

    @property
    def ttl(self) -> float:
        return self._ttl

    def set(self, key: str) -> None:
        """Raise the flag for *key*, restarting its lifetime."""
        loop = asyncio.get_running_loop()
        self.cancel(key)
        self._tasks[key] = loop.create_task(self._expire_after(key), name=f"{self._name}:{key}")

    def cancel(self, key: str) -> bool:
        """Drop the flag for *key* without firing ``on_expire``.

        Returns ``True`` if a flag was pending.
        """
        task = self._tasks.pop(key, None)
        if task is None:
            return False
        task.cancel()
        return True

    def is_set(self, key: str) -> bool:
        return key in self._tasks

    def active(self) -> frozenset[str]:
        return frozenset(self._tasks)

    async def _expire_after(self, key: str) -> None:
        await asyncio.sleep(self._ttl)
        if self._tasks.get(key) is not asyncio.current_task():
            return
        del self._tasks[key]
        _logger.debug("%s expired for %s", self._name, key)
        if self._on_expire is None:
            return
        try:
            self._on_expire(key)
        except Exception:
            _logger.debug("%s expiry callback failed for %s", self._name, key, exc_info=True)

    async def aclose(self) -> None:
        """Cancel every pending flag and wait for the tasks to finish."""
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
