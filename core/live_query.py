# core/live_query.py

"""
Live queries over Supabase tables.

A subscription takes an initial snapshot, then re-polls the query on the
shared APScheduler background scheduler. Each snapshot replaces the
previous one and is only delivered when it changed. The holder of a
`Subscription` must call `cancel()` when it is done with it.
"""

import uuid
from threading import Lock
from typing import Callable, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from core.config import settings
from core.errors import is_permission_denied, extract_supabase_error
from core.logging_config import logger


_scheduler: Optional[BackgroundScheduler] = None
_scheduler_lock = Lock()


def get_scheduler() -> BackgroundScheduler:
    """The process-wide scheduler that drives every live query."""
    global _scheduler
    with _scheduler_lock:
        if _scheduler is None:
            _scheduler = BackgroundScheduler(timezone="UTC")
            _scheduler.start()
            logger.info("Live query scheduler started")
        return _scheduler


def shutdown_scheduler():
    global _scheduler
    with _scheduler_lock:
        if _scheduler is not None:
            _scheduler.shutdown(wait=False)
            _scheduler = None
            logger.info("Live query scheduler stopped")


class LiveQuery:
    """A table read: optional equality filters, ordering and limit."""

    def __init__(
        self,
        client,
        table: str,
        *,
        filters: Optional[dict] = None,
        order_by: Optional[str] = None,
        descending: bool = True,
        limit: Optional[int] = None,
        select: str = "*",
    ):
        self.client = client
        self.table = table
        self.filters = filters or {}
        self.order_by = order_by
        self.descending = descending
        self.limit = limit
        self.select = select

    def fetch(self) -> list:
        query = self.client.table(self.table).select(self.select)

        for column, value in self.filters.items():
            query = query.eq(column, value)

        if self.order_by:
            query = query.order(self.order_by, desc=self.descending)

        if self.limit:
            query = query.limit(self.limit)

        res = query.execute()
        return res.data or []

    def subscribe(
        self,
        on_next: Callable[[list], None],
        on_error: Optional[Callable[[Exception], None]] = None,
        *,
        interval: Optional[int] = None,
        scheduler=None,
    ) -> "Subscription":
        subscription = Subscription(
            self,
            on_next,
            on_error,
            interval=interval or settings.LIVE_QUERY_INTERVAL_SECONDS,
            scheduler=scheduler,
        )
        subscription.start()
        return subscription


class Subscription:
    """Handle for one live query; release it with `cancel()`."""

    def __init__(self, query: LiveQuery, on_next, on_error, *, interval: int, scheduler=None):
        self.id = uuid.uuid4().hex
        self.query = query
        self.on_next = on_next
        self.on_error = on_error
        self.interval = interval
        self.active = False
        self._scheduler = scheduler
        self._job_id = f"live:{query.table}:{self.id}"
        self._last = None
        self._lock = Lock()

    @property
    def scheduler(self):
        if self._scheduler is None:
            self._scheduler = get_scheduler()
        return self._scheduler

    def start(self):
        self.active = True
        self.refresh()

        # The initial snapshot may already have cancelled us
        if not self.active:
            return

        self.scheduler.add_job(
            self.refresh,
            trigger=IntervalTrigger(seconds=self.interval),
            id=self._job_id,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

    def refresh(self):
        """Poll once; deliver the snapshot if it differs from the last one."""
        if not self.active:
            return

        try:
            rows = self.query.fetch()
        except Exception as e:
            # The next good snapshot must be delivered even if unchanged
            with self._lock:
                self._last = None
            if is_permission_denied(e):
                # No further polling until the owner retries
                self.cancel()
            logger.warning(
                f"Live query on {self.query.table} failed: {extract_supabase_error(e)}"
            )
            if self.on_error:
                self.on_error(e)
            return

        with self._lock:
            if not self.active or rows == self._last:
                return
            self._last = rows

        self.on_next(rows)

    def cancel(self):
        if not self.active:
            return
        self.active = False
        if self._scheduler is None:
            return
        try:
            self._scheduler.remove_job(self._job_id)
        except JobLookupError:
            pass

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.cancel()
