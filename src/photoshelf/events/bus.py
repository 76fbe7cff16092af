import logging
import threading
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Iterator, List, Optional, Type


@dataclass(kw_only=True)
class Event:
    """Base class for everything published on the :class:`EventBus`."""
    timestamp: datetime = field(default_factory=datetime.now)
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))


@dataclass(eq=False)
class Subscription:
    """Handle returned by :meth:`EventBus.subscribe`."""
    event_type: Type[Event]
    handler: Callable[[Event], None]
    run_async: bool = False
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    active: bool = True
    bus: Optional["EventBus"] = field(default=None, repr=False)

    def cancel(self) -> None:
        if self.bus is not None:
            self.bus.unsubscribe(self)
        self.active = False


class EventBus:
    """Publish/subscribe hub used by the pipeline to announce results.

    A handler subscribed to an event class also receives its subclasses, so
    subscribing to :class:`Event` observes everything.  Synchronous handlers
    run on the publishing thread (usually the preview worker); asynchronous
    ones run on a small private pool so a slow observer never stalls a batch.
    """

    def __init__(self, logger: Optional[logging.Logger] = None, max_workers: int = 2):
        self._logger = logger or logging.getLogger(__name__)
        self._subscriptions: Dict[Type[Event], List[Subscription]] = {}
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="EventBus")
        self._lock = threading.Lock()

    def subscribe(self, event_type: Type[Event], handler: Callable, async_: bool = False) -> Subscription:
        sub = Subscription(event_type=event_type, handler=handler, run_async=async_, bus=self)
        with self._lock:
            self._subscriptions.setdefault(event_type, []).append(sub)
        return sub

    def unsubscribe(self, subscription: Subscription):
        subscription.active = False
        with self._lock:
            subs = self._subscriptions.get(subscription.event_type, [])
            if subscription in subs:
                subs.remove(subscription)

    def _matching(self, event: Event) -> Iterator[Subscription]:
        with self._lock:
            snapshot = [
                sub
                for cls in type(event).__mro__
                for sub in self._subscriptions.get(cls, ())
            ]
        return (sub for sub in snapshot if sub.active)

    def publish(self, event: Event):
        for sub in self._matching(event):
            if sub.run_async:
                self._executor.submit(self._safe_async_call, sub.handler, event)
                continue
            try:
                sub.handler(event)
            except Exception:
                self._logger.exception("Sync handler failed for %s", type(event).__name__)

    def publish_async(self, event: Event) -> List[Future]:
        """Run every matching handler on the pool and return the futures."""
        return [
            self._executor.submit(self._safe_async_call, sub.handler, event)
            for sub in self._matching(event)
        ]

    def _safe_async_call(self, handler, event):
        try:
            handler(event)
        except Exception:
            self._logger.exception("Async handler failed for %s", type(event).__name__)

    def shutdown(self):
        self._executor.shutdown(wait=True)
