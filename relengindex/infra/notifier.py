"""
Change notification source for relengindex.

Listeners subscribe to receive each change batch as a ResourceDelta tree.
Batches are delivered serially: every listener sees one batch before the
next one is published.
"""

from typing import Callable, List
import logging

from ..domain.change import ResourceDelta

logger = logging.getLogger(__name__)

ChangeListener = Callable[[ResourceDelta], None]


class ChangeNotifier:
    """
    Synchronous publish/subscribe hub for workspace changes.

    Example:
        notifier = ChangeNotifier()
        notifier.subscribe(index.resource_changed)
        notifier.publish(build_delta([(resource, ChangeKind.ADDED, DeltaFlag.NONE)]))
    """

    def __init__(self):
        self._listeners: List[ChangeListener] = []
        self._publishing = False
        self._pending: List[ResourceDelta] = []

    def subscribe(self, listener: ChangeListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: ChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def is_subscribed(self, listener: ChangeListener) -> bool:
        return listener in self._listeners

    def publish(self, delta: ResourceDelta) -> None:
        """
        Deliver a change batch to every listener.

        A batch published from inside a listener is queued and delivered
        after the current batch completes.
        """
        self._pending.append(delta)
        if self._publishing:
            return

        self._publishing = True
        try:
            while self._pending:
                batch = self._pending.pop(0)
                for listener in list(self._listeners):
                    try:
                        listener(batch)
                    except Exception as e:
                        logger.error(f"Change listener {listener!r} failed: {e}")
        finally:
            self._publishing = False
