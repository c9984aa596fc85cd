"""
Archive Sync Client - Rendezvous Handoff

A synchronous single-slot channel between the archive walker (producer) and
the reconciliation loop (consumer). A send only returns once the consumer
has taken the item, so the walker can never run ahead of the file being
reconciled.

Author: Archive Sync Project
"""

import threading
from typing import Any, Optional, Tuple


class RendezvousChannel:
    """
    Unbuffered channel handing over exactly one item at a time.

    Either side may close it. After close():
    - send() returns False without handing over its item
    - receive() returns (None, False) once any pending item has been taken
    """

    def __init__(self):
        self._cond = threading.Condition()
        self._item: Any = None
        self._has_item = False
        self._taken = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def send(self, item: Any) -> bool:
        """
        Hand an item to the consumer, blocking until it has been received.

        Args:
            item: Item to hand over

        Returns:
            True if the consumer took the item, False if the channel was closed
        """
        with self._cond:
            # Wait for the slot to be free
            while self._has_item and not self._closed:
                self._cond.wait()
            if self._closed:
                return False

            self._item = item
            self._has_item = True
            ticket = self._taken + 1
            self._cond.notify_all()

            # Wait for the consumer to take it
            while self._taken < ticket and not self._closed:
                self._cond.wait()

            if self._taken >= ticket:
                return True

            # Closed before the consumer took the item
            self._item = None
            self._has_item = False
            return False

    def receive(self, timeout: Optional[float] = None) -> Tuple[Any, bool]:
        """
        Take the next item, blocking until one is sent or the channel closes.

        Args:
            timeout: Optional seconds to wait; None waits indefinitely

        Returns:
            Tuple of (item, True), or (None, False) when the channel is closed
            (or the timeout expired with nothing sent)
        """
        with self._cond:
            if not self._cond.wait_for(lambda: self._has_item or self._closed, timeout):
                return None, False
            if not self._has_item:
                return None, False

            item = self._item
            self._item = None
            self._has_item = False
            self._taken += 1
            self._cond.notify_all()
            return item, True

    def close(self):
        """Signal closure to both sides and wake any waiter."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def __iter__(self):
        while True:
            item, ok = self.receive()
            if not ok:
                return
            yield item
