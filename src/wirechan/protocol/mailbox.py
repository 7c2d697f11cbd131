"""
Queues used to pass values between the caller's threads and a channel's background threads.
"""
import logging
from queue import Empty, Full, Queue
from time import monotonic

from wirechan.protocol.errors import ChannelClosedError

logger = logging.getLogger(__name__)


class Mailbox(Queue):
    """
    A bounded queue that can be closed.
    Once closed, put() raises ChannelClosedError and threads blocked in put() are released with the same error.
    Items already queued can still be taken; get() raises ChannelClosedError once the mailbox is closed and empty.
    Iterating a mailbox takes items until it is closed and drained.
    """

    def __init__(self, maxsize=0):
        super().__init__(maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        with self.mutex:
            return self._closed

    def close(self) -> bool:
        """
        Closes the mailbox.
        :return: True if this call closed the mailbox, False if it was already closed.
        """
        with self.mutex:
            if self._closed:
                return False
            self._closed = True
            self.not_empty.notify_all()
            self.not_full.notify_all()
            return True

    def put(self, item, block=True, timeout=None):
        with self.not_full:
            if self.maxsize > 0:
                if not block:
                    self._check_open()
                    if self._qsize() >= self.maxsize:
                        raise Full
                elif timeout is None:
                    while not self._closed and self._qsize() >= self.maxsize:
                        self.not_full.wait()
                elif timeout < 0:
                    raise ValueError("'timeout' must be a non-negative number")
                else:
                    endtime = monotonic() + timeout
                    while not self._closed and self._qsize() >= self.maxsize:
                        remaining = endtime - monotonic()
                        if remaining <= 0.0:
                            raise Full
                        self.not_full.wait(remaining)
            self._check_open()
            self._put(item)
            self.unfinished_tasks += 1
            self.not_empty.notify()

    def get(self, block=True, timeout=None):
        with self.not_empty:
            if not block:
                if not self._qsize():
                    self._check_open()
                    raise Empty
            elif timeout is None:
                while not self._qsize():
                    self._check_open()
                    self.not_empty.wait()
            elif timeout < 0:
                raise ValueError("'timeout' must be a non-negative number")
            else:
                endtime = monotonic() + timeout
                while not self._qsize():
                    self._check_open()
                    remaining = endtime - monotonic()
                    if remaining <= 0.0:
                        raise Empty
                    self.not_empty.wait(remaining)
            item = self._get()
            self.not_full.notify()
            return item

    def __iter__(self):
        while True:
            try:
                yield self.get()
            except ChannelClosedError:
                return

    def _check_open(self):
        """ called with the mutex held. """
        if self._closed:
            raise ChannelClosedError("mailbox is closed")


class ErrorMailbox(Queue):
    """
    A bounded queue for errors reported by background threads. It is never closed.
    Offering an error never blocks: when the queue is full the error is logged and dropped.
    """

    def __init__(self, maxsize=100):
        super().__init__(maxsize)
        self.dropped = 0

    def offer(self, error: BaseException) -> bool:
        """
        :return: True if the error was queued, False if it was dropped.
        """
        try:
            self.put_nowait(error)
            return True
        except Full:
            with self.mutex:
                self.dropped += 1
            logger.warning("error queue full, dropping %s - errors should be taken from the channel more often", error)
            return False
