"""
Event sources feeding the fusion engine.

Two ways of delivering samples to the single owner of the filter:
- ``merge_streams``: pull-based, merges timestamp-ordered iterables (recorded
  logs, simulations) into one timestamp-ordered stream.
- ``SampleChannel``: push-based, a bounded thread-safe channel between sensor
  callbacks and the processing thread. When full, new samples are dropped and
  counted, like samples with an invalid dt.
"""

import heapq
import logging
import queue
import threading

logger = logging.getLogger(__name__)


def _timestamp(sample):
    return sample.timestamp_ns


def merge_streams(*streams):
    """
    Merge timestamp-ordered sample streams.

    Parameters
    ----------
    *streams : iterable
        Iterables of samples exposing ``timestamp_ns``, each already sorted.

    Yields
    ------
    sample
        Samples of all streams in global timestamp order. Ties keep the
        order in which the streams were passed.
    """
    return heapq.merge(*streams, key=_timestamp)


class SampleChannel:
    """
    Bounded channel from sensor callbacks to the processing thread.

    Parameters
    ----------
    maxsize : int, optional
        Capacity of the channel (default: 256)
    """

    def __init__(self, maxsize=256):
        if maxsize < 1:
            raise ValueError(f"maxsize must be >= 1, got {maxsize!r}")
        self._queue = queue.Queue(maxsize=maxsize)
        self._closed = threading.Event()
        self._lock = threading.Lock()
        self.dropped = 0

    def offer(self, sample):
        """
        Enqueue a sample without blocking.

        Returns
        -------
        bool
            False if the channel is closed or full (sample dropped).
        """
        if self._closed.is_set():
            return False
        try:
            self._queue.put_nowait(sample)
        except queue.Full:
            with self._lock:
                self.dropped += 1
                dropped = self.dropped
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("Channel full, sample dropped (%d so far)", dropped)
            return False
        return True

    def drain(self):
        """Yield all currently queued samples without blocking."""
        while True:
            try:
                yield self._queue.get_nowait()
            except queue.Empty:
                return

    def close(self):
        """Detach the producer side; later offers are refused."""
        self._closed.set()

    @property
    def closed(self):
        return self._closed.is_set()

    def __len__(self):
        return self._queue.qsize()
