"""Accumulates committed letters; shared by the sampler thread and the web thread."""

import logging
import threading

logger = logging.getLogger(__name__)


class TypedOutput:
    def __init__(self):
        self._chars = []
        self._lock = threading.Lock()

    def append(self, label):
        with self._lock:
            self._chars.append(label)
        logger.info("Typed letter: %s", label)

    def clear(self):
        with self._lock:
            self._chars.clear()

    @property
    def text(self):
        with self._lock:
            return "".join(self._chars)

    def __len__(self):
        with self._lock:
            return len(self._chars)
