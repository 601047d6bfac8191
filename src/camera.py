"""
Camera Capture
==============
Reads the webcam on a background thread and keeps the newest frame.
"""

import logging
import threading
from typing import Optional

import cv2
import numpy as np

from config import CAMERA_INDEX, FRAME_HEIGHT, FRAME_WIDTH

logger = logging.getLogger(__name__)


class Camera:
    """
    Usage:
        camera = Camera()
        if camera.start():
            frame = camera.latest_frame()
        camera.stop()
    """

    def __init__(self, index: int = CAMERA_INDEX, width: int = FRAME_WIDTH, height: int = FRAME_HEIGHT):
        self.index = index
        self.width = width
        self.height = height

        self.cap = None
        self._frame: Optional[np.ndarray] = None
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> bool:
        if self.is_running:
            return True

        self.cap = cv2.VideoCapture(self.index)
        if not self.cap.isOpened():
            logger.error("Could not access camera %d", self.index)
            self.cap.release()
            self.cap = None
            return False

        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._read_loop, name="camera", daemon=True)
        self._thread.start()
        logger.info("Camera started: %dx%d", self.width, self.height)
        return True

    def stop(self):
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        if self.cap is not None:
            self.cap.release()
            self.cap = None
        with self._lock:
            self._frame = None
        logger.info("Camera stopped")

    def latest_frame(self) -> Optional[np.ndarray]:
        with self._lock:
            return None if self._frame is None else self._frame.copy()

    def _read_loop(self):
        while not self._stop_event.is_set():
            ret, frame = self.cap.read()
            if not ret:
                self._stop_event.wait(0.01)
                continue
            # Mirror so the user sees themselves as in a mirror.
            frame = cv2.flip(frame, 1)
            with self._lock:
                self._frame = frame
