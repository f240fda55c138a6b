"""
Camera Module - Permission Check and Live Background
====================================================
Checks whether a camera can be opened and, when it can, streams mirrored
frames on a background thread to serve as the play surface backdrop.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CameraPermission:
    """Result of a one-shot camera access request."""
    granted: bool
    can_ask_again: bool


def request_permission(camera_id: int = 0) -> CameraPermission:
    """
    Try to open the camera once.

    A device that exists but is busy may be retried; a failure inside
    OpenCV itself is reported as final.

    Args:
        camera_id: Camera device index

    Returns:
        CameraPermission
    """
    try:
        cap = cv2.VideoCapture(camera_id)
    except cv2.error as e:
        logger.error("Error requesting camera %d: %s", camera_id, e)
        return CameraPermission(granted=False, can_ask_again=False)

    try:
        granted = cap.isOpened()
    finally:
        cap.release()

    if not granted:
        logger.warning("Camera %d is not available", camera_id)
    return CameraPermission(granted=granted, can_ask_again=not granted)


class Camera:
    """
    Webcam stream with a capture thread that keeps only the newest frame.

    Attributes:
        camera_id: Index of the camera device
        width: Requested frame width in pixels
        height: Requested frame height in pixels
    """

    def __init__(self, camera_id: int = 0, width: int = 960, height: int = 540):
        self.camera_id = camera_id
        self.width = width
        self.height = height

        self.cap: Optional[cv2.VideoCapture] = None
        self._frame: Optional[np.ndarray] = None
        self._frame_lock = threading.Lock()
        self._running = False
        self._thread: Optional[threading.Thread] = None

    def start(self) -> bool:
        """
        Open the device and start capturing.

        Returns:
            True if the camera started
        """
        self.cap = cv2.VideoCapture(self.camera_id)
        if not self.cap.isOpened():
            logger.error("Failed to open camera %d", self.camera_id)
            self.cap = None
            return False

        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        self.cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)

        self._running = True
        self._thread = threading.Thread(target=self._capture_loop, daemon=True)
        self._thread.start()
        logger.info("Camera %d started", self.camera_id)
        return True

    def _capture_loop(self):
        while self._running:
            ret, frame = self.cap.read()
            if not ret:
                time.sleep(0.001)
                continue
            # Mirror so the player's hand moves the way they expect
            frame = cv2.resize(cv2.flip(frame, 1), (self.width, self.height))
            with self._frame_lock:
                self._frame = frame

    def get_frame(self) -> Optional[np.ndarray]:
        """Latest frame, or None before the first one arrives."""
        with self._frame_lock:
            return None if self._frame is None else self._frame.copy()

    def stop(self):
        """Stop the capture and release the device."""
        self._running = False
        if self._thread is not None:
            self._thread.join(timeout=1.0)
            self._thread = None
        if self.cap is not None:
            self.cap.release()
            self.cap = None

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False
