"""
OpenCV webcam — uses cv2.VideoCapture.

Frames are grabbed at the configured width (400px by default, matching a
small preview) and encoded as PNG so OCR sees a lossless still.
"""
from __future__ import annotations

import logging
from typing import Optional

import cv2

from camera.base import Camera, DeviceError

logger = logging.getLogger(__name__)


class OpenCVCamera(Camera):

    mime_type = "image/png"

    def __init__(self, index: int = 0, width: int = 400) -> None:
        self.index = index
        self.width = width
        self._cap: Optional[cv2.VideoCapture] = None

    @property
    def is_open(self) -> bool:
        return self._cap is not None

    def open(self) -> None:
        if self._cap is not None:
            return
        cap = cv2.VideoCapture(self.index)
        if not cap.isOpened():
            cap.release()
            raise DeviceError(
                f"Could not open camera {self.index}. "
                "Check that it is connected and that camera access is allowed."
            )
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        # Keep only the newest frame so a capture is never stale
        cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)
        self._cap = cap
        logger.info(
            "Camera %d opened at %dx%d",
            self.index,
            int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
            int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
        )

    def read_frame(self) -> bytes:
        if self._cap is None:
            raise DeviceError("Camera is not open")
        ok, frame = self._cap.read()
        if not ok or frame is None:
            raise DeviceError(f"Camera {self.index} opened but returned no frame")
        ok, buf = cv2.imencode(".png", frame)
        if not ok:
            raise DeviceError("Failed to encode camera frame as PNG")
        return buf.tobytes()

    def release(self) -> None:
        if self._cap is None:
            return
        self._cap.release()
        self._cap = None
        logger.info("Camera %d released", self.index)
