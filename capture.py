"""
capture.py — camera ownership and the Idle ⇄ Captured state machine.

The controller is the only code that touches the Camera. The stream is live
only while Idle: capture() releases it as soon as a still is held, retake()
re-acquires it.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from camera.base import Camera, CapturedImage, DeviceError

logger = logging.getLogger(__name__)


class CaptureState(str, Enum):
    IDLE     = "idle"
    CAPTURED = "captured"


class CaptureController:

    def __init__(self, camera: Camera) -> None:
        self._camera = camera
        self.state: CaptureState = CaptureState.IDLE
        self.image: Optional[CapturedImage] = None
        self.device_error: Optional[DeviceError] = None

    @property
    def available(self) -> bool:
        """True when a frame can be captured right now."""
        return self.state == CaptureState.IDLE and self._camera.is_open

    def start(self) -> bool:
        """
        Acquire the camera. Returns False (and keeps the error in
        `device_error`) when no device is available. Not retried.
        """
        try:
            self._camera.open()
        except DeviceError as exc:
            self.device_error = exc
            logger.warning("Camera unavailable: %s", exc)
            return False
        self.device_error = None
        return True

    def capture(self) -> CapturedImage:
        """Grab a still and release the camera. Raises DeviceError if unavailable."""
        if self.state == CaptureState.CAPTURED:
            logger.debug("capture() ignored, an image is already held")
            return self.image
        if not self._camera.is_open:
            raise self.device_error or DeviceError("Camera is not available")

        frame = self._camera.read_frame()
        self.image = CapturedImage.from_bytes(frame, self._camera.mime_type)
        self.state = CaptureState.CAPTURED
        self._camera.release()
        logger.info("Captured %d-byte frame", len(frame))
        return self.image

    def retake(self) -> bool:
        """Drop the held image and go live again. Returns the start() result."""
        self.image = None
        self.state = CaptureState.IDLE
        return self.start()

    def stop(self) -> None:
        """Release everything; used when the session closes."""
        self._camera.release()
        self.image = None
        self.state = CaptureState.IDLE
