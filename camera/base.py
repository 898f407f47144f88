"""
Shared types and base class for camera devices.
"""
from __future__ import annotations

import base64
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass

_DATA_URI_RE = re.compile(r"^data:(image/[\w.+-]+);base64,")


class DeviceError(RuntimeError):
    """No camera device is available, or access to it was denied."""


@dataclass(frozen=True)
class CapturedImage:
    """A single still frame, held as a base64 data URI."""
    data_uri: str

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: str = "image/png") -> "CapturedImage":
        encoded = base64.b64encode(data).decode("ascii")
        return cls(data_uri=f"data:{mime_type};base64,{encoded}")

    @property
    def mime_type(self) -> str:
        m = _DATA_URI_RE.match(self.data_uri)
        return m.group(1) if m else "application/octet-stream"

    @property
    def payload(self) -> str:
        """The base64 content with the data-URI prefix stripped."""
        return _DATA_URI_RE.sub("", self.data_uri, count=1)

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.payload)


class Camera(ABC):
    """Base class all camera devices must implement."""

    mime_type: str = "image/png"

    @abstractmethod
    def open(self) -> None:
        """Acquire the device. Raises DeviceError when it cannot be opened."""
        ...

    @abstractmethod
    def read_frame(self) -> bytes:
        """Grab the current frame, encoded as `mime_type`. Raises DeviceError."""
        ...

    @abstractmethod
    def release(self) -> None:
        """Stop the stream and free the device. Safe to call when closed."""
        ...

    @property
    @abstractmethod
    def is_open(self) -> bool:
        ...
