"""
Image acquisition: a single receipt image either picked from disk / an
uploaded payload, or captured from a camera.

Both paths fail silently (logged only) and return None instead of raising.
"""

from __future__ import annotations

import asyncio
import logging
import os
from io import BytesIO
from pathlib import Path
from typing import Callable, Optional, Protocol

from PIL import Image

logger = logging.getLogger(__name__)


def _read_payload(item) -> bytes:
    if isinstance(item, (bytes, bytearray, memoryview)):
        return bytes(item)
    if isinstance(item, (str, os.PathLike)):
        return Path(item).read_bytes()
    if hasattr(item, "getvalue"):          # BytesIO, uploaded-file objects
        return item.getvalue()
    if hasattr(item, "read"):
        return item.read()
    raise TypeError(f"unsupported image item: {type(item).__name__}")


def decode_image(payload: bytes) -> Image.Image:
    """Decode raw bytes into a fully loaded RGB bitmap."""
    with Image.open(BytesIO(payload)) as img:
        img.load()
        return img.convert("RGB")


async def load_from_library(item) -> Optional[Image.Image]:
    """
    Fetch and decode a picked item. Returns None (and logs) when the payload
    can't be transferred or isn't a decodable image.
    """
    try:
        payload = await asyncio.to_thread(_read_payload, item)
        return await asyncio.to_thread(decode_image, payload)
    except Exception as e:   # decode bombs, truncated files, plugin parse errors
        logger.warning("[acquisition] could not load picked image → %s", e)
        return None


def encode_jpeg(image: Image.Image, quality: int = 90) -> bytes:
    buf = BytesIO()
    image.convert("RGB").save(buf, format="JPEG", quality=quality)
    return buf.getvalue()


class CameraCapture(Protocol):
    async def capture(self) -> Optional[Image.Image]:
        """One bitmap on shutter confirmation, None on cancel."""
        ...


class OpenCVCamera:
    """
    Captures one frame from a local camera with OpenCV.

    The user confirms the shutter by pressing Enter; typing `q` cancels.
    """

    def __init__(self, device_index: int = 0, prompt: Callable[[str], str] = input):
        self.device_index = device_index
        self._prompt = prompt

    async def capture(self) -> Optional[Image.Image]:
        return await asyncio.to_thread(self._capture_blocking)

    def _capture_blocking(self) -> Optional[Image.Image]:
        import cv2   # heavy; only needed when a camera is actually used

        cap = cv2.VideoCapture(self.device_index)
        try:
            if not cap.isOpened():
                logger.warning("[camera] could not open device %s", self.device_index)
                return None

            reply = self._prompt("Press Enter to capture, or type q to cancel: ")
            if reply.strip().lower() == "q":
                logger.info("[camera] capture cancelled")
                return None

            ok, frame = cap.read()
            if not ok:
                logger.warning("[camera] failed to read a frame")
                return None
            return Image.fromarray(cv2.cvtColor(frame, cv2.COLOR_BGR2RGB))
        finally:
            cap.release()
