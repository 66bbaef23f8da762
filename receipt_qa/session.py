"""
Session controller: the single owner of the screen's state.

Every mutation goes through a `ReceiptSession` method so the state machine
can be driven and asserted without any UI:

    idle -> pending -> answered | failed -> idle (on the next edit)

Generation and acquisition calls are tagged with increasing sequence numbers.
With `discard_stale=True` a result that arrives after a newer request was
started is dropped, so the answer on screen always belongs to the latest
question.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from PIL import Image

from receipt_qa.acquisition import CameraCapture, load_from_library
from receipt_qa.permissions import CameraAuthorizer, request_camera_access
from receipt_qa.prompts import compose
from receipt_qa.util.interfaces import VLM

logger = logging.getLogger(__name__)


class SubmissionStatus(enum.Enum):
    IDLE = "idle"
    PENDING = "pending"
    ANSWERED = "answered"
    FAILED = "failed"


@dataclass
class ViewState:
    image: Optional[Image.Image] = None
    question: str = ""
    answer: str = ""
    is_picker_presented: bool = False
    is_camera_presented: bool = False
    permission_error: Optional[str] = None
    generation_error: Optional[str] = None
    status: SubmissionStatus = SubmissionStatus.IDLE
    request_seq: int = 0

    def to_dict(self) -> dict:
        image = None
        if self.image is not None:
            image = {"mode": self.image.mode,
                     "width": self.image.width,
                     "height": self.image.height}
        return {
            "image": image,
            "question": self.question,
            "answer": self.answer,
            "is_picker_presented": self.is_picker_presented,
            "is_camera_presented": self.is_camera_presented,
            "permission_error": self.permission_error,
            "generation_error": self.generation_error,
            "status": self.status.value,
            "request_seq": self.request_seq,
        }


class ReceiptSession:
    def __init__(
        self,
        vlm: VLM,
        authorizer: Optional[CameraAuthorizer] = None,
        camera: Optional[CameraCapture] = None,
        *,
        discard_stale: bool = True,
        on_error: Optional[Callable[[Exception], None]] = None,
    ):
        self.state = ViewState()
        self._vlm = vlm
        self._authorizer = authorizer
        self._camera = camera
        self._discard_stale = discard_stale
        self._on_error = on_error
        self._acquire_seq = 0
        self._tasks: set[asyncio.Task] = set()

    # ------------------------------------------------------------------ #
    #  question / submission
    # ------------------------------------------------------------------ #
    @property
    def can_submit(self) -> bool:
        return bool(self.state.question) and self.state.image is not None

    def set_question(self, text: str) -> None:
        self.state.question = text
        if self.state.status is not SubmissionStatus.PENDING:
            self.state.status = SubmissionStatus.IDLE

    def submit(self) -> Optional[asyncio.Task]:
        """
        Launch one generation request for the current question and image.

        Must be called from a running event loop. Returns None when the
        question is empty or no image has been acquired.
        """
        if not self.can_submit:
            logger.info("[session] submit ignored: question or image missing")
            return None

        self.state.request_seq += 1
        seq = self.state.request_seq
        self.state.status = SubmissionStatus.PENDING
        self.state.generation_error = None

        task = asyncio.create_task(self._generate(seq, compose(self.state.question), self.state.image))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def submit_and_wait(self) -> Optional[str]:
        task = self.submit()
        if task is None:
            return None
        return await task

    async def cancel_pending(self) -> None:
        tasks = list(self._tasks)
        for t in tasks:
            t.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        if self.state.status is SubmissionStatus.PENDING:
            self.state.status = SubmissionStatus.IDLE

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def _is_stale(self, seq: int) -> bool:
        return self._discard_stale and seq != self.state.request_seq

    async def _generate(self, seq: int, prompt: str, image: Image.Image) -> Optional[str]:
        try:
            text = await self._vlm.generate(prompt, image)
        except Exception as e:
            logger.error("[session] request #%d failed → %s", seq, e)
            if self._is_stale(seq):
                return None
            self.state.status = SubmissionStatus.FAILED
            self.state.generation_error = str(e) or type(e).__name__
            if self._on_error is not None:
                try:
                    self._on_error(e)
                except Exception:
                    logger.exception("[session] on_error hook failed for request #%d", seq)
            return None

        if self._is_stale(seq):
            logger.info("[session] dropping answer #%d, latest is #%d", seq, self.state.request_seq)
            return None
        self.state.answer = text
        self.state.status = SubmissionStatus.ANSWERED
        return text

    # ------------------------------------------------------------------ #
    #  image acquisition
    # ------------------------------------------------------------------ #
    def present_picker(self) -> None:
        self.state.is_picker_presented = True

    def dismiss_picker(self) -> None:
        self.state.is_picker_presented = False

    def dismiss_alert(self) -> None:
        self.state.permission_error = None

    def _accept_image(self, seq: int, image: Optional[Image.Image]) -> bool:
        if image is None:
            return False
        if seq != self._acquire_seq:
            logger.info("[session] dropping image #%d, latest is #%d", seq, self._acquire_seq)
            return False
        self.state.image = image
        return True

    async def pick_from_library(self, item) -> bool:
        """Load a picked item; the previous image stays if loading fails."""
        self._acquire_seq += 1
        seq = self._acquire_seq
        try:
            image = await load_from_library(item)
        finally:
            self.dismiss_picker()
        return self._accept_image(seq, image)

    async def open_camera(self) -> bool:
        if self._camera is None or self._authorizer is None:
            raise RuntimeError("no camera configured for this session")

        result = await request_camera_access(self._authorizer)
        if not result.granted:
            self.state.permission_error = result.error
            return False

        self._acquire_seq += 1
        seq = self._acquire_seq
        self.state.is_camera_presented = True
        try:
            image = await self._camera.capture()
        finally:
            self.state.is_camera_presented = False
        return self._accept_image(seq, image)
