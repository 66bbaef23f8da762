"""
Camera permission gate.

Maps the platform's authorization status onto `PermissionState` and only
asks the user when the status is still undetermined.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class PermissionState(enum.Enum):
    AUTHORIZED = "authorized"
    NOT_DETERMINED = "not-determined"
    DENIED = "denied"
    RESTRICTED = "restricted"
    UNKNOWN = "unknown"


ERROR_MESSAGES = {
    PermissionState.DENIED: (
        "Camera access was denied. Enable it in your system settings to take a photo."
    ),
    PermissionState.RESTRICTED: (
        "Camera access is restricted on this device."
    ),
    PermissionState.UNKNOWN: (
        "Camera access status is unknown."
    ),
}


@dataclass(frozen=True)
class PermissionResult:
    state: PermissionState
    error: Optional[str] = None

    @property
    def granted(self) -> bool:
        return self.state is PermissionState.AUTHORIZED


class CameraAuthorizer(Protocol):
    def authorization_status(self) -> object:
        ...

    async def request_access(self) -> bool:
        ...


def to_permission_state(raw) -> PermissionState:
    if isinstance(raw, PermissionState):
        return raw
    try:
        return PermissionState(raw)
    except ValueError:
        return PermissionState.UNKNOWN


def _result(state: PermissionState) -> PermissionResult:
    error = ERROR_MESSAGES.get(state)
    if error:
        logger.warning("[permissions] camera %s", state.value)
    return PermissionResult(state=state, error=error)


async def request_camera_access(authorizer: CameraAuthorizer) -> PermissionResult:
    """
    Resolve camera authorization.

    Only `not-determined` shows a prompt; every other status resolves
    immediately. Non-authorized outcomes carry a user-facing error message.
    """
    state = to_permission_state(authorizer.authorization_status())
    if state is PermissionState.NOT_DETERMINED:
        granted = await authorizer.request_access()
        state = PermissionState.AUTHORIZED if granted else PermissionState.DENIED
    return _result(state)


class ConsoleAuthorizer:
    """Terminal stand-in for the OS permission dialog. Remembers the answer."""

    def __init__(self, status: str | PermissionState = PermissionState.NOT_DETERMINED,
                 prompt: Callable[[str], str] = input):
        self._status = to_permission_state(status)
        self._prompt = prompt

    def authorization_status(self) -> PermissionState:
        return self._status

    async def request_access(self) -> bool:
        reply = await asyncio.to_thread(self._prompt, "Allow access to the camera? [y/N] ")
        granted = reply.strip().lower() in ("y", "yes")
        self._status = PermissionState.AUTHORIZED if granted else PermissionState.DENIED
        return granted
