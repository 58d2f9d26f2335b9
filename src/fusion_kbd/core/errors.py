"""
Error kinds raised by the keyboard control path.

Every error carries the pipeline ``stage`` it came from and the process
``exit_code`` the CLI maps it to, so scripts can tell a missing keyboard
from a busy one from a failed upload.
"""

from __future__ import annotations

from typing import Optional, Sequence


class KbdError(Exception):
    """Base class for all fusion_kbd failures."""
    exit_code = 1
    stage = "keyboard"


# =========================================================================
# Locate
# =========================================================================

class DeviceNotFound(KbdError):
    exit_code = 2
    stage = "locate"


class AmbiguousDevice(KbdError):
    """More than one keyboard matched and nothing said which one to use."""
    exit_code = 3
    stage = "locate"

    def __init__(self, message: str, candidates: Sequence[str] = ()):
        super().__init__(message)
        self.candidates = list(candidates)


# =========================================================================
# Driver binding
# =========================================================================

class DeviceBusy(KbdError):
    """Interface could not be claimed (another process holds it)."""
    exit_code = 4
    stage = "claim"

    def __init__(self, message: str, interface: Optional[int] = None):
        super().__init__(message)
        self.interface = interface


class DriverDetachFailed(KbdError):
    exit_code = 5
    stage = "detach"

    def __init__(self, message: str, interface: Optional[int] = None):
        super().__init__(message)
        self.interface = interface


class DriverReattachFailed(KbdError):
    """Kernel driver could not be rebound after release.

    Never raised by the binding itself: release records it as a warning
    because the lighting change may already be applied.
    """
    exit_code = 9
    stage = "reattach"

    def __init__(self, message: str, interface: Optional[int] = None):
        super().__init__(message)
        self.interface = interface


# =========================================================================
# Payload
# =========================================================================

class InvalidPayloadLength(KbdError, ValueError):
    exit_code = 7
    stage = "payload"

    def __init__(self, message: str, length: int = 0, expected: int = 0):
        super().__init__(message)
        self.length = length
        self.expected = expected


InvalidLength = InvalidPayloadLength


class PayloadFileError(KbdError):
    exit_code = 7
    stage = "payload"


class InvalidSelection(KbdError, ValueError):
    """Preset name, color, speed or brightness rejected."""
    exit_code = 8
    stage = "selection"


class UnknownPreset(InvalidSelection):
    pass


class UnknownColor(InvalidSelection):
    pass


class ColorRequired(InvalidSelection):
    pass


# =========================================================================
# Transfer
# =========================================================================

class TransferFailed(KbdError):
    """A transfer failed; nothing after ``index`` was sent."""
    exit_code = 6
    stage = "transfer"

    def __init__(self, index: int, cause, chunk: Optional[int] = None):
        where = f"Transfer {index}" if chunk is None else f"Transfer {index} (chunk {chunk})"
        super().__init__(f"{where} failed: {cause}")
        self.index = index
        self.cause = cause
        self.chunk = chunk
