"""Error taxonomy for the PMS5003T driver.

Every failure the codec or the session can produce is one of these
exceptions, so the caller can decide whether to retry (``FrameError``),
re-probe (``SensorTimeout``) or give up on the port (``TransportError``).
"""

from typing import Optional


class PMSError(Exception):
    """Base class for all PMS5003T driver failures."""


class SensorTimeout(PMSError):
    """No sync sequence found, or the transport returned no data in time."""


class FrameError(PMSError):
    """A frame arrived but its bytes are garbled."""


class LengthMismatch(FrameError):
    def __init__(self, declared: int, expected: int):
        self.declared = declared
        self.expected = expected
        super().__init__(f"frame declares {declared} bytes, expected {expected}")


class ChecksumInvalid(FrameError):
    """Checksum verification failed.

    Attributes:
        frame: The frame as received, for callers that only need to know
            that *something* answered.
    """

    def __init__(self, frame, expected: int, calculated: int):
        self.frame = frame
        self.expected = expected
        self.calculated = calculated
        super().__init__(f"checksum mismatch: expected={expected:04x}, calculated={calculated:04x}")


class AckMismatch(FrameError):
    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"status frame echoes 0x{actual:02X}, expected 0x{expected:02X}")


class TransportError(PMSError):
    """The serial line failed."""


class InvalidState(PMSError):
    def __init__(self, operation: str, mode: Optional[object]):
        self.operation = operation
        self.mode = mode
        name = getattr(mode, "value", mode)
        super().__init__(f"{operation} is not allowed in {name} mode")
