import logging
from typing import Protocol

import serial

from .errors import SensorTimeout, TransportError

logger = logging.getLogger(__name__)

BAUDRATE = 9600
TIMEOUT_SECONDS = 2.0


class SerialLike(Protocol):
    """Protocol defining the interface for serial communication.

    This protocol defines the minimum interface required for serial
    communication with the PMS5003T sensor. ``serial.Serial`` satisfies it,
    and so does any test double implementing these methods.

    Attributes:
        read: Method to read bytes from the serial port.
        write: Method to write bytes to the serial port.
        reset_input_buffer: Method discarding bytes already received.
        close: Method releasing the port.
    """

    def read(self, n: int) -> bytes:
        """Read up to n bytes, returning fewer (possibly none) on timeout."""
        ...

    def write(self, b: bytes) -> int:
        """Write bytes to the serial port.

        Args:
            b: Bytes to write to the serial port.

        Returns:
            Number of bytes written.
        """
        ...

    def reset_input_buffer(self) -> None: ...

    def close(self) -> None: ...


def open_pm_port(
    address: str,
    *,
    baudrate: int = BAUDRATE,
    timeout_seconds: float = TIMEOUT_SECONDS,
) -> serial.Serial:
    """Open ``address`` with the sensor's fixed 8N1 line configuration.

    Raises:
        TransportError: If the port cannot be opened.
    """
    logger.debug(f"Opening {address} at {baudrate} baud, timeout={timeout_seconds}s")
    try:
        return serial.Serial(
            address,
            baudrate=baudrate,
            bytesize=serial.EIGHTBITS,
            parity=serial.PARITY_NONE,
            stopbits=serial.STOPBITS_ONE,
            timeout=timeout_seconds,
            write_timeout=timeout_seconds,
        )
    except (serial.SerialException, OSError, ValueError) as e:
        raise TransportError(f"cannot open {address}: {e}") from e


def read_byte(port: SerialLike) -> int:
    """Read exactly one byte.

    Raises:
        SensorTimeout: The port timed out without delivering a byte.
        TransportError: The port failed.
    """
    try:
        b = port.read(1)
    except serial.SerialTimeoutException as e:
        raise SensorTimeout(str(e)) from e
    except (serial.SerialException, OSError) as e:
        raise TransportError(f"read failed: {e}") from e
    if not b:
        raise SensorTimeout("no data before read timeout")
    return b[0]


def write_bytes(port: SerialLike, data: bytes) -> None:
    try:
        written = port.write(data)
    except serial.SerialTimeoutException as e:
        raise SensorTimeout(f"write timed out: {e}") from e
    except (serial.SerialException, OSError) as e:
        raise TransportError(f"write failed: {e}") from e
    if written is not None and written != len(data):
        raise TransportError(f"short write: {written} of {len(data)} bytes")


def flush_input(port: SerialLike) -> None:
    try:
        port.reset_input_buffer()
    except (serial.SerialException, OSError) as e:
        raise TransportError(f"input flush failed: {e}") from e
