import io
from typing import List, Optional

from typing_extensions import Buffer

from pms5003t_sensor.sensing.codec import (
    CMD_PASSIVE_READ,
    CMD_READ_MODE,
    CMD_STANDBY,
    COMMAND_FRAME_LENGTH,
    SYNC,
    verify_checksum,
)
from pms5003t_sensor.test_utils import build_data_frame, build_status_frame


class FakePMS5003T(io.BytesIO):
    """Mock PMS5003T sensor that simulates the actual sensor protocol.

    This mock simulates the PMS5003T sensor's behavior, including:
    - Streaming a data frame whenever it is read in active mode
    - Passive mode, where a frame is produced only on a read request
    - Standby, where nothing is produced until the sensor is woken up
    - Status frames acknowledging read-mode and standby commands

    The sensor starts in active mode, as it does on power-up. Every
    command frame written is recorded in ``commands``.
    """

    def __init__(
        self,
        *,
        pm1_0: int = 10,
        pm2_5: int = 12,
        pm10: int = 15,
        temperature: float = 23.5,
        humidity: float = 48.2,
        passive: bool = False,
        standby: bool = False,
    ):
        self._values = dict(
            pm1_0=pm1_0, pm2_5=pm2_5, pm10=pm10, temperature=temperature, humidity=humidity
        )

        # Sensor state
        self.passive = passive
        self.standby = standby
        self.commands: List[bytes] = []
        self._next_response = b""

        # Initialize with empty buffer
        super().__init__(b"")

    def _create_sensor_frame(self) -> bytes:
        return build_data_frame(**self._values)

    def _handle(self, command: bytes) -> Optional[bytes]:
        if (
            len(command) != COMMAND_FRAME_LENGTH
            or command[:2] != SYNC
            or not verify_checksum(command)
        ):
            return None

        code = command[2]
        payload = int.from_bytes(command[3:5], "big")

        if code == CMD_READ_MODE:
            self.passive = payload == 0
            return build_status_frame(code, payload & 0xFF)
        if code == CMD_PASSIVE_READ:
            if self.passive and not self.standby:
                return self._create_sensor_frame()
            return None
        if code == CMD_STANDBY:
            if payload == 0:
                self.standby = True
                return build_status_frame(code, payload & 0xFF)
            # waking up resets the sensor to active mode, with no ack
            self.standby = False
            self.passive = False
        return None

    def write(self, data: Buffer) -> int:
        """Handle commands sent to the sensor.

        Args:
            data: Command bytes sent to the sensor.

        Returns:
            Number of bytes written.
        """
        # Convert Buffer to bytes for comparison
        data_bytes = bytes(data)
        self.commands.append(data_bytes)

        response = self._handle(data_bytes)
        if response:
            self._next_response += response
        return len(data_bytes)

    def read(self, n: Optional[int] = -1) -> bytes:
        """Read response data from the sensor.

        Args:
            n: Number of bytes to read. -1 or None means all available.
        Returns:
            Response bytes from the sensor.
        """
        if not self._next_response and not self.passive and not self.standby:
            self._next_response = self._create_sensor_frame()

        if n is None or n < 0:
            n = len(self._next_response)
        response = self._next_response[:n]
        self._next_response = self._next_response[n:]
        return response

    def reset_input_buffer(self) -> None:
        """Reset the input buffer (pyserial compatibility)."""
        self._next_response = b""
        self.seek(0)


class BadChecksumFakePMS5003T(FakePMS5003T):
    """Mock that returns frames with bad checksums for testing error handling."""

    def _create_sensor_frame(self) -> bytes:
        frame = super()._create_sensor_frame()
        # Replace checksum with zeros to make it invalid
        return frame[:-2] + b"\x00\x00"


class SilentFakePMS5003T(FakePMS5003T):
    """Mock that accepts commands but never sends a byte, like an unplugged sensor."""

    def read(self, n: Optional[int] = -1) -> bytes:
        return b""
