import enum
import logging
import time
from dataclasses import dataclass
from typing import Optional

from .codec import (
    CMD_PASSIVE_READ,
    CMD_READ_MODE,
    CMD_STANDBY,
    DATA_FRAME_LENGTH,
    STATUS_FRAME_LENGTH,
    Frame,
    LengthPolicy,
    PMS5003TReading,
    decode_reading,
    encode_command,
    read_frame,
)
from .errors import (
    AckMismatch,
    ChecksumInvalid,
    FrameError,
    InvalidState,
    LengthMismatch,
    PMSError,
    SensorTimeout,
)
from .transport import BAUDRATE, TIMEOUT_SECONDS, SerialLike, flush_input, open_pm_port, write_bytes

logger = logging.getLogger(__name__)


class DeviceMode(str, enum.Enum):
    ACTIVE = "active"
    PASSIVE = "passive"
    STANDBY = "standby"


@dataclass
class PMS5003TConfig:
    """Configuration for PMS5003T session behavior.

    Attributes:
        baudrate: Line speed used when the session opens its own port.
        timeout_seconds: Read and write timeout of the port.
        settle_seconds: Delay between a passive-read request and reading
            the reply, giving the sensor time to assemble the frame.
        wake_timeout_seconds: How long to poll for a reading after waking
            the sensor from standby.
        data_length_policy: Length policy for 32-byte data frames.
        status_length_policy: Length policy for 8-byte status frames.
    """

    baudrate: int = BAUDRATE
    timeout_seconds: float = TIMEOUT_SECONDS
    settle_seconds: float = 0.1
    wake_timeout_seconds: float = 4.0
    data_length_policy: LengthPolicy = LengthPolicy.STRICT
    status_length_policy: LengthPolicy = LengthPolicy.STRICT

    @classmethod
    def from_settings(cls, settings) -> "PMS5003TConfig":
        return cls(
            baudrate=settings.PMS_BAUDRATE,
            timeout_seconds=settings.PMS_TIMEOUT_SEC,
            settle_seconds=settings.PASSIVE_SETTLE_SEC,
            wake_timeout_seconds=settings.WAKE_TIMEOUT_SEC,
        )


class PMS5003T:
    """Session driving one PMS5003T sensor over a serial port.

    The session tracks what mode it believes the sensor is in and refuses
    operations that make no sense in that mode before any byte is sent:

    - ACTIVE: the sensor streams data frames on its own; use :meth:`read`.
    - PASSIVE: the sensor answers only explicit requests; use :meth:`passive_read`.
    - STANDBY: the fan is off; only waking it up is allowed.

    After a failed wake-up the mode is unknown (``mode is None``) and every
    operation is attempted; callers should re-probe instead.

    Attributes:
        config: Timing and length-policy configuration.
        crc_errors: Counter for checksum errors encountered.
        timeouts: Counter for timeout errors encountered.
        length_errors: Counter for frames with an unexpected length field.
    """

    def __init__(
        self,
        port: SerialLike,
        config: Optional[PMS5003TConfig] = None,
        *,
        owns_port: bool = False,
    ):
        """Initialize the session.

        Args:
            port: A serial-like object that implements the SerialLike protocol.
            config: Session configuration. If None, uses defaults.
            owns_port: Close ``port`` when the session is closed.

        Note:
            No bytes are exchanged here; the sensor is assumed to be in its
            power-on ACTIVE mode.
        """
        self._s = port
        self._owns_port = owns_port
        self._closed = False
        self._mode: Optional[DeviceMode] = DeviceMode.ACTIVE
        self.config = config or PMS5003TConfig()
        self.crc_errors = 0
        self.timeouts = 0
        self.length_errors = 0

        self.logger = logging.getLogger(f"{__name__}.PMS5003T")
        self.logger.debug(
            f"Configuration: settle_seconds={self.config.settle_seconds}, "
            f"wake_timeout_seconds={self.config.wake_timeout_seconds}, "
            f"data_length_policy={self.config.data_length_policy.value}, "
            f"status_length_policy={self.config.status_length_policy.value}"
        )

    @classmethod
    def open(cls, address: str, config: Optional[PMS5003TConfig] = None) -> "PMS5003T":
        """Open ``address`` and return a session that owns the port."""
        config = config or PMS5003TConfig()
        port = open_pm_port(
            address, baudrate=config.baudrate, timeout_seconds=config.timeout_seconds
        )
        try:
            return cls(port, config, owns_port=True)
        except BaseException:
            port.close()
            raise

    @property
    def mode(self) -> Optional[DeviceMode]:
        return self._mode

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._owns_port:
            self.logger.debug("Closing serial port")
            self._s.close()

    def __enter__(self) -> "PMS5003T":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _require(self, operation: str, *allowed: DeviceMode) -> None:
        if self._mode is not None and self._mode not in allowed:
            self.logger.warning(f"Rejected {operation} in {self._mode.value} mode")
            raise InvalidState(operation, self._mode)

    def _receive(self, expected_length: int, policy: LengthPolicy) -> Frame:
        try:
            return read_frame(self._s, expected_length, policy)
        except ChecksumInvalid as e:
            self.crc_errors += 1
            self.logger.warning(f"Checksum validation failed: {e}")
            raise
        except LengthMismatch as e:
            self.length_errors += 1
            self.logger.warning(f"Frame length error: {e}")
            raise
        except SensorTimeout as e:
            self.timeouts += 1
            self.logger.warning(f"Timed out waiting for frame: {e}")
            raise

    def _read_data(self) -> PMS5003TReading:
        frame = self._receive(DATA_FRAME_LENGTH, self.config.data_length_policy)
        reading = decode_reading(frame)
        self.logger.debug(
            f"Parsed reading: PM1.0={reading.pm1_0}, PM2.5={reading.pm2_5}, "
            f"PM10={reading.pm10} μg/m³, T={reading.temperature}°C, RH={reading.humidity}%"
        )
        return reading

    def _send(self, code: int, payload: int) -> None:
        command = encode_command(code, payload)
        self.logger.debug(f"Sending command: {command.hex()}")
        write_bytes(self._s, command)

    def _command_with_ack(self, code: int, payload: int) -> Frame:
        # drop anything already streamed so the ack is the next frame
        flush_input(self._s)
        self._send(code, payload)
        ack = self._receive(STATUS_FRAME_LENGTH, self.config.status_length_policy)
        if ack.command != code:
            raise AckMismatch(code, ack.command)
        self.logger.debug(f"Received ACK: {ack.data.hex()}")
        return ack

    def read(self) -> PMS5003TReading:
        """Read the next data frame the sensor streams in active mode.

        Raises:
            InvalidState: The sensor is in passive or standby mode.
            SensorTimeout: No frame arrived.
            FrameError: A frame arrived but was corrupt.
            TransportError: The serial line failed.
        """
        self._require("read", DeviceMode.ACTIVE)
        return self._read_data()

    def passive_read(self) -> PMS5003TReading:
        """Request and read one data frame in passive mode."""
        self._require("passive read", DeviceMode.PASSIVE)
        self._send(CMD_PASSIVE_READ, 0)
        time.sleep(self.config.settle_seconds)
        return self._read_data()

    def set_read_mode(self, passive: bool) -> None:
        """Switch between passive (request/response) and active (streaming) mode."""
        self._require("set read mode", DeviceMode.ACTIVE, DeviceMode.PASSIVE)
        self._command_with_ack(CMD_READ_MODE, 0 if passive else 1)
        self._mode = DeviceMode.PASSIVE if passive else DeviceMode.ACTIVE
        self.logger.info(f"Sensor now in {self._mode.value} mode")

    def set_standby_mode(self, standby: bool) -> Optional[PMS5003TReading]:
        """Put the sensor into standby, or wake it up.

        Waking up polls :meth:`read` until a valid frame arrives or
        ``config.wake_timeout_seconds`` elapse. The sensor always comes back
        in active mode.

        Returns:
            The first reading received after waking up, None when entering
            standby.

        Raises:
            SensorTimeout: The sensor did not resume streaming in time; the
                mode is then unknown.
        """
        if standby:
            self._require("enter standby", DeviceMode.ACTIVE, DeviceMode.PASSIVE)
            self._command_with_ack(CMD_STANDBY, 0)
            self._mode = DeviceMode.STANDBY
            self.logger.info("Sensor now in standby mode")
            return None

        self._mode = None
        self._send(CMD_STANDBY, 1)
        deadline = time.monotonic() + self.config.wake_timeout_seconds
        attempts = 0
        while True:
            attempts += 1
            try:
                reading = self._read_data()
            except (SensorTimeout, FrameError) as e:
                if time.monotonic() >= deadline:
                    self.logger.error(
                        f"Sensor did not wake up after {attempts} attempts "
                        f"(crc_errors={self.crc_errors}, timeouts={self.timeouts})"
                    )
                    raise SensorTimeout(
                        f"no valid reading within {self.config.wake_timeout_seconds}s of wake-up"
                    ) from e
                continue
            self._mode = DeviceMode.ACTIVE
            self.logger.info(f"Sensor woke up after {attempts} attempts, now in active mode")
            return reading


def probe(sensor: PMS5003T) -> bool:
    """Return True if the sensor behind a freshly opened session answers.

    A plain read is tried first; if the sensor stays silent (it may be in
    passive or standby mode) a wake-up command is tried as well.
    """
    try:
        sensor.read()
        return True
    except PMSError as e:
        logger.debug(f"Probe read failed: {e}")
    try:
        sensor.set_standby_mode(False)
        return True
    except PMSError as e:
        logger.debug(f"Probe wake-up failed: {e}")
        return False


def probe_port(address: str, config: Optional[PMS5003TConfig] = None) -> bool:
    """Open ``address``, :func:`probe` it and close it again."""
    try:
        with PMS5003T.open(address, config) as sensor:
            found = probe(sensor)
    except PMSError as e:
        logger.debug(f"Probe of {address} failed: {e}")
        return False
    logger.info(f"{address}: {'PMS5003T' if found else 'no sensor'}")
    return found
