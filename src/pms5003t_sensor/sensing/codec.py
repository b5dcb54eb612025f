"""Frame codec for the PMS5003T serial protocol.

Inbound frame layout::

    +---------+---------+------------------+----------+
    |  Sync   | Length  |     Payload      | Checksum |
    | 42 4D   | 2 bytes |  length-2 bytes  | 2 bytes  |
    +---------+---------+------------------+----------+

- Length: big-endian count of the bytes after the length field
  (payload + checksum); 28 for data frames, 4 for status frames
- Checksum: sum of every preceding byte, mod 65536, big-endian

Outbound command frames are ``42 4D [cmd] [payload hi] [payload lo]``
followed by the same kind of checksum, 7 bytes in total.

Everything here is stateless; the only I/O is the byte-at-a-time read
performed by :func:`read_frame` on a caller-supplied port.
"""

from __future__ import annotations

import enum
import json
import logging
import struct
from dataclasses import asdict, dataclass

from .errors import ChecksumInvalid, LengthMismatch, SensorTimeout
from .transport import SerialLike, read_byte

logger = logging.getLogger(__name__)

SYNC = b"\x42\x4d"
HEADER_LENGTH = 4  # sync + length field
CHECKSUM_LENGTH = 2
DATA_FRAME_LENGTH = 32
STATUS_FRAME_LENGTH = 8
COMMAND_FRAME_LENGTH = 7

CMD_READ_MODE = 0xE1
CMD_PASSIVE_READ = 0xE2
CMD_STANDBY = 0xE4

_DATA_FORMAT = ">12H"  # pm x6, counts x4, temperature, humidity
_DATA_OFFSET = 4


class LengthPolicy(str, enum.Enum):
    """How :func:`read_frame` treats the declared length field."""

    STRICT = "strict"
    TOLERANT = "tolerant"


@dataclass(frozen=True)
class Frame:
    """A complete inbound frame, sync bytes through checksum."""

    data: bytes

    @property
    def declared_length(self) -> int:
        return int.from_bytes(self.data[2:4], "big")

    @property
    def payload(self) -> bytes:
        return self.data[HEADER_LENGTH:-CHECKSUM_LENGTH]

    @property
    def command(self) -> int:
        """The command code echoed by a status frame."""
        return self.data[HEADER_LENGTH]

    def __len__(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        return f"Frame({self.data.hex(' ')})"


@dataclass(frozen=True)
class PMS5003TReading:
    """Data class representing one measurement frame from the PMS5003T.

    Attributes:
        pm1_0: PM1.0 concentration in μg/m³ (CF=1).
        pm2_5: PM2.5 concentration in μg/m³ (CF=1).
        pm10: PM10 concentration in μg/m³ (CF=1).
        pm1_0_atm: PM1.0 concentration in μg/m³ (atmospheric environment).
        pm2_5_atm: PM2.5 concentration in μg/m³ (atmospheric environment).
        pm10_atm: PM10 concentration in μg/m³ (atmospheric environment).
        count_0_3: Particles > 0.3 μm per 0.1 L of air.
        count_0_5: Particles > 0.5 μm per 0.1 L of air.
        count_1_0: Particles > 1.0 μm per 0.1 L of air.
        count_2_5: Particles > 2.5 μm per 0.1 L of air.
        temperature: Temperature in °C.
        humidity: Relative humidity in %.
        raw: The 32-byte frame the reading was decoded from.
    """

    pm1_0: int
    pm2_5: int
    pm10: int
    pm1_0_atm: int
    pm2_5_atm: int
    pm10_atm: int
    count_0_3: int
    count_0_5: int
    count_1_0: int
    count_2_5: int
    temperature: float
    humidity: float
    raw: bytes

    def to_string(self) -> str:
        d = asdict(self)
        d["raw"] = self.raw.hex()
        return json.dumps(d)


def checksum(data: bytes) -> int:
    return sum(data) & 0xFFFF


def verify_checksum(data: bytes) -> bool:
    """Check the trailing two checksum bytes of a complete frame."""
    if len(data) < CHECKSUM_LENGTH + 1:
        return False
    return int.from_bytes(data[-CHECKSUM_LENGTH:], "big") == checksum(data[:-CHECKSUM_LENGTH])


def encode_command(code: int, payload: int = 0) -> bytes:
    """Build a 7-byte command frame.

    Args:
        code: Command byte, e.g. :data:`CMD_READ_MODE`.
        payload: Unsigned 16-bit command argument.

    Returns:
        The frame, checksum included, ready to write to the port.
    """
    if not 0 <= code <= 0xFF:
        raise ValueError(f"command code out of range: {code}")
    if not 0 <= payload <= 0xFFFF:
        raise ValueError(f"command payload out of range: {payload}")
    body = SYNC + struct.pack(">BH", code, payload)
    return body + struct.pack(">H", checksum(body))


def _sync(port: SerialLike, budget: int) -> None:
    prev = read_byte(port)
    for _ in range(budget):
        cur = read_byte(port)
        if prev == SYNC[0] and cur == SYNC[1]:
            return
        prev = cur
    raise SensorTimeout(f"no sync sequence within {budget} bytes")


def read_frame(
    port: SerialLike,
    expected_length: int,
    policy: LengthPolicy = LengthPolicy.STRICT,
    verify: bool = True,
) -> Frame:
    """Synchronize on the sync sequence and read one frame.

    Args:
        port: Serial-like port delivering the sensor's byte stream.
        expected_length: Total frame size in bytes, header and checksum included.
        policy: STRICT rejects any frame whose declared size differs from
            ``expected_length``; TOLERANT reads at most ``expected_length``
            bytes and truncates longer frames.
        verify: Whether to check the checksum before returning.

    Returns:
        The frame as received.

    Raises:
        SensorTimeout: No sync sequence within ``expected_length * 2 + 1``
            bytes, or the port stopped delivering bytes.
        LengthMismatch: The length field is not acceptable under ``policy``.
        ChecksumInvalid: Checksum verification failed; the frame is attached.
        TransportError: The port failed.
    """
    _sync(port, expected_length * 2 + 1)

    hi = read_byte(port)
    lo = read_byte(port)
    declared = (hi << 8) | lo
    total = declared + HEADER_LENGTH

    if declared < CHECKSUM_LENGTH:
        raise LengthMismatch(total, expected_length)
    if policy is LengthPolicy.STRICT:
        if total != expected_length:
            raise LengthMismatch(total, expected_length)
    elif total > expected_length:
        logger.debug(f"Truncating {total}-byte frame to {expected_length} bytes")
        total = expected_length

    buf = bytearray(SYNC)
    buf.append(hi)
    buf.append(lo)
    while len(buf) < total:
        buf.append(read_byte(port))

    frame = Frame(bytes(buf))
    logger.debug(f"Received frame: {frame.data.hex()}")

    if verify and not verify_checksum(frame.data):
        raise ChecksumInvalid(
            frame,
            expected=int.from_bytes(frame.data[-CHECKSUM_LENGTH:], "big"),
            calculated=checksum(frame.data[:-CHECKSUM_LENGTH]),
        )
    return frame


def decode_reading(frame: Frame) -> PMS5003TReading:
    """Parse a validated data frame into a :class:`PMS5003TReading`.

    This function assumes the checksum has already been verified; it only
    guards against being handed a frame of the wrong size.
    """
    if len(frame) != DATA_FRAME_LENGTH:
        raise LengthMismatch(len(frame), DATA_FRAME_LENGTH)

    w = struct.unpack_from(_DATA_FORMAT, frame.data, _DATA_OFFSET)
    return PMS5003TReading(
        pm1_0=w[0],
        pm2_5=w[1],
        pm10=w[2],
        pm1_0_atm=w[3],
        pm2_5_atm=w[4],
        pm10_atm=w[5],
        count_0_3=w[6],
        count_0_5=w[7],
        count_1_0=w[8],
        count_2_5=w[9],
        temperature=w[10] / 10,
        humidity=w[11] / 10,
        raw=frame.data,
    )
