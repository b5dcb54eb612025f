from .codec import (
    CMD_PASSIVE_READ,
    CMD_READ_MODE,
    CMD_STANDBY,
    DATA_FRAME_LENGTH,
    STATUS_FRAME_LENGTH,
    Frame,
    LengthPolicy,
    PMS5003TReading,
    checksum,
    decode_reading,
    encode_command,
    read_frame,
    verify_checksum,
)
from .errors import (
    AckMismatch,
    ChecksumInvalid,
    FrameError,
    InvalidState,
    LengthMismatch,
    PMSError,
    SensorTimeout,
    TransportError,
)
from .pms5003t import PMS5003T, DeviceMode, PMS5003TConfig, probe, probe_port
from .transport import SerialLike, open_pm_port

__all__ = [
    "CMD_PASSIVE_READ",
    "CMD_READ_MODE",
    "CMD_STANDBY",
    "DATA_FRAME_LENGTH",
    "STATUS_FRAME_LENGTH",
    "AckMismatch",
    "ChecksumInvalid",
    "DeviceMode",
    "Frame",
    "FrameError",
    "InvalidState",
    "LengthMismatch",
    "LengthPolicy",
    "PMS5003T",
    "PMS5003TConfig",
    "PMS5003TReading",
    "PMSError",
    "SensorTimeout",
    "SerialLike",
    "TransportError",
    "checksum",
    "decode_reading",
    "encode_command",
    "open_pm_port",
    "probe",
    "probe_port",
    "read_frame",
    "verify_checksum",
]
