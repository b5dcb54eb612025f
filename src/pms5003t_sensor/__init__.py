"""Driver for PMS5003T particulate-matter sensors on a serial line."""

from .sensing import (
    PMS5003T,
    DeviceMode,
    PMS5003TConfig,
    PMS5003TReading,
    PMSError,
    probe_port,
)

__all__ = [
    "PMS5003T",
    "DeviceMode",
    "PMS5003TConfig",
    "PMS5003TReading",
    "PMSError",
    "probe_port",
]
