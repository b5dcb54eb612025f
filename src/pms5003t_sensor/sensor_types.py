import json
from dataclasses import dataclass
from typing import Generic, Protocol, TypeVar


class Serializable(Protocol):
    def to_string(self) -> str: ...


T = TypeVar("T", bound=Serializable)


@dataclass
class SensorReading(Generic[T]):
    """A payload stamped with when and where it was read."""

    ts: float
    device_id: str
    payload: T

    def to_string(self) -> str:
        return json.dumps(
            {
                "ts": self.ts,
                "device_id": self.device_id,
                "payload": json.loads(self.payload.to_string()),
            }
        )
