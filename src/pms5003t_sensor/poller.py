import logging
import queue
import threading
import time
from typing import Callable, Optional

from pms5003t_sensor.sensing.codec import PMS5003TReading
from pms5003t_sensor.sensing.errors import PMSError, TransportError
from pms5003t_sensor.sensing.pms5003t import PMS5003T, DeviceMode
from pms5003t_sensor.sensor_types import SensorReading

logger = logging.getLogger(__name__)


def drop_oldest(q: "queue.Queue", item) -> None:
    try:
        q.put_nowait(item)
    except queue.Full:
        q.get_nowait()
        q.put_nowait(item)


class SensorPoller(threading.Thread):
    """Reads a PMS5003T on a dedicated thread and queues the readings.

    The session is created through ``session_factory`` so that it can be
    thrown away and re-created (re-probed) after ``max_failures`` consecutive
    failed reads, or immediately after a transport fault.
    """

    daemon = True

    def __init__(
        self,
        interval_s: float,
        device_id: str,
        session_factory: Callable[[], PMS5003T],
        out_q: "queue.Queue[SensorReading[PMS5003TReading]]",
        max_failures: int = 2,
        name: str = "pms5003t",
    ):
        super().__init__(name=name)
        self.interval_s = interval_s
        self.device_id = device_id
        self.session_factory = session_factory
        self.out_q = out_q
        self.max_failures = max_failures
        self.failures = 0
        self.reopens = 0
        self.s_stop = threading.Event()
        self._session: Optional[PMS5003T] = None

    def stop(self):
        self.s_stop.set()

    def _close_session(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None
        self.failures = 0

    def _open_session(self) -> Optional[PMS5003T]:
        try:
            self._session = self.session_factory()
            self.reopens += 1
        except PMSError as e:
            logger.warning(f"Could not open sensor session: {e}")
            self._session = None
        return self._session

    def poll_once(self) -> Optional[SensorReading[PMS5003TReading]]:
        """Take one reading, handling failures according to the retry budget."""
        session = self._session or self._open_session()
        if session is None:
            return None

        try:
            if session.mode is DeviceMode.PASSIVE:
                payload = session.passive_read()
            else:
                payload = session.read()
        except TransportError as e:
            logger.error(f"Serial line failed, re-opening sensor session: {e}")
            self._close_session()
            return None
        except PMSError as e:
            self.failures += 1
            logger.warning(f"Failed to read sensor ({self.failures}/{self.max_failures}): {e}")
            if self.failures >= self.max_failures:
                logger.error(f"{self.failures} consecutive failures, re-probing sensor")
                self._close_session()
            return None

        self.failures = 0
        reading = SensorReading(ts=time.time(), device_id=self.device_id, payload=payload)
        drop_oldest(self.out_q, reading)
        return reading

    def run(self):
        next_tick = time.time()
        try:
            while not self.s_stop.is_set():
                now = time.time()
                if now >= next_tick:
                    self.poll_once()
                    next_tick += self.interval_s
                else:
                    self.s_stop.wait(next_tick - now)
        finally:
            self._close_session()
