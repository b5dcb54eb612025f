import pytest

from pms5003t_sensor.sensing.pms5003t import PMS5003TConfig
from pms5003t_sensor.utils.mocks import FakePMS5003T


@pytest.fixture()
def fake_pms5003t():
    fake = FakePMS5003T()
    yield fake
    fake.reset_input_buffer()


@pytest.fixture()
def fast_config():
    """Session config without the real-time settle and wake-up waits."""
    return PMS5003TConfig(settle_seconds=0.0, wake_timeout_seconds=0.05)
