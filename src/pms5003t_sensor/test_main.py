import json
from unittest.mock import patch

import pytest

from pms5003t_sensor.__main__ import main
from pms5003t_sensor.sensing.errors import TransportError
from pms5003t_sensor.utils.mocks import SilentFakePMS5003T

OPEN_PORT = "pms5003t_sensor.sensing.pms5003t.open_pm_port"


@pytest.fixture(autouse=True)
def testing_environment(monkeypatch):
    monkeypatch.setenv("PMS5003T_ENV", "testing")


def output_lines(capsys):
    return [json.loads(line) for line in capsys.readouterr().out.splitlines()]


def test_read_test_mode(capsys):
    assert main(["--test-mode", "read", "--count", "2"]) == 0

    lines = output_lines(capsys)
    assert len(lines) == 2
    assert lines[0]["device_id"] == "test-device"
    assert lines[0]["payload"]["pm1_0"] == 10
    assert len(bytes.fromhex(lines[0]["payload"]["raw"])) == 32


def test_read_passive_test_mode(capsys):
    assert main(["--test-mode", "--device-id", "kitchen", "read", "--passive"]) == 0

    lines = output_lines(capsys)
    assert [line["device_id"] for line in lines] == ["kitchen"]


def test_probe_test_mode():
    assert main(["--test-mode", "probe"]) == 0


def test_standby_and_wake_test_mode(capsys):
    assert main(["--test-mode", "standby"]) == 0
    assert main(["--test-mode", "wake"]) == 0

    assert len(output_lines(capsys)) == 1


def test_monitor_test_mode(capsys):
    assert main(["--test-mode", "monitor", "--count", "2"]) == 0

    assert len(output_lines(capsys)) == 2


def test_probe_silent_port():
    with patch(OPEN_PORT, return_value=SilentFakePMS5003T()) as mock_open:
        assert main(["probe", "--port", "/dev/ttyUSB3"]) == 1

    assert mock_open.call_args.args == ("/dev/ttyUSB3",)


def test_read_port_cannot_open(capsys):
    with patch(OPEN_PORT, side_effect=TransportError("could not open port /dev/ttyUSB3")):
        assert main(["read", "--port", "/dev/ttyUSB3"]) == 1

    assert capsys.readouterr().out == ""
