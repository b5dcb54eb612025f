"""Tests for frame synchronization, checksums and command encoding."""

import pytest
import serial

from pms5003t_sensor.sensing.codec import (
    CMD_PASSIVE_READ,
    CMD_READ_MODE,
    CMD_STANDBY,
    DATA_FRAME_LENGTH,
    STATUS_FRAME_LENGTH,
    Frame,
    LengthPolicy,
    checksum,
    decode_reading,
    encode_command,
    read_frame,
    verify_checksum,
)
from pms5003t_sensor.sensing.errors import (
    ChecksumInvalid,
    LengthMismatch,
    SensorTimeout,
    TransportError,
)
from pms5003t_sensor.test_utils import ScriptedSerialPort, build_data_frame, build_status_frame


def hand_built_frame(pm1_0_bytes: bytes = b"\x00\x32") -> bytes:
    """A data frame assembled by hand, byte by byte."""
    body = b"\x42\x4d\x00\x1c" + pm1_0_bytes + bytes(range(1, 25))
    total = sum(body)
    return body + bytes([total >> 8, total & 0xFF])


def test_checksum_of_real_status_frame():
    """Ack captured from a sensor switching to passive mode."""
    assert verify_checksum(bytes.fromhex("424d0004e1000174"))
    assert not verify_checksum(bytes.fromhex("424d0004e1000175"))


def test_checksum_wraps_at_16_bits():
    assert checksum(b"\xff" * 300) == (0xFF * 300) & 0xFFFF


def test_encode_command_bytes():
    assert encode_command(CMD_READ_MODE, 0) == bytes.fromhex("424de100000170")
    assert encode_command(CMD_PASSIVE_READ, 0) == bytes.fromhex("424de200000171")
    assert encode_command(CMD_STANDBY, 1) == bytes.fromhex("424de400010174")


def test_encode_command_verifies():
    for code in (0x00, CMD_READ_MODE, CMD_PASSIVE_READ, CMD_STANDBY, 0xFF):
        for payload in (0, 1, 0x00FF, 0x1234, 0xFFFF):
            frame = encode_command(code, payload)
            assert len(frame) == 7
            assert verify_checksum(frame)


@pytest.mark.parametrize("code,payload", [(-1, 0), (0x100, 0), (0xE1, -1), (0xE1, 0x10000)])
def test_encode_command_rejects_out_of_range(code, payload):
    with pytest.raises(ValueError):
        encode_command(code, payload)


def test_read_and_decode_hand_built_frame():
    frame = read_frame(ScriptedSerialPort(hand_built_frame()), DATA_FRAME_LENGTH)
    reading = decode_reading(frame)

    assert reading.pm1_0 == 50
    assert reading.raw == hand_built_frame()


def test_checksum_low_byte_off_by_one():
    data = bytearray(hand_built_frame())
    data[31] = (data[31] + 1) & 0xFF

    with pytest.raises(ChecksumInvalid) as exc_info:
        read_frame(ScriptedSerialPort(bytes(data)), DATA_FRAME_LENGTH)

    # the frame is still handed back for presence checks
    assert exc_info.value.frame.data == bytes(data)


def test_every_single_byte_corruption_is_detected():
    frame = build_data_frame()
    assert verify_checksum(frame)

    for index in range(30):
        for delta in range(1, 256):
            corrupted = bytearray(frame)
            corrupted[index] = (corrupted[index] + delta) & 0xFF
            assert not verify_checksum(bytes(corrupted)), (index, delta)


def test_paired_corruption_can_cancel():
    """The additive checksum cannot see offsetting changes to two bytes."""
    corrupted = bytearray(build_data_frame())
    corrupted[10] += 1
    corrupted[11] -= 1
    assert verify_checksum(bytes(corrupted))


def test_decode_all_fields():
    frame = build_data_frame(
        pm1_0=1,
        pm2_5=2,
        pm10=3,
        pm1_0_atm=4,
        pm2_5_atm=5,
        pm10_atm=6,
        count_0_3=7,
        count_0_5=8,
        count_1_0=9,
        count_2_5=10,
        temperature=21.7,
        humidity=55.0,
    )
    reading = decode_reading(Frame(frame))

    assert (reading.pm1_0, reading.pm2_5, reading.pm10) == (1, 2, 3)
    assert (reading.pm1_0_atm, reading.pm2_5_atm, reading.pm10_atm) == (4, 5, 6)
    assert (reading.count_0_3, reading.count_0_5, reading.count_1_0, reading.count_2_5) == (
        7,
        8,
        9,
        10,
    )
    assert reading.temperature == pytest.approx(21.7)
    assert reading.humidity == pytest.approx(55.0)
    assert reading.raw == frame


def test_decode_rejects_status_frame():
    with pytest.raises(LengthMismatch):
        decode_reading(Frame(build_status_frame(CMD_READ_MODE)))


def test_garbage_within_budget_is_skipped():
    frame = build_data_frame(pm2_5=77)
    port = ScriptedSerialPort(b"\x00" * 64 + frame)

    result = read_frame(port, DATA_FRAME_LENGTH)

    assert result.data == frame


def test_garbage_beyond_budget_times_out():
    port = ScriptedSerialPort(b"\x00" * 65 + build_data_frame())

    with pytest.raises(SensorTimeout):
        read_frame(port, DATA_FRAME_LENGTH)

    # gave up without reading further than the budget
    assert port.bytes_read == 66


def test_lone_sync_head_is_discarded():
    frame = build_data_frame()
    port = ScriptedSerialPort(b"\x42\x00\x42" + frame)

    assert read_frame(port, DATA_FRAME_LENGTH).data == frame


def test_tail_of_previous_frame_is_skipped():
    """Reading mid-stream starts in the middle of a frame."""
    frame = build_data_frame(pm10=99)
    port = ScriptedSerialPort(build_data_frame()[13:] + frame)

    assert decode_reading(read_frame(port, DATA_FRAME_LENGTH)).pm10 == 99


def test_empty_port_times_out():
    with pytest.raises(SensorTimeout):
        read_frame(ScriptedSerialPort(b""), DATA_FRAME_LENGTH)


def test_truncated_frame_times_out():
    with pytest.raises(SensorTimeout):
        read_frame(ScriptedSerialPort(build_data_frame()[:20]), DATA_FRAME_LENGTH)


def test_strict_rejects_wrong_length():
    port = ScriptedSerialPort(build_status_frame(CMD_READ_MODE))

    with pytest.raises(LengthMismatch) as exc_info:
        read_frame(port, DATA_FRAME_LENGTH, LengthPolicy.STRICT)

    assert exc_info.value.declared == STATUS_FRAME_LENGTH
    assert exc_info.value.expected == DATA_FRAME_LENGTH


def test_tolerant_accepts_shorter_frame():
    status = build_status_frame(CMD_STANDBY)
    frame = read_frame(ScriptedSerialPort(status), DATA_FRAME_LENGTH, LengthPolicy.TOLERANT)

    assert frame.data == status
    assert frame.command == CMD_STANDBY


def test_tolerant_truncates_longer_frame():
    data = build_data_frame()
    port = ScriptedSerialPort(data)

    frame = read_frame(port, STATUS_FRAME_LENGTH, LengthPolicy.TOLERANT, verify=False)

    assert frame.data == data[:STATUS_FRAME_LENGTH]
    assert frame.declared_length == 28


def test_tolerant_truncated_frame_fails_checksum():
    with pytest.raises(ChecksumInvalid):
        read_frame(ScriptedSerialPort(build_data_frame()), STATUS_FRAME_LENGTH, LengthPolicy.TOLERANT)


@pytest.mark.parametrize("policy", list(LengthPolicy))
def test_length_too_short_for_checksum(policy):
    with pytest.raises(LengthMismatch):
        read_frame(ScriptedSerialPort(b"\x42\x4d\x00\x01\x00\x00"), DATA_FRAME_LENGTH, policy)


def test_verify_false_returns_corrupt_frame():
    data = build_data_frame()[:-2] + b"\x00\x00"
    frame = read_frame(ScriptedSerialPort(data), DATA_FRAME_LENGTH, verify=False)
    assert frame.data == data


def test_transport_failure_is_typed():
    class BrokenPort(ScriptedSerialPort):
        def read(self, n):
            raise serial.SerialException("device disconnected")

    with pytest.raises(TransportError):
        read_frame(BrokenPort(), DATA_FRAME_LENGTH)
