import threading
from unittest.mock import patch

import pytest

from allin import sensors


def test_motion_status_reads_file(tmp_path):
    path = tmp_path / "value"
    path.write_text("1\n")
    assert sensors.get_motion_status(str(path)) == 1
    path.write_text("0\n")
    assert sensors.get_motion_status(str(path)) == 0


def test_light_and_pot_read_raw(tmp_path):
    path = tmp_path / "raw"
    path.write_text("3800\n")
    assert sensors.get_light_intensity(str(path)) == 3800
    assert sensors.get_pot_value(str(path)) == 3800


def test_delay_base_value():
    assert sensors.delay_for_reading(0) == 30


def test_delay_steps_every_80():
    base = sensors.delay_for_reading(0)
    assert sensors.delay_for_reading(79) == base
    assert sensors.delay_for_reading(80) == base + 1
    assert sensors.delay_for_reading(160) == base + 2


def test_delay_is_monotonic():
    values = [sensors.delay_for_reading(raw) for raw in range(0, 4096, 17)]
    assert values == sorted(values)


def test_neopixel_delay_from_file(tmp_path):
    path = tmp_path / "raw"
    path.write_text("800")
    assert sensors.get_neopixel_delay(str(path)) == sensors.delay_for_reading(800)


def test_decode_temperature_value():
    assert sensors.decode_temperature(bytes([0x01, 0x90])) == 25.0


def test_decode_temperature_masks_flag_bits():
    assert sensors.decode_temperature(bytes([0xE1, 0x90])) == sensors.decode_temperature(
        bytes([0x01, 0x90])
    )


def test_decode_temperature_negative():
    assert sensors.decode_temperature(bytes([0x1F, 0xFF])) == -0.0625


def test_decode_temperature_wrong_length():
    with pytest.raises(ValueError):
        sensors.decode_temperature(b"\x01")


def test_update_applies_reading_above_threshold():
    sensor = sensors.TemperatureSensor(bus_path="/nonexistent")
    data = bytes([0x01, 0x90])
    assert sensor.update(data) == sensors.decode_temperature(data)
    assert sensor.temperature == sensors.decode_temperature(data)


def test_update_ignores_low_reading():
    sensor = sensors.TemperatureSensor(bus_path="/nonexistent")
    sensor.update(bytes([0x01, 0x90]))
    before = sensor.temperature
    assert sensor.update(bytes([0x00, 0x10])) == before
    assert sensor.update(bytes([0x1F, 0xFF])) == before


def test_read_once_without_bus_keeps_value(tmp_path, capsys):
    sensor = sensors.TemperatureSensor(bus_path=str(tmp_path / "missing"))
    assert sensor.read_once() == 0.0
    assert "Unable to access the bus." in capsys.readouterr().out


@patch("fcntl.ioctl")
def test_read_once_from_device(mock_ioctl, tmp_path):
    path = tmp_path / "bus"
    path.write_bytes(b"\x00" * 6 + bytes([0x01, 0x90]))
    sensor = sensors.TemperatureSensor(bus_path=str(path))
    assert sensor.read_once() == sensors.decode_temperature(bytes([0x01, 0x90]))
    written = path.read_bytes()[:6]
    assert written == bytes([0x01, 0x00, 0x00, 0x08, 0x03, 0x05])


@patch("fcntl.ioctl")
def test_read_once_short_read_keeps_value(mock_ioctl, tmp_path):
    path = tmp_path / "bus"
    path.write_bytes(b"")
    sensor = sensors.TemperatureSensor(bus_path=str(path))
    sensor.temperature = 21.5
    assert sensor.read_once() == 21.5


def test_start_and_wait_stop(tmp_path):
    stop = threading.Event()
    sensor = sensors.TemperatureSensor(bus_path=str(tmp_path / "missing"), stop_event=stop)
    sensor.start()
    stop.set()
    sensor.wait()
    assert sensor._thread.is_alive() is False
    assert sensor.temperature == 0.0