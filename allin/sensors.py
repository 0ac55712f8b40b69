"""Motion sensor, photoresistor, potentiometer and I2C temperature sensor."""

from __future__ import annotations

import threading

from .utils import I2CDevice, read_int, run_command, sleep_ms

MOTION_SENSOR_PATH = "/sys/class/gpio/gpio49/value"
LIGHT_INTENSITY_PATH = "/sys/bus/iio/devices/iio:device0/in_voltage1_raw"
A2D_FILE_VOLTAGE0 = "/sys/bus/iio/devices/iio:device0/in_voltage0_raw"

TEMP_BUS = "/dev/i2c-2"
TEMP_ADDRESS = 0x19
TEMP_RAW_THRESHOLD = 30
TEMP_CELSIUS_PER_COUNT = 0.0625

_SENSOR_CONFIG = bytes([0x01, 0x00, 0x00])
_RESOLUTION_CONFIG = bytes([0x08, 0x03])
_TEMP_REGISTER = bytes([0x05])


def motion_sensor_init() -> None:
    """Configure the motion sensor pins as GPIO inputs."""
    run_command("config-pin p9.15 gpio")
    run_command("config-pin p9.23 gpio")
    run_command("echo in > /sys/class/gpio/gpio48/direction")
    run_command("echo in > /sys/class/gpio/gpio49/direction")


def get_motion_status(path: str = MOTION_SENSOR_PATH) -> int:
    """Return 1 while motion is detected, else 0."""
    return read_int(path)


def get_light_intensity(path: str = LIGHT_INTENSITY_PATH) -> int:
    """Return the raw A2D reading of the photoresistor."""
    return read_int(path)


def get_pot_value(path: str = A2D_FILE_VOLTAGE0) -> int:
    """Return the raw A2D reading of the potentiometer."""
    return read_int(path)


def delay_for_reading(raw: int) -> int:
    """Map a potentiometer reading to a NeoPixel step delay in milliseconds."""
    quotient = abs(raw) // 80
    return 30 + (quotient if raw >= 0 else -quotient)


def get_neopixel_delay(path: str = A2D_FILE_VOLTAGE0) -> int:
    """Read the potentiometer and return the NeoPixel step delay."""
    return delay_for_reading(read_int(path))


def _raw_reading(data: bytes) -> int:
    data = bytes(data)
    if len(data) != 2:
        raise ValueError(f"temperature reading needs 2 bytes, got {len(data)}")
    raw = (data[0] & 0x1F) << 8 | data[1]
    if raw > 4095:
        raw -= 8192
    return raw


def decode_temperature(data: bytes) -> float:
    """Convert the two temperature register bytes to degrees Celsius."""
    return _raw_reading(data) * TEMP_CELSIUS_PER_COUNT


class TemperatureSensor:
    """Polls an I2C temperature sensor on a background thread."""

    def __init__(
        self,
        bus_path: str = TEMP_BUS,
        address: int = TEMP_ADDRESS,
        stop_event: threading.Event | None = None,
    ) -> None:
        self.bus_path = bus_path
        self.address = address
        self.stop_event = stop_event if stop_event is not None else threading.Event()
        self.temperature = 0.0
        self._device: I2CDevice | None = None
        self._thread: threading.Thread | None = None
        self._reported_bus_error = False

    def update(self, data: bytes) -> float:
        """Apply a register reading; readings at or below the threshold are ignored."""
        raw = _raw_reading(data)
        if raw > TEMP_RAW_THRESHOLD:
            self.temperature = raw * TEMP_CELSIUS_PER_COUNT
        return self.temperature

    def _open(self) -> I2CDevice | None:
        if self._device is None:
            try:
                self._device = I2CDevice(self.bus_path, self.address)
            except OSError:
                if not self._reported_bus_error:
                    print("Unable to access the bus.")
                    self._reported_bus_error = True
                return None
        return self._device

    def read_once(self) -> float:
        """Take one reading from the sensor and return the current temperature."""
        device = self._open()
        if device is None:
            return self.temperature
        try:
            device.write(_SENSOR_CONFIG)
            device.write(_RESOLUTION_CONFIG)
            device.write(_TEMP_REGISTER)
            data = device.read(2)
        except OSError:
            return self.temperature
        if len(data) != 2:
            return self.temperature
        return self.update(data)

    def run(self) -> None:
        """Poll the sensor until the stop event is set."""
        try:
            while not self.stop_event.is_set():
                sleep_ms(5)
                self.read_once()
        finally:
            if self._device is not None:
                self._device.close()
                self._device = None

    def start(self) -> None:
        self._thread = threading.Thread(target=self.run, name="temperature", daemon=True)
        self._thread.start()

    def wait(self) -> None:
        if self._thread is not None:
            self._thread.join()