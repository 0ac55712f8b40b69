"""Two-digit 14-segment display driven through an I2C GPIO expander."""

from __future__ import annotations

import threading
from typing import Callable

from .utils import run_command, run_command_status, sleep_ms, write_int

I2CDRV_LINUX_BUS0 = "/dev/i2c-0"
I2CDRV_LINUX_BUS1 = "/dev/i2c-1"
I2CDRV_LINUX_BUS2 = "/dev/i2c-2"

I2C_LEFT_DIGIT_PATH = "/sys/class/gpio/gpio61/value"
I2C_RIGHT_DIGIT_PATH = "/sys/class/gpio/gpio44/value"

I2C_DEVICE_ADDRESS = 0x20

ON = 1
OFF = 0

REG_DIRA = 0x02
REG_DIRB = 0x03
REG_OUTA = 0x00
REG_OUTB = 0x01

MAX_SHOWN = 99

BOTTOM_DIGITS = (0xD0, 0xC0, 0x98, 0xD8, 0xC8, 0x58, 0x58, 0x02, 0xD8, 0xD8)
TOP_DIGITS = (0xA1, 0x00, 0x83, 0x03, 0x22, 0x23, 0xA3, 0x05, 0xA3, 0x23)


def split_digits(value: float) -> tuple[int, int]:
    """Clamp a value to 0..99 and return its tens and units digits."""
    shown = min(max(int(value), 0), MAX_SHOWN)
    return divmod(shown, 10)


class SegmentDisplay:
    """Multiplexes the two digits of the display.

    number_source returns the number to show, or None to blank the display.
    """

    def __init__(
        self,
        device,
        left_path: str = I2C_LEFT_DIGIT_PATH,
        right_path: str = I2C_RIGHT_DIGIT_PATH,
        number_source: Callable[[], float | None] | None = None,
        stop_event: threading.Event | None = None,
    ) -> None:
        self.device = device
        self.left_path = left_path
        self.right_path = right_path
        self.number_source = number_source if number_source is not None else (lambda: 0)
        self.stop_event = stop_event if stop_event is not None else threading.Event()
        self._thread: threading.Thread | None = None

    @staticmethod
    def _export(pin: int) -> None:
        while run_command_status(f"echo {pin} > /sys/class/gpio/export") != 0:
            pass

    def init(self) -> None:
        """Route the I2C pins and make the digit-enable GPIOs outputs."""
        run_command("config-pin P9_18 i2c")
        run_command("config-pin P9_17 i2c")
        left_status = right_status = -1
        while left_status != 0 and right_status != 0:
            left_status = run_command_status("echo out > /sys/class/gpio/gpio61/direction")
            if left_status != 0:
                self._export(61)
            right_status = run_command_status("echo out > /sys/class/gpio/gpio44/direction")
            if right_status != 0:
                self._export(44)

    def _digits_off(self) -> None:
        write_int(self.left_path, OFF)
        write_int(self.right_path, OFF)

    def _show_digit(self, digit: int, enable_path: str) -> None:
        self._digits_off()
        self.device.write_reg(REG_OUTA, BOTTOM_DIGITS[digit])
        self.device.write_reg(REG_OUTB, TOP_DIGITS[digit])
        write_int(enable_path, ON)
        sleep_ms(5)

    def show_once(self) -> int | None:
        """Show the current number for one multiplex cycle and return it."""
        number = self.number_source()
        if number is None:
            self._digits_off()
            return None
        left, right = split_digits(number)
        if left > 0:
            self._show_digit(left, self.left_path)
        self._show_digit(right, self.right_path)
        return left * 10 + right

    def run(self) -> None:
        """Drive the display until the stop event is set, then blank it."""
        self.device.write_reg(REG_DIRA, 0x00)
        self.device.write_reg(REG_DIRB, 0x00)
        try:
            while not self.stop_event.is_set():
                self.show_once()
        finally:
            self._digits_off()

    def start(self) -> None:
        self._thread = threading.Thread(target=self.run, name="segment", daemon=True)
        self._thread.start()

    def wait(self) -> None:
        if self._thread is not None:
            self._thread.join()

    def cleanup(self) -> None:
        self._digits_off()