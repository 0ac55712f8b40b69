"""Four-digit clock display bit-banged over two GPIO lines."""

from __future__ import annotations

import datetime
import threading
from pathlib import Path

from .utils import read_int, run_command, run_command_status, wait_short, write_int

CMD_AUTO_ADDR = 0x40
START_ADDR = 0xC0
NUM_DIGITS = 4
DISPLAY_ON = 0x88
BRIGHTNESS = 0x07

COLON_FLAG = 0x80

HIGH = 1
LOW = 0
IN = "in"
OUT = "out"

GPIO_ROOT = "/sys/class/gpio"
CLK = 2
DIO = 3

REFRESH_SECONDS = 60.0

DIGIT_SEGMENTS = (0x3F, 0x06, 0x5B, 0x4F, 0x66, 0x6D, 0x7D, 0x07, 0x7F, 0x67)


def format_time(hour: int, minute: int) -> str:
    """Return the four display characters for a time of day."""
    return f"{hour:02d}{minute:02d}"


def encode_digit(ch: str, colon: bool, enabled: bool = True) -> int:
    """Return the segment byte for one character; non-digits are blank."""
    value = 0
    if len(ch) == 1 and "0" <= ch <= "9" and enabled:
        value = DIGIT_SEGMENTS[ord(ch) - ord("0")]
    if colon:
        value |= COLON_FLAG
    return value


class ClockDisplay:
    """Shows the current time on the display, refreshed once a minute."""

    def __init__(
        self,
        gpio_root: str = GPIO_ROOT,
        stop_event: threading.Event | None = None,
    ) -> None:
        root = Path(gpio_root)
        self.gpio_root = root
        self.clk_value = root / f"gpio{CLK}" / "value"
        self.dio_value = root / f"gpio{DIO}" / "value"
        self.clk_direction = root / f"gpio{CLK}" / "direction"
        self.dio_direction = root / f"gpio{DIO}" / "direction"
        self.stop_event = stop_event if stop_event is not None else threading.Event()
        self.digits = ""
        self._thread: threading.Thread | None = None

    def _export(self, pin: int) -> None:
        while run_command_status(f"echo {pin} > {self.gpio_root / 'export'}") != 0:
            pass

    def init(self) -> None:
        """Configure both pins as GPIO outputs and idle them high."""
        run_command("config-pin p9.22 gpio")
        run_command("config-pin p9.21 gpio")
        run_command(f"echo {CLK} > {self.gpio_root / 'export'}")
        run_command(f"echo {DIO} > {self.gpio_root / 'export'}")
        clk_status = dio_status = -1
        while clk_status != 0 and dio_status != 0:
            clk_status = run_command_status(f"echo out > {self.clk_direction}")
            if clk_status != 0:
                self._export(CLK)
            dio_status = run_command_status(f"echo out > {self.dio_direction}")
            if dio_status != 0:
                self._export(DIO)
        self._set_clk(HIGH)
        self._set_dio(HIGH)

    def _set_clk(self, value: int) -> None:
        write_int(self.clk_value, value)

    def _set_dio(self, value: int) -> None:
        write_int(self.dio_value, value)

    def _set_dio_direction(self, direction: str) -> None:
        self.dio_direction.write_text(direction)

    def _begin(self) -> None:
        # DIO falling while CLK is high starts a transfer.
        self._set_clk(HIGH)
        self._set_dio(HIGH)
        wait_short()
        self._set_dio(LOW)
        wait_short()
        self._set_clk(LOW)
        wait_short()

    def _end(self) -> None:
        # DIO rising while CLK is high ends a transfer.
        self._set_clk(LOW)
        self._set_dio(LOW)
        wait_short()
        self._set_clk(HIGH)
        wait_short()
        self._set_dio(HIGH)
        wait_short()

    def _write_byte(self, data: int) -> None:
        for bit in range(8):
            self._set_clk(LOW)
            self._set_dio((data >> bit) & 0x01)
            wait_short()
            self._set_clk(HIGH)
            wait_short()
        self._set_clk(LOW)
        self._set_dio_direction(IN)
        wait_short()
        if read_int(self.dio_value) != 0:
            raise OSError("clock display did not acknowledge the byte")
        self._set_clk(HIGH)
        wait_short()
        self._set_clk(LOW)
        self._set_dio_direction(OUT)

    def show(self, digits: str) -> None:
        """Send four characters to the display with the colon lit."""
        if len(digits) != NUM_DIGITS:
            raise ValueError(f"expected {NUM_DIGITS} characters, got {digits!r}")
        enabled = not self.stop_event.is_set()
        self._begin()
        self._write_byte(CMD_AUTO_ADDR)
        self._end()

        self._begin()
        self._write_byte(START_ADDR)
        for ch in digits:
            self._write_byte(encode_digit(ch, True, enabled))
        self._end()

        self._begin()
        self._write_byte(DISPLAY_ON | BRIGHTNESS)
        self._end()

    def run(self) -> None:
        """Show the local time once a minute until the stop event is set."""
        while not self.stop_event.is_set():
            now = datetime.datetime.now()
            self.digits = format_time(now.hour, now.minute)
            print(f"Current time is {now.hour:02d} : {now.minute:02d}")
            self.show(self.digits)
            self.stop_event.wait(REFRESH_SECONDS)

    def start(self) -> None:
        self._thread = threading.Thread(target=self.run, name="clock", daemon=True)
        self._thread.start()

    def wait(self) -> None:
        if self._thread is not None:
            self._thread.join()

    def cleanup(self) -> None:
        """Blank the digits and release both GPIO pins."""
        enabled = not self.stop_event.is_set()
        self._begin()
        self._write_byte(START_ADDR)
        for ch in self.digits.ljust(NUM_DIGITS, "\0")[:NUM_DIGITS]:
            self._write_byte(encode_digit(ch, False, enabled))
        self._end()

        self._set_clk(0)
        self._set_dio(0)

        run_command(f"echo in > {self.clk_direction}")
        run_command(f"echo in > {self.dio_direction}")
        run_command(f"echo {CLK} > {self.gpio_root / 'unexport'}")
        run_command(f"echo {DIO} > {self.gpio_root / 'unexport'}")