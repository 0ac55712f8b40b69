"""8x8 LED matrix showing the current display mode, and the mode state itself."""

from __future__ import annotations

import enum
import threading
from typing import Callable

I2C_MATRIX_ADDRESS = 0x70

REG_STARTUP = 0x21
REG_NOFLASH = 0x81

REG_ROW8 = 0x0E
REG_ROW7 = 0x0C
REG_ROW6 = 0x0A
REG_ROW5 = 0x08
REG_ROW4 = 0x06
REG_ROW3 = 0x04
REG_ROW2 = 0x02
REG_ROW1 = 0x00

# Rows in the order the patterns are written: top (row 8) to bottom (row 1).
ROW_REGISTERS = (
    REG_ROW8,
    REG_ROW7,
    REG_ROW6,
    REG_ROW5,
    REG_ROW4,
    REG_ROW3,
    REG_ROW2,
    REG_ROW1,
)

INITIAL_MODE_NUM = 999


class ShowMode(enum.IntEnum):
    """What the displays are currently showing."""

    PEOPLE = 0
    TEMP = 1
    SMILE = 2


MATRIX_PATTERNS: dict[ShowMode, tuple[int, ...]] = {
    ShowMode.PEOPLE: (0x00, 0x7F, 0x5B, 0x7F, 0x49, 0xC9, 0x00, 0x00),
    ShowMode.TEMP: (0xF7, 0x27, 0xA7, 0xA3, 0xCB, 0xFA, 0xCB, 0x4A),
    ShowMode.SMILE: (0x1E, 0x21, 0xD2, 0xC0, 0xD2, 0xCC, 0x21, 0x1E),
}


def mode_index(mode: ShowMode | int) -> int:
    """Return the numeric index reported for a mode."""
    return int(ShowMode(mode))


def _c_mod(value: int, divisor: int) -> int:
    """Remainder that keeps the sign of the dividend."""
    remainder = abs(value) % divisor
    return remainder if value >= 0 else -remainder


class ModeController:
    """Holds the current show mode and the joystick's running mode counter."""

    def __init__(
        self,
        people_count: Callable[[], int] | None = None,
        temperature: Callable[[], float] | None = None,
    ) -> None:
        self.people_count = people_count if people_count is not None else (lambda: 0)
        self.temperature = temperature if temperature is not None else (lambda: 0.0)
        self.mode = ShowMode.PEOPLE
        self.mode_num = INITIAL_MODE_NUM
        self._lock = threading.RLock()

    def set_mode(self, mode: ShowMode | int) -> ShowMode:
        """Switch to the given mode."""
        mode = ShowMode(mode)
        if mode is ShowMode.PEOPLE:
            self.set_people_mode()
        elif mode is ShowMode.TEMP:
            self.set_temp_mode()
        else:
            self.set_smile_mode()
        return self.mode

    def set_people_mode(self) -> None:
        count = self.people_count()
        print(f"Current mode is People count and {count} people in the room now!")
        with self._lock:
            self.mode = ShowMode.PEOPLE
            self.sync_mode_num()

    def set_temp_mode(self) -> None:
        temp = self.temperature()
        print(f"Current mode is Temperature and it's {temp:.2f}°C!")
        with self._lock:
            self.mode = ShowMode.TEMP
            self.sync_mode_num()

    def set_smile_mode(self) -> None:
        print("Current mode is Smile!")
        with self._lock:
            self.mode = ShowMode.SMILE
            self.sync_mode_num()

    def sync_mode_num(self) -> int:
        """Advance the mode counter (by at most two) until it matches the mode."""
        with self._lock:
            target = int(self.mode)
            if _c_mod(self.mode_num, 3) != target:
                self.mode_num += 1
                if _c_mod(self.mode_num, 3) != target:
                    self.mode_num += 1
            return self.mode_num

    def step(self, delta: int) -> ShowMode:
        """Move the mode counter by delta and switch to the mode it selects."""
        with self._lock:
            self.mode_num += delta
            remainder = _c_mod(self.mode_num, 3)
            if remainder == 0:
                self.set_people_mode()
            elif remainder == 1:
                self.set_temp_mode()
            else:
                self.set_smile_mode()
            return self.mode


class LedMatrix:
    """Drives the I2C LED matrix with the pattern of the current mode."""

    def __init__(
        self,
        device,
        modes: ModeController,
        stop_event: threading.Event | None = None,
    ) -> None:
        self.device = device
        self.modes = modes
        self.stop_event = stop_event if stop_event is not None else threading.Event()
        self._thread: threading.Thread | None = None

    def show(self, mode: ShowMode | int) -> None:
        """Write the pattern of one mode to the matrix."""
        pattern = MATRIX_PATTERNS[ShowMode(mode)]
        for register, value in zip(ROW_REGISTERS, pattern):
            self.device.write_reg(register, value)

    def run(self) -> None:
        """Keep refreshing the matrix until the stop event is set."""
        while not self.stop_event.is_set():
            self.show(self.modes.mode)

    def start(self) -> None:
        """Switch the matrix on and start refreshing it in the background."""
        self.device.write_reg(REG_STARTUP, 0x00)
        self.device.write_reg(REG_NOFLASH, 0x00)
        print(
            "Default mode is People count and "
            f"{self.modes.people_count()} people in the room now!"
        )
        self._thread = threading.Thread(target=self.run, name="matrix", daemon=True)
        self._thread.start()

    def wait(self) -> None:
        if self._thread is not None:
            self._thread.join()

    def cleanup(self) -> None:
        """Blank every row of the matrix."""
        for register in reversed(ROW_REGISTERS):
            self.device.write_reg(register, 0x00)