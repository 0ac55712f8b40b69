"""Zen cape joystick: steps the show mode up and down, or shuts the program down."""

from __future__ import annotations

import enum
import threading
from pathlib import Path
from typing import Callable

from .matrix import ModeController
from .utils import read_int, run_command, sleep_ms

GPIO_ROOT = "/sys/class/gpio"
DEBOUNCE_MS = 300
POLL_INTERVAL_S = 0.005

_PIN_SETUP = (
    ("p8.14", 26),  # up
    ("p8.15", 47),  # right
    ("p8.16", 46),  # down
    ("p8.18", 65),  # left
    ("p8.17", 27),  # in
)


class Direction(enum.IntEnum):
    """Joystick directions, valued by their GPIO number."""

    UP = 26
    DOWN = 46
    RIGHT = 47
    LEFT = 65
    IN = 27


class Joystick:
    """Polls the joystick: up and down change the mode, right shuts down."""

    def __init__(
        self,
        modes: ModeController,
        leds=None,
        on_shutdown: Callable[[], None] | None = None,
        stop_event: threading.Event | None = None,
        gpio_root: str = GPIO_ROOT,
    ) -> None:
        self.modes = modes
        self.leds = leds
        self.stop_event = stop_event if stop_event is not None else threading.Event()
        self.on_shutdown = on_shutdown if on_shutdown is not None else self.stop_event.set
        self.gpio_root = Path(gpio_root)
        self.debounce_ms = DEBOUNCE_MS
        self._thread: threading.Thread | None = None

    def init(self) -> None:
        """Configure the joystick pins as GPIO inputs."""
        for header_pin, _ in _PIN_SETUP:
            run_command(f"config-pin {header_pin} gpio")
        for _, gpio in _PIN_SETUP:
            run_command(f"echo in > {self.gpio_root / f'gpio{gpio}' / 'direction'}")

    def is_pressed(self, direction: Direction | int) -> bool:
        """Return True while the given direction is held (the line reads 0)."""
        gpio = int(Direction(direction))
        return read_int(self.gpio_root / f"gpio{gpio}" / "value") == 0

    def _change_mode(self, delta: int) -> None:
        self.modes.step(delta)
        if self.leds is not None:
            self.leds.blink()
        sleep_ms(self.debounce_ms)

    def poll(self) -> Direction | None:
        """Check the joystick once, act on a press and return the direction handled."""
        if self.is_pressed(Direction.UP):
            print("Joystick UP!")
            self._change_mode(1)
            return Direction.UP
        if self.is_pressed(Direction.DOWN):
            print("Joystick DOWN!")
            self._change_mode(-1)
            return Direction.DOWN
        if self.is_pressed(Direction.RIGHT):
            self.on_shutdown()
            return Direction.RIGHT
        return None

    def run(self) -> None:
        """Poll until the stop event is set or a shutdown is requested."""
        while not self.stop_event.is_set():
            if self.poll() is Direction.RIGHT:
                break
            self.stop_event.wait(POLL_INTERVAL_S)

    def start(self) -> None:
        self._thread = threading.Thread(target=self.run, name="joystick", daemon=True)
        self._thread.start()

    def wait(self) -> None:
        if self._thread is not None:
            self._thread.join()