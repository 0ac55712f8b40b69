"""NeoPixel strip driven through PRU0's data memory."""

from __future__ import annotations

import enum
import mmap
import os
import threading
from typing import Callable, Iterator, MutableSequence

from .sensors import get_neopixel_delay
from .utils import sleep_ms

PRU_ADDR = 0x4A300000
PRU_LEN = 0x80000
PRU0_DRAM = 0x00000
PRU1_DRAM = 0x02000
PRU_SHAREDMEM = 0x10000
PRU_MEM_RESERVED = 0x200

STR_LEN = 8

OFF_LED = 0x00000000
GREEN = 0x0F000000
RED = 0x000F0000
BLUE = 0x00000F00
WHITE = 0x0000000F
YELLOW = 0x0F0F0000
PURPLE = 0x000F0F00
TEAL = 0x0F000F00

GREEN_BRIGHT = 0xFF000000
RED_BRIGHT = 0x00FF0000
BLUE_BRIGHT = 0x0000FF00
WHITE_BRIGHT = 0xFFFFFF00

FLASH_MS = 800


class PixelMode(enum.IntEnum):
    """What the strip shows."""

    SWEEP = 0
    TEAL = 1
    BLUE = 2
    OFF = 3


def level_colors(people_count: int) -> tuple[int, int]:
    """Return (colour, bright colour) of the sweep for an occupancy level."""
    if people_count < 4:
        return GREEN, GREEN_BRIGHT
    if people_count < 8:
        return YELLOW, YELLOW
    return RED, RED_BRIGHT


def sweep_frames(color: int, bright: int) -> Iterator[list[tuple[int, int]]]:
    """Yield, step by step, the pixel writes of one forward and back sweep.

    Each step is a list of (index, value) writes applied in order.
    """
    for i in range(STR_LEN - 1):
        writes = [(i, color), (i + 1, bright)]
        if i > 0:
            writes.append((i - 1, OFF_LED))
        yield writes
    for i in range(STR_LEN - 2, -1, -1):
        writes = [(i, color), (i + 1, bright)]
        if i + 2 < STR_LEN:
            writes.append((i + 2, OFF_LED))
        if i == 0:
            writes.append((1, OFF_LED))
        yield writes


class PruMemory:
    """The PRU memory window mapped from a memory device."""

    def __init__(self, path: str = "/dev/mem") -> None:
        self.path = path
        fd = os.open(path, os.O_RDWR | os.O_SYNC)
        try:
            self._map: mmap.mmap | None = mmap.mmap(
                fd,
                PRU_LEN,
                flags=mmap.MAP_SHARED,
                prot=mmap.PROT_READ | mmap.PROT_WRITE,
                offset=PRU_ADDR,
            )
        finally:
            os.close(fd)
        self._views: list[memoryview] = []

    def pru0_pixels(self) -> memoryview:
        """Return PRU0's pixel array as a view of STR_LEN 32-bit words."""
        if self._map is None:
            raise ValueError("PRU memory is closed")
        start = PRU0_DRAM + PRU_MEM_RESERVED
        raw = memoryview(self._map)[start : start + STR_LEN * 4]
        view = raw.cast("I")
        self._views.extend((view, raw))
        return view

    def close(self) -> None:
        if self._map is None:
            return
        for view in self._views:
            view.release()
        self._views.clear()
        self._map.flush()
        self._map.close()
        self._map = None

    def __enter__(self) -> "PruMemory":
        return self

    def __exit__(self, *args) -> None:
        self.close()


class NeoPixelStrip:
    """Animates the strip according to occupancy and entry/exit flashes."""

    def __init__(
        self,
        pixels: MutableSequence[int],
        people_count: Callable[[], int] | None = None,
        delay_source: Callable[[], int] | None = None,
        stop_event: threading.Event | None = None,
    ) -> None:
        if len(pixels) != STR_LEN:
            raise ValueError(f"strip needs {STR_LEN} pixels, got {len(pixels)}")
        self.pixels = pixels
        self.people_count = people_count if people_count is not None else (lambda: 0)
        self.delay_source = delay_source if delay_source is not None else get_neopixel_delay
        self.stop_event = stop_event if stop_event is not None else threading.Event()
        self.color_flag = PixelMode.SWEEP
        self.flash_ms = FLASH_MS
        self._thread: threading.Thread | None = None

    def _fill(self, value: int) -> None:
        for index in range(STR_LEN):
            self.pixels[index] = value

    def set_pixel_color(self, color: PixelMode | int) -> None:
        """Show one frame set: a full sweep, teal, blue, or off."""
        if color == PixelMode.SWEEP:
            shade, bright = level_colors(self.people_count())
            delay = self.delay_source()
            for writes in sweep_frames(shade, bright):
                for index, value in writes:
                    self.pixels[index] = value
                sleep_ms(delay)
        elif color == PixelMode.TEAL:
            self._fill(TEAL)
        elif color == PixelMode.BLUE:
            for index in range(STR_LEN):
                self.pixels[index] = BLUE_BRIGHT if index % 2 == 0 else BLUE
        else:
            self._fill(OFF_LED)

    def clear(self) -> None:
        self._fill(OFF_LED)

    def flash_teal(self) -> None:
        self.color_flag = PixelMode.TEAL

    def flash_blue(self) -> None:
        self.color_flag = PixelMode.BLUE

    def run(self) -> None:
        """Animate until the stop event is set, then switch the strip off."""
        while not self.stop_event.is_set():
            flag = self.color_flag
            if flag == PixelMode.SWEEP:
                self.set_pixel_color(PixelMode.SWEEP)
            elif flag in (PixelMode.TEAL, PixelMode.BLUE):
                self.set_pixel_color(flag)
                sleep_ms(self.flash_ms)
                self.color_flag = PixelMode.SWEEP
            else:
                self.set_pixel_color(PixelMode.OFF)
        self.clear()

    def start(self) -> None:
        self._thread = threading.Thread(target=self.run, name="neopixel", daemon=True)
        self._thread.start()

    def wait(self) -> None:
        if self._thread is not None:
            self._thread.join()