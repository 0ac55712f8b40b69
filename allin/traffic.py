"""Counts people walking in (motion sensor) and out (photoresistor)."""

from __future__ import annotations

import threading
from typing import Callable

from .sensors import get_light_intensity, get_motion_status

LIGHT_THRESHOLD = 3800
IN_HOLD_S = 5.0
IN_POLL_S = 0.05
OUT_STARTUP_S = 0.05
OUT_HOLD_S = 6.0
OUT_REPEAT_S = 1.0
IDLE_POLL_S = 0.005


class TrafficCounter:
    """Keeps the room's people count and reacts to entries and exits.

    The sounds queued on the mixer are the enter_sound and out_sound
    attributes; either may be left as None to stay silent.
    """

    def __init__(
        self,
        motion: Callable[[], int] | None = None,
        light: Callable[[], int] | None = None,
        mixer=None,
        pixels=None,
        stop_event: threading.Event | None = None,
    ) -> None:
        self.motion = motion if motion is not None else get_motion_status
        self.light = light if light is not None else get_light_intensity
        self.mixer = mixer
        self.pixels = pixels
        self.stop_event = stop_event if stop_event is not None else threading.Event()
        self.enter_sound = None
        self.out_sound = None
        self.count = 0
        self._lock = threading.Lock()
        self._threads: list[threading.Thread] = []

    def _play(self, sound) -> None:
        if self.mixer is not None and sound is not None:
            self.mixer.queue_sound(sound)

    def record_in(self) -> int:
        """Count one person in, play the entry sound, flash teal; return the count."""
        with self._lock:
            self.count += 1
            count = self.count
        self._play(self.enter_sound)
        if self.pixels is not None:
            self.pixels.flash_teal()
        print("Someone in!")
        return count

    def record_out(self) -> bool:
        """Count one person out if anyone is in; return whether the count changed."""
        with self._lock:
            if self.count <= 0:
                return False
            self.count -= 1
        self._play(self.out_sound)
        if self.pixels is not None:
            self.pixels.flash_blue()
        print("Someone out!")
        return True

    def run_in(self) -> None:
        """Watch the motion sensor until the stop event is set."""
        while not self.stop_event.is_set():
            if self.motion() == 1:
                self.record_in()
                self.stop_event.wait(IN_HOLD_S)
                while self.motion() == 1 and not self.stop_event.is_set():
                    self.stop_event.wait(IN_POLL_S)
            else:
                self.stop_event.wait(IDLE_POLL_S)

    def run_out(self) -> None:
        """Watch the photoresistor until the stop event is set."""
        self.stop_event.wait(OUT_STARTUP_S)
        while not self.stop_event.is_set():
            if self.light() <= LIGHT_THRESHOLD:
                if self.record_out():
                    self.stop_event.wait(OUT_HOLD_S)
                self.stop_event.wait(OUT_REPEAT_S)
            else:
                self.stop_event.wait(IDLE_POLL_S)

    def start(self) -> None:
        self._threads = [
            threading.Thread(target=self.run_in, name="traffic-in", daemon=True),
            threading.Thread(target=self.run_out, name="traffic-out", daemon=True),
        ]
        for thread in self._threads:
            thread.start()

    def wait(self) -> None:
        for thread in self._threads:
            thread.join()