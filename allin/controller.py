"""Starts every part of the room monitor and shuts them all down again."""

from __future__ import annotations

import shutil
import subprocess
import sys
import threading

from .clock_display import ClockDisplay
from .joystick import Joystick
from .leds import BoardLeds
from .matrix import I2C_MATRIX_ADDRESS, LedMatrix, ModeController, ShowMode
from .mixer import ENTER_MUSIC, NUM_CHANNELS, OUT_MUSIC, SAMPLE_RATE, AudioMixer, read_wave
from .neopixel import NeoPixelStrip, PruMemory
from .segment import I2C_DEVICE_ADDRESS, I2CDRV_LINUX_BUS1, SegmentDisplay
from .sensors import TemperatureSensor, motion_sensor_init
from .traffic import TrafficCounter
from .udp import CommandServer
from .utils import I2CDevice, run_command, run_command_status

GREETING = "Hello ALLIN Project!"

_FAREWELL_LINES = (
    "Cleaning up...54321",
    "Done!",
    "Thank you!",
    "By: ALLIN!",
)


def farewell_text() -> str:
    """Return the text printed when the program shuts down."""
    return "".join(f"{line}\n" for line in _FAREWELL_LINES)


def _set_mixer_volume(volume: int) -> None:
    run_command_status(f"amixer -q sset PCM {volume}%")


def _open_audio_sink():
    """Start a raw PCM player and return its input stream, or None if unavailable."""
    player = shutil.which("aplay")
    if player is None:
        return None
    process = subprocess.Popen(
        [
            player,
            "-q",
            "-t",
            "raw",
            "-f",
            "S16_LE",
            "-c",
            str(NUM_CHANNELS),
            "-r",
            str(SAMPLE_RATE),
        ],
        stdin=subprocess.PIPE,
    )
    return process.stdin


class Program:
    """Owns the shared stop event and every component of the monitor."""

    def __init__(self) -> None:
        self.stop_event = threading.Event()
        self.traffic = TrafficCounter(stop_event=self.stop_event)
        self.temperature = TemperatureSensor(stop_event=self.stop_event)
        self.modes = ModeController(
            people_count=lambda: self.traffic.count,
            temperature=lambda: self.temperature.temperature,
        )
        self.mixer = None
        self.server = None
        self.joystick = None
        self.leds = None
        self.matrix = None
        self.segment = None
        self.clock = None
        self.strip = None
        self.pru = None
        self._stop_lock = threading.Lock()
        self._stopped = False

    @property
    def stopped(self) -> bool:
        return self._stopped

    def _display_number(self) -> float | None:
        """Number for the two-digit display in the current mode (None blanks it)."""
        mode = self.modes.mode
        if mode is ShowMode.PEOPLE:
            return self.traffic.count
        if mode is ShowMode.TEMP:
            return self.temperature.temperature
        return None

    def start(self) -> None:
        """Start every component and block until they have all finished."""
        self.pru = PruMemory()
        pixels = self.pru.pru0_pixels()

        self.server = CommandServer(
            self.traffic,
            self.temperature,
            self.modes,
            None,
            on_shutdown=self.stop,
            stop_event=self.stop_event,
        )
        self.server.start()
        self.traffic.start()

        self.leds = BoardLeds()
        self.joystick = Joystick(
            self.modes,
            leds=self.leds,
            on_shutdown=self.stop,
            stop_event=self.stop_event,
        )
        self.joystick.init()
        self.joystick.start()

        self.mixer = AudioMixer(
            sink=_open_audio_sink(),
            volume_control=_set_mixer_volume,
            stop_event=self.stop_event,
        )
        self.server.mixer = self.mixer
        self.traffic.mixer = self.mixer
        self.traffic.enter_sound = read_wave(ENTER_MUSIC)
        self.traffic.out_sound = read_wave(OUT_MUSIC)
        self.mixer.start()

        motion_sensor_init()

        self.segment = SegmentDisplay(
            I2CDevice(I2CDRV_LINUX_BUS1, I2C_DEVICE_ADDRESS),
            number_source=self._display_number,
            stop_event=self.stop_event,
        )
        self.segment.init()
        self.segment.start()

        run_command("config-pin P9_18 i2c")
        run_command("config-pin P9_17 i2c")
        self.matrix = LedMatrix(
            I2CDevice(I2CDRV_LINUX_BUS1, I2C_MATRIX_ADDRESS),
            self.modes,
            stop_event=self.stop_event,
        )
        self.matrix.start()

        self.clock = ClockDisplay(stop_event=self.stop_event)
        self.clock.init()
        self.clock.start()

        run_command("config-pin P8.11 pruout")
        self.strip = NeoPixelStrip(
            pixels,
            people_count=lambda: self.traffic.count,
            stop_event=self.stop_event,
        )
        self.traffic.pixels = self.strip
        self.strip.start()

        self.temperature.start()
        self.leds.init()

        try:
            for component in (
                self.server,
                self.traffic,
                self.joystick,
                self.matrix,
                self.segment,
                self.clock,
                self.temperature,
                self.strip,
            ):
                component.wait()
        except KeyboardInterrupt:
            self.stop()
            self.strip.wait()
        finally:
            self.pru.close()
            self.pru = None

    def stop(self) -> bool:
        """Signal every thread to end and release the hardware; False if already stopped."""
        with self._stop_lock:
            if self._stopped:
                return False
            self._stopped = True
        self.stop_event.set()
        print(farewell_text(), end="")

        steps = (
            (self.server, "close"),
            (self.matrix, "cleanup"),
            (self.mixer, "cleanup"),
            (self.segment, "cleanup"),
            (self.clock, "cleanup"),
            (self.strip, "clear"),
            (self.leds, "cleanup"),
        )
        for component, method in steps:
            if component is None:
                continue
            try:
                getattr(component, method)()
            except (OSError, ValueError) as error:
                print(f"Cleanup of {type(component).__name__} failed: {error}", file=sys.stderr)
        return True


def main(argv=None) -> int:
    """Run the room monitor until it is shut down."""
    print(GREETING)
    program = Program()
    try:
        program.start()
    except KeyboardInterrupt:
        program.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())