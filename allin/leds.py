"""On-board user LEDs exposed through sysfs."""

from __future__ import annotations

from pathlib import Path

from .utils import sleep_ms

LEDS_ROOT = "/sys/class/leds"
NUM_LED = 4


class BoardLeds:
    """The board's green user LEDs."""

    def __init__(self, root: str = LEDS_ROOT, count: int = NUM_LED) -> None:
        self.root = Path(root)
        self.count = count

    def _led_dir(self, index: int) -> Path:
        return self.root / f"beaglebone:green:usr{index}"

    def trigger_none(self) -> None:
        """Detach every LED from its kernel trigger."""
        for index in range(self.count):
            (self._led_dir(index) / "trigger").write_text("none")

    def set_all(self, value: int) -> None:
        """Set the brightness of every LED."""
        for index in range(self.count):
            (self._led_dir(index) / "brightness").write_text(f"{int(value)}")

    def blink(self, times: int = 2, gap_ms: int = 50) -> None:
        """Flash all LEDs on and off the given number of times."""
        for _ in range(times):
            self.set_all(1)
            sleep_ms(gap_ms)
            self.set_all(0)
            sleep_ms(gap_ms)

    def init(self) -> None:
        self.trigger_none()
        self.set_all(0)

    def cleanup(self) -> None:
        self.set_all(0)