"""Shell, sysfs and I2C helpers shared by the hardware modules."""

from __future__ import annotations

import fcntl
import os
import re
import subprocess
import sys
import time

I2C_SLAVE = 0x0703

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def run_command_status(command: str) -> int:
    """Run a shell command, discard its output and return its exit code."""
    result = subprocess.run(
        command,
        shell=True,
        stdout=subprocess.PIPE,
        check=False,
    )
    return result.returncode


def run_command(command: str) -> int:
    """Run a shell command and report a non-zero exit code on stderr."""
    code = run_command_status(command)
    if code != 0:
        print("Unable to execute command:", file=sys.stderr)
        print(f" command: {command}", file=sys.stderr)
        print(f" exit code: {code}", file=sys.stderr)
    return code


def _parse_int(text: str) -> int:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def read_int(path: str | os.PathLike) -> int:
    """Read the first line of a file and return its leading integer (0 if none)."""
    with open(path, "r", encoding="ascii", errors="replace") as handle:
        line = handle.readline()
    return _parse_int(line)


def write_int(path: str | os.PathLike, value: int) -> None:
    """Write an integer as decimal text to a file."""
    with open(path, "w", encoding="ascii") as handle:
        handle.write(f"{int(value)}")


def sleep_ms(ms: float) -> None:
    """Sleep for the given number of milliseconds."""
    if ms > 0:
        time.sleep(ms / 1000.0)


def wait_short() -> None:
    """Pause for a few hundred nanoseconds between bit-banged clock edges."""
    time.sleep(400e-9)


class I2CDevice:
    """An I2C bus opened and bound to one slave address."""

    def __init__(self, bus: str | os.PathLike, address: int) -> None:
        self.bus = os.fspath(bus)
        self.address = address
        self._fd: int | None = os.open(self.bus, os.O_RDWR)
        try:
            fcntl.ioctl(self._fd, I2C_SLAVE, address)
        except OSError:
            os.close(self._fd)
            self._fd = None
            raise

    def _require_fd(self) -> int:
        if self._fd is None:
            raise ValueError("I2C device is closed")
        return self._fd

    def write(self, data: bytes) -> None:
        """Write raw bytes; raise OSError on a short write."""
        data = bytes(data)
        written = os.write(self._require_fd(), data)
        if written != len(data):
            raise OSError(f"I2C: short write ({written} of {len(data)} bytes)")

    def write_reg(self, reg: int, value: int) -> None:
        """Write one byte value into a device register."""
        self.write(bytes([reg & 0xFF, value & 0xFF]))

    def read(self, count: int) -> bytes:
        """Read up to count bytes from the device."""
        return os.read(self._require_fd(), count)

    def close(self) -> None:
        if self._fd is not None:
            os.close(self._fd)
            self._fd = None

    def __enter__(self) -> "I2CDevice":
        return self

    def __exit__(self, *args) -> None:
        self.close()