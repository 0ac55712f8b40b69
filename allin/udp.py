"""UDP command server for querying and controlling the room monitor."""

from __future__ import annotations

import datetime
import socket
import threading
from typing import Callable

from .matrix import mode_index

PORT = 12345
BUFFER_MAX_SIZE = 1000
UPTIME_PATH = "/proc/uptime"
RECV_TIMEOUT_S = 0.2

UNKNOWN_REPLY = "Unknown command. Type 'help' for command list.\n"

_HELP_LINES = (
    "BBG_ALLIN Accepted command examples:\n",
    "status          -- Get current status.\n",
    "time            -- Get current time.\n",
    "peoplecount     -- Get the number of people in the room.\n",
    "temperature     -- Get the temperature of the room.\n",
    "ppl             -- Go to peoplecount mode.\n",
    "temp            -- Go to temperature mode.\n",
    "smile           -- Go to smile mode.\n",
    "volume increase -- Increase the volume by 5.\n",
    "volume decrease -- Decrease the volume by 5.\n",
    "shutdown        -- Cause the server program to end.\n",
    "<enter>         -- repeat last command.\n\n",
)


def help_text() -> str:
    """Return the reply listing the accepted commands."""
    return "".join(_HELP_LINES)


def format_time_reply(hour: int, minute: int) -> str:
    """Return the reply to the time command."""
    if hour < 10:
        if minute < 10:
            text = f"0{hour} : 0{minute}"
        else:
            text = f"0{hour} : {minute}"
    elif minute < 10:
        # The zero pad lands after the hour here, as the display protocol has it.
        text = f"{hour}0 : {minute}"
    else:
        text = f"{hour} : {minute}"
    return f"BBG_ALLIN current time: {text}\n"


def read_uptime(path: str = UPTIME_PATH) -> float:
    """Return the system uptime in seconds."""
    with open(path, "r", encoding="ascii") as handle:
        return float(handle.read().split()[0])


class CommandServer:
    """Answers text commands received as UDP datagrams.

    traffic provides .count, temperature provides .temperature, modes is a
    ModeController and mixer provides .volume and .set_volume().
    """

    def __init__(
        self,
        traffic,
        temperature,
        modes,
        mixer,
        on_shutdown: Callable[[], None] | None = None,
        stop_event: threading.Event | None = None,
        port: int = PORT,
    ) -> None:
        self.traffic = traffic
        self.temperature = temperature
        self.modes = modes
        self.mixer = mixer
        self.stop_event = stop_event if stop_event is not None else threading.Event()
        self.on_shutdown = on_shutdown if on_shutdown is not None else self.stop_event.set
        self.uptime_path = UPTIME_PATH
        self.now: Callable[[], datetime.datetime] = datetime.datetime.now
        self.shutdown_requested = False
        self._last_command = ""
        self._thread: threading.Thread | None = None
        self._commands: dict[str, Callable[[], str]] = {
            "help\n": help_text,
            "?\n": help_text,
            "status\n": self._status,
            "time\n": self._time,
            "peoplecount\n": self._people_count,
            "temperature\n": self._temperature,
            "ppl\n": self._ppl,
            "temp\n": self._temp,
            "smile\n": self._smile,
            "volume increase\n": self._volume_increase,
            "volume decrease\n": self._volume_decrease,
            "shutdown\n": self._shutdown,
        }
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            self._sock.bind(("", port))
        except OSError:
            self._sock.close()
            raise
        self._sock.settimeout(RECV_TIMEOUT_S)
        self.port = self._sock.getsockname()[1]

    def handle(self, packet: bytes | str) -> list[str]:
        """Process one received packet; a bare newline repeats the last command."""
        text = packet.decode("utf-8", errors="replace") if isinstance(packet, bytes) else packet
        if text == "\n":
            text = self._last_command
        else:
            self._last_command = text
        return self.dispatch(text)

    def dispatch(self, command: str) -> list[str]:
        """Run one command and return the replies to send, in order."""
        action = self._commands.get(command)
        if action is None:
            return [UNKNOWN_REPLY, help_text()]
        return [action()]

    def _hhmm(self) -> tuple[int, int]:
        now = self.now()
        return now.hour, now.minute

    def _status(self) -> str:
        hour, minute = self._hhmm()
        return (
            f"BBG_ALLIN status uptime={read_uptime(self.uptime_path):f}, "
            f"time={hour * 100 + minute}, mode={mode_index(self.modes.mode)}, "
            f"ppl={self.traffic.count}, volume={self.mixer.volume}, "
            f"temp={self.temperature.temperature:f}"
        )

    def _time(self) -> str:
        return format_time_reply(*self._hhmm())

    def _people_count(self) -> str:
        return f"BBG_ALLIN people count: {self.traffic.count}\n"

    def _temperature(self) -> str:
        return f"BBG_ALLIN temperature: {self.temperature.temperature:.2f}°C\n"

    def _ppl(self) -> str:
        self.modes.set_people_mode()
        return "BBG_ALLIN Mode: People count mode\n"

    def _temp(self) -> str:
        self.modes.set_temp_mode()
        return "BBG_ALLIN Mode: Temperature mode\n"

    def _smile(self) -> str:
        self.modes.set_smile_mode()
        return "BBG_ALLIN Mode: Smile mode\n"

    def _change_volume(self, delta: int) -> int:
        try:
            self.mixer.set_volume(self.mixer.volume + delta)
        except ValueError as error:
            print(f"ERROR: {error}")
        print(f"Current volume is {self.mixer.volume}")
        return self.mixer.volume

    def _volume_increase(self) -> str:
        volume = self._change_volume(5)
        return f"BBG_ALLIN: volume increases by 5, now is {volume}\n"

    def _volume_decrease(self) -> str:
        volume = self._change_volume(-5)
        return f"BBG_ALLIN: volume decreases by 5, now is{volume}\n"

    def _shutdown(self) -> str:
        self.shutdown_requested = True
        return "BBG_ALLIN Program terminating.\n"

    def run(self) -> None:
        """Serve commands until the stop event is set or a shutdown is requested."""
        while not self.stop_event.is_set():
            try:
                data, address = self._sock.recvfrom(BUFFER_MAX_SIZE - 1)
            except TimeoutError:
                continue
            except OSError:
                break
            if not data:
                continue
            for reply in self.handle(data):
                self._sock.sendto(reply.encode("utf-8"), address)
            if self.shutdown_requested:
                self.on_shutdown()
                break

    def start(self) -> None:
        self._thread = threading.Thread(target=self.run, name="udp", daemon=True)
        self._thread.start()

    def wait(self) -> None:
        if self._thread is not None:
            self._thread.join()

    def close(self) -> None:
        self._sock.close()