"""Mixes queued sound bites into a mono 16-bit PCM stream."""

from __future__ import annotations

import sys
import threading
from array import array
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

SAMPLE_RATE = 44100
NUM_CHANNELS = 1
SAMPLE_SIZE = 2  # bytes per mono sample
PCM_DATA_OFFSET = 44

MAX_SOUND_BITES = 30
DEFAULT_VOLUME = 100
MAX_VOLUME = 150
# About 0.05 seconds of audio per block.
DEFAULT_BUFFER_SIZE = SAMPLE_RATE // 20

SHRT_MAX = 32767
SHRT_MIN = -32768

ENTER_MUSIC = "wave-files/enter.wav"
OUT_MUSIC = "wave-files/out.wav"


@dataclass(eq=False)
class WaveData:
    """PCM samples of one wave file held in memory."""

    samples: array

    @property
    def num_samples(self) -> int:
        return len(self.samples)


def read_wave(path) -> WaveData:
    """Read the PCM data that follows the 44-byte header of a mono wave file."""
    data = Path(path).read_bytes()
    if len(data) < PCM_DATA_OFFSET:
        raise ValueError(f"{path}: file is shorter than a wave header")
    pcm = data[PCM_DATA_OFFSET:]
    usable = len(pcm) // SAMPLE_SIZE * SAMPLE_SIZE
    samples = array("h")
    samples.frombytes(pcm[:usable])
    if sys.byteorder == "big":
        samples.byteswap()
    return WaveData(samples)


def _to_le_bytes(block: array) -> bytes:
    if sys.byteorder == "big":
        block = array("h", block)
        block.byteswap()
    return block.tobytes()


@dataclass
class _Slot:
    sound: WaveData
    location: int = 0


class AudioMixer:
    """Plays queued sounds by mixing them into blocks written to a sink.

    The sink is a binary stream taking little-endian 16-bit mono PCM at
    SAMPLE_RATE; with no sink the mixer still consumes sounds in real time.
    volume_control, if given, is called with each accepted volume.
    """

    def __init__(
        self,
        sink=None,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        volume_control: Callable[[int], None] | None = None,
        stop_event: threading.Event | None = None,
    ) -> None:
        if buffer_size <= 0:
            raise ValueError("buffer size must be positive")
        self.sink = sink
        self.buffer_size = buffer_size
        self.volume_control = volume_control
        self.stop_event = stop_event if stop_event is not None else threading.Event()
        self.volume = 0
        self._slots: list[_Slot | None] = [None] * MAX_SOUND_BITES
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self.set_volume(DEFAULT_VOLUME)

    def queue_sound(self, sound: WaveData) -> bool:
        """Queue a sound to play as soon as possible; False if every slot is busy."""
        with self._lock:
            for index, slot in enumerate(self._slots):
                if slot is None:
                    self._slots[index] = _Slot(sound)
                    return True
        print("ERROR: No free slots to queue sound.", file=sys.stderr)
        return False

    def fill_buffer(self, size: int) -> array:
        """Mix the next size samples of every queued sound, clamping to 16 bits."""
        mixed = [0] * size
        with self._lock:
            for index, slot in enumerate(self._slots):
                if slot is None:
                    continue
                chunk = slot.sound.samples[slot.location : slot.location + size]
                for pos, sample in enumerate(chunk):
                    mixed[pos] = max(SHRT_MIN, min(SHRT_MAX, mixed[pos] + sample))
                slot.location += len(chunk)
                if slot.location >= slot.sound.num_samples:
                    self._slots[index] = None
        return array("h", mixed)

    def set_volume(self, value: int) -> int:
        """Set the volume (0 to MAX_VOLUME); raise ValueError outside that range."""
        if not 0 <= value <= MAX_VOLUME:
            raise ValueError(f"Volume must be between 0 and {MAX_VOLUME}.")
        self.volume = value
        if self.volume_control is not None:
            self.volume_control(value)
        return self.volume

    def run(self) -> None:
        """Produce and output audio blocks until the stop event is set."""
        while not self.stop_event.is_set():
            block = self.fill_buffer(self.buffer_size)
            if self.sink is None:
                self.stop_event.wait(len(block) / SAMPLE_RATE)
                continue
            data = _to_le_bytes(block)
            written = self.sink.write(data)
            if isinstance(written, int) and 0 < written < len(data):
                print(
                    f"Short write (expected {len(block)}, "
                    f"wrote {written // SAMPLE_SIZE})"
                )

    def start(self) -> None:
        self._thread = threading.Thread(target=self.run, name="audio", daemon=True)
        self._thread.start()

    def cleanup(self) -> None:
        """Wait for playback to end, then flush and close the sink."""
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        if self.sink is not None:
            flush = getattr(self.sink, "flush", None)
            if flush is not None:
                flush()
            close = getattr(self.sink, "close", None)
            if close is not None:
                close()