import struct
import threading

import pytest

from allin.mixer import (
    DEFAULT_VOLUME,
    MAX_SOUND_BITES,
    MAX_VOLUME,
    PCM_DATA_OFFSET,
    SHRT_MAX,
    SHRT_MIN,
    AudioMixer,
    WaveData,
    read_wave,
)
from array import array


def _write_wave(path, samples, extra=b""):
    header = b"\0" * PCM_DATA_OFFSET
    path.write_bytes(header + struct.pack(f"<{len(samples)}h", *samples) + extra)
    return path


def _sound(samples):
    return WaveData(array("h", samples))


def test_read_wave_round_trip(tmp_path):
    samples = [0, 1, -1, 1234, -4321, SHRT_MAX, SHRT_MIN]
    wave = read_wave(_write_wave(tmp_path / "a.wav", samples))
    assert list(wave.samples) == samples
    assert wave.num_samples == len(samples)


def test_read_wave_ignores_trailing_odd_byte(tmp_path):
    samples = [10, 20, 30]
    wave = read_wave(_write_wave(tmp_path / "b.wav", samples, extra=b"\x7f"))
    assert list(wave.samples) == samples


def test_read_wave_rejects_short_file(tmp_path):
    path = tmp_path / "short.wav"
    path.write_bytes(b"RIFF")
    with pytest.raises(ValueError):
        read_wave(path)


def test_read_wave_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_wave(tmp_path / "missing.wav")


def test_default_volume():
    assert AudioMixer().volume == DEFAULT_VOLUME


def test_set_volume_calls_control():
    calls = []
    mixer = AudioMixer(volume_control=calls.append)
    mixer.set_volume(40)
    assert mixer.volume == 40
    assert calls == [DEFAULT_VOLUME, 40]


@pytest.mark.parametrize("value", [-1, MAX_VOLUME + 1])
def test_set_volume_out_of_range(value):
    mixer = AudioMixer()
    with pytest.raises(ValueError):
        mixer.set_volume(value)
    assert mixer.volume == DEFAULT_VOLUME


def test_set_volume_accepts_limits():
    mixer = AudioMixer()
    assert mixer.set_volume(0) == 0
    assert mixer.set_volume(MAX_VOLUME) == MAX_VOLUME


def test_fill_buffer_empty_is_silence():
    mixer = AudioMixer()
    assert list(mixer.fill_buffer(5)) == [0] * 5


def test_fill_buffer_single_sound_then_padding():
    mixer = AudioMixer()
    mixer.queue_sound(_sound([7, -8, 9]))
    assert list(mixer.fill_buffer(5)) == [7, -8, 9, 0, 0]
    assert list(mixer.fill_buffer(5)) == [0] * 5


def test_fill_buffer_continues_where_it_stopped():
    samples = [1, 2, 3, 4, 5]
    mixer = AudioMixer()
    mixer.queue_sound(_sound(samples))
    first = list(mixer.fill_buffer(3))
    second = list(mixer.fill_buffer(3))
    assert first == samples[:3]
    assert second == samples[3:] + [0]
    assert list(mixer.fill_buffer(3)) == [0, 0, 0]


def test_fill_buffer_clamps():
    mixer = AudioMixer()
    mixer.queue_sound(_sound([30000, -30000]))
    mixer.queue_sound(_sound([30000, -30000]))
    assert list(mixer.fill_buffer(2)) == [SHRT_MAX, SHRT_MIN]


def test_same_sound_in_two_slots_is_sum_of_copies():
    sound = _sound([100, 200])
    single = AudioMixer()
    single.queue_sound(sound)
    alone = list(single.fill_buffer(2))
    double = AudioMixer()
    double.queue_sound(sound)
    double.queue_sound(sound)
    assert list(double.fill_buffer(2)) == [2 * v for v in alone]


def test_queue_full():
    mixer = AudioMixer()
    sound = _sound([1])
    results = [mixer.queue_sound(sound) for _ in range(MAX_SOUND_BITES)]
    assert all(results)
    assert mixer.queue_sound(sound) is False
    mixer.fill_buffer(1)
    assert mixer.queue_sound(sound) is True


def test_empty_sound_frees_its_slot():
    mixer = AudioMixer()
    for _ in range(MAX_SOUND_BITES):
        mixer.queue_sound(_sound([]))
    assert list(mixer.fill_buffer(2)) == [0, 0]
    assert mixer.queue_sound(_sound([5])) is True


class _RecordingSink:
    def __init__(self, stop):
        self.stop = stop
        self.chunks = []
        self.closed = False

    def write(self, data):
        self.chunks.append(bytes(data))
        self.stop.set()
        return len(data)

    def close(self):
        self.closed = True


def test_run_writes_little_endian_blocks():
    stop = threading.Event()
    sink = _RecordingSink(stop)
    samples = [1, -2, 300, -400]
    mixer = AudioMixer(sink=sink, buffer_size=4, stop_event=stop)
    mixer.queue_sound(_sound(samples))
    mixer.run()
    assert sink.chunks == [struct.pack("<4h", *samples)]


def test_start_and_cleanup_close_sink():
    stop = threading.Event()
    sink = _RecordingSink(stop)
    mixer = AudioMixer(sink=sink, buffer_size=2, stop_event=stop)
    mixer.start()
    mixer.cleanup()
    assert sink.closed is True
    assert sink.chunks[0] == b"\0\0\0\0"


def test_invalid_buffer_size():
    with pytest.raises(ValueError):
        AudioMixer(buffer_size=0)