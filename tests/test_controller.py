from concurrent.futures import ThreadPoolExecutor

from allin.controller import Program, farewell_text
from allin.matrix import ShowMode


class _Recorder:
    def __init__(self, log, name, method):
        self._log = log
        self._name = name
        setattr(self, method, self._record)

    def _record(self):
        self._log.append(self._name)


class _Failing:
    def cleanup(self):
        raise OSError("device gone")


def _install_fakes(program, log):
    program.server = _Recorder(log, "server", "close")
    program.matrix = _Recorder(log, "matrix", "cleanup")
    program.mixer = _Recorder(log, "mixer", "cleanup")
    program.segment = _Recorder(log, "segment", "cleanup")
    program.clock = _Recorder(log, "clock", "cleanup")
    program.strip = _Recorder(log, "strip", "clear")
    program.leds = _Recorder(log, "leds", "cleanup")


def test_farewell_text_lines():
    text = farewell_text()
    assert text.startswith("Cleaning up...54321\nDone!\n")
    assert "Thank you!\n" in text
    assert text.endswith("\n")


def test_new_program_is_not_stopped():
    program = Program()
    assert program.stopped is False
    assert program.stop_event.is_set() is False
    assert program.traffic.stop_event is program.stop_event
    assert program.temperature.stop_event is program.stop_event


def test_stop_cleans_up_in_order(capsys):
    program = Program()
    log = []
    _install_fakes(program, log)
    assert program.stop() is True
    assert log == ["server", "matrix", "mixer", "segment", "clock", "strip", "leds"]
    assert program.stop_event.is_set()
    assert farewell_text() in capsys.readouterr().out


def test_stop_is_idempotent():
    program = Program()
    log = []
    _install_fakes(program, log)
    assert program.stop() is True
    assert program.stop() is False
    assert len(log) == 7
    assert program.stopped is True


def test_stop_without_components_only_signals():
    program = Program()
    assert program.stop() is True
    assert program.stop_event.is_set()


def test_stop_continues_after_failing_cleanup(capsys):
    program = Program()
    log = []
    _install_fakes(program, log)
    program.matrix = _Failing()
    program.stop()
    assert log == ["server", "mixer", "segment", "clock", "strip", "leds"]
    assert "device gone" in capsys.readouterr().err


def test_stop_from_many_threads_runs_once():
    program = Program()
    log = []
    _install_fakes(program, log)
    with ThreadPoolExecutor(max_workers=5) as pool:
        futures = [pool.submit(program.stop) for _ in range(5)]
        results = [future.result() for future in futures]
    assert sorted(results) == [False] * 4 + [True]
    assert log.count("server") == 1


def test_display_number_follows_mode():
    program = Program()
    program.traffic.count = 7
    program.temperature.temperature = 21.5
    assert program._display_number() == 7
    program.modes.set_mode(ShowMode.TEMP)
    assert program._display_number() == 21.5
    program.modes.set_mode(ShowMode.SMILE)
    assert program._display_number() is None


def test_modes_read_live_counts(capsys):
    program = Program()
    program.traffic.record_in()
    program.traffic.record_in()
    program.modes.set_people_mode()
    assert "2 people" in capsys.readouterr().out
    assert program.modes.mode is ShowMode.PEOPLE