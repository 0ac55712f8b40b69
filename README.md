# allin

A room occupancy monitor for a BeagleBone board with a Zen cape. It counts
people walking in (motion sensor) and out (photoresistor) and shows the result
in several ways:

- an 8x8 LED matrix showing the current mode (people count, temperature or smile),
- a two-digit 14-segment display showing the people count or the temperature
  (clamped to 0..99), blank in smile mode,
- a 4-digit clock display showing the local time, refreshed once a minute,
- a NeoPixel strip whose sweep colour follows how full the room is
  (green below 4 people, yellow below 8, red from 8), flashing teal when
  someone enters and blue when someone leaves; the potentiometer sets the
  sweep speed,
- a sound played on entry and on exit.

The joystick steps the display mode up or down (blinking the board LEDs) or,
pushed right, shuts the program down. The temperature comes from an I2C
sensor at address `0x19` on `/dev/i2c-2`.

## Installing

```
pip install .
```

## Running

On the board, with the cape wired up:

```
allin
```

The program needs write access to `/dev/mem`, the GPIO and LED files under
`/sys/class`, and the I2C buses, so it is normally run as root. It reads the
entry and exit sounds from `wave-files/enter.wav` and `wave-files/out.wav`
relative to the working directory (mono, 16-bit, 44.1 kHz, 44-byte header).

Sound is played by piping raw PCM into `aplay` when it is on the `PATH`;
without it the program runs silently. Volume changes are passed to
`amixer` (the `PCM` control).

The program runs until it is shut down from the joystick, with the `shutdown`
command over UDP, or with Ctrl-C.

## UDP commands

The program listens on UDP port 12345. Send one command per datagram, ending
in a newline; a datagram holding just a newline repeats the last command.
Replies are sent back to the sender.

| Command           | Effect                                      |
|-------------------|---------------------------------------------|
| `help` or `?`     | List the commands                           |
| `status`          | Uptime, time, mode, people count, volume, temperature |
| `time`            | Current time                                |
| `peoplecount`     | Number of people in the room                |
| `temperature`     | Room temperature                            |
| `ppl`             | Switch to people-count mode                 |
| `temp`            | Switch to temperature mode                  |
| `smile`           | Switch to smile mode                        |
| `volume increase` | Raise the volume by 5 (at most 150)         |
| `volume decrease` | Lower the volume by 5 (at least 0)          |
| `shutdown`        | Stop the program                            |

Any other text gets an "Unknown command" reply followed by the help text.

## Using the parts as a library

The hardware pieces are plain classes that take their collaborators and a
`threading.Event` used to stop them, so they can be driven from your own code:

- `allin.utils`: `run_command`, `run_command_status`, `read_int`, `write_int`,
  `sleep_ms`, `wait_short` and `I2CDevice`
- `allin.sensors`: `get_motion_status`, `get_light_intensity`, `get_pot_value`,
  `get_neopixel_delay`, `decode_temperature` and `TemperatureSensor`
- `allin.leds.BoardLeds`
- `allin.matrix`: `ShowMode`, `ModeController` and `LedMatrix`
- `allin.segment.SegmentDisplay` and `split_digits`
- `allin.clock_display.ClockDisplay`, `format_time` and `encode_digit`
- `allin.joystick.Joystick`
- `allin.neopixel`: `NeoPixelStrip`, `PruMemory`, `level_colors`, `sweep_frames`
- `allin.traffic.TrafficCounter`
- `allin.mixer`: `WaveData`, `read_wave` and `AudioMixer`
- `allin.udp`: `CommandServer`, `help_text`, `format_time_reply`
- `allin.controller`: `Program` starts and stops everything; `main` is the
  `allin` command.

For example, mixing sounds without any audio device:

```python
from allin.mixer import AudioMixer, read_wave

mixer = AudioMixer()
mixer.queue_sound(read_wave("wave-files/enter.wav"))
block = mixer.fill_buffer(2205)  # array('h') of mixed, clamped samples
```

Or stepping through the display modes:

```python
from allin.matrix import ModeController, ShowMode

modes = ModeController(people_count=lambda: 3)
modes.set_mode(ShowMode.SMILE)
modes.step(1)  # moves on to the next mode
```

## What it does not do

`NeoPixelStrip` only writes the pixel colours into PRU0's data memory
(through `PruMemory`). The package does not include the program that runs on
the PRU and sends those colours to the strip; that must already be loaded on
the board for the strip to light up.

## Testing

```
pip install .[test]
pytest
```