"""Room occupancy monitor: sensors, displays, LEDs, sound and a UDP command server."""

__version__ = "1.0.0"