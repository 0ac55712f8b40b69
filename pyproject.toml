[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "allin"
version = "1.0.0"
description = "Room occupancy monitor for a BeagleBone board: counts people, shows status on displays and LEDs, plays sounds and answers UDP commands"
requires-python = ">=3.10"
dependencies = []
keywords = ["beaglebone", "occupancy", "neopixel", "i2c", "gpio", "udp", "sensors"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Home Automation",
    "Topic :: System :: Hardware",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
allin = "allin.controller:main"

[tool.hatch.build.targets.wheel]
packages = ["allin"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
