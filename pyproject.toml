[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "isasound"
version = "0.1.0"
description = "Software models of classic ISA sound hardware (PC speaker, Tandy, CMS/SAA1099, Sound Blaster DSP) with firmware, UART and joystick helpers"
requires-python = ">=3.10"
keywords = [
    "emulation",
    "sound",
    "pc-speaker",
    "tandy",
    "sn76496",
    "saa1099",
    "cms",
    "sound-blaster",
    "uf2",
    "joystick",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: System :: Emulators",
    "Topic :: Multimedia :: Sound/Audio :: Sound Synthesis",
]
dependencies = []

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["isasound"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
