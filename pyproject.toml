[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "satorisynth"
version = "0.1.0"
description = "Karplus-Strong plucked-string synthesizer with a polyphonic voice engine and WAV rendering"
requires-python = ">=3.10"
dependencies = []
keywords = ["synthesizer", "karplus-strong", "plucked string", "audio", "wav", "dsp"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Sound/Audio :: Sound Synthesis",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
satorisynth = "satorisynth.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["satorisynth"]

[tool.pytest.ini_options]
addopts = "-ra"
