# satorisynth

A plucked-string synthesizer built on the Karplus-Strong algorithm, written in
pure Python with no third-party dependencies. It has a delay-line string model
with dispersion (all-pass) and low-pass loop filters, an 8-voice polyphonic
engine with attack/release envelopes and voice stealing, a body-resonance
filter, a short two-tap room effect, and a 16-bit PCM WAV writer.

## Installation

```
pip install .
```

For running the tests:

```
pip install .[test]
pytest
```

## Command line

`satorisynth` renders a note or a note sequence through the polyphonic engine
and writes the result as a mono WAV file:

```
satorisynth --freq 220 --duration 1.5 --output pluck.wav
```

To play several notes, give `--notes` a comma-separated list of
`frequency[:start[:duration]]` entries, in seconds. Entries that do not parse,
or whose frequency or duration is not positive, are skipped; a negative start
becomes 0:

```
satorisynth --notes 220,330:0.5,440:1.0:2.0 --room 0.4 --output phrase.wav
```

Options take the form `--name value` (defaults in brackets). Values that do not
parse as numbers are ignored and the default is kept; parameter values outside
their range are clamped by the engine.

| Option | Meaning |
| --- | --- |
| `--freq` | frequency of the single note when `--notes` is not given [440] |
| `--notes` | note list, as above |
| `--duration` | note length in seconds, also the default for `--notes` entries [2.0] |
| `--samplerate` | sample rate in Hz [44100] |
| `--decay` | loop energy decay, 0.90–0.999 [0.996] |
| `--brightness` | loop low-pass strength, 0–1 [0.5] |
| `--dispersion` | dispersion amount, 0 disables it [0.12] |
| `--exciteColor` | excitation noise colour, 0–1 [0.6] |
| `--exciteVel` | how strongly velocity shapes the excitation, 0–1 [0.5] |
| `--pickpos` | pick position along the string, 0.05–0.95 [0.5] |
| `--bodyTone` | body filter tilt, 0–1 [0.5] |
| `--bodySize` | body filter size, 0–1 [0.5] |
| `--room` | room effect amount, 0–1 [0.0] |
| `--noise` | `binary` for binary excitation noise, anything else for white [white] |
| `--filter` | `none` turns the loop low-pass off, anything else keeps it [lowpass] |
| `--release` | amplitude release time in seconds, 0.01–5 [0.35] |
| `--seed` | seed stored in the engine's string configuration [0] |
| `--output` | output WAV path [satori_demo.wav] |

After the last note a tail of four times the release time (at least 0.5 s) is
rendered. The output is scaled down only if it would clip. `--help` or `-h`
prints the usage line. The command exits with status 1 if no samples were
produced or the file cannot be written.

Note that each engine voice draws its excitation noise from its own random
seed, so two runs with the same options do not give identical files.

## Library use

Offline rendering, each note on its own freshly plucked string, mixed and
normalised only if it would clip:

```python
from satorisynth.karplus import StringConfig
from satorisynth.synth import KarplusStrongSynth, NoteEvent
from satorisynth.wavewriter import WaveFormat, write_wave

synth = KarplusStrongSynth(StringConfig(seed=1234))
samples = synth.render_notes([
    NoteEvent(frequency=220.0, duration=1.0, start_time=0.0),
    NoteEvent(frequency=330.0, duration=1.0, start_time=0.5),
])
write_wave("two_notes.wav", samples, WaveFormat(sample_rate=44100))
```

`KarplusStrongSynth.render_chord(frequencies, duration_seconds)` renders notes
that all start at time 0. A single string can also be driven directly with
`KarplusStrongString.pluck()` or `start()` followed by `process_sample()`.

Block-based rendering with the polyphonic engine, driven by frame-stamped
events:

```python
from satorisynth.engine import StringSynthEngine
from satorisynth.params import ParamId

engine = StringSynthEngine()
engine.set_param(ParamId.ROOM_AMOUNT, 0.3)
engine.note_on(1, 440.0, 1.0, 0.5)   # note id, frequency, velocity, seconds
block = engine.process(512, 2)      # 512 frames of interleaved stereo
```

`note_on` with a negative id picks a fresh one and returns it; `play(frequency,
duration_seconds)` does the same at full velocity. `enqueue_event_at()` queues
an `Event` at an absolute frame. With one channel `process` returns the mono
mix of the room effect's left and right outputs.

Parameter ranges and defaults come from `satorisynth.params`
(`param_info_list()`, `get_param_info()`, `find_param_by_name()`).
`satorisynth.presets.PresetManager` loads and saves `Preset` objects (string
configuration, master gain and release time) as small JSON-style files
(`default.json` and `user.json` in its directory) and raises `PresetError` on
failure. `satorisynth.filters` holds the one-pole low-pass, first-order
all-pass and filter chain used by the string model.

## What it does not do

The package renders audio to lists of samples and WAV files only. It does not
open an audio device or play sound in real time, and it has no graphical
interface or computer-keyboard input: the engine's `process()` output has to be
sent somewhere by the caller.