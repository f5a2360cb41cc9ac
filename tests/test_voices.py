import pytest

from satorisynth.karplus import StringConfig
from satorisynth.params import ParamId, get_param_info
from satorisynth.voices import (
    AmpEnvelope,
    BodyFilter,
    RoomProcessor,
    VoiceManager,
    apply_expressive_mapping,
)


def test_default_body_filter_passes_signal_unchanged():
    body = BodyFilter()
    for value in (0.5, -0.25, 1.0, 0.0):
        assert body.process(value) == pytest.approx(value)


def test_neutral_tone_passes_signal_unchanged():
    body = BodyFilter()
    body.set_sample_rate(48000.0)
    body.set_params(0.5, 0.9)
    for value in (0.3, -0.7, 0.1):
        assert body.process(value) == pytest.approx(value)


def _dc_response(tone):
    body = BodyFilter()
    body.set_sample_rate(44100.0)
    body.set_params(tone, 0.5)
    out = 0.0
    for _ in range(5000):
        out = body.process(1.0)
    return out


def test_body_tone_tilts_low_band():
    assert _dc_response(1.0) < 1.0
    assert _dc_response(0.0) > 1.0


def test_room_without_amount_is_dry():
    room = RoomProcessor()
    room.set_sample_rate(44100.0)
    assert room.process(0.4) == (0.4, 0.4)


def test_room_without_sample_rate_is_dry():
    room = RoomProcessor()
    room.set_amount(1.0)
    assert room.process(-0.3) == (-0.3, -0.3)


def test_room_produces_delayed_stereo_taps():
    room = RoomProcessor()
    room.set_sample_rate(1000.0)
    room.set_amount(1.0)
    room.process(1.0)
    outputs = [room.process(0.0) for _ in range(20)]
    assert any(left != 0.0 for left, _ in outputs)
    assert any(left != right for left, right in outputs)


def test_room_reset_clears_history():
    room = RoomProcessor()
    room.set_sample_rate(1000.0)
    room.set_amount(1.0)
    room.process(1.0)
    room.reset()
    assert all(room.process(0.0) == (0.0, 0.0) for _ in range(10))


def _envelope(attack, release, rate=1000.0):
    env = AmpEnvelope()
    env.set_sample_rate(rate)
    env.set_attack_seconds(attack)
    env.set_release_seconds(release)
    return env


def test_attack_rises_to_target_then_sustains():
    env = _envelope(0.004, 0.1)
    env.note_on(0.8)
    attack = [env.next() for _ in range(4)]
    assert attack == sorted(attack)
    assert attack[-1] == pytest.approx(0.8)
    assert env.next() == pytest.approx(0.8)
    assert not env.is_idle


def test_zero_attack_jumps_to_target():
    env = _envelope(0.0, 0.1)
    env.note_on(0.6)
    assert env.level == 0.6
    assert env.next() == 0.6


def test_release_decays_to_idle():
    env = _envelope(0.0, 0.05)
    env.note_on(1.0)
    env.note_off()
    assert env.is_releasing
    levels = [env.next() for _ in range(100)]
    assert all(a >= b for a, b in zip(levels, levels[1:]))
    assert env.is_idle
    assert env.level == 0.0


def test_zero_release_stops_immediately():
    env = _envelope(0.0, 0.0)
    env.note_on(1.0)
    env.note_off()
    assert env.is_idle
    assert env.level == 0.0


def test_note_off_when_idle_does_nothing():
    env = _envelope(0.004, 0.1)
    env.note_off()
    assert env.is_idle
    assert not env.is_releasing


def test_expressive_mapping_neutral_point_keeps_config():
    base = StringConfig(brightness=0.4, decay=0.99)
    _, mapped = apply_expressive_mapping(0.5, 440.0, base)
    assert mapped.brightness == pytest.approx(0.4)
    assert mapped.decay == pytest.approx(0.99)


def test_expressive_mapping_velocity_raises_amp_and_brightness():
    base = StringConfig()
    soft_amp, soft = apply_expressive_mapping(0.1, 440.0, base)
    hard_amp, hard = apply_expressive_mapping(0.9, 440.0, base)
    assert hard_amp > soft_amp
    assert hard.brightness > soft.brightness
    assert hard.decay < soft.decay


def test_expressive_mapping_stays_in_range_and_copies():
    base = StringConfig(brightness=1.0, decay=0.999)
    _, mapped = apply_expressive_mapping(1.0, 8000.0, base)
    brightness = get_param_info(ParamId.BRIGHTNESS)
    decay = get_param_info(ParamId.DECAY)
    assert brightness.min_value <= mapped.brightness <= brightness.max_value
    assert decay.min_value <= mapped.decay <= decay.max_value
    assert base.brightness == 1.0
    assert base.decay == 0.999


def _manager(max_voices=4):
    return VoiceManager(max_voices, 1000.0, 0.0, 0.05)


def test_render_without_voices_is_silent():
    manager = _manager()
    assert manager.render_frame(1.0) == 0.0
    assert len(manager) == 0


def test_note_on_allocates_and_reuses_by_id():
    manager = _manager()
    config = StringConfig(sample_rate=1000.0)
    manager.note_on(1, 100.0, 1.0, config)
    manager.note_on(1, 150.0, 1.0, config)
    assert len(manager) == 1
    assert manager.voices[0].frequency == 150.0


def test_invalid_frequency_is_ignored():
    manager = _manager()
    manager.note_on(1, 0.0, 1.0, StringConfig())
    assert len(manager) == 0


def test_pool_is_bounded():
    manager = _manager(max_voices=2)
    for note_id in range(1, 6):
        manager.note_on(note_id, 100.0 + note_id, 1.0, StringConfig())
    assert len(manager) == 2


def test_stealing_prefers_releasing_voice():
    manager = _manager(max_voices=2)
    manager.note_on(1, 100.0, 1.0, StringConfig())
    manager.note_on(2, 120.0, 1.0, StringConfig())
    manager.note_off(1)
    manager.note_on(3, 140.0, 1.0, StringConfig())
    assert sorted(voice.note_id for voice in manager.voices) == [2, 3]


def test_stealing_falls_back_to_oldest_voice():
    manager = _manager(max_voices=2)
    manager.note_on(1, 100.0, 1.0, StringConfig())
    manager.note_on(2, 120.0, 1.0, StringConfig())
    manager.note_on(3, 140.0, 1.0, StringConfig())
    assert sorted(voice.note_id for voice in manager.voices) == [2, 3]


def test_sounding_voice_produces_output_and_master_gain_scales():
    manager = _manager()
    manager.note_on(1, 100.0, 1.0, StringConfig())
    frames = [manager.render_frame(1.0) for _ in range(50)]
    assert any(frame != 0.0 for frame in frames)
    assert all(manager.render_frame(0.0) == 0.0 for _ in range(10))


def test_released_voices_are_removed():
    manager = _manager()
    manager.note_on(1, 100.0, 1.0, StringConfig())
    for _ in range(20):
        manager.render_frame(1.0)
    manager.note_off(1)
    for _ in range(200):
        manager.render_frame(1.0)
    assert len(manager) == 0