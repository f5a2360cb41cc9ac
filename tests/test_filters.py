import pytest

from satorisynth.filters import FilterChain, FirstOrderAllPass, OnePoleLowPass


def test_lowpass_alpha_one_passes_input():
    lp = OnePoleLowPass(1.0)
    assert lp.process(0.3) == pytest.approx(0.3)
    assert lp.process(-0.7) == pytest.approx(-0.7)


def test_lowpass_alpha_is_clamped():
    assert OnePoleLowPass(2.0).alpha == 1.0
    assert OnePoleLowPass(-1.0).alpha == 0.0
    lp = OnePoleLowPass(0.5)
    lp.alpha = 5.0
    assert lp.alpha == 1.0


def test_lowpass_alpha_zero_blocks_everything():
    lp = OnePoleLowPass(0.0)
    assert all(lp.process(1.0) == 0.0 for _ in range(10))


def test_lowpass_converges_to_dc():
    lp = OnePoleLowPass(0.2)
    outputs = [lp.process(1.0) for _ in range(200)]
    assert outputs == sorted(outputs)
    assert outputs[-1] == pytest.approx(1.0, abs=1e-6)


def test_lowpass_reset_matches_fresh_filter():
    lp = OnePoleLowPass(0.3)
    for _ in range(5):
        lp.process(0.9)
    lp.reset()
    fresh = OnePoleLowPass(0.3)
    assert lp.process(0.4) == pytest.approx(fresh.process(0.4))


def test_allpass_coefficient_clamping_keeps_sign():
    assert FirstOrderAllPass(-3.0).coefficient == -1.0
    assert FirstOrderAllPass(2.0).coefficient == 1.0
    assert FirstOrderAllPass(-0.25).coefficient == -0.25


def test_allpass_preserves_impulse_energy():
    ap = FirstOrderAllPass(0.5)
    response = [ap.process(1.0)] + [ap.process(0.0) for _ in range(500)]
    energy = sum(v * v for v in response)
    assert energy == pytest.approx(1.0, abs=1e-9)


def test_allpass_reset_clears_state():
    ap = FirstOrderAllPass(0.4)
    first = ap.process(1.0)
    ap.process(0.5)
    ap.reset()
    assert ap.process(1.0) == pytest.approx(first)


def test_empty_chain_is_identity():
    chain = FilterChain()
    assert len(chain) == 0
    assert chain.process(0.42) == 0.42


def test_chain_applies_filters_in_order():
    chain = FilterChain()
    chain.add(FirstOrderAllPass(0.3))
    chain.add(OnePoleLowPass(0.6))
    ap = FirstOrderAllPass(0.3)
    lp = OnePoleLowPass(0.6)
    for value in (1.0, 0.2, -0.4):
        assert chain.process(value) == pytest.approx(lp.process(ap.process(value)))
    assert len(chain) == 2


def test_chain_reset_and_clear():
    chain = FilterChain()
    chain.add(OnePoleLowPass(0.5))
    first = chain.process(1.0)
    chain.process(1.0)
    chain.reset()
    assert chain.process(1.0) == pytest.approx(first)
    chain.clear()
    assert len(chain) == 0
    assert chain.process(0.8) == 0.8