import pytest

from satorisynth.params import (
    ParamId,
    ParamType,
    find_param_by_name,
    get_param_info,
    param_info_list,
)


def test_list_covers_every_param_once():
    ids = [info.id for info in param_info_list()]
    assert len(ids) == len(set(ids))
    assert set(ids) == set(ParamId)


def test_decay_description():
    info = get_param_info(ParamId.DECAY)
    assert info.name == "decay"
    assert info.min_value == pytest.approx(0.90)
    assert info.max_value == pytest.approx(0.999)
    assert info.default_value == pytest.approx(0.996)


def test_amp_release_default():
    assert get_param_info(ParamId.AMP_RELEASE).default_value == pytest.approx(0.35)


def test_param_types():
    assert get_param_info(ParamId.ENABLE_LOWPASS).type is ParamType.BOOL
    assert get_param_info(ParamId.NOISE_TYPE).type is ParamType.ENUM
    assert get_param_info(ParamId.MASTER_GAIN).type is ParamType.FLOAT


def test_defaults_lie_within_range():
    for info in param_info_list():
        assert info.min_value <= info.default_value <= info.max_value
        assert info.clamp(info.default_value) == info.default_value


def test_find_by_name_ignores_case():
    assert find_param_by_name("AMPRELEASE").id is ParamId.AMP_RELEASE
    assert find_param_by_name("pickposition").id is ParamId.PICK_POSITION
    assert find_param_by_name("dispersionAmount").id is ParamId.DISPERSION_AMOUNT


def test_find_by_unknown_name_returns_none():
    assert find_param_by_name("volume") is None


def test_get_param_info_unknown_raises():
    with pytest.raises(KeyError):
        get_param_info("decay")


def test_clamp_limits_to_range():
    info = get_param_info(ParamId.PICK_POSITION)
    assert info.clamp(10.0) == info.max_value
    assert info.clamp(-10.0) == info.min_value
    assert info.clamp(0.3) == 0.3