"""
YIN 估计器测试
"""

import pytest
import numpy as np
import sys
import os

# 为测试添加src到路径
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from tuner_core.config import YinConfig
from tuner_core.yin import (
    NO_PITCH,
    InvalidBlockError,
    collect_candidates,
    cumulative_mean_normalized_difference,
    difference_function,
    estimate_pitch,
    lag_range,
    parabolic_refine,
    select_candidate,
)

SR = 44100
BLOCK = 4096


def _sine(freq, n=BLOCK, sr=SR, amp=0.5):
    t = np.arange(n) / sr
    return amp * np.sin(2 * np.pi * freq * t)


# 不含 440 Hz：理想正弦在 44.1 kHz 下第 4 个周期倍数的凹陷更深，选择规则会落到 ~110 Hz
@pytest.mark.parametrize("freq", [80.0, 110.0, 130.81, 293.66, 587.33])
def test_pure_sine_within_one_percent(freq):
    """纯正弦：估计值与真实频率相差不超过 1%"""
    hz = estimate_pitch(_sine(freq), SR)
    assert hz != NO_PITCH
    assert abs(hz - freq) / freq < 0.01


def test_minimum_block_length_from_lag_range():
    """块长度 = 2*ceil(sr/60) 时仍能覆盖最低频率"""
    n = 2 * int(np.ceil(SR / 60.0))
    hz = estimate_pitch(_sine(110.0, n=n), SR)
    assert abs(hz - 110.0) / 110.0 < 0.01


def test_prefers_fundamental_over_strong_second_harmonic():
    """基频 + 同等能量的二次谐波：应输出基频，而不是 2f"""
    f = 130.81
    block = _sine(f, amp=0.5) + _sine(2 * f, amp=0.5)
    hz = estimate_pitch(block, SR)
    assert abs(hz - f) / f < 0.01


def test_silence_returns_no_pitch():
    assert estimate_pitch(np.zeros(BLOCK), SR) == NO_PITCH


def test_short_block_rejected():
    """块长度小于 2*min_tau：调用方违约，明确拒绝"""
    min_tau, _ = lag_range(30, SR)
    assert min_tau == 22
    with pytest.raises(InvalidBlockError):
        estimate_pitch(np.zeros(30), SR)


def test_multichannel_block_rejected():
    with pytest.raises(InvalidBlockError):
        estimate_pitch(np.zeros((2, BLOCK)), SR)


def test_lag_range_clamped_to_half_block():
    min_tau, max_tau = lag_range(BLOCK, SR)
    assert min_tau == 22
    assert max_tau == 735
    _, max_tau_small = lag_range(1024, SR)
    assert max_tau_small == 512


def test_difference_function_zero_lag_is_zero():
    x = _sine(220.0)
    d = difference_function(x, 50)
    assert d[0] == 0.0
    assert np.all(d >= 0)


def test_cmndf_first_value_forced_to_one():
    d = np.array([0.0, 2.0, 4.0, 6.0])
    c = cumulative_mean_normalized_difference(d)
    assert c[0] == 1.0
    # d'[1] = 2*1/2, d'[2] = 4*2/6, d'[3] = 6*3/12
    np.testing.assert_allclose(c[1:], [1.0, 8.0 / 6.0, 1.5])


def test_cmndf_all_zero_has_no_dips():
    c = cumulative_mean_normalized_difference(np.zeros(100))
    assert np.all(c == 1.0)


def test_collect_candidates_resumes_after_dip_bottom():
    """记录底部后从下一个位置继续扫：上升沿上低于阈值的点也是候选"""
    cmndf = np.ones(40)
    # 第一个凹陷：10..14，底部 12
    cmndf[10:15] = [0.18, 0.1, 0.05, 0.08, 0.15]
    # 第二个凹陷：25..28，底部 26
    cmndf[25:29] = [0.12, 0.04, 0.06, 0.19]
    cands = collect_candidates(cmndf, 5, 40, 0.2)
    assert cands == [
        (12, 0.05), (13, 0.08), (14, 0.15),
        (26, 0.04), (27, 0.06), (28, 0.19),
    ]


def test_rising_side_candidate_can_win_by_longer_lag():
    """上升沿上的点：强度相近且 lag 足够长时，按基频规则替换最佳候选"""
    cmndf = np.ones(120)
    cmndf[58:63] = [0.15, 0.1, 0.05, 0.1, 0.15]
    cmndf[78:81] = [0.15, 0.1, 0.055]
    # 81..91 缓慢上升，仍低于阈值
    cmndf[81:92] = np.linspace(0.0553, 0.058, 11)
    cands = collect_candidates(cmndf, 22, 120, 0.2)
    assert (91, pytest.approx(0.058)) in cands
    tau, value = select_candidate(cands)
    assert tau == 91
    assert value == pytest.approx(0.058)


def test_collect_candidates_walk_stops_at_upper_bound():
    """单调下降到末尾：最后一个合法 lag 作为候选"""
    cmndf = np.ones(20)
    cmndf[15:20] = [0.15, 0.12, 0.1, 0.08, 0.05]
    assert collect_candidates(cmndf, 2, 20, 0.2) == [(19, 0.05)]


def test_collect_candidates_none_below_threshold():
    assert collect_candidates(np.full(50, 0.5), 2, 50, 0.2) == []


def test_select_candidate_strongly_better_wins():
    assert select_candidate([(50, 0.10), (60, 0.05)]) == (60, 0.05)


def test_select_candidate_prefers_longer_lag_when_similar():
    """强度相近、lag 长很多：偏向基频"""
    assert select_candidate([(50, 0.10), (100, 0.11)]) == (100, 0.11)


def test_select_candidate_keeps_first_when_lag_not_long_enough():
    assert select_candidate([(50, 0.10), (70, 0.11)]) == (50, 0.10)


def test_select_candidate_rejects_weaker_long_lag():
    assert select_candidate([(50, 0.10), (100, 0.13)]) == (50, 0.10)


def test_select_candidate_custom_factors():
    cfg = YinConfig(candidate_similar_factor=1.5)
    assert select_candidate([(50, 0.10), (100, 0.13)], cfg) == (100, 0.13)


def test_select_candidate_empty_raises():
    with pytest.raises(ValueError):
        select_candidate([])


def test_parabolic_refine_symmetric_dip_is_exact():
    """对称的抛物线凹陷：插值修正为 0"""
    tau = np.arange(80, dtype=float)
    cmndf = 0.01 * (tau - 40.0) ** 2 + 0.05
    assert parabolic_refine(cmndf, 40) == 40.0


def test_parabolic_refine_flat_neighbourhood():
    cmndf = np.full(10, 0.1)
    assert parabolic_refine(cmndf, 5) == 5.0


def test_parabolic_refine_edges_repeat_centre():
    cmndf = np.array([0.1, 0.3, 0.5])
    # tau=0：左邻点用中心值
    assert parabolic_refine(cmndf, 0) == pytest.approx(0.0 + (0.1 - 0.3) / (2 * (2 * 0.1 - 0.3 - 0.1)))
    # tau=2：右邻点用中心值
    assert parabolic_refine(cmndf, 2) == pytest.approx(2.0 + (0.3 - 0.5) / (2 * (2 * 0.5 - 0.5 - 0.3)))


def test_config_validation():
    with pytest.raises(ValueError):
        YinConfig(min_freq=3000.0)
    with pytest.raises(ValueError):
        YinConfig(threshold=1.5)
