# -*- coding: utf-8 -*-
"""
单块音高估计（Hz）：YIN 差分函数 + CMNDF + 多候选挑选 + 抛物线插值。

和“取第一个低于阈值的凹陷”的 YIN 不同：
这里把所有低于阈值的凹陷都收集起来，再统一挑选，
能明显减少麦克风噪声下的八度/谐波误判。
"""

from __future__ import annotations

import math
from typing import List, Tuple

import numpy as np

from .config import YinConfig

# 无音高：沿用“不可靠就返回 0.0”的约定
NO_PITCH = 0.0

Candidate = Tuple[int, float]


class InvalidBlockError(ValueError):
    """输入块不满足最小长度/形状要求（调用方违反约定）"""


def lag_range(block_size: int, sr: float, cfg: YinConfig = YinConfig()) -> tuple[int, int]:
    """
    根据频率范围换算 lag 搜索区间
    返回：(min_tau, max_tau)，max_tau 不超过半块长度
    """
    half = block_size // 2
    min_tau = int(math.floor(sr / cfg.max_freq))
    max_tau = min(int(math.ceil(sr / cfg.min_freq)), half)
    return min_tau, max_tau


def difference_function(x: np.ndarray, max_tau: int) -> np.ndarray:
    """
    平方差函数 d[tau] = sum_{i<half} (x[i] - x[i+tau])^2
    直接时域求和（不走 FFT），每个 lag 用一次向量点积
    """
    half = len(x) // 2
    head = x[:half]
    d = np.zeros(max_tau, dtype=np.float64)
    for tau in range(max_tau):
        delta = head - x[tau:tau + half]
        d[tau] = float(np.dot(delta, delta))
    return d


def cumulative_mean_normalized_difference(d: np.ndarray) -> np.ndarray:
    """
    CMNDF：d'[0] = 1，d'[tau] = d[tau] * tau / sum(d[1..tau])
    归一化之后固定阈值才能适应不同能量的信号
    """
    out = np.ones_like(d, dtype=np.float64)
    if len(d) < 2:
        return out
    taus = np.arange(1, len(d), dtype=np.float64)
    running = np.cumsum(d[1:])
    with np.errstate(divide="ignore", invalid="ignore"):
        vals = d[1:] * taus / running
    # 全零输入（数字静音）：累计和为 0，当作“完全没有周期性”
    vals[running <= 0] = 1.0
    out[1:] = vals
    return out


def collect_candidates(
    cmndf: np.ndarray,
    min_tau: int,
    max_tau: int,
    threshold: float,
) -> List[Candidate]:
    """
    收集低于阈值的候选 (tau, value)

    每个凹陷：先往下走到底（下一个值严格更小就继续），记录一次；
    然后从底部的下一个位置继续扫：上升沿上仍低于阈值的点也会被记录。
    """
    candidates: List[Candidate] = []
    tau = min_tau
    while tau < max_tau - 1:
        if cmndf[tau] < threshold:
            # 走到凹陷底部（上界 max_tau-1 也算有效候选）
            while tau + 1 < max_tau and cmndf[tau + 1] < cmndf[tau]:
                tau += 1
            candidates.append((tau, float(cmndf[tau])))
        tau += 1
    return candidates


def select_candidate(candidates: List[Candidate], cfg: YinConfig = YinConfig()) -> Candidate:
    """
    从左到右折叠挑选最佳候选（以第一个为初值）：
    - 明显更强（value < best * 0.8）：直接替换
    - 强度相近（value < best * 1.2）且 tau 长很多（> best.tau * 1.5）：
      替换，谐波的凹陷总是出现在更短的 lag 上，这里偏向基频
    """
    if not candidates:
        raise ValueError("候选列表为空")
    best_tau, best_val = candidates[0]
    for tau, val in candidates[1:]:
        if val < best_val * cfg.candidate_strong_factor:
            best_tau, best_val = tau, val
        elif (val < best_val * cfg.candidate_similar_factor
              and tau > best_tau * cfg.candidate_fundamental_tau_factor):
            best_tau, best_val = tau, val
    return best_tau, best_val


def parabolic_refine(cmndf: np.ndarray, tau: int) -> float:
    """
    在 tau-1, tau, tau+1 三点做抛物线插值，得到小数 lag
    边界处用中心值代替越界的邻点
    """
    s1 = float(cmndf[tau])
    s0 = float(cmndf[tau - 1]) if tau > 0 else s1
    s2 = float(cmndf[tau + 1]) if tau + 1 < len(cmndf) else s1
    denom = 2.0 * (2.0 * s1 - s2 - s0)
    if denom == 0:
        return float(tau)
    return float(tau) + (s0 - s2) / denom


def estimate_pitch(
    block: np.ndarray,
    sr: float,
    cfg: YinConfig = YinConfig(),
) -> float:
    """
    输入：一块音频 block（1D，[-1, 1]）与采样率
    输出：基频（Hz）；没有足够的周期性证据时返回 NO_PITCH

    块太短（< 2 * min_tau）直接抛 InvalidBlockError
    """
    if sr <= 0:
        raise InvalidBlockError(f"采样率必须为正: {sr}")
    x = np.asarray(block, dtype=np.float64)
    if x.ndim != 1:
        raise InvalidBlockError(f"只支持单声道 1D 数组，当前 shape={x.shape}")

    min_tau, max_tau = lag_range(len(x), sr, cfg)
    if len(x) < 2 * min_tau:
        raise InvalidBlockError(
            f"块长度 {len(x)} 不足：至少需要 {2 * min_tau} 个采样点（sr={sr}）"
        )

    # 1) 平方差  2) CMNDF
    cmndf = cumulative_mean_normalized_difference(difference_function(x, max_tau))

    # 3) 收集所有候选
    candidates = collect_candidates(cmndf, min_tau, max_tau, cfg.threshold)
    if not candidates:
        return NO_PITCH

    # 4) 挑选  5) 插值
    tau, _ = select_candidate(candidates, cfg)
    refined = parabolic_refine(cmndf, tau)
    if refined <= 0:
        return NO_PITCH

    return float(sr / refined)
