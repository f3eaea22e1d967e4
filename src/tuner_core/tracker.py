# src/tuner_core/tracker.py
# =========================================================
# 实时音高跟踪：幅度门限 + 指数平滑 + 跳变确认 + cents 死区平滑
#
# 小白版理解：
# - 估计器每块给一个“原始 Hz”，会偶尔跳到谐波上（单块毛刺）
# - 跟踪器只在“连续 3 块都说跳了”的时候才相信大跳变
# - 正常小变化用指数平滑，显示更稳
# - cents 按“最近半音”分别平滑：换音立即归位，不会慢慢滑过去
#
# 状态放在 TrackerState 里，由调用方持有并逐块传入（一次会话一个）
# =========================================================

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from .config import TrackerConfig

logger = logging.getLogger(__name__)


@dataclass
class TrackerState:
    # 0.0 表示当前没有音高
    smoothed_pitch_hz: float = 0.0

    # 跳变候选与连续佐证次数
    jump_candidate_hz: float = 0.0
    jump_confirm_count: int = 0

    # cents 平滑所属的半音序号（None = 未设置）
    smoothed_cents_note: Optional[int] = None
    smoothed_cents: float = 0.0

    @property
    def has_pitch(self) -> bool:
        return self.smoothed_pitch_hz > 0


def _clear_jump(state: TrackerState) -> None:
    state.jump_candidate_hz = 0.0
    state.jump_confirm_count = 0


def reset_tracker(state: TrackerState) -> None:
    """静音/停止采集：全部清零，cents 的半音记录一起作废"""
    state.smoothed_pitch_hz = 0.0
    state.smoothed_cents_note = None
    state.smoothed_cents = 0.0
    _clear_jump(state)


def update_pitch(
    state: TrackerState,
    raw_hz: float,
    amplitude: float,
    cfg: TrackerConfig = TrackerConfig(),
) -> Tuple[float, float]:
    """
    输入：估计器原始频率（无音高时为 0 或负数）+ 本块幅度
    输出：(显示用频率Hz, 幅度)；无音高时返回 (0.0, 0.0)
    """
    # 1) 门限：太小声 / 没估到 / 频率离谱 => 重置
    if amplitude < cfg.amplitude_threshold or not (0.0 < raw_hz < cfg.max_valid_hz):
        if state.has_pitch:
            logger.debug("pitch lost (raw=%.2f Hz, amp=%.4f), tracker reset", raw_hz, amplitude)
        reset_tracker(state)
        return 0.0, 0.0

    # 2) 第一块有声：直接采用
    if not state.has_pitch:
        state.smoothed_pitch_hz = float(raw_hz)
        return state.smoothed_pitch_hz, amplitude

    ratio = raw_hz / state.smoothed_pitch_hz
    if cfg.jump_ratio_low <= ratio <= cfg.jump_ratio_high:
        # 3) 正常范围：指数平滑
        _clear_jump(state)
        a = cfg.pitch_smoothing
        state.smoothed_pitch_hz = a * state.smoothed_pitch_hz + (1.0 - a) * raw_hz
        return state.smoothed_pitch_hz, amplitude

    # 4) 跳变：和当前候选比，±10% 内算佐证
    tol = cfg.jump_match_tolerance
    cand_ratio = raw_hz / state.jump_candidate_hz if state.jump_candidate_hz > 0 else 0.0
    if 1.0 - tol < cand_ratio < 1.0 + tol:
        state.jump_confirm_count += 1
    else:
        state.jump_candidate_hz = float(raw_hz)
        state.jump_confirm_count = 1

    if state.jump_confirm_count >= cfg.jump_confirm_blocks:
        # 连续佐证够了：直接跳过去，不做平滑
        logger.debug(
            "jump confirmed: %.2f Hz -> %.2f Hz after %d blocks",
            state.smoothed_pitch_hz, raw_hz, state.jump_confirm_count,
        )
        state.smoothed_pitch_hz = float(raw_hz)
        _clear_jump(state)
        return state.smoothed_pitch_hz, amplitude

    # 还没确认：继续显示旧值
    return state.smoothed_pitch_hz, amplitude


def smooth_cents(
    state: TrackerState,
    note_index: int,
    raw_cents: float,
    cfg: TrackerConfig = TrackerConfig(),
) -> float:
    """
    按半音分别平滑 cents：
    - 换了半音：记下新序号，直接采用 raw_cents（不跨音平滑）
    - 变化小于死区：保持上一次的值
    - 否则：指数平滑
    """
    if note_index != state.smoothed_cents_note:
        state.smoothed_cents_note = note_index
        state.smoothed_cents = float(raw_cents)
        return state.smoothed_cents

    if abs(raw_cents - state.smoothed_cents) < cfg.cents_deadzone:
        return state.smoothed_cents

    a = cfg.cents_smoothing
    state.smoothed_cents = a * state.smoothed_cents + (1.0 - a) * raw_cents
    return state.smoothed_cents
