# src/tuner_core/session.py
# =========================================================
# 每块一次的处理流程（采集回调里同步调用）
#
#   block --增益--> RMS --门限--> YIN 估计 --> 跟踪器平滑
#         --> 最近半音 + cents --> cents 平滑
#
# 说明：
# - 单线程、逐块调用；同一个 TrackerState 不能并发使用
# - 幅度低于门限时直接跳过估计（省掉最耗时的一步）
# =========================================================

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .config import INPUT_GAIN, MIDDLE_C_HZ, TrackerConfig, YinConfig
from .pitch_units import nearest_note
from .tracker import TrackerState, reset_tracker, smooth_cents, update_pitch
from .yin import NO_PITCH, estimate_pitch


@dataclass(frozen=True)
class BlockReading:
    """一块音频的输出（给显示层用）"""
    raw_hz: float            # 估计器原始输出（NO_PITCH = 0.0）
    pitch_hz: float          # 跟踪器平滑后的频率（0.0 = 无音高）
    amplitude: float         # 本块 RMS（无音高时为 0.0）
    note_index: Optional[int] = None  # 0~11，无音高为 None
    octave: Optional[int] = None
    cents: float = 0.0       # 平滑后的 cents

    @property
    def voiced(self) -> bool:
        return self.pitch_hz > 0


def compute_rms(block: np.ndarray) -> float:
    x = np.asarray(block, dtype=np.float64)
    if x.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(x * x)))


def process_block(
    state: TrackerState,
    block: np.ndarray,
    sr: float,
    amplitude: Optional[float] = None,
    input_gain: float = INPUT_GAIN,
    yin_cfg: YinConfig = YinConfig(),
    tracker_cfg: TrackerConfig = TrackerConfig(),
    middle_c_hz: float = MIDDLE_C_HZ,
) -> BlockReading:
    """
    输入：会话状态 + 一块音频（可选：外部已经算好的幅度）
    输出：BlockReading
    """
    x = np.asarray(block, dtype=np.float64)
    if input_gain != 1.0:
        x = x * input_gain

    amp = compute_rms(x) if amplitude is None else float(amplitude)

    if amp < tracker_cfg.amplitude_threshold:
        reset_tracker(state)
        return BlockReading(raw_hz=NO_PITCH, pitch_hz=0.0, amplitude=0.0)

    raw_hz = estimate_pitch(x, sr, yin_cfg)
    pitch_hz, amp_out = update_pitch(state, raw_hz, amp, tracker_cfg)
    if pitch_hz <= 0:
        return BlockReading(raw_hz=raw_hz, pitch_hz=0.0, amplitude=0.0)

    note_index, octave, raw_cents = nearest_note(pitch_hz, middle_c_hz)
    cents = smooth_cents(state, note_index, raw_cents, tracker_cfg)
    return BlockReading(
        raw_hz=raw_hz,
        pitch_hz=pitch_hz,
        amplitude=amp_out,
        note_index=note_index,
        octave=octave,
        cents=cents,
    )
