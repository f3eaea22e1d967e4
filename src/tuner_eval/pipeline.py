# -*- coding: utf-8 -*-
"""
把整段音频切成“块”，按实时顺序逐块送进调音器核心。
输出：times, raw_hz, pitch_hz, amplitude, note_index, cents
"""

from __future__ import annotations

import logging

import numpy as np

from tuner_core.config import BLOCK_SIZE, HOP_SIZE, MIDDLE_C_HZ, TrackerConfig, YinConfig
from tuner_core.session import process_block
from tuner_core.tracker import TrackerState

logger = logging.getLogger(__name__)


def frame_audio(y: np.ndarray, frame_size: int, hop_size: int) -> np.ndarray:
    """
    返回 shape=(num_frames, frame_size) 的帧矩阵
    """
    if hop_size <= 0:
        raise ValueError(f"hop_size 必须为正: {hop_size}")
    if len(y) < frame_size:
        # 太短就补零
        pad = frame_size - len(y)
        y = np.pad(y, (0, pad), mode="constant")

    num_frames = 1 + (len(y) - frame_size) // hop_size
    frames = np.zeros((num_frames, frame_size), dtype=np.float32)
    for k in range(num_frames):
        start = k * hop_size
        frames[k] = y[start:start + frame_size]
    return frames


def track_audio(
    y: np.ndarray,
    sr: int,
    block_size: int = BLOCK_SIZE,
    hop_size: int = HOP_SIZE,
    input_gain: float = 1.0,
    yin_cfg: YinConfig = YinConfig(),
    tracker_cfg: TrackerConfig = TrackerConfig(),
    middle_c_hz: float = MIDDLE_C_HZ,
) -> dict:
    """
    模拟一次“听音会话”：一个 TrackerState 从头用到尾
    times_sec 取每块的结束时刻（实时采集时拿到这块的时间）
    """
    frames = frame_audio(np.asarray(y, dtype=np.float32), block_size, hop_size)
    num_frames = frames.shape[0]

    times = (np.arange(num_frames, dtype=np.float64) * hop_size + block_size) / float(sr)
    raw_hz = np.zeros(num_frames, dtype=np.float32)
    pitch_hz = np.zeros(num_frames, dtype=np.float32)
    amps = np.zeros(num_frames, dtype=np.float32)
    note_index = np.full(num_frames, -1, dtype=np.int32)
    cents = np.full(num_frames, np.nan, dtype=np.float32)

    state = TrackerState()
    for i in range(num_frames):
        reading = process_block(
            state,
            frames[i],
            sr,
            input_gain=input_gain,
            yin_cfg=yin_cfg,
            tracker_cfg=tracker_cfg,
            middle_c_hz=middle_c_hz,
        )
        raw_hz[i] = reading.raw_hz
        pitch_hz[i] = reading.pitch_hz
        amps[i] = reading.amplitude
        # 只在有音高的块里记录半音和 cents
        if reading.voiced:
            note_index[i] = reading.note_index
            cents[i] = reading.cents

    voiced = pitch_hz > 0
    voiced_ratio = float(np.mean(voiced)) if num_frames else 0.0
    logger.debug("tracked %d blocks, voiced ratio %.3f", num_frames, voiced_ratio)

    return {
        "times_sec": times,
        "raw_hz": raw_hz,
        "pitch_hz": pitch_hz,
        "amplitude": amps,
        "note_index": note_index,
        "cents": cents,
        "voiced_ratio": voiced_ratio,

        "block_size": block_size,
        "hop_size": hop_size,
        "sr": sr,
        "input_gain": input_gain,
    }
