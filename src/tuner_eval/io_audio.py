# src/tuner_eval/io_audio.py
# ============================================
# 离线音频读写（代替实时采集）
#
# 职责边界：
# 1. 读成单声道 float32，必要时重采样到会话采样率
# 2. 不做归一化：跟踪器的幅度门限看的是真实 RMS
# 3. 不做音高估计
# ============================================

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

import numpy as np
import librosa
import soundfile as sf

from tuner_core.config import SAMPLE_RATE


@dataclass(frozen=True)
class AudioConfig:
    sr: Optional[int] = SAMPLE_RATE       # 会话采样率（Hz），None = 保持文件采样率
    max_duration_sec: Optional[float] = None  # 只读前 N 秒（长录音调试用）


def load_audio(
    path: str | Path,
    cfg: AudioConfig = AudioConfig()
) -> Tuple[np.ndarray, int]:
    """
    返回:
      y: 单声道 float32
      sr: 采样率
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"音频文件不存在: {path}")

    info = sf.info(path.as_posix())
    frames = -1
    if cfg.max_duration_sec is not None:
        frames = int(cfg.max_duration_sec * info.samplerate)

    # soundfile 直接读原始采样率；多声道取平均
    y, sr = sf.read(path.as_posix(), frames=frames, dtype="float32", always_2d=True)
    y = y.mean(axis=1).astype(np.float32)

    if y.size == 0:
        raise ValueError(f"读取到空音频: {path}")

    # 采样率不一致才交给 librosa 重采样
    if cfg.sr is not None and sr != cfg.sr:
        y = librosa.resample(y, orig_sr=sr, target_sr=cfg.sr).astype(np.float32)
        sr = cfg.sr

    return y, int(sr)


def save_audio(
    path: str | Path,
    y: np.ndarray,
    sr: int
) -> None:
    """
    保存单声道 float32 波形（超出 [-1, 1] 的部分会被削顶）
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    y = np.clip(np.asarray(y, dtype=np.float32), -1.0, 1.0)
    sf.write(path.as_posix(), y, sr, subtype="FLOAT")
