# src/tuner_core/__init__.py
# =========================================================
# tuner_core 包的对外接口（公共 API）
#
# 说明：
# - 估计器：纯函数，逐块调用
# - 跟踪器：状态放在 TrackerState，由调用方持有
# =========================================================

from .config import TrackerConfig, YinConfig
from .yin import NO_PITCH, InvalidBlockError, estimate_pitch
from .tracker import TrackerState, reset_tracker, smooth_cents, update_pitch
from .pitch_units import nearest_note
from .session import BlockReading, compute_rms, process_block

__all__ = [
    "TrackerConfig",
    "YinConfig",
    "NO_PITCH",
    "InvalidBlockError",
    "estimate_pitch",
    "TrackerState",
    "reset_tracker",
    "smooth_cents",
    "update_pitch",
    "nearest_note",
    "BlockReading",
    "compute_rms",
    "process_block",
]
