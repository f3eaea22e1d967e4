# src/tuner_core/config.py
# =========================================================
# 调音器核心配置
#
# 说明：
# - 模块级常量：会话默认值（采样率、块大小、参考音高）
# - YinConfig / TrackerConfig：算法常量，数值必须保持不变，
#   其他模块只从这里读取，不再写死魔法数字
# =========================================================

from __future__ import annotations

from dataclasses import dataclass

# 音频块设置（分析窗口 8192，半窗 4096）
SAMPLE_RATE = 44100
BLOCK_SIZE = 8192
HOP_SIZE = 2048

# 麦克风增益（实时采集时在分析前放大）
INPUT_GAIN = 4.0

# 固定参考音高：中央C（Hz）
MIDDLE_C_HZ = 261.63

# 文件路径
OUTPUT_DIR = "outputs"


@dataclass(frozen=True)
class YinConfig:
    """YIN 估计器参数"""
    # 搜索频率范围（Hz）：tau = sr / freq
    min_freq: float = 60.0    # 约 B1
    max_freq: float = 2000.0

    # CMNDF 阈值：低于它的凹陷才算候选
    threshold: float = 0.20

    # 候选挑选规则
    candidate_strong_factor: float = 0.8          # 明显更强：直接替换
    candidate_similar_factor: float = 1.2         # 强度相近 ...
    candidate_fundamental_tau_factor: float = 1.5  # ... 且周期长很多：偏向基频

    def __post_init__(self):
        if not 0 < self.min_freq < self.max_freq:
            raise ValueError(f"频率范围无效: min_freq={self.min_freq}, max_freq={self.max_freq}")
        if not 0 < self.threshold < 1:
            raise ValueError(f"threshold 必须在 (0, 1) 内: {self.threshold}")


@dataclass(frozen=True)
class TrackerConfig:
    """实时跟踪器参数（平滑 + 跳变确认 + cents 死区）"""
    # 幅度门限（RMS）：低于它当作静音
    amplitude_threshold: float = 0.005
    # 合理频率上限：超出视为无音高
    max_valid_hz: float = 5000.0

    # 指数平滑系数（越大越稳、越慢）
    pitch_smoothing: float = 0.7
    cents_smoothing: float = 0.88
    # cents 死区：小于它的抖动直接忽略
    cents_deadzone: float = 1.5

    # 跳变确认：比值超出 [low, high] 视为跳变，需要连续 N 块佐证
    jump_confirm_blocks: int = 3
    jump_ratio_high: float = 1.8
    jump_ratio_low: float = 0.55
    # 佐证窗口：与候选相差 ±10% 以内算同一个候选
    jump_match_tolerance: float = 0.10

    def __post_init__(self):
        for name in ("pitch_smoothing", "cents_smoothing"):
            v = getattr(self, name)
            if not 0.0 <= v < 1.0:
                raise ValueError(f"{name} 必须在 [0, 1) 内: {v}")
        if self.jump_confirm_blocks < 1:
            raise ValueError(f"jump_confirm_blocks 至少为 1: {self.jump_confirm_blocks}")
        if not 0 < self.jump_ratio_low < 1 < self.jump_ratio_high:
            raise ValueError(
                f"跳变比值区间无效: low={self.jump_ratio_low}, high={self.jump_ratio_high}"
            )
