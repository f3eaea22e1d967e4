# -*- coding: utf-8 -*-
"""
音高单位换算（只做数值，不做音名）：
- 频率(Hz) → 半音编号（以中央C=60）
- 频率(Hz) → 最近半音的序号(0~11) / 八度 / cents 偏差
"""

from __future__ import annotations

import math
from typing import Tuple

import numpy as np

from .config import MIDDLE_C_HZ


def hz_to_note_number(f_hz: float, middle_c_hz: float = MIDDLE_C_HZ) -> float:
    """
    把频率转换为半音编号（可以是小数）
    参考：中央C = 60
    """
    if f_hz <= 0:
        raise ValueError(f"频率必须为正: {f_hz}")
    return 60.0 + 12.0 * float(np.log2(f_hz / middle_c_hz))


def nearest_note(f_hz: float, middle_c_hz: float = MIDDLE_C_HZ) -> Tuple[int, int, float]:
    """
    给定频率，找最近的十二平均律半音
    返回：
      note_index: 0~11（0 = C）
      octave: 八度（中央C 为 4）
      cents: 相对最近半音的偏差，>0 偏高，<0 偏低
    """
    n = hz_to_note_number(f_hz, middle_c_hz)
    n_int = int(math.floor(n + 0.5))
    note_index = n_int % 12
    octave = n_int // 12 - 1
    cents = (n - n_int) * 100.0
    # round 的半格边界：统一折到 (-50, 50]
    if cents > 50.0:
        cents -= 100.0
    return note_index, octave, float(cents)
