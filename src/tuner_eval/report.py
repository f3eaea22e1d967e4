# src/tuner_eval/report.py
# =========================================================
# 跟踪结果输出（JSON + 图）
# =========================================================

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Any

import numpy as np
import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt


def _to_jsonable(v: Any) -> Any:
    """numpy 数组/标量 -> 普通 list/float，NaN -> None"""
    if isinstance(v, np.ndarray):
        return [_to_jsonable(x) for x in v.tolist()]
    if isinstance(v, dict):
        return {k: _to_jsonable(x) for k, x in v.items()}
    if isinstance(v, (list, tuple)):
        return [_to_jsonable(x) for x in v]
    if isinstance(v, np.generic):
        v = v.item()
    if isinstance(v, float) and not np.isfinite(v):
        return None
    return v


def save_track_json(out_path: str | Path, payload: Dict[str, Any]) -> None:
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(_to_jsonable(payload), f, ensure_ascii=False, indent=2)


def save_track_figure(out_path: str | Path, track: Dict[str, Any], title: str) -> None:
    """
    两张子图：
    - 上：原始估计（浅色）与平滑后的频率（深色），无音高的块不画
    - 下：平滑后的 cents（正=偏高，负=偏低）
    """
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    t = np.asarray(track["times_sec"])
    raw = np.asarray(track["raw_hz"], dtype=float).copy()
    smooth = np.asarray(track["pitch_hz"], dtype=float).copy()
    cents = np.asarray(track["cents"], dtype=float)
    raw[raw <= 0] = np.nan
    smooth[smooth <= 0] = np.nan

    fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(12, 6), sharex=True)

    ax1.plot(t, raw, linewidth=0.8, alpha=0.35, label="Raw estimate")
    ax1.plot(t, smooth, linewidth=1.6, label="Tracked pitch")
    ax1.set_ylabel("Frequency (Hz)")
    ax1.legend(loc="upper right")
    ax1.grid(alpha=0.2)

    ax2.plot(t, cents, linewidth=1)
    ax2.axhline(0, linewidth=1)
    ax2.axhline(10, linestyle="--", linewidth=1)
    ax2.axhline(-10, linestyle="--", linewidth=1)
    ax2.set_ylim(-50, 50)
    ax2.set_xlabel("Time (s)")
    ax2.set_ylabel("Cents")
    ax2.grid(alpha=0.2)

    ax1.set_title(title)
    plt.tight_layout()
    plt.savefig(out_path, dpi=150)
    plt.close(fig)
