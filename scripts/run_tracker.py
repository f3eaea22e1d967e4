# scripts/run_tracker.py
# =========================================================
# 离线入口脚本：把一段录音当成“实时采集”逐块送进调音器
# - 不打分
# - 输出：逐块频率/cents JSON + 可视化 + 简短总结
# =========================================================

from __future__ import annotations

import argparse
import logging
from dataclasses import asdict
from pathlib import Path
import sys

import numpy as np

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from tuner_core.config import BLOCK_SIZE, HOP_SIZE, OUTPUT_DIR, SAMPLE_RATE, TrackerConfig, YinConfig
from tuner_eval.io_audio import load_audio, AudioConfig
from tuner_eval.pipeline import track_audio
from tuner_eval.report import save_track_json, save_track_figure


def _out_dirs(out_root: Path, audio_path: Path) -> tuple[Path, Path]:
    base = out_root / audio_path.stem
    rep = base / "reports"
    fig = base / "figures"
    rep.mkdir(parents=True, exist_ok=True)
    fig.mkdir(parents=True, exist_ok=True)
    return rep, fig


def main():
    parser = argparse.ArgumentParser(description="Run the real-time pitch tracker over an audio file.")
    parser.add_argument("--audio", type=str, required=True, help="Path to input audio")
    parser.add_argument("--sr", type=int, default=SAMPLE_RATE, help=f"Target sample rate (default: {SAMPLE_RATE})")
    parser.add_argument("--block", type=int, default=BLOCK_SIZE, help=f"Block size in samples (default: {BLOCK_SIZE})")
    parser.add_argument("--hop", type=int, default=HOP_SIZE, help=f"Hop between blocks (default: {HOP_SIZE})")
    parser.add_argument("--gain", type=float, default=1.0, help="Input gain applied before analysis (default: 1.0)")
    parser.add_argument("--out", type=str, default=OUTPUT_DIR, help=f"Output root directory (default: {OUTPUT_DIR})")
    parser.add_argument("--verbose", action="store_true", help="Print tracker debug log")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    # librosa / numba 的调试信息太多
    logging.getLogger("numba").setLevel(logging.WARNING)

    audio_path = Path(args.audio)
    if not audio_path.exists():
        raise FileNotFoundError(f"Audio file not found: {audio_path}")

    # 1) 读音频
    y, sr = load_audio(audio_path, AudioConfig(sr=args.sr))

    # 2) 逐块跟踪
    yin_cfg = YinConfig()
    tracker_cfg = TrackerConfig()
    track = track_audio(
        y,
        sr,
        block_size=args.block,
        hop_size=args.hop,
        input_gain=args.gain,
        yin_cfg=yin_cfg,
        tracker_cfg=tracker_cfg,
    )

    # 3) 输出 JSON
    reports_dir, figures_dir = _out_dirs(Path(args.out), audio_path)
    out_json = reports_dir / f"{audio_path.stem}.track.json"
    out_png = figures_dir / f"{audio_path.stem}.track.png"

    pitch = track["pitch_hz"]
    voiced = pitch > 0
    median_hz = float(np.median(pitch[voiced])) if np.any(voiced) else None

    export = {
        "meta": {
            "stage": "realtime_pitch_track",
            "audio": audio_path.name,
            "sample_rate_hz": sr,
            "block_size": args.block,
            "hop_size": args.hop,
            "input_gain": args.gain,
        },
        "yin_config": asdict(yin_cfg),
        "tracker_config": asdict(tracker_cfg),
        "summary": {
            "blocks": int(len(pitch)),
            "voiced_ratio": round(track["voiced_ratio"], 4),
            "median_pitch_hz": round(median_hz, 3) if median_hz is not None else None,
        },
        "track": {
            "times_sec": track["times_sec"],
            "raw_hz": track["raw_hz"],
            "pitch_hz": track["pitch_hz"],
            "amplitude": track["amplitude"],
            "note_index": track["note_index"],
            "cents": track["cents"],
        },
    }
    save_track_json(out_json, export)

    # 4) 输出图
    save_track_figure(out_png, track, f"Pitch Track - {audio_path.name}")

    print("========== Real-time Pitch Track ==========")
    print(f"Audio        : {audio_path.name}")
    print(f"Output JSON  : {out_json}")
    print(f"Output PNG   : {out_png}")
    print("-------------------------------------------")
    print(f"Blocks       : {len(pitch)}")
    print(f"Voiced ratio : {track['voiced_ratio']*100:.1f}%")
    if median_hz is None:
        print("[WARN] No pitch detected in any block.")
    else:
        print(f"Median pitch : {median_hz:.2f} Hz")
    print("===========================================")


if __name__ == "__main__":
    main()
