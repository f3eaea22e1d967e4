# =========================================================
# tuner_eval 模块对外接口（离线：读文件 -> 逐块跟踪 -> 报告）
# =========================================================

from .io_audio import AudioConfig, load_audio, save_audio
from .pipeline import frame_audio, track_audio
from .report import save_track_json, save_track_figure

__all__ = [
    "AudioConfig",
    "load_audio",
    "save_audio",
    "frame_audio",
    "track_audio",
    "save_track_json",
    "save_track_figure",
]
