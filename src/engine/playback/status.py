"""
どこで: `engine.playback.status`
何を: シーンから見たプレイバックの読み取り専用ビュー `PlaybackStatus`。
なぜ: シーンとスケジューラが現在フレーム/速度/FPS を参照できる一方、論理時間の所有者
      （`PlaybackManager`）を直接操作させないため。
"""

from __future__ import annotations

from typing import Protocol


class _PlaybackSource(Protocol):
    frame: float
    speed: float
    fps: float


class PlaybackStatus:
    """`PlaybackManager` の状態を読み出すだけの薄いビュー。"""

    __slots__ = ("_source",)

    def __init__(self, source: _PlaybackSource) -> None:
        self._source = source

    @property
    def frame(self) -> float:
        return self._source.frame

    @property
    def speed(self) -> float:
        return self._source.speed

    @property
    def fps(self) -> float:
        return self._source.fps

    @property
    def time(self) -> float:
        """現在フレームの時刻 [sec]。"""
        return self.frames_to_seconds(self.frame)

    @property
    def delta_time(self) -> float:
        """1 ティックで進む時間 [sec]（速度込み）。"""
        return self.frames_to_seconds(1) * self.speed

    def frames_to_seconds(self, frames: float) -> float:
        return frames / self.fps

    def seconds_to_frames(self, seconds: float) -> int:
        return int(round(seconds * self.fps))


__all__ = ["PlaybackStatus"]
