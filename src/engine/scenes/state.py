"""
どこで: `engine.scenes.state`
何を: シーンのライフサイクル状態 `SceneState`、再計算結果 `CachedSceneData`、描画ライフサイクル
      イベント `SceneRenderEvent`。
なぜ: 状態機械とキャッシュの型を依存の少ない場所に固定し、プレイバック側からも参照できるようにするため。
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SceneState(Enum):
    INITIAL = "initial"
    AFTER_TRANSITION_IN = "after_transition_in"
    CAN_TRANSITION_OUT = "can_transition_out"
    FINISHED = "finished"


class SceneRenderEvent(Enum):
    BEFORE_RENDER = "before_render"
    BEGIN_RENDER = "begin_render"
    FINISH_RENDER = "finish_render"
    AFTER_RENDER = "after_render"


# 遷移長がまだ観測されていないことを表す番兵
TRANSITION_UNKNOWN = -1


@dataclass
class CachedSceneData:
    """`recalculate()` が求めるシーンのフレーム範囲。

    `cached` が立った後は明示的な `reload()` まで値を変えない。
    `transition_duration` は再計算中だけ `TRANSITION_UNKNOWN` を取り得る。

    型が `float` なのはプレイバックのフレームと共有するため。プレイバックは速度倍率
    （例: 0.5）ぶん進むので小数フレームを取り得るが、再計算は速度 1 で整数フレームから
    走査するため、ここに入る値は非負の整数値になる。
    """

    first_frame: float = 0
    transition_duration: float = 0
    duration: float = 0
    last_frame: float = 0


__all__ = ["SceneState", "SceneRenderEvent", "CachedSceneData", "TRANSITION_UNKNOWN"]
