"""
どこで: `api` 入口（高レベル公開 API）。
何を: シーン生成/書き出し（`make_scene`/`render`）、フロー制御ヘルパ、描画ノード、
      コンテキストアクセサ（`use_*`）を再輸出。
なぜ: 利用者が単一名前空間からジェネレータでタイムラインを書き、書き出しまで完結できるようにするため。

Usage:
    from api import Rect, all_, render, wait_for

    def scene(view):
        a = Rect(width=20, height=20, fill="#ff0000")
        view.add(a)
        yield from all_(wait_for(1), wait_for(0.5))

    render([("main", scene)], fps=30)
"""

from engine.core.context import (
    use_logger,
    use_playback,
    use_random,
    use_scene,
    use_thread,
    use_time,
)
from engine.render import Surface
from engine.scenes import Image, Node, Rect, View, ViewScene
from engine.signals import AsyncResource, Computed, Signal
from engine.threading import (
    all_,
    any_,
    cancel,
    chain,
    delay,
    finish_scene,
    join,
    loop,
    sequence,
    spawn,
    transition,
    use_transition,
    wait_for,
    wait_until,
)

from .runner import make_scene, render

__all__ = [
    # 実行
    "make_scene",
    "render",
    # フロー制御
    "all_",
    "any_",
    "cancel",
    "chain",
    "delay",
    "finish_scene",
    "join",
    "loop",
    "sequence",
    "spawn",
    "transition",
    "use_transition",
    "wait_for",
    "wait_until",
    # コンテキスト
    "use_logger",
    "use_playback",
    "use_random",
    "use_scene",
    "use_thread",
    "use_time",
    # 描画
    "AsyncResource",
    "Computed",
    "Signal",
    "Image",
    "Node",
    "Rect",
    "Surface",
    "View",
    "ViewScene",
]

__version__ = "2026.10"
